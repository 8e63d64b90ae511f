"""
Counter Maintainer
==================

Every denormalized counter is written here and nowhere else.

ATOMICITY:
----------
adjust() is a single UPDATE with an F() expression:

    UPDATE engagement_article SET like_count = like_count + 1 WHERE id = %s

so N concurrent adjustments always sum correctly. A read-modify-write in
Python (obj.like_count += 1; obj.save()) would lose updates under load.

NEVER NEGATIVE:
---------------
A decrement carries a guard (like_count >= 1). If the guard filters the row
out, the counter was already zero - some earlier path drifted - so we leave
it at zero and log a warning. reconcile_counters() repairs the drift from
the relationship tables, which are the source of truth.
"""

import logging
from typing import Callable, NamedTuple

from django.contrib.contenttypes.models import ContentType
from django.db.models import Count, F, OuterRef, Subquery, Value
from django.db.models.functions import Coalesce

from .models import Account, Article, Comment, Follow, Like

logger = logging.getLogger(__name__)

ALLOWED_DELTAS = (1, -1)


class CounterSpec(NamedTuple):
    model: type
    # column on the model holding the entity id
    lookup: str
    # () -> (edge queryset, edge column pointing at the entity)
    source: Callable


def _follow_edges(column):
    return lambda: (Follow.objects.all(), column)


def _likes_on(model):
    def source():
        content_type = ContentType.objects.get_for_model(model)
        return Like.objects.filter(content_type=content_type), 'object_id'
    return source


def _comments_on_article():
    return Comment.objects.all(), 'article_id'


COUNTERS = {
    ('account', 'followers_count'): CounterSpec(Account, 'user_id', _follow_edges('author_id')),
    ('account', 'following_count'): CounterSpec(Account, 'user_id', _follow_edges('follower_id')),
    ('article', 'like_count'): CounterSpec(Article, 'pk', _likes_on(Article)),
    ('article', 'comment_count'): CounterSpec(Article, 'pk', _comments_on_article),
    ('comment', 'like_count'): CounterSpec(Comment, 'pk', _likes_on(Comment)),
}


def _spec(entity_kind: str, field: str) -> CounterSpec:
    try:
        return COUNTERS[(entity_kind, field)]
    except KeyError:
        raise ValueError(f"No counter {field!r} on {entity_kind!r}") from None


def _true_count(spec: CounterSpec):
    """Correlated subquery counting the edges a counter should equal."""
    edges, column = spec.source()
    counted = (
        edges
        .filter(**{column: OuterRef(spec.lookup)})
        .order_by()
        .values(column)
        .annotate(n=Count('pk'))
        .values('n')
    )
    return Coalesce(Subquery(counted), Value(0))


def adjust(entity_kind: str, entity_id: int, field: str, delta: int) -> bool:
    """
    Atomically add delta (+1 or -1) to one counter.

    Returns True when the counter moved. False means the entity is gone
    or a decrement was clamped at zero.
    """
    spec = _spec(entity_kind, field)
    if delta not in ALLOWED_DELTAS:
        raise ValueError(f"Counter delta must be +1 or -1, got {delta!r}")

    rows = spec.model.objects.filter(**{spec.lookup: entity_id})

    if delta > 0:
        updated = rows.update(**{field: F(field) + 1})
    else:
        updated = rows.filter(**{f'{field}__gte': 1}).update(**{field: F(field) - 1})
        if not updated and rows.exists():
            logger.warning(
                "Clamped %s.%s for %s at zero; counter had drifted below its edge count",
                entity_kind, field, entity_id
            )
            return False

    if not updated:
        logger.debug("Counter %s.%s skipped: %s %s no longer exists",
                     entity_kind, field, entity_kind, entity_id)
    return bool(updated)


def resync(entity_kind: str, entity_id: int, field: str) -> None:
    """Recompute one counter from the relationship table in one UPDATE."""
    spec = _spec(entity_kind, field)
    spec.model.objects.filter(**{spec.lookup: entity_id}).update(
        **{field: _true_count(spec)}
    )
    logger.info("Resynchronized %s.%s for %s", entity_kind, field, entity_id)


def reconcile_counters(dry_run: bool = False) -> dict[str, int]:
    """
    Offline drift repair: recompute every counter from its edges.

    Returns {"kind.field": rows_that_had_drifted}.
    """
    report = {}
    for (entity_kind, field), spec in COUNTERS.items():
        truth = _true_count(spec)
        drifted_ids = list(
            spec.model.objects
            .annotate(true_count=truth)
            .exclude(**{field: F('true_count')})
            .values_list('pk', flat=True)
        )
        report[f'{entity_kind}.{field}'] = len(drifted_ids)

        if drifted_ids:
            logger.warning("%d %s rows drifted on %s", len(drifted_ids), entity_kind, field)
            if not dry_run:
                spec.model.objects.filter(pk__in=drifted_ids).update(
                    **{field: _true_count(spec)}
                )

    return report
