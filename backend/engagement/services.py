"""
Toggle Engine: Follow & Like
============================

The public mutation surface for the follow graph and likes.

Each edge has two states, ABSENT and PRESENT, and a toggle flips it.

CONCURRENCY STRATEGY:
---------------------
Problem: two identical toggles arrive at the same moment.
Naive: check exists -> create if not -> RACE CONDITION (two edges, or a
counter bumped twice for one edge).

Solution: delete-first flip + Unique Constraint + IntegrityError
    1. DELETE the edge. The row count is the truth: only one of two racing
       deleters can remove the row, the other sees 0.
    2. If nothing was removed, INSERT. The unique constraint rejects a
       racing duplicate insert with IntegrityError.
    3. Counters move only in the transaction that changed the edge.

An IntegrityError means another request already made the edge PRESENT.
It surfaces internally as ConflictRetryable and the flip runs again
against the committed state, which now removes the edge. The final state
is that of some serial order of the requests, so N identical toggles
always net out (even N -> ABSENT, counter back to its start). The caller
never sees the conflict.

TRANSACTION STRATEGY:
---------------------
Edge write and counter adjustment share one transaction.atomic() block.
If either fails, both are rolled back.
"""

import logging
from dataclasses import dataclass

from django.conf import settings
from django.contrib.auth import get_user_model
from django.contrib.contenttypes.models import ContentType
from django.db import DatabaseError, IntegrityError, OperationalError, transaction

from . import counters
from .exceptions import (
    ConflictRetryable,
    InvalidOperation,
    InvalidReference,
    InvalidTargetKind,
    NotFound,
    StorageUnavailable,
)
from .models import Follow, Like, LIKE_TARGET_MODELS

logger = logging.getLogger(__name__)

User = get_user_model()


@dataclass(frozen=True)
class FollowResult:
    following: bool


@dataclass(frozen=True)
class LikeResult:
    liked: bool


def require_id(value, label: str) -> int:
    """Reject ids that cannot name a row (None, bools, non-ints, <= 0)."""
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise InvalidReference(f"Invalid {label} ID")
    return value


def like_target_model(target_kind: str):
    try:
        return LIKE_TARGET_MODELS[target_kind]
    except (KeyError, TypeError):
        raise InvalidTargetKind(f"Invalid like type: {target_kind!r}") from None


def _max_attempts() -> int:
    return max(1, settings.ENGAGEMENT.get('TOGGLE_MAX_ATTEMPTS', 3))


# ============================================================================
# EDGE FLIP
# ============================================================================

def _flip_edge(model, lookup: dict, counter_targets: list) -> bool:
    """
    Flip one edge and its paired counters in a single transaction.

    counter_targets: [(entity_kind, entity_id, field), ...]
    Returns True if the edge is now PRESENT.
    """
    try:
        with transaction.atomic():
            removed, _ = model.objects.filter(**lookup).delete()
            if removed:
                for entity_kind, entity_id, field in counter_targets:
                    counters.adjust(entity_kind, entity_id, field, -1)
                return False

            model.objects.create(**lookup)
            for entity_kind, entity_id, field in counter_targets:
                counters.adjust(entity_kind, entity_id, field, +1)
            return True
    except IntegrityError as exc:
        raise ConflictRetryable(f"Concurrent toggle on {model.__name__} {lookup}") from exc
    except OperationalError as exc:
        raise StorageUnavailable(str(exc)) from exc


def _toggle_edge(model, lookup: dict, counter_targets: list, require_endpoints) -> bool:
    """
    Flip with retries. require_endpoints() raises NotFound when either end
    of the edge is gone. An IntegrityError is either a racing insert or an
    FK failure on a vanished endpoint; re-checking after it tells them apart.
    """
    require_endpoints()
    attempts = _max_attempts()
    for attempt in range(1, attempts + 1):
        try:
            return _flip_edge(model, lookup, counter_targets)
        except ConflictRetryable as exc:
            require_endpoints()
            logger.info("%s (attempt %d/%d), re-reading edge state", exc.message, attempt, attempts)

    # Lost every race: the edge table decides, counters follow it
    for entity_kind, entity_id, field in counter_targets:
        counters.resync(entity_kind, entity_id, field)
    return model.objects.filter(**lookup).exists()


# ============================================================================
# FOLLOW
# ============================================================================

def toggle_follow(follower_id: int, author_id: int) -> FollowResult:
    """
    Follow author_id, or unfollow if already following.

    Errors:
    - InvalidReference: malformed id
    - InvalidOperation: follower == author
    - NotFound: author or follower does not exist
    """
    require_id(follower_id, 'follower')
    require_id(author_id, 'author')

    if follower_id == author_id:
        raise InvalidOperation("You cannot follow yourself")

    def require_endpoints():
        found = set(User.objects.filter(pk__in=[follower_id, author_id]).values_list('pk', flat=True))
        if author_id not in found:
            raise NotFound("Author not found")
        if follower_id not in found:
            raise NotFound("Follower not found")

    following = _toggle_edge(
        Follow,
        {'follower_id': follower_id, 'author_id': author_id},
        [
            ('account', follower_id, 'following_count'),
            ('account', author_id, 'followers_count'),
        ],
        require_endpoints
    )
    logger.debug("follow %s -> %s now %s", follower_id, author_id, following)
    return FollowResult(following=following)


def check_follow_status(follower_id: int, author_id: int) -> FollowResult:
    """Advisory read for UI state. Degrades to not-following on storage errors."""
    try:
        return FollowResult(
            following=Follow.objects.filter(follower_id=follower_id, author_id=author_id).exists()
        )
    except DatabaseError:
        logger.warning("Follow status unavailable for %s -> %s", follower_id, author_id, exc_info=True)
        return FollowResult(following=False)


# ============================================================================
# LIKE
# ============================================================================

def toggle_like(user_id: int, target_id: int, target_kind: str) -> LikeResult:
    """
    Like an article or comment, or remove the like if present.

    Self-likes are allowed (an author may like their own article).

    Errors:
    - InvalidTargetKind: kind not in {article, comment}
    - InvalidReference: malformed id
    - NotFound: target or user does not exist
    """
    model = like_target_model(target_kind)
    require_id(user_id, 'user')
    require_id(target_id, target_kind)

    def require_endpoints():
        if not model.objects.filter(pk=target_id).exists():
            raise NotFound(f"{target_kind.capitalize()} not found")
        if not User.objects.filter(pk=user_id).exists():
            raise NotFound("User not found")

    content_type = ContentType.objects.get_for_model(model)
    liked = _toggle_edge(
        Like,
        {'user_id': user_id, 'content_type': content_type, 'object_id': target_id},
        [(target_kind, target_id, 'like_count')],
        require_endpoints
    )
    logger.debug("like %s -> %s %s now %s", user_id, target_kind, target_id, liked)
    return LikeResult(liked=liked)


def check_like_status(user_id: int, target_id: int, target_kind: str) -> LikeResult:
    """Advisory read for UI state. Degrades to not-liked on storage errors."""
    model = LIKE_TARGET_MODELS.get(target_kind)
    if model is None:
        return LikeResult(liked=False)
    try:
        content_type = ContentType.objects.get_for_model(model)
        return LikeResult(
            liked=Like.objects.filter(
                user_id=user_id, content_type=content_type, object_id=target_id
            ).exists()
        )
    except DatabaseError:
        logger.warning("Like status unavailable for %s on %s %s",
                       user_id, target_kind, target_id, exc_info=True)
        return LikeResult(liked=False)
