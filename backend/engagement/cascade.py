"""
Cascade Deletion Coordinator
============================

Removing an account touches four kinds of dependents: follow edges, likes,
authored content (articles, comments, posts, playlists) and stored files.
FK cascades alone are not enough:

- a removed follow edge must move the surviving counterpart's counter
- a removed like must move its target's like_count
- likes point at targets through a GenericForeignKey, so deleting an
  article or comment leaves likes behind unless removed explicitly

ORDER OF STEPS:
---------------
1. Follow edges (both roles), one counter adjustment per removed edge
2. Likes given by the account, one counter adjustment per removed like
   -- steps 1 and 2 commit together --
3. User row locked; steps 1 and 2 re-run for edges committed in
   between; then likes on the account's articles/comments, playlists,
   posts, comments, articles and the user row
   -- step 3 commits on its own --
4. Stored files released after commit (fire-and-forget)

Counter-affecting steps run before destructive ones. Every delete is by
primary key or filter, so re-running a half-finished cascade finds the
already-removed rows absent and carries on. A failure inside step 3 rolls
step 3 back and leaves the surviving entities' counters exact.
"""

import logging
from dataclasses import dataclass

from django.contrib.auth import get_user_model
from django.contrib.contenttypes.models import ContentType
from django.db import transaction
from django.db.models import Q

from . import counters
from .assets import account_asset_names, release_assets
from .exceptions import NotFound
from .models import (
    Account, Article, Comment, Follow, Like, Playlist, Post, LIKE_TARGET_MODELS
)
from .services import require_id

logger = logging.getLogger(__name__)

User = get_user_model()


@dataclass
class CascadeReport:
    follows_removed: int = 0
    likes_removed: int = 0
    target_likes_removed: int = 0
    playlists_deleted: int = 0
    posts_deleted: int = 0
    comments_deleted: int = 0
    articles_deleted: int = 0
    assets_scheduled: int = 0


def _like_kinds_by_content_type() -> dict[int, str]:
    return {
        ContentType.objects.get_for_model(model).pk: kind
        for kind, model in LIKE_TARGET_MODELS.items()
    }


# ============================================================================
# STEPS
# ============================================================================

def _remove_follow_edges(user_id: int) -> int:
    """Step 1: every edge where user_id is follower or author."""
    removed = 0
    edges = (
        Follow.objects
        .filter(Q(follower_id=user_id) | Q(author_id=user_id))
        .values_list('pk', 'follower_id', 'author_id')
    )
    for pk, follower_id, author_id in list(edges):
        deleted, _ = Follow.objects.filter(pk=pk).delete()
        if not deleted:
            # A concurrent unfollow got there first and already adjusted
            continue
        counters.adjust('account', follower_id, 'following_count', -1)
        counters.adjust('account', author_id, 'followers_count', -1)
        removed += 1
    return removed


def _remove_likes_given(user_id: int) -> int:
    """Step 2: every like the account gave, each releasing its target's count."""
    kinds = _like_kinds_by_content_type()
    removed = 0
    likes = Like.objects.filter(user_id=user_id).values_list('pk', 'content_type_id', 'object_id')
    for pk, content_type_id, object_id in list(likes):
        deleted, _ = Like.objects.filter(pk=pk).delete()
        if not deleted:
            continue
        kind = kinds.get(content_type_id)
        if kind is not None:
            counters.adjust(kind, object_id, 'like_count', -1)
        removed += 1
    return removed


def remove_likes_on(article_ids, comment_ids) -> int:
    """Drop every like pointing at the given articles/comments (targets going away)."""
    article_ct = ContentType.objects.get_for_model(Article)
    comment_ct = ContentType.objects.get_for_model(Comment)
    deleted, _ = Like.objects.filter(
        Q(content_type=article_ct, object_id__in=list(article_ids)) |
        Q(content_type=comment_ct, object_id__in=list(comment_ids))
    ).delete()
    return deleted


def _delete_content(user, report: CascadeReport) -> None:
    """Step 3: authored content, the likes on it, and finally the user."""
    article_ids = list(Article.objects.filter(author=user).values_list('pk', flat=True))
    comment_ids = list(
        Comment.objects
        .filter(Q(author=user) | Q(article_id__in=article_ids))
        .values_list('pk', flat=True)
    )
    report.target_likes_removed = remove_likes_on(article_ids, comment_ids)

    _, per_model = Playlist.objects.filter(owner=user).delete()
    report.playlists_deleted = per_model.get(Playlist._meta.label, 0)

    _, per_model = Post.objects.filter(owner=user).delete()
    report.posts_deleted = per_model.get(Post._meta.label, 0)

    # Comments on other people's articles: signals release comment_count
    _, per_model = Comment.objects.filter(author=user).delete()
    report.comments_deleted = per_model.get(Comment._meta.label, 0)

    _, per_model = Article.objects.filter(author=user).delete()
    report.articles_deleted = per_model.get(Article._meta.label, 0)
    report.comments_deleted += per_model.get(Comment._meta.label, 0)

    user.delete()


# ============================================================================
# PUBLIC API
# ============================================================================

def delete_account(account_id: int) -> CascadeReport:
    """
    Delete an account and everything that depends on it.

    Raises NotFound if the account does not exist (including a retry after
    a cascade that already completed).
    """
    require_id(account_id, 'account')
    user = User.objects.filter(pk=account_id).first()
    if user is None:
        raise NotFound("Account not found")

    report = CascadeReport()
    account = Account.objects.filter(user=user).first()
    asset_names = account_asset_names(account) if account else []

    with transaction.atomic():
        report.follows_removed = _remove_follow_edges(user.pk)
        report.likes_removed = _remove_likes_given(user.pk)

    with transaction.atomic():
        # Blocks new edges on this user until the row is gone
        user = User.objects.select_for_update().filter(pk=account_id).first()
        if user is None:
            raise NotFound("Account not found")
        # Edges committed since the first transaction
        report.follows_removed += _remove_follow_edges(user.pk)
        report.likes_removed += _remove_likes_given(user.pk)
        _delete_content(user, report)
        if asset_names:
            report.assets_scheduled = len(asset_names)
            transaction.on_commit(lambda: release_assets(asset_names))

    logger.info("Account %s deleted: %s", account_id, report)
    return report


def delete_article(user, article_id: int) -> None:
    """
    Author (or staff) deletes an article with its comments and all likes on both.

    Comments go with the article through the FK cascade.
    """
    article = Article.objects.filter(pk=article_id).first()
    if article is None or (article.author_id != user.pk and not user.is_staff):
        raise NotFound("Article not found or unauthorized")

    with transaction.atomic():
        comment_ids = Comment.objects.filter(article=article).values_list('pk', flat=True)
        remove_likes_on([article.pk], comment_ids)
        article.delete()

    logger.debug("Article %s deleted by %s", article_id, user.pk)
