"""
Comment Threads
===============

Threads are two levels deep as far as reads go:

    top-level comments (parent IS NULL)  -> get_top_level_comments()
        replies (parent = comment)       -> get_replies()

Each level is paginated on its own, newest first, so a popular comment
with hundreds of replies does not inflate the first page of the article.

REPLY COUNTS:
-------------
reply_count is computed live with COUNT(replies) on the page query, not
stored. It is always exact, including after replies are deleted.

DELETION:
---------
Deleting a comment decrements its article's comment_count by exactly one
(signals.decrement_comment_count) and removes the likes pointing at it.
Its replies are left in place with a dangling parent_id.
"""

import logging

from django.conf import settings
from django.contrib.contenttypes.models import ContentType
from django.db import transaction
from django.db.models import Count

from .exceptions import InvalidOperation, NotFound
from .models import Article, Comment, Like
from .queries import PageResult, paginate

logger = logging.getLogger(__name__)


def _thread_queryset():
    return (
        Comment.objects
        .select_related('author__account')
        .annotate(reply_count=Count('replies'))
        .order_by('-created_at', '-id')
    )


def get_top_level_comments(article_id: int, page: int = 1, page_size: int | None = None) -> PageResult:
    """
    Top-level comments on an article, newest first, with reply_count.

    Query: 3 (article exists, count, page with author JOIN + reply COUNT)
    """
    if not Article.objects.filter(pk=article_id).exists():
        raise NotFound("Article not found")

    comments = _thread_queryset().filter(article_id=article_id, parent__isnull=True)
    return paginate(comments, page, page_size)


def get_replies(comment_id: int, page: int = 1, page_size: int | None = None) -> PageResult:
    """Replies to one comment, newest first. Unknown ids give an empty page."""
    replies = _thread_queryset().filter(parent_id=comment_id)
    return paginate(replies, page, page_size)


# ============================================================================
# MUTATIONS
# ============================================================================

def _clean_content(content, label='Comment') -> str:
    content = (content or '').strip()
    if not content:
        raise InvalidOperation(f"{label} content is required")
    return content


def add_comment(user, article_id: int, content: str) -> Comment:
    """Top-level comment. comment_count moves via the post_save signal."""
    content = _clean_content(content)
    article = Article.objects.filter(pk=article_id).first()
    if article is None:
        raise NotFound("Article not found")

    with transaction.atomic():
        comment = Comment.objects.create(
            article=article,
            author=user,
            content=content,
            depth=0
        )
    return comment


def add_reply(user, comment_id: int, content: str) -> Comment:
    """
    Reply to a comment.

    The reply lives on the parent's article and sits one level deeper.
    """
    content = _clean_content(content, 'Reply')
    parent = Comment.objects.filter(pk=comment_id).first()
    if parent is None:
        raise NotFound("Parent comment not found")

    max_depth = settings.ENGAGEMENT['MAX_COMMENT_DEPTH']
    if parent.depth >= max_depth:
        raise InvalidOperation(f"Maximum reply depth ({max_depth}) reached. Cannot nest deeper.")

    with transaction.atomic():
        reply = Comment.objects.create(
            article_id=parent.article_id,
            author=user,
            parent=parent,
            content=content,
            depth=parent.depth + 1
        )
    return reply


def update_comment(user, comment_id: int, content: str) -> Comment:
    """Only content changes; depth and parent are never rewritten."""
    content = _clean_content(content)
    comment = Comment.objects.filter(pk=comment_id, author=user).first()
    if comment is None:
        raise NotFound("Comment not found or unauthorized")

    comment.content = content
    comment.save(update_fields=['content', 'updated_at'])
    return comment


def delete_comment(user, comment_id: int) -> None:
    """
    Delete one comment owned by user, together with the likes on it.

    Replies are NOT deleted or re-parented.
    """
    comment = Comment.objects.filter(pk=comment_id, author=user).first()
    if comment is None:
        raise NotFound("Comment not found or unauthorized")

    content_type = ContentType.objects.get_for_model(Comment)
    with transaction.atomic():
        Like.objects.filter(content_type=content_type, object_id=comment.pk).delete()
        comment.delete()

    logger.debug("Comment %s deleted by %s", comment_id, user.pk)
