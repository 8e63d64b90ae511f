"""
Short-form posts: created, edited and deleted by their owner only.

Posts feed the Feed Assembler (queries.get_feed). Hashtags are re-extracted
from the content on every create and edit.
"""
import logging

from django.db import transaction

from .exceptions import InvalidOperation, NotFound
from .hashtags import extract_hashtags
from .models import Post, POST_MAX_LENGTH

logger = logging.getLogger(__name__)


def _clean_content(content) -> str:
    content = (content or '').strip()
    if not content:
        raise InvalidOperation("Post content is required")
    if len(content) > POST_MAX_LENGTH:
        raise InvalidOperation(f"Post content is limited to {POST_MAX_LENGTH} characters")
    return content


def create_post(user, content: str, media: str = '') -> Post:
    content = _clean_content(content)
    post = Post.objects.create(
        owner=user,
        content=content,
        media=media or '',
        hashtags=extract_hashtags(content)
    )
    logger.debug("Post %s created by %s", post.pk, user.pk)
    return post


def _owned_post(user, post_id) -> Post:
    post = Post.objects.filter(pk=post_id, owner=user).first()
    if post is None:
        raise NotFound("Post not found or unauthorized")
    return post


def update_post(user, post_id: int, content: str) -> Post:
    """Edit content (and with it the hashtags). Media is left untouched."""
    content = _clean_content(content)
    with transaction.atomic():
        post = _owned_post(user, post_id)
        post.content = content
        post.hashtags = extract_hashtags(content)
        post.save(update_fields=['content', 'hashtags', 'updated_at'])
    return post


def delete_post(user, post_id: int) -> None:
    deleted, _ = Post.objects.filter(pk=post_id, owner=user).delete()
    if not deleted:
        raise NotFound("Post not found or unauthorized")
