"""
Read Side: Feed & Graph Views
=============================

Every list operation returns the same page shape:

    {'items': [...], 'total': int, 'page': int, 'pages': int, 'page_size': int}

Reads take no locks. They see whatever the last committed mutation left
(read-committed is enough).

AVOIDING N+1:
-------------
- select_related('owner__account') / ('follower__account') joins the
  author and their profile into the list query
- liked targets are resolved with one in_bulk() per page instead of one
  GenericForeignKey lookup per like
"""

import json
import logging
from typing import TypedDict

from django.conf import settings
from django.contrib.auth import get_user_model
from django.contrib.contenttypes.models import ContentType
from django.core.paginator import EmptyPage, Paginator

from .exceptions import InvalidOperation, NotFound
from .models import Article, Comment, Follow, Like, Post
from .services import require_id

logger = logging.getLogger(__name__)

User = get_user_model()


class PageResult(TypedDict):
    items: list
    total: int
    page: int
    pages: int
    page_size: int


def paginate(queryset, page: int = 1, page_size: int | None = None) -> PageResult:
    """
    Offset pagination over an ordered queryset.

    Pages past the end are empty rather than an error, so a client that
    scrolled while content was being deleted just stops.
    """
    if page_size is None:
        page_size = settings.ENGAGEMENT['DEFAULT_PAGE_SIZE']
    max_page_size = settings.ENGAGEMENT['MAX_PAGE_SIZE']

    if page < 1:
        raise InvalidOperation("page must be >= 1")
    if not 1 <= page_size <= max_page_size:
        raise InvalidOperation(f"page_size must be between 1 and {max_page_size}")

    paginator = Paginator(queryset, page_size)
    try:
        items = list(paginator.page(page).object_list)
    except EmptyPage:
        items = []

    return {
        'items': items,
        'total': paginator.count,
        'page': page,
        'pages': paginator.num_pages if paginator.count else 0,
        'page_size': page_size,
    }


def _require_account(user_id: int) -> None:
    if not User.objects.filter(pk=user_id).exists():
        raise NotFound("Account not found")


# ============================================================================
# FOLLOW GRAPH
# ============================================================================

def get_followers(user_id: int, page: int = 1, page_size: int | None = None) -> PageResult:
    """
    Accounts following user_id, most recent follow first. Items are Users.

    An id with no edges (including a deleted account) gives an empty page.
    """
    require_id(user_id, 'account')
    edges = (
        Follow.objects
        .filter(author_id=user_id)
        .select_related('follower__account')
        .order_by('-created_at', '-id')
    )
    result = paginate(edges, page, page_size)
    result['items'] = [edge.follower for edge in result['items']]
    return result


def get_following(user_id: int, page: int = 1, page_size: int | None = None) -> PageResult:
    """Accounts user_id follows, most recent follow first. Items are Users."""
    require_id(user_id, 'account')
    edges = (
        Follow.objects
        .filter(follower_id=user_id)
        .select_related('author__account')
        .order_by('-created_at', '-id')
    )
    result = paginate(edges, page, page_size)
    result['items'] = [edge.author for edge in result['items']]
    return result


# ============================================================================
# FEED
# ============================================================================

def get_feed(viewer_id: int, page: int = 1, page_size: int | None = None) -> PageResult:
    """
    Posts from everyone the viewer follows, plus the viewer's own.

    The follow set is resolved on every call - no caching - so a follow or
    unfollow shows up on the very next page request.

    Query: 2
    1. SELECT author_id FROM follow WHERE follower_id = %s
    2. SELECT post.*, user.*, account.* ... WHERE owner_id IN (...)
       ORDER BY created_at DESC, id DESC  (+ COUNT for the page total)
    """
    authors = set(
        Follow.objects
        .filter(follower_id=viewer_id)
        .values_list('author_id', flat=True)
    )
    authors.add(viewer_id)

    posts = (
        Post.objects
        .filter(owner_id__in=authors)
        .select_related('owner__account')
        .order_by('-created_at', '-id')
    )
    return paginate(posts, page, page_size)


def get_user_posts(user_id: int, page: int = 1, page_size: int | None = None) -> PageResult:
    _require_account(user_id)
    posts = (
        Post.objects
        .filter(owner_id=user_id)
        .select_related('owner__account')
        .order_by('-created_at', '-id')
    )
    return paginate(posts, page, page_size)


def get_posts_by_hashtag(hashtag: str, page: int = 1, page_size: int | None = None) -> PageResult:
    """Posts tagged #hashtag, case-insensitive, newest first."""
    tag = hashtag.lstrip('#').strip().lower()
    if not tag:
        raise InvalidOperation("Hashtag is required")
    posts = (
        Post.objects
        # Tags are stored as a JSON list of lower-case ASCII words; match the
        # quoted token so "py" does not match "python"
        .filter(hashtags__icontains=json.dumps(tag))
        .select_related('owner__account')
        .order_by('-created_at', '-id')
    )
    return paginate(posts, page, page_size)


# ============================================================================
# LIKED ITEMS
# ============================================================================

def _liked_targets(user_id, model, related, page, page_size) -> PageResult:
    """
    Page through a user's likes of one kind and swap each like for its target.

    Query: 3 per page (count, likes page, targets in_bulk)
    """
    content_type = ContentType.objects.get_for_model(model)
    likes = (
        Like.objects
        .filter(user_id=user_id, content_type=content_type)
        .order_by('-created_at', '-id')
    )
    result = paginate(likes, page, page_size)

    ids = [like.object_id for like in result['items']]
    targets = model.objects.select_related(*related).in_bulk(ids)
    # Cascades remove likes with their targets; skip any that slipped through
    result['items'] = [targets[i] for i in ids if i in targets]
    return result


def get_liked_articles(user_id: int, page: int = 1, page_size: int | None = None) -> PageResult:
    return _liked_targets(user_id, Article, ['author__account'], page, page_size)


def get_liked_comments(user_id: int, page: int = 1, page_size: int | None = None) -> PageResult:
    return _liked_targets(user_id, Comment, ['author__account', 'article'], page, page_size)
