"""
Playlist membership.

A playlist is an owner's deduplicated list of articles. Only membership is
handled here; creating/renaming playlists belongs to the playlist screens.
"""
import logging

from django.db import transaction

from .exceptions import InvalidOperation, NotFound
from .models import Article, Playlist

logger = logging.getLogger(__name__)


def _owned_playlist(user, playlist_id) -> Playlist:
    playlist = Playlist.objects.filter(pk=playlist_id, owner=user).first()
    if playlist is None:
        raise NotFound("Playlist not found or unauthorized")
    return playlist


def add_article(user, playlist_id: int, article_id: int) -> Playlist:
    if not Article.objects.filter(pk=article_id).exists():
        raise NotFound("Article not found")

    with transaction.atomic():
        playlist = _owned_playlist(user, playlist_id)
        if playlist.articles.filter(pk=article_id).exists():
            raise InvalidOperation("Article already in playlist")
        playlist.articles.add(article_id)
    return playlist


def remove_article(user, playlist_id: int, article_id: int) -> Playlist:
    """Removing an article that is not a member is a no-op."""
    playlist = _owned_playlist(user, playlist_id)
    playlist.articles.remove(article_id)
    return playlist


def get_playlist(viewer_id, playlist_id: int) -> dict:
    """
    Playlist with its members resolved to articles (author populated).

    Private playlists are visible to their owner only; to anyone else they
    do not exist.
    """
    playlist = Playlist.objects.select_related('owner__account').filter(pk=playlist_id).first()
    if playlist is None or (not playlist.is_public and playlist.owner_id != viewer_id):
        raise NotFound("Playlist not found")

    articles = list(
        playlist.articles
        .select_related('author__account')
        .order_by('-created_at')
    )
    return {'playlist': playlist, 'articles': articles}
