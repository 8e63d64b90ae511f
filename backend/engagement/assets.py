"""
Release of externally stored binary assets (avatars, cover images).

Files live in Django's default storage backend. Releasing is
fire-and-forget: a storage failure is logged and never fails the
operation that asked for it.
"""
import logging

from django.core.files.storage import default_storage

logger = logging.getLogger(__name__)


def account_asset_names(account) -> list[str]:
    """Storage names of the account's uploaded files, empty ones skipped."""
    return [f.name for f in (account.avatar, account.cover_image) if f and f.name]


def release_assets(names) -> int:
    """Delete stored files by name. Returns how many were released."""
    released = 0
    for name in names:
        try:
            default_storage.delete(name)
            released += 1
        except Exception:
            logger.exception("Failed to release asset %s", name)
    return released
