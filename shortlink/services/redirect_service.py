"""
Redirect Service

This service handles the lookup behind the public redirect path.

Design Decisions:
- Pure read: no side effects, no click tracking, no rate limiting
- Unknown, empty and malformed keys all resolve to None, so callers can't
  tell a never-issued key from one that fails the format check
"""

from typing import Optional

from shortlink.core.validators import is_valid_key
from shortlink.services.link_store import LinkStore


class RedirectResolver:
    """Resolves short keys to destinations."""

    def __init__(self, store: LinkStore):
        """
        Initialize the resolver.

        Args:
            store: Link store bound to the request's database session
        """
        self.store = store

    async def resolve(self, key: Optional[str]) -> Optional[str]:
        """
        Get the destination URL for a key.

        Returns:
            The destination, or None when the key is unknown
        """
        # A key failing the format check can never have been stored
        if not key or not is_valid_key(key):
            return None
        link = await self.store.find_by_key(key)
        if link:
            return link.destination
        return None
