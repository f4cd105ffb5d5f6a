"""
Link Store

Owns the durable key -> destination mapping.

Design Decisions:
- create_if_absent is a single INSERT guarded by the unique index on
  links.key. It never checks for the key first: a separate existence check
  followed by an insert is exactly the race two concurrent requests for the
  same key would lose. The database decides; IntegrityError means conflict.
- find_by_destination is a plain read used for best-effort dedup. It is not
  atomic with the insert, so two racing requests for one new destination
  under two different keys can both succeed.
- Any other database failure surfaces as DatabaseError.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from shortlink.db.models import Link
from shortlink.core.exceptions import DatabaseError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoreOutcome:
    """Result of create_if_absent: exactly one of created / conflict is set."""
    created: Optional[Link] = None
    conflict: Optional[str] = None


class LinkStore:
    """Point lookups and the atomic conditional insert over the links table."""

    def __init__(self, session: AsyncSession):
        """
        Initialize the store with a database session.

        Args:
            session: Async database session for database operations
        """
        self.session = session

    async def find_by_destination(self, destination: str) -> Optional[Link]:
        """
        Return the oldest link pointing at `destination`, if any.

        Raises:
            DatabaseError: If the lookup fails
        """
        statement = (
            select(Link)
            .where(Link.destination == destination)
            .order_by(Link.id)
            .limit(1)
        )
        try:
            result = await self.session.exec(statement)
            return result.first()
        except SQLAlchemyError as e:
            raise DatabaseError("Failed to look up destination", original_error=e)

    async def find_by_key(self, key: str) -> Optional[Link]:
        """
        Return the link stored under `key`, if any.

        Raises:
            DatabaseError: If the lookup fails
        """
        statement = select(Link).where(Link.key == key)
        try:
            result = await self.session.exec(statement)
            return result.first()
        except SQLAlchemyError as e:
            raise DatabaseError("Failed to look up key", original_error=e)

    async def create_if_absent(self, key: str, destination: str) -> StoreOutcome:
        """
        Insert a new link unless `key` is already taken.

        Args:
            key: The short key to claim
            destination: The URL the key should redirect to

        Returns:
            StoreOutcome(created=link) when the row was inserted,
            StoreOutcome(conflict=key) when the key already existed

        Raises:
            DatabaseError: If the insert fails for any other reason
        """
        link = Link(key=key, destination=destination)
        self.session.add(link)

        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            logger.info(f"Key '{key}' already taken; insert rejected by unique index")
            return StoreOutcome(conflict=key)
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to insert link '{key}': {e}", exc_info=True)
            raise DatabaseError(f"Failed to create link '{key}'", original_error=e)

        return StoreOutcome(created=link)
