"""
Link Store

Persistence for shortcode -> URL mappings and their click counters.

The LinkStore interface is everything the rest of the service knows about
storage; SQLLinkStore implements it on top of an async SQLAlchemy engine.

Error contract:
- Connection failures, operational database errors and timeouts are raised
  as StoreUnavailableError
- Missing links are reported through return values (None / False), never
  as errors
- Anything else propagates unchanged
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Awaitable, Callable, Optional, TypeVar

from sqlalchemy import delete, select, text, update
from sqlalchemy.exc import DisconnectionError, IntegrityError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from app.core.exceptions import ShortcodeConflictError, StoreUnavailableError
from app.db.models import Link
from app.db.session import create_tables

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Errors that mean "the database can't be reached right now", as opposed to
# bugs or constraint violations
UNAVAILABLE_ERRORS = (
    OperationalError,
    InterfaceError,
    DisconnectionError,
    ConnectionError,
    OSError,
    asyncio.TimeoutError,
)


class LinkStore(ABC):
    """
    Abstract link store.

    Implementations must be safe to share between concurrent requests; they
    hold no per-request state.
    """

    @abstractmethod
    async def find_by_code(self, code: str) -> Optional[Link]:
        """
        Look up a link by its shortcode.

        Returns:
            The Link, or None if no link has this code

        Raises:
            StoreUnavailableError: If the store can't be reached
        """
        pass

    @abstractmethod
    async def increment_clicks(self, code: str, now: datetime) -> None:
        """
        Add one click to a link and set its last_clicked time.

        A code that no longer exists is silently ignored.

        Raises:
            StoreUnavailableError: If the store can't be reached
        """
        pass

    @abstractmethod
    async def create(self, code: str, url: str) -> Link:
        """
        Create a link with zero clicks.

        Raises:
            ShortcodeConflictError: If the code is already taken
            StoreUnavailableError: If the store can't be reached
        """
        pass

    @abstractmethod
    async def delete(self, code: str) -> bool:
        """
        Hard-delete a link.

        Returns:
            True if a link was deleted, False if none had this code
        """
        pass

    @abstractmethod
    async def list_all(self) -> list[Link]:
        """Return every link, newest first."""
        pass

    @abstractmethod
    async def ping(self) -> None:
        """
        Check connectivity.

        Raises:
            StoreUnavailableError: If the store can't be reached
        """
        pass

    async def close(self) -> None:
        """Release resources held by the store."""
        return None


class SQLLinkStore(LinkStore):
    """
    Link store backed by a relational database through SQLModel.

    Each operation opens its own short-lived session, so the store can be
    shared by every request and by detached background tasks alike.
    """

    def __init__(
        self,
        engine: AsyncEngine,
        session_maker: async_sessionmaker,
        timeout: float = 5.0,
        create_schema: bool = False
    ):
        """
        Initialize the store.

        Args:
            engine: Engine owned by this store (disposed on close)
            session_maker: Factory for sessions bound to the engine
            timeout: Upper bound in seconds for a single operation
            create_schema: Create missing tables before the first operation,
                retrying on later operations until it succeeds
        """
        self.engine = engine
        self.session_maker = session_maker
        self.timeout = timeout
        self._schema_ready = not create_schema
        self._schema_lock = asyncio.Lock()

    async def _run(self, operation: Callable[[AsyncSession], Awaitable[T]], description: str) -> T:
        """
        Run an operation in a fresh session, bounded by the store timeout.

        Args:
            operation: Coroutine function receiving the session
            description: Short label used in log and error messages

        Returns:
            Whatever the operation returns

        Raises:
            StoreUnavailableError: On timeout or connectivity failure
        """
        async def in_session() -> T:
            await self._ensure_schema()
            async with self.session_maker() as session:
                return await operation(session)

        try:
            return await asyncio.wait_for(in_session(), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise StoreUnavailableError(
                f"{description} timed out after {self.timeout}s", original_error=e
            )
        except UNAVAILABLE_ERRORS as e:
            raise StoreUnavailableError(f"{description} failed: {e}", original_error=e)

    async def _ensure_schema(self) -> None:
        if self._schema_ready:
            return
        async with self._schema_lock:
            if self._schema_ready:
                return
            await create_tables(self.engine)
            self._schema_ready = True
            logger.info("Link store schema ready")

    async def ensure_schema(self) -> None:
        """
        Create missing tables now instead of on the first operation.

        Raises:
            StoreUnavailableError: If the database can't be reached
        """
        async def operation(session: AsyncSession) -> None:
            return None

        await self._run(operation, "schema creation")

    async def find_by_code(self, code: str) -> Optional[Link]:
        async def operation(session: AsyncSession) -> Optional[Link]:
            statement = select(Link).where(Link.code == code)
            result = await session.execute(statement)
            return result.scalar_one_or_none()

        return await self._run(operation, f"lookup of '{code}'")

    async def increment_clicks(self, code: str, now: datetime) -> None:
        """
        Increment the click count atomically.

        Uses a database-level UPDATE rather than read-modify-write, so
        concurrent increments are not lost to each other inside the database.
        """
        async def operation(session: AsyncSession) -> None:
            statement = (
                update(Link)
                .where(Link.code == code)
                .values(clicks=Link.clicks + 1, last_clicked=now)
            )
            await session.execute(statement)
            await session.commit()

        await self._run(operation, f"click update of '{code}'")

    async def create(self, code: str, url: str) -> Link:
        async def operation(session: AsyncSession) -> Link:
            link = Link(code=code, url=url, clicks=0)
            session.add(link)
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                raise ShortcodeConflictError(code) from e
            await session.refresh(link)
            return link

        return await self._run(operation, f"creation of '{code}'")

    async def delete(self, code: str) -> bool:
        async def operation(session: AsyncSession) -> bool:
            statement = delete(Link).where(Link.code == code)
            result = await session.execute(statement)
            await session.commit()
            return result.rowcount > 0

        return await self._run(operation, f"deletion of '{code}'")

    async def list_all(self) -> list[Link]:
        async def operation(session: AsyncSession) -> list[Link]:
            statement = select(Link).order_by(Link.created_at.desc(), Link.id.desc())
            result = await session.execute(statement)
            return list(result.scalars().all())

        return await self._run(operation, "listing")

    async def ping(self) -> None:
        async def operation(session: AsyncSession) -> None:
            await session.execute(text("SELECT 1"))

        await self._run(operation, "ping")

    async def close(self) -> None:
        await self.engine.dispose()
        logger.info("Link store closed")
