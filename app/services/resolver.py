"""
Redirect Resolver

Decides what an inbound path segment means:
- not shortcode-shaped: not a redirect candidate, routing should carry on
- shortcode-shaped but unknown: not found
- store unreachable: service unavailable
- known: redirect, after recording the click

Click accounting never changes the outcome. In awaited mode the counter is
updated before the redirect is returned; in detached mode the update runs as
a background task, so a process stopping right after the response can drop it.
Either way a failed update is only visible in the logs.

The resolver keeps no state of its own apart from in-flight detached tasks,
so any number of resolver instances can serve the same store.
"""

import asyncio
import logging
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

from pydantic import BaseModel
from starlette import status

from app.core.exceptions import StoreUnavailableError
from app.core.validators import is_valid_shortcode
from app.db.models import utc_now
from app.db.store import LinkStore

logger = logging.getLogger(__name__)


class ResolutionKind(str, Enum):
    """Possible results of resolving a path segment."""
    NOT_APPLICABLE = "not_applicable"
    NOT_FOUND = "not_found"
    STORE_UNAVAILABLE = "store_unavailable"
    REDIRECT = "redirect"


class Resolution(BaseModel):
    """Outcome of a single resolve() call."""
    kind: ResolutionKind
    target_url: Optional[str] = None
    status_code: Optional[int] = None
    message: Optional[str] = None

    @classmethod
    def not_applicable(cls) -> "Resolution":
        return cls(kind=ResolutionKind.NOT_APPLICABLE)

    @classmethod
    def not_found(cls) -> "Resolution":
        return cls(kind=ResolutionKind.NOT_FOUND, status_code=status.HTTP_404_NOT_FOUND)

    @classmethod
    def store_unavailable(cls, message: str) -> "Resolution":
        return cls(
            kind=ResolutionKind.STORE_UNAVAILABLE,
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            message=message
        )

    @classmethod
    def redirect(cls, target_url: str) -> "Resolution":
        return cls(
            kind=ResolutionKind.REDIRECT,
            target_url=target_url,
            status_code=status.HTTP_302_FOUND
        )


class Resolver:
    """
    Resolves shortcodes to redirect targets against a LinkStore.

    The store is injected at construction; the resolver never creates or
    closes it.
    """

    def __init__(
        self,
        store: LinkStore,
        await_accounting: bool = True,
        clock: Callable[[], datetime] = utc_now
    ):
        """
        Initialize the resolver.

        Args:
            store: Link store used for lookups and click updates
            await_accounting: Wait for the click update before returning
                (consistent) instead of detaching it (lower latency)
            clock: Source of the last_clicked timestamp
        """
        self.store = store
        self.await_accounting = await_accounting
        self.clock = clock
        self._pending: set[asyncio.Task] = set()

    async def resolve(self, path_segment: str) -> Resolution:
        """
        Resolve a path segment taken verbatim from the request path.

        Args:
            path_segment: The path without its leading slash

        Returns:
            Resolution describing what the caller should answer

        Raises:
            Exception: Unexpected store failures (anything other than
                StoreUnavailableError) propagate to the caller
        """
        if not path_segment or not is_valid_shortcode(path_segment):
            return Resolution.not_applicable()

        code = path_segment
        try:
            link = await self.store.find_by_code(code)
        except StoreUnavailableError as e:
            logger.error(f"Store unavailable while resolving '{code}': {e}")
            return Resolution.store_unavailable(str(e))

        if link is None:
            logger.debug(f"Shortcode '{code}' not found")
            return Resolution.not_found()

        now = self.clock()
        if self.await_accounting:
            await self._record_click(code, now)
        else:
            self._dispatch_click(code, now)

        return Resolution.redirect(link.url)

    async def _record_click(self, code: str, now: datetime) -> None:
        """Apply the click update; failures are logged and swallowed."""
        try:
            await self.store.increment_clicks(code, now)
        except Exception as e:
            logger.error(f"Failed to record click for '{code}': {e}", exc_info=True)

    def _dispatch_click(self, code: str, now: datetime) -> None:
        # The set keeps a strong reference until the task finishes
        task = asyncio.create_task(self._record_click(code, now))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    @property
    def pending_count(self) -> int:
        """Number of detached click updates still running."""
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for every detached click update dispatched so far."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def aclose(self) -> None:
        """Finish outstanding click updates before shutdown."""
        if self._pending:
            logger.info(f"Waiting for {len(self._pending)} pending click updates")
        await self.drain()
