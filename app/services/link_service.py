"""
Link Service

This service handles the business logic behind the link API:
- Validating target URLs and custom shortcodes
- Generating random shortcodes and retrying on collisions
- Creating, listing, fetching and deleting links through the link store

Design Decisions:
- Base62 alphabet: [0-9a-zA-Z] for maximum URL compatibility
- Random codes instead of counters: codes don't reveal how many links exist
- A custom code that is taken is a conflict; a generated code that is taken
  is simply retried
"""

import logging
import secrets
from typing import Iterable, Optional

from app.core.exceptions import (
    InvalidShortcodeError,
    InvalidURLError,
    LinkNotFoundError,
    ReservedShortcodeError,
    ShortcodeConflictError,
    ShortcodeGenerationError,
)
from app.core.validators import is_valid_shortcode, is_valid_url
from app.db.models import Link
from app.db.store import LinkStore

logger = logging.getLogger(__name__)

BASE62_CHARS = "0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"


def generate_shortcode(length: int = 6) -> str:
    """
    Generate a random base62 shortcode.

    Args:
        length: Number of characters (6-8 for codes the resolver accepts)

    Returns:
        Random alphanumeric string
    """
    return "".join(secrets.choice(BASE62_CHARS) for _ in range(length))


class LinkService:
    """
    Core business logic for managing links.

    Separated from the API layer for testability; depends only on the
    LinkStore interface.
    """

    def __init__(
        self,
        store: LinkStore,
        code_length: int = 6,
        max_attempts: int = 10,
        reserved_codes: Iterable[str] = ()
    ):
        """
        Initialize the link service.

        Args:
            store: Link store to persist links in
            code_length: Length of generated shortcodes
            max_attempts: How many generated codes to try before giving up
            reserved_codes: Route names that can never be used as codes
        """
        self.store = store
        self.code_length = code_length
        self.max_attempts = max_attempts
        self.reserved_codes = frozenset(reserved_codes)

    async def create_link(self, url: str, code: Optional[str] = None) -> Link:
        """
        Create a new link.

        Args:
            url: Redirect target (http or https)
            code: Optional custom shortcode; generated when omitted

        Returns:
            The created Link

        Raises:
            InvalidURLError: If the URL is not an http(s) URL with a host
            InvalidShortcodeError: If the custom code is malformed
            ReservedShortcodeError: If the custom code is a reserved route name
            ShortcodeConflictError: If the custom code is already taken
            ShortcodeGenerationError: If no free code was found
            StoreUnavailableError: If the store can't be reached
        """
        if not is_valid_url(url):
            raise InvalidURLError(
                url,
                reason="Please enter a valid URL. URL must use http:// or https:// and have a host"
            )

        if code:
            if not is_valid_shortcode(code):
                raise InvalidShortcodeError(code)
            if code in self.reserved_codes:
                raise ReservedShortcodeError(code)
            link = await self.store.create(code, url)
            logger.info(f"Created link '{link.code}' with custom code")
            return link

        for attempt in range(1, self.max_attempts + 1):
            candidate = generate_shortcode(self.code_length)
            if candidate in self.reserved_codes:
                continue
            try:
                link = await self.store.create(candidate, url)
            except ShortcodeConflictError:
                logger.debug(f"Generated code '{candidate}' taken (attempt {attempt})")
                continue
            logger.info(f"Created link '{link.code}'")
            return link

        logger.error(f"Could not find a free shortcode in {self.max_attempts} attempts")
        raise ShortcodeGenerationError(self.max_attempts)

    async def get_link(self, code: str) -> Link:
        """
        Fetch a link by code.

        Raises:
            LinkNotFoundError: If no link has this code
        """
        link = await self.store.find_by_code(code)
        if link is None:
            raise LinkNotFoundError(code)
        return link

    async def list_links(self) -> list[Link]:
        """All links, newest first."""
        return await self.store.list_all()

    async def delete_link(self, code: str) -> None:
        """
        Delete a link permanently.

        Raises:
            LinkNotFoundError: If no link has this code
        """
        if not await self.store.delete(code):
            raise LinkNotFoundError(code)
        logger.info(f"Deleted link '{code}'")
