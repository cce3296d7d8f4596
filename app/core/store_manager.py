"""
Link Store Lifecycle

This module creates the link store, the redirect resolver and the link
service when the application starts and releases them when it stops.

Design:
- One store (one engine, one connection pool) per application instance
- Created on startup, attached to app.state, injected into requests from there
- No module-level handles: tests and multiple apps in one process each get
  their own store
- Engines connect lazily, so an unreachable database at startup does not stop
  the store from being built; missing tables are created on the first
  operation that reaches the database, and until then each operation fails
  as store unavailable
- Only a DATABASE_URL that can't be turned into an engine at all leaves the
  app without a store (503 on the redirect path and the API)
"""

import logging
from typing import Optional

from fastapi import FastAPI, HTTPException, Request, status

from app.core.exceptions import StoreUnavailableError
from app.core.setting import Settings, settings as default_settings
from app.db.adapters import get_database_adapter
from app.db.session import create_session_maker
from app.db.store import LinkStore, SQLLinkStore
from app.services.link_service import LinkService
from app.services.resolver import Resolver

logger = logging.getLogger(__name__)

STORE_UNAVAILABLE_DETAIL = "Database connection error"


async def initialize_store(app: FastAPI, config: Optional[Settings] = None) -> None:
    """
    Build the link store, resolver and link service and attach them to the app.

    Args:
        app: The FastAPI application
        config: Settings to use (defaults to the process settings)
    """
    config = config or default_settings

    if getattr(app.state, "link_store", None) is not None:
        logger.warning("Link store already initialized")
        return

    app.state.link_store = None
    app.state.resolver = None
    app.state.link_service = None

    try:
        db_adapter = get_database_adapter(config.DATABASE_URL)
        engine = db_adapter.create_engine(
            config.DATABASE_URL,
            timeout=config.STORE_TIMEOUT_SECONDS
        )
    except Exception as e:
        logger.error(f"Failed to create database engine: {e}", exc_info=True)
        return

    store = SQLLinkStore(
        engine=engine,
        session_maker=create_session_maker(engine),
        timeout=config.STORE_TIMEOUT_SECONDS,
        create_schema=config.AUTO_CREATE_TABLES
    )

    if config.AUTO_CREATE_TABLES:
        try:
            await store.ensure_schema()
        except StoreUnavailableError as e:
            logger.error(f"Could not create tables on startup, will retry on first use: {e}")

    app.state.link_store = store
    app.state.resolver = Resolver(
        store,
        await_accounting=config.AWAIT_CLICK_ACCOUNTING
    )
    app.state.link_service = LinkService(
        store,
        code_length=config.SHORTCODE_LENGTH,
        max_attempts=config.SHORTCODE_MAX_ATTEMPTS,
        reserved_codes=config.RESERVED_PATHS
    )
    logger.info(
        f"Link store initialized: "
        f"backend={db_adapter.get_dialect_name()}, "
        f"await_click_accounting={config.AWAIT_CLICK_ACCOUNTING}"
    )


async def shutdown_store(app: FastAPI) -> None:
    """Drain pending click updates and dispose the store."""
    resolver: Optional[Resolver] = getattr(app.state, "resolver", None)
    store: Optional[LinkStore] = getattr(app.state, "link_store", None)

    if resolver is not None:
        await resolver.aclose()

    if store is not None:
        logger.info("Shutting down link store")
        await store.close()

    app.state.resolver = None
    app.state.link_service = None
    app.state.link_store = None


def get_link_service(request: Request) -> LinkService:
    """
    FastAPI dependency returning the application's link service.

    Raises:
        HTTPException 503: If the store was not initialized
    """
    service = getattr(request.app.state, "link_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=STORE_UNAVAILABLE_DETAIL
        )
    return service
