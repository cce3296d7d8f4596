"""
Shortcode Redirect Middleware

Serves GET/HEAD /<shortcode> before routing, so the redirect path never
competes with the API routes.

For each request the first path segment is handed to the application's
Resolver, and the outcome is turned into an HTTP response:
- not a shortcode: the request continues to routing untouched
- unknown shortcode: 404 {"error": "Link not found"}
- store unavailable: 503 {"error": "Database connection error"}
- known shortcode: 302 with Location set to the stored URL
- anything unexpected: 500 {"error": "Internal server error"}

The resolver is read from app.state at request time; nothing here holds a
store of its own.
"""

import logging

from fastapi import Request
from starlette import status
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, RedirectResponse

from app.core.setting import settings
from app.core.validators import is_valid_shortcode
from app.services.resolver import ResolutionKind

logger = logging.getLogger(__name__)

REDIRECT_METHODS = {"GET", "HEAD"}


class ShortcodeRedirectMiddleware(BaseHTTPMiddleware):
    """Middleware answering shortcode paths with redirects."""

    async def dispatch(self, request: Request, call_next):
        """
        Resolve the request path, or pass the request on.

        Args:
            request: The incoming HTTP request
            call_next: The next middleware/endpoint in the chain

        Returns:
            Response object
        """
        if request.method not in REDIRECT_METHODS:
            return await call_next(request)

        path_segment = request.url.path[1:]
        first_segment = path_segment.split("/", 1)[0]
        if first_segment in settings.RESERVED_PATHS:
            return await call_next(request)

        resolver = getattr(request.app.state, "resolver", None)
        if resolver is None:
            if not is_valid_shortcode(path_segment):
                return await call_next(request)
            logger.error("Redirect requested but link store is not initialized")
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={"error": "Database connection error"}
            )

        try:
            resolution = await resolver.resolve(path_segment)
        except Exception as e:
            logger.error(f"Unexpected error resolving '{path_segment}': {e}", exc_info=True)
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={"error": "Internal server error"}
            )

        if resolution.kind == ResolutionKind.NOT_APPLICABLE:
            return await call_next(request)

        if resolution.kind == ResolutionKind.NOT_FOUND:
            return JSONResponse(
                status_code=status.HTTP_404_NOT_FOUND,
                content={"error": "Link not found"}
            )

        if resolution.kind == ResolutionKind.STORE_UNAVAILABLE:
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={"error": "Database connection error"}
            )

        return RedirectResponse(url=resolution.target_url, status_code=status.HTTP_302_FOUND)


def add_redirect_middleware(app):
    """
    Add shortcode redirect middleware to FastAPI app.

    Args:
        app: FastAPI application instance
    """
    app.add_middleware(ShortcodeRedirectMiddleware)
