"""
FastAPI Endpoints for the Link API

This module defines the JSON endpoints used to manage links.
Endpoints only handle:
- Request validation (Pydantic models)
- Rate limiting
- Error handling and HTTP responses
- Delegating to service layer

The redirect path itself (GET /<shortcode>) is not a route: it is served by
ShortcodeRedirectMiddleware before routing happens.

Design Principles:
- Thin endpoints: Only validation and rate limiting
- Service layer: All business logic
- Error handling: Domain exceptions mapped to HTTP status codes here
"""

from fastapi import APIRouter, Depends, HTTPException, Request, status

from app.api.schemas import CreateLinkRequest, LinkResponse, MessageResponse
from app.core.exceptions import (
    InvalidShortcodeError,
    InvalidURLError,
    LinkNotFoundError,
    ShortcodeConflictError,
    ShortcodeGenerationError,
    StoreUnavailableError,
)
from app.core.rate_limit import limiter, RATE_LIMITS
from app.core.setting import settings
from app.core.store_manager import STORE_UNAVAILABLE_DETAIL, get_link_service
from app.db.models import Link
from app.services.link_service import LinkService

router = APIRouter(prefix="/api/links")

LINK_NOT_FOUND_DETAIL = "Link not found"


def to_link_response(link: Link) -> LinkResponse:
    """Build the API representation of a stored link."""
    return LinkResponse(
        id=link.id,
        code=link.code,
        url=link.url,
        clicks=link.clicks,
        created_at=link.created_at,
        last_clicked=link.last_clicked,
        short_url=f"{settings.BASE_URL.rstrip('/')}/{link.code}"
    )


def store_unavailable() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=STORE_UNAVAILABLE_DETAIL
    )


@router.post(
    "",
    response_model=LinkResponse,
    response_model_by_alias=True,
    status_code=status.HTTP_201_CREATED,
    summary="Create a link",
    description="Stores a URL under a custom or generated shortcode"
)
@limiter.limit(RATE_LIMITS["create"])
async def create_link(
    request: Request,  # Required for rate limiting (slowapi expects parameter named 'request')
    body: CreateLinkRequest,
    service: LinkService = Depends(get_link_service)
) -> LinkResponse:
    """
    Create a new link.

    Raises:
        HTTPException 400: If the URL or custom code is invalid
        HTTPException 409: If the custom code is already taken
        HTTPException 500: If no free code could be generated
        HTTPException 503: If the store is unavailable
    """
    try:
        link = await service.create_link(body.url, body.code)
    except InvalidURLError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.reason)
    except InvalidShortcodeError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except ShortcodeConflictError:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Code already exists")
    except ShortcodeGenerationError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate unique code"
        )
    except StoreUnavailableError:
        raise store_unavailable()

    return to_link_response(link)


@router.get(
    "",
    response_model=list[LinkResponse],
    response_model_by_alias=True,
    summary="List links",
    description="Returns every link, newest first"
)
@limiter.limit(RATE_LIMITS["read"])
async def list_links(
    request: Request,
    service: LinkService = Depends(get_link_service)
) -> list[LinkResponse]:
    try:
        links = await service.list_links()
    except StoreUnavailableError:
        raise store_unavailable()

    return [to_link_response(link) for link in links]


@router.get(
    "/{code}",
    response_model=LinkResponse,
    response_model_by_alias=True,
    summary="Get a link",
    description="Returns a single link including its click statistics"
)
@limiter.limit(RATE_LIMITS["read"])
async def get_link(
    code: str,
    request: Request,
    service: LinkService = Depends(get_link_service)
) -> LinkResponse:
    """
    Get a link by its shortcode.

    Raises:
        HTTPException 404: If no link has this code
        HTTPException 503: If the store is unavailable
    """
    try:
        link = await service.get_link(code)
    except LinkNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=LINK_NOT_FOUND_DETAIL)
    except StoreUnavailableError:
        raise store_unavailable()

    return to_link_response(link)


@router.delete(
    "/{code}",
    response_model=MessageResponse,
    summary="Delete a link",
    description="Permanently deletes a link; its shortcode stops redirecting"
)
@limiter.limit(RATE_LIMITS["delete"])
async def delete_link(
    code: str,
    request: Request,
    service: LinkService = Depends(get_link_service)
) -> MessageResponse:
    try:
        await service.delete_link(code)
    except LinkNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=LINK_NOT_FOUND_DETAIL)
    except StoreUnavailableError:
        raise store_unavailable()

    return MessageResponse(message="Link deleted successfully")
