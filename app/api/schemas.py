"""
API Request and Response Schemas

This module defines all Pydantic models for API requests and responses.
Separated from endpoints to keep concerns separated and enable reuse.

Design Principles:
- Request models: Define input validation
- Response models: Define output structure, serialized in camelCase
- Separation: Can be imported by other modules (services, tests, etc.)
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.core.validators import MAX_URL_LENGTH


class CamelModel(BaseModel):
    """Base model emitting camelCase keys while accepting snake_case names."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True
    )


class CreateLinkRequest(BaseModel):
    """Request model for the link creation endpoint."""
    url: str = Field(..., min_length=1, max_length=MAX_URL_LENGTH, description="The URL to redirect to")
    code: Optional[str] = Field(
        default=None,
        description="Custom shortcode (6-8 letters or digits); generated when omitted"
    )


class LinkResponse(CamelModel):
    """A stored link as returned by the API."""
    id: int
    code: str
    url: str
    clicks: int
    created_at: datetime
    last_clicked: Optional[datetime] = None
    short_url: str = Field(..., description="The complete short URL")


class MessageResponse(BaseModel):
    """Plain confirmation message."""
    message: str


class HealthChecks(BaseModel):
    store: str
    database: str


class HealthResponse(BaseModel):
    """Detailed health report."""
    ok: bool
    version: str
    timestamp: datetime
    environment: str
    checks: HealthChecks
    errors: list[str] = Field(default_factory=list)
