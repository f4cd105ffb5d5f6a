"""
API Request and Response Schemas

This module defines all Pydantic models for API requests and responses.
Separated from endpoints to keep concerns separated and enable reuse.

Request fields are all optional at the schema level: a missing field must be
rejected by the admission pipeline in its fixed order (an untrusted origin is
reported before a missing CAPTCHA token), not by request parsing.
"""

from typing import Optional

from pydantic import AliasChoices, BaseModel, Field


class CreateLinkRequest(BaseModel):
    """Request model for the link creation endpoint."""
    api_key: Optional[str] = Field(default=None, description="Shared-secret API key")
    key: Optional[str] = Field(default=None, description="Requested short key")
    destination: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("destination", "redirect_to"),
        description="Absolute URL the key should redirect to"
    )
    captcha_token: Optional[str] = Field(default=None, description="CAPTCHA widget token")


class CreateLinkResponse(BaseModel):
    """Response model for the link creation endpoint."""
    short_url: str = Field(..., description="The complete short URL")
    destination: str = Field(..., description="The destination URL")


class RedirectPayload(BaseModel):
    """Payload for the redirect confirmation page."""
    key: str
    destination: str
