"""
FastAPI Endpoints for the Short-Link Service

This module defines all REST API endpoints with minimal logic.
Endpoints only handle:
- Request parsing (Pydantic models)
- CORS headers for trusted origins
- Mapping pipeline outcomes and errors to HTTP responses
- Delegating to the service layer

All admission logic lives in CreationPipeline; process-wide collaborators
(origin guard, rate limiter, CAPTCHA client, settings) live on app.state.
"""

import logging
from typing import Dict, Tuple

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.responses import RedirectResponse
from sqlmodel.ext.asyncio.session import AsyncSession

from shortlink.api.schemas import CreateLinkRequest, CreateLinkResponse, RedirectPayload
from shortlink.core.client import get_client_ip
from shortlink.core.exceptions import DatabaseError
from shortlink.core.setting import Settings
from shortlink.db.session import get_session
from shortlink.services.link_store import LinkStore
from shortlink.services.pipeline import (
    CreationPipeline,
    CreationRequest,
    Rejected,
    RejectionReason,
)
from shortlink.services.redirect_service import RedirectResolver

logger = logging.getLogger(__name__)

router = APIRouter()

REJECTION_RESPONSES: Dict[RejectionReason, Tuple[int, str]] = {
    RejectionReason.UNTRUSTED_ORIGIN: (status.HTTP_403_FORBIDDEN, "Untrusted origin"),
    RejectionReason.RATE_LIMITED: (status.HTTP_429_TOO_MANY_REQUESTS, "Too many requests"),
    RejectionReason.INVALID_CAPTCHA: (status.HTTP_400_BAD_REQUEST, "Invalid CAPTCHA"),
    RejectionReason.INVALID_API_KEY: (status.HTTP_401_UNAUTHORIZED, "Invalid API key"),
    RejectionReason.MALFORMED_URL: (status.HTTP_400_BAD_REQUEST, "Malformed destination URL"),
    RejectionReason.DOMAIN_NOT_ALLOWED: (status.HTTP_400_BAD_REQUEST, "Destination domain not allowed"),
    RejectionReason.INVALID_KEY_FORMAT: (status.HTTP_400_BAD_REQUEST, "Invalid key format"),
    RejectionReason.KEY_ALREADY_EXISTS: (status.HTTP_400_BAD_REQUEST, "Key already exists"),
}


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


async def get_link_store(session: AsyncSession = Depends(get_session)) -> LinkStore:
    return LinkStore(session)


def get_pipeline(
    request: Request,
    store: LinkStore = Depends(get_link_store),
) -> CreationPipeline:
    """Bind the shared admission collaborators to this request's link store."""
    state = request.app.state
    return CreationPipeline(
        origin_guard=state.origin_guard,
        rate_limiter=state.rate_limiter,
        captcha=state.captcha,
        store=store,
        api_keys=state.settings.API_KEYS,
        allowed_domains=state.settings.ALLOWED_DOMAINS,
    )


def get_base_url(request: Request, config: Settings) -> str:
    """Base for short URLs: BASE_URL when configured, else https://<Host>."""
    if config.BASE_URL:
        return config.BASE_URL
    host = request.headers.get("host")
    if host:
        return f"https://{host}"
    return str(request.base_url)


@router.options(
    "/links",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="CORS preflight for link creation",
)
async def preflight_create_link(request: Request) -> Response:
    """
    Answer a CORS preflight.

    Returns:
        204 with CORS headers for trusted origins, bare 403 otherwise
    """
    decision = request.app.state.origin_guard.handle_preflight(request.headers.get("origin"))
    if not decision.allow:
        return Response(status_code=status.HTTP_403_FORBIDDEN)
    return Response(status_code=status.HTTP_204_NO_CONTENT, headers=decision.headers)


@router.post(
    "/links",
    response_model=CreateLinkResponse,
    summary="Create a short link",
    description="Admits a (key, destination) pair after origin, rate limit, CAPTCHA, "
                "API key and format checks; returns the existing key for a known destination"
)
async def create_link(
    request: Request,
    response: Response,
    body: CreateLinkRequest,
    pipeline: CreationPipeline = Depends(get_pipeline),
    config: Settings = Depends(get_settings),
) -> CreateLinkResponse:
    """
    Create a short link, or return the existing one for the destination.

    Returns:
        CreateLinkResponse with short_url and destination

    Raises:
        HTTPException 400/401/403/429: If the request is rejected
        HTTPException 500: If the link store fails
    """
    origin = request.headers.get("origin")
    cors_headers = request.app.state.origin_guard.cors_headers(origin)

    creation = CreationRequest(
        origin=origin,
        client_ip=get_client_ip(request),
        api_key=body.api_key,
        key=body.key,
        destination=body.destination,
        captcha_token=body.captcha_token,
        base_url=get_base_url(request, config),
    )

    try:
        result = await pipeline.create(creation)
    except DatabaseError as e:
        logger.error(f"Link creation failed: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"reason": "store_failure", "message": "Failed to create short link"},
            headers=cors_headers or None,
        )

    if isinstance(result, Rejected):
        status_code, message = REJECTION_RESPONSES[result.reason]
        detail = {"reason": result.reason.value, "message": message}
        if result.reason is RejectionReason.INVALID_CAPTCHA:
            detail["error_codes"] = result.error_codes
        raise HTTPException(
            status_code=status_code,
            detail=detail,
            headers=cors_headers or None,
        )

    response.headers.update(cors_headers)
    return CreateLinkResponse(short_url=result.short_url, destination=result.destination)


@router.get(
    "/{key}",
    response_model=None,
    summary="Resolve a short key",
    description="Returns the redirect payload for a key; browsers are redirected directly"
)
async def resolve_link(
    key: str,
    request: Request,
    store: LinkStore = Depends(get_link_store),
):
    """
    Resolve a short key for the redirect page.

    Returns:
        RedirectResponse (HTTP 302) for browsers, RedirectPayload otherwise

    Raises:
        HTTPException 404: If the key is unknown (no hint whether it ever existed)
        HTTPException 500: If the link store fails
    """
    try:
        destination = await RedirectResolver(store).resolve(key)
    except DatabaseError as e:
        logger.error(f"Redirect lookup failed: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error"
        )

    if not destination:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")

    if "text/html" in request.headers.get("accept", "").lower():
        return RedirectResponse(url=destination, status_code=status.HTTP_302_FOUND)

    return RedirectPayload(key=key, destination=destination)
