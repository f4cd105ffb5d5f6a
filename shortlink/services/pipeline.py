"""
Link Creation Pipeline

This service decides whether a create request is admitted, rejected, or
deduplicated against an existing link.

Evaluation order is fixed and short-circuiting:
1. Origin check
2. Rate limit (keyed by client IP)
3. CAPTCHA verification
4. API key membership
5. Destination validation
6. Key format validation
7. Dedup lookup by destination (existing mapping is a success)
8. Atomic insert (conflict means the key is taken)

Only step 8 writes. A rejection at any step leaves no trace in later steps;
the only shared state touched before step 8 is the rate limiter window.
"""

import hmac
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Union

from shortlink.core.origin import OriginGuard
from shortlink.core.rate_limit import RateLimiter
from shortlink.core.validators import is_valid_key, validate_destination
from shortlink.services.captcha import CaptchaValidator
from shortlink.services.link_store import LinkStore

logger = logging.getLogger(__name__)


class RejectionReason(str, Enum):
    """Why a create request was refused."""
    UNTRUSTED_ORIGIN = "untrusted_origin"
    RATE_LIMITED = "rate_limited"
    INVALID_CAPTCHA = "invalid_captcha"
    INVALID_API_KEY = "invalid_api_key"
    MALFORMED_URL = "malformed_url"
    DOMAIN_NOT_ALLOWED = "domain_not_allowed"
    INVALID_KEY_FORMAT = "invalid_key_format"
    KEY_ALREADY_EXISTS = "key_already_exists"


@dataclass(frozen=True)
class CreationRequest:
    """Everything the pipeline needs to know about one create request."""
    origin: Optional[str]
    client_ip: str
    api_key: Optional[str]
    key: Optional[str]
    destination: Optional[str]
    captcha_token: Optional[str]
    base_url: str


@dataclass(frozen=True)
class Rejected:
    reason: RejectionReason
    error_codes: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class Existing:
    """The destination was already shortened; `key` is the existing key."""
    key: str
    destination: str
    short_url: str


@dataclass(frozen=True)
class Created:
    key: str
    destination: str
    short_url: str


CreationResult = Union[Rejected, Existing, Created]


def short_url_for(base_url: str, key: str) -> str:
    return f"{base_url.rstrip('/')}/{key}"


def api_key_allowed(api_key: Optional[str], valid_keys: Iterable[str]) -> bool:
    """Constant-time membership test of `api_key` in `valid_keys`."""
    if not api_key:
        return False
    candidate = api_key.encode()
    matched = False
    for valid in valid_keys:
        # Keep scanning after a match so timing doesn't reveal the position
        matched |= hmac.compare_digest(candidate, valid.encode())
    return matched


class CreationPipeline:
    """
    Orchestrates the admission checks and the store write for link creation.

    Collaborators are injected so the process-wide pieces (origin guard,
    rate limiter, CAPTCHA client) can be shared across requests while the
    link store is bound to the request's database session.
    """

    def __init__(
        self,
        origin_guard: OriginGuard,
        rate_limiter: RateLimiter,
        captcha: CaptchaValidator,
        store: LinkStore,
        api_keys: Iterable[str],
        allowed_domains: Iterable[str],
    ):
        self.origin_guard = origin_guard
        self.rate_limiter = rate_limiter
        self.captcha = captcha
        self.store = store
        self.api_keys = tuple(api_keys)
        self.allowed_domains = frozenset(allowed_domains)

    async def create(self, request: CreationRequest) -> CreationResult:
        """
        Admit or reject a create request.

        Args:
            request: The create request

        Returns:
            Rejected(reason), Existing(key of the prior link) or Created(key)

        Raises:
            DatabaseError: If the link store fails during dedup or insert
        """
        if not self.origin_guard.is_trusted(request.origin):
            logger.warning(f"Rejected create from untrusted origin {request.origin!r}")
            return Rejected(RejectionReason.UNTRUSTED_ORIGIN)

        if not await self.rate_limiter.admit(request.client_ip):
            logger.warning(f"Rate limit exceeded for client {request.client_ip}")
            return Rejected(RejectionReason.RATE_LIMITED)

        captcha = await self.captcha.verify(request.captcha_token, request.client_ip)
        if not captcha.success:
            logger.info(f"CAPTCHA failed for client {request.client_ip}: {captcha.error_codes}")
            return Rejected(RejectionReason.INVALID_CAPTCHA, list(captcha.error_codes))

        if not api_key_allowed(request.api_key, self.api_keys):
            logger.warning(f"Invalid API key from client {request.client_ip}")
            return Rejected(RejectionReason.INVALID_API_KEY)

        check = validate_destination(request.destination, self.allowed_domains)
        if not check.ok:
            logger.info(f"Destination rejected ({check.reason}): {request.destination!r}")
            return Rejected(RejectionReason(check.reason))

        if not is_valid_key(request.key):
            logger.info(f"Invalid key format: {request.key!r}")
            return Rejected(RejectionReason.INVALID_KEY_FORMAT)

        # Best-effort dedup: not atomic with the insert below
        existing = await self.store.find_by_destination(check.url)
        if existing:
            logger.info(f"Destination already shortened as '{existing.key}'")
            return Existing(
                key=existing.key,
                destination=existing.destination,
                short_url=short_url_for(request.base_url, existing.key),
            )

        outcome = await self.store.create_if_absent(request.key, check.url)
        if outcome.conflict:
            return Rejected(RejectionReason.KEY_ALREADY_EXISTS)

        link = outcome.created
        logger.info(f"Created link '{link.key}' -> {link.destination}")
        return Created(
            key=link.key,
            destination=link.destination,
            short_url=short_url_for(request.base_url, link.key),
        )
