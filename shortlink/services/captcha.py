"""
CAPTCHA Verification Service

Relays a client-supplied CAPTCHA token to the human-verification provider
(Cloudflare Turnstile by default) and reports a definite yes/no.

Design Decisions:
- Never raises: timeouts, network errors, non-2xx responses and malformed
  bodies all become success=False, so the pipeline always gets a boolean
- Single attempt, bounded by a timeout; a failed attempt fails the request
- Missing token or missing secret fail locally without a network call
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

import httpx

from shortlink.core.setting import TURNSTILE_VERIFY_URL

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CaptchaResult:
    """Verification outcome with provider error codes (may be empty)."""
    success: bool
    error_codes: List[str] = field(default_factory=list)


class CaptchaValidator:
    """
    Client for the provider's siteverify endpoint.

    The httpx transport can be injected, which lets tests stand in for the
    provider with httpx.MockTransport.
    """

    def __init__(
        self,
        secret: Optional[str],
        verify_url: str = TURNSTILE_VERIFY_URL,
        timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the validator.

        Args:
            secret: Provider secret key (None disables verification: every token fails)
            verify_url: Provider verification endpoint
            timeout: Seconds before the outbound call is abandoned
            transport: Optional httpx transport override
        """
        self.secret = secret
        self.verify_url = verify_url
        self.timeout = timeout
        self._transport = transport

    async def verify(self, token: Optional[str], client_ip: Optional[str] = None) -> CaptchaResult:
        """
        Verify a CAPTCHA token.

        Args:
            token: Token produced by the client-side widget
            client_ip: Client address forwarded to the provider when known

        Returns:
            CaptchaResult; success is False on any verification or transport failure
        """
        if not self.secret:
            logger.error("CAPTCHA secret is not configured; rejecting verification")
            return CaptchaResult(success=False, error_codes=["missing-input-secret"])

        if not token:
            return CaptchaResult(success=False, error_codes=["missing-input-response"])

        form = {"secret": self.secret, "response": token}
        if client_ip:
            form["remoteip"] = client_ip

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.verify_url, data=form)
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPError as e:
            logger.warning(f"CAPTCHA verification request failed: {type(e).__name__}: {e}")
            return CaptchaResult(success=False)
        except ValueError as e:
            logger.warning(f"CAPTCHA verification returned a non-JSON body: {e}")
            return CaptchaResult(success=False)

        if not isinstance(payload, dict):
            logger.warning("CAPTCHA verification returned an unexpected payload")
            return CaptchaResult(success=False)

        codes = payload.get("error-codes") or []
        if not isinstance(codes, list):
            codes = [codes]

        return CaptchaResult(
            success=payload.get("success") is True,
            error_codes=[str(code) for code in codes],
        )
