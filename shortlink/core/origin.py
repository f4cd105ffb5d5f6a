"""
Origin Guard

Validates the Origin header of create requests against the trusted
allowlist and produces the CORS headers for trusted callers.

Matching is exact string equality: no wildcards and no suffix matching.
Untrusted callers never receive an Access-Control-Allow-Origin header.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional

ALLOWED_METHODS = "POST, OPTIONS"
ALLOWED_HEADERS = "Content-Type, Authorization"


@dataclass(frozen=True)
class PreflightDecision:
    """Outcome of a CORS preflight: whether to allow it, and the headers to send."""
    allow: bool
    headers: Dict[str, str] = field(default_factory=dict)


class OriginGuard:
    """Exact-match origin allowlist."""

    def __init__(self, trusted_origins: Iterable[str]):
        self.trusted_origins = frozenset(o for o in trusted_origins if o)

    def is_trusted(self, origin: Optional[str]) -> bool:
        return bool(origin) and origin in self.trusted_origins

    def cors_headers(self, origin: Optional[str]) -> Dict[str, str]:
        """Headers to attach to a normal response; empty for untrusted origins."""
        if not self.is_trusted(origin):
            return {}
        return {"Access-Control-Allow-Origin": origin, "Vary": "Origin"}

    def handle_preflight(self, origin: Optional[str]) -> PreflightDecision:
        """
        Decide a CORS preflight request.

        Args:
            origin: Value of the Origin header (may be missing)

        Returns:
            PreflightDecision with the full CORS header set when trusted,
            and no headers at all otherwise
        """
        if not self.is_trusted(origin):
            return PreflightDecision(allow=False)

        headers = self.cors_headers(origin)
        headers["Access-Control-Allow-Methods"] = ALLOWED_METHODS
        headers["Access-Control-Allow-Headers"] = ALLOWED_HEADERS
        return PreflightDecision(allow=True, headers=headers)
