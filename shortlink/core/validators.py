"""
Input Validators

This module provides the syntactic checks a create request must pass
before anything touches the link store.

Security Considerations:
- Keys are restricted to [a-zA-Z0-9_-] so they are safe in paths and queries
- Destinations must parse as absolute URLs and point at an allowlisted host,
  which keeps the service from becoming an open redirector
"""

import re
from dataclasses import dataclass
from typing import Iterable, Optional

from pydantic import AnyUrl, ValidationError

KEY_PATTERN = re.compile(r"[a-zA-Z0-9_-]{3,32}")

MALFORMED_URL = "malformed_url"
DOMAIN_NOT_ALLOWED = "domain_not_allowed"


@dataclass(frozen=True)
class DestinationCheck:
    """Result of validating a destination URL."""
    ok: bool
    hostname: Optional[str] = None
    reason: Optional[str] = None
    url: Optional[str] = None


def is_valid_key(key: str) -> bool:
    """
    Check short key format.

    Keys are 3-32 characters drawn from letters, digits, underscore and
    hyphen. The check is purely syntactic and independent of storage state.

    Args:
        key: The proposed short key

    Returns:
        True if the key has a valid format, False otherwise
    """
    if not isinstance(key, str):
        return False
    # fullmatch: a trailing newline must not slip through like it would with `$`
    return KEY_PATTERN.fullmatch(key) is not None


def validate_destination(raw_url: str, allowed_hostnames: Iterable[str]) -> DestinationCheck:
    """
    Validate a destination URL against the allowed hostnames.

    URLs are parsed with pydantic's AnyUrl, which follows the WHATWG URL
    rules browsers use (a backslash in an http(s) authority ends the host,
    for example). A URL that cannot be parsed as absolute (no scheme, no
    host, bad port, bad IPv6 literal) is rejected as malformed; a
    well-formed URL whose hostname is not in the allowlist is rejected as
    not allowed. Hostnames are compared exactly, so subdomains must be
    listed explicitly.

    Args:
        raw_url: The destination submitted by the client
        allowed_hostnames: Hostnames links may point to

    Returns:
        DestinationCheck with ok=True, the parsed hostname and the
        whitespace-stripped URL that should be stored
    """
    if not isinstance(raw_url, str) or not raw_url.strip():
        return DestinationCheck(ok=False, reason=MALFORMED_URL)

    url = raw_url.strip()
    try:
        hostname = AnyUrl(url).host
    except ValidationError:
        return DestinationCheck(ok=False, reason=MALFORMED_URL)

    if not hostname:
        return DestinationCheck(ok=False, reason=MALFORMED_URL)

    if hostname not in set(allowed_hostnames):
        return DestinationCheck(ok=False, hostname=hostname, reason=DOMAIN_NOT_ALLOWED)

    return DestinationCheck(ok=True, hostname=hostname, url=url)
