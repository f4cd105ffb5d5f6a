"""Tests for key format and destination validation."""

import pytest

from shortlink.core.validators import (
    DOMAIN_NOT_ALLOWED,
    MALFORMED_URL,
    is_valid_key,
    validate_destination,
)

ALLOWED = ["example.com", "docs.example.com"]


class TestKeyFormat:
    """Test short key format validation."""

    @pytest.mark.parametrize("key", ["abc", "abc123", "a_b-c", "A" * 32, "___", "0-9"])
    def test_valid_keys(self, key):
        assert is_valid_key(key), f"Should be valid: {key!r}"

    @pytest.mark.parametrize(
        "key",
        ["", "ab", "A" * 33, "has space", "slash/key", "dot.key", "ключ", "abc\n", None, 123],
    )
    def test_invalid_keys(self, key):
        assert not is_valid_key(key), f"Should be invalid: {key!r}"


class TestDestinationValidation:
    """Test destination URL parsing and hostname allowlisting."""

    def test_allowed_host(self):
        check = validate_destination("https://example.com/x", ALLOWED)
        assert check.ok
        assert check.hostname == "example.com"

    def test_port_and_query_do_not_affect_hostname(self):
        check = validate_destination("http://docs.example.com:8080/a?b=c#d", ALLOWED)
        assert check.ok
        assert check.hostname == "docs.example.com"

    def test_hostname_is_normalised_by_parsing(self):
        assert validate_destination("https://EXAMPLE.com/", ALLOWED).ok

    def test_scheme_is_not_restricted(self):
        assert validate_destination("ftp://example.com/file", ALLOWED).ok

    @pytest.mark.parametrize(
        "url",
        [
            "https://evil.com/",
            "https://sub.example.com/",
            "https://example.com.evil.com/",
            "https://evil.com\\@example.com/",
            "https://example.com@evil.com/",
        ],
    )
    def test_disallowed_hosts(self, url):
        check = validate_destination(url, ALLOWED)
        assert not check.ok
        assert check.reason == DOMAIN_NOT_ALLOWED

    def test_backslash_ends_the_host_like_in_browsers(self):
        check = validate_destination("https://evil.com\\@example.com/", ["example.com"])
        assert check.hostname == "evil.com"

    def test_surrounding_whitespace_is_stripped(self):
        check = validate_destination("  https://example.com/x\n", ALLOWED)
        assert check.ok
        assert check.url == "https://example.com/x"

    def test_url_is_kept_as_submitted(self):
        check = validate_destination("https://example.com", ALLOWED)
        assert check.url == "https://example.com"

    @pytest.mark.parametrize(
        "url",
        ["", "   ", "not-a-url", "example.com/path", "https://", "http://[::1", "https://example.com:99999/", None],
    )
    def test_malformed_urls(self, url):
        check = validate_destination(url, ALLOWED)
        assert not check.ok
        assert check.reason == MALFORMED_URL

    def test_empty_allowlist_denies_everything(self):
        check = validate_destination("https://example.com/", [])
        assert check.reason == DOMAIN_NOT_ALLOWED
