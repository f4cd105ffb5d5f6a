"""Tests for origin allowlisting and CORS preflight decisions."""

from shortlink.core.origin import OriginGuard


class TestOriginGuard:

    def setup_method(self):
        self.guard = OriginGuard(["https://app.example.com", ""])

    def test_exact_match_only(self):
        assert self.guard.is_trusted("https://app.example.com")
        assert not self.guard.is_trusted("https://app.example.com/")
        assert not self.guard.is_trusted("http://app.example.com")
        assert not self.guard.is_trusted("https://evil.app.example.com")
        assert not self.guard.is_trusted("https://APP.example.com")

    def test_missing_origin_is_never_trusted(self):
        assert not self.guard.is_trusted(None)
        assert not self.guard.is_trusted("")

    def test_trusted_preflight_gets_cors_headers(self):
        decision = self.guard.handle_preflight("https://app.example.com")
        assert decision.allow
        assert decision.headers["Access-Control-Allow-Origin"] == "https://app.example.com"
        assert decision.headers["Access-Control-Allow-Methods"] == "POST, OPTIONS"
        assert decision.headers["Access-Control-Allow-Headers"] == "Content-Type, Authorization"

    def test_untrusted_preflight_gets_no_headers(self):
        decision = self.guard.handle_preflight("https://evil.com")
        assert not decision.allow
        assert decision.headers == {}

    def test_cors_headers_only_for_trusted(self):
        assert self.guard.cors_headers("https://app.example.com") == {
            "Access-Control-Allow-Origin": "https://app.example.com",
            "Vary": "Origin",
        }
        assert self.guard.cors_headers("https://evil.com") == {}
