"""Tests for the CAPTCHA relay, with the provider replaced by httpx.MockTransport."""

from urllib.parse import parse_qs

import httpx
import pytest

from shortlink.services.captcha import CaptchaValidator

VERIFY_URL = "https://captcha.test/siteverify"


def make_validator(handler, secret="secret") -> CaptchaValidator:
    return CaptchaValidator(
        secret=secret,
        verify_url=VERIFY_URL,
        timeout=1.0,
        transport=httpx.MockTransport(handler),
    )


class TestCaptchaValidator:

    @pytest.mark.asyncio
    async def test_success_forwards_secret_token_and_ip(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["form"] = parse_qs(request.content.decode())
            return httpx.Response(200, json={"success": True, "error-codes": []})

        result = await make_validator(handler).verify("tok", "198.51.100.1")

        assert result.success
        assert result.error_codes == []
        assert seen["url"] == VERIFY_URL
        assert seen["form"] == {
            "secret": ["secret"],
            "response": ["tok"],
            "remoteip": ["198.51.100.1"],
        }

    @pytest.mark.asyncio
    async def test_remoteip_omitted_when_unknown(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["form"] = parse_qs(request.content.decode())
            return httpx.Response(200, json={"success": True})

        await make_validator(handler).verify("tok", None)
        assert "remoteip" not in seen["form"]

    @pytest.mark.asyncio
    async def test_provider_rejection_passes_error_codes(self):
        def handler(request):
            return httpx.Response(
                200, json={"success": False, "error-codes": ["invalid-input-response", "timeout-or-duplicate"]}
            )

        result = await make_validator(handler).verify("tok", "1.1.1.1")
        assert not result.success
        assert result.error_codes == ["invalid-input-response", "timeout-or-duplicate"]

    @pytest.mark.asyncio
    async def test_timeout_is_a_failure(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        result = await make_validator(handler).verify("tok", "1.1.1.1")
        assert not result.success
        assert result.error_codes == []

    @pytest.mark.asyncio
    async def test_network_error_is_a_failure(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        result = await make_validator(handler).verify("tok", "1.1.1.1")
        assert not result.success

    @pytest.mark.asyncio
    async def test_non_json_body_is_a_failure(self):
        def handler(request):
            return httpx.Response(200, text="<html>oops</html>")

        result = await make_validator(handler).verify("tok", "1.1.1.1")
        assert not result.success
        assert result.error_codes == []

    @pytest.mark.asyncio
    async def test_server_error_is_a_failure(self):
        def handler(request):
            return httpx.Response(503, json={"success": True})

        result = await make_validator(handler).verify("tok", "1.1.1.1")
        assert not result.success

    @pytest.mark.asyncio
    async def test_non_object_payload_is_a_failure(self):
        def handler(request):
            return httpx.Response(200, json=["success"])

        result = await make_validator(handler).verify("tok", "1.1.1.1")
        assert not result.success

    @pytest.mark.asyncio
    async def test_truthy_non_boolean_success_is_not_success(self):
        def handler(request):
            return httpx.Response(200, json={"success": "yes"})

        result = await make_validator(handler).verify("tok", "1.1.1.1")
        assert not result.success

    @pytest.mark.asyncio
    async def test_missing_token_fails_without_network_call(self):
        def handler(request):
            raise AssertionError("provider must not be called")

        result = await make_validator(handler).verify(None, "1.1.1.1")
        assert not result.success
        assert result.error_codes == ["missing-input-response"]

    @pytest.mark.asyncio
    async def test_missing_secret_fails_without_network_call(self):
        def handler(request):
            raise AssertionError("provider must not be called")

        result = await make_validator(handler, secret=None).verify("tok", "1.1.1.1")
        assert not result.success
        assert result.error_codes == ["missing-input-secret"]
