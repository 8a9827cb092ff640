"""Unit tests for the configuration store client."""

import httpx
import pytest

from pagerender.clients.config_service import ConfigServiceClient
from pagerender.core.exceptions import ExternalServiceError

BASE_URL = "https://edge-config.example.com/ecfg_test/"


def _client(handler, token="read-token"):
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ConfigServiceClient(http, BASE_URL, token)


class TestGet:
    @pytest.mark.asyncio
    async def test_returns_decoded_value(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=["malware.example", "phish"])

        value = await _client(handler).get("keywords")

        assert value == ["malware.example", "phish"]
        assert str(seen[0].url) == "https://edge-config.example.com/ecfg_test/item/keywords"
        assert seen[0].headers["Authorization"] == "Bearer read-token"

    @pytest.mark.asyncio
    async def test_missing_item_is_none(self):
        value = await _client(lambda request: httpx.Response(404)).get("keywords")

        assert value is None

    @pytest.mark.asyncio
    async def test_error_status_raises(self):
        with pytest.raises(ExternalServiceError) as exc_info:
            await _client(lambda request: httpx.Response(500, text="boom")).get("keywords")

        assert exc_info.value.details["http_code"] == 500

    @pytest.mark.asyncio
    async def test_network_error_raises(self):
        def handler(request):
            raise httpx.ConnectError("refused")

        with pytest.raises(ExternalServiceError) as exc_info:
            await _client(handler).get("keywords")

        assert exc_info.value.error_code == "CONFIG_UNAVAILABLE"

    @pytest.mark.asyncio
    async def test_no_token_no_header(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=[])

        await _client(handler, token=None).get("keywords")

        assert "Authorization" not in seen[0].headers
