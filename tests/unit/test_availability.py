"""Unit tests for the backend availability guard."""

from unittest.mock import AsyncMock

import httpx
import pytest

from aicli.availability import check_availability
from aicli.errors import ExitCode, UnavailableError
from aicli.llm import LLMConfig, LLMProvider


@pytest.fixture
def provider() -> LLMProvider:
    return LLMProvider(LLMConfig(base_url="http://test.local/v1", model="tiny-model"))


def http_error(status: int) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "http://test.local/v1/models")
    response = httpx.Response(status, request=request)
    return httpx.HTTPStatusError(f"HTTP {status}", request=request, response=response)


class TestCheckAvailability:
    @pytest.mark.asyncio
    async def test_model_served(self, provider):
        provider.list_models = AsyncMock(return_value=["tiny-model", "other"])
        await check_availability(provider)

    @pytest.mark.asyncio
    async def test_empty_model_list_is_accepted(self, provider):
        provider.list_models = AsyncMock(return_value=[])
        await check_availability(provider)

    @pytest.mark.asyncio
    async def test_model_not_loaded(self, provider):
        provider.list_models = AsyncMock(return_value=["other"])
        with pytest.raises(UnavailableError) as exc_info:
            await check_availability(provider)
        assert exc_info.value.exit_code == ExitCode.ASSETS_NOT_READY

    @pytest.mark.asyncio
    async def test_backend_unreachable(self, provider):
        provider.list_models = AsyncMock(side_effect=httpx.ConnectError("refused"))
        with pytest.raises(UnavailableError, match="unavailable") as exc_info:
            await check_availability(provider)
        assert exc_info.value.exit_code == ExitCode.UNAVAILABLE

    @pytest.mark.asyncio
    async def test_backend_timeout(self, provider):
        provider.list_models = AsyncMock(side_effect=httpx.ReadTimeout("slow"))
        with pytest.raises(UnavailableError, match="timed out"):
            await check_availability(provider)

    @pytest.mark.asyncio
    async def test_rejected_api_key(self, provider):
        provider.list_models = AsyncMock(side_effect=http_error(401))
        with pytest.raises(UnavailableError, match="API key"):
            await check_availability(provider)

    @pytest.mark.asyncio
    async def test_models_endpoint_missing_is_tolerated(self, provider):
        provider.list_models = AsyncMock(side_effect=http_error(404))
        await check_availability(provider)
