"""Tests for icon lookup (no network: HTTP goes through httpx.MockTransport)."""

import asyncio

import httpx
import pytest

from subtrack.services.icons import (
    IconLookupError,
    IconLookupService,
    clean_name,
    suggest_icon_url,
)


def _service(handler) -> IconLookupService:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return IconLookupService(client=client)


class TestIconUrl:

    def test_clean_name(self):
        assert clean_name("  Disney Plus ") == "disneyplus"
        assert clean_name("Amazon\tPrime Video") == "amazonprimevideo"

    def test_suggest_icon_url(self):
        assert suggest_icon_url("YouTube Premium") == (
            "https://logo.clearbit.com/youtubepremium.com?size=64"
        )

    def test_blank_name(self):
        assert suggest_icon_url("") is None
        assert suggest_icon_url("   ") is None

    def test_custom_base_url_and_size(self):
        assert suggest_icon_url("Netflix", base_url="https://icons.example/", size=128) == (
            "https://icons.example/netflix.com?size=128"
        )


class TestIconLookupService:

    def test_suggest_uses_settings(self, monkeypatch):
        monkeypatch.setenv("SUBTRACK_ICONS_SIZE", "128")
        service = IconLookupService()
        result = service.suggest("Netflix")
        assert result.url == "https://logo.clearbit.com/netflix.com?size=128"
        assert result.title == "netflix"
        assert result.id == "logo-1"

    @pytest.mark.asyncio
    async def test_find_icon_found(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200)

        service = _service(handler)
        result = await service.find_icon("Spotify")
        await service.close()

        assert result is not None
        assert result.url == "https://logo.clearbit.com/spotify.com?size=64"
        assert requests[0].method == "HEAD"
        assert str(requests[0].url) == result.url

    @pytest.mark.asyncio
    async def test_find_icon_not_found(self):
        service = _service(lambda request: httpx.Response(404))
        assert await service.find_icon("Some Local Gym") is None
        await service.close()

    @pytest.mark.asyncio
    async def test_blank_name_makes_no_request(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        service = _service(handler)
        assert await service.find_icon("  ") is None
        await service.close()

    @pytest.mark.asyncio
    async def test_unreachable_service_is_retried_then_raised(self):
        attempts = []

        def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(request)
            raise httpx.ConnectError("connection refused", request=request)

        service = _service(handler)
        with pytest.raises(IconLookupError):
            await service.find_icon("Netflix")
        await service.close()

        assert len(attempts) == 3

    def test_shared_service_survives_successive_event_loops(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200)

        service = IconLookupService(transport=httpx.MockTransport(handler))
        results = []
        for name in ("Netflix", "Spotify"):
            loop = asyncio.new_event_loop()
            try:
                results.append(loop.run_until_complete(service.find_icon(name)))
            finally:
                loop.close()

        assert [r.title for r in results] == ["netflix", "spotify"]
        assert len(requests) == 2


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
