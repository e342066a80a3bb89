"""
Icon Lookup Service

Suggests a logo for a subscription from its name.

The suggestion is a logo-service URL derived from the name
("Disney Plus" -> https://logo.clearbit.com/disneyplus.com?size=64).
find_icon() additionally checks that the logo exists before offering it.
"""

import re
from typing import Optional

import httpx
import structlog
from pydantic import BaseModel
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from subtrack.config import get_settings


DEFAULT_LOGO_BASE_URL = "https://logo.clearbit.com"
DEFAULT_ICON_SIZE = 64

logger = structlog.get_logger(__name__)


class IconLookupError(Exception):
    """Icon service could not be reached."""
    pass


class IconResult(BaseModel):
    """A candidate icon for a subscription."""
    id: str
    url: str
    title: str


def clean_name(name: str) -> str:
    """Lowercase the name and drop all whitespace."""
    return re.sub(r"\s+", "", name.lower().strip())


def suggest_icon_url(
    name: str,
    base_url: str = DEFAULT_LOGO_BASE_URL,
    size: int = DEFAULT_ICON_SIZE,
) -> Optional[str]:
    """Build the logo URL for a name, or None for a blank name."""
    cleaned = clean_name(name)
    if not cleaned:
        return None
    return f"{base_url.rstrip('/')}/{cleaned}.com?size={size}"


class IconLookupService:
    """
    Checks the logo service for a subscription's icon.

    Without an injected client each lookup opens its own HTTP client, so
    the service can be shared across event loops.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._settings = get_settings().icons
        self._client = client
        self._transport = transport

    async def close(self) -> None:
        """Close an injected HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def suggest(self, name: str) -> Optional[IconResult]:
        """Build a candidate without checking it exists."""
        url = suggest_icon_url(
            name,
            base_url=self._settings.logo_base_url,
            size=self._settings.size,
        )
        if url is None:
            return None
        return IconResult(id="logo-1", url=url, title=name.lower().strip())

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=5),
        reraise=True,
    )
    async def _head(self, client: httpx.AsyncClient, url: str) -> httpx.Response:
        return await client.head(url)

    async def _check(self, url: str) -> httpx.Response:
        if self._client is not None:
            return await self._head(self._client, url)
        async with httpx.AsyncClient(
            timeout=self._settings.timeout_seconds,
            follow_redirects=True,
            transport=self._transport,
        ) as client:
            return await self._head(client, url)

    async def find_icon(self, name: str) -> Optional[IconResult]:
        """
        Look up an icon for the name.

        Returns None when the name is blank or the logo service has no
        icon for it.

        Raises:
            IconLookupError: If the logo service cannot be reached
        """
        candidate = self.suggest(name)
        if candidate is None:
            return None

        try:
            response = await self._check(candidate.url)
        except httpx.TransportError as e:
            raise IconLookupError(f"Icon service unreachable: {e}") from e

        if response.status_code >= 400:
            logger.info(
                "icon_not_found",
                name=name,
                url=candidate.url,
                status_code=response.status_code,
            )
            return None

        return candidate
