"""HTTP client for the Typesense introspection API"""
import posixpath
from typing import Optional

import httpx

from logging_config import get_logger


logger = get_logger(__name__)

API_KEY_HEADER = "X-Typesense-API-Key"


def join_url(base_url: str, path: str) -> str:
    """Append ``path`` to the path of ``base_url``, keeping any prefix"""
    url = httpx.URL(base_url)
    joined = posixpath.join(url.path or "/", path.lstrip("/"))
    return str(url.copy_with(path=joined))


class TypesenseClient:
    """Thin wrapper around ``httpx.AsyncClient`` with the API key and timeout baked in"""

    def __init__(self, base_url: str, api_key: str, timeout: float = 5.0,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url
        self.timeout = timeout
        self._client = httpx.AsyncClient(
            headers={API_KEY_HEADER: api_key},
            timeout=httpx.Timeout(timeout),
            transport=transport,
            trust_env=True,
        )

    def url_for(self, path: str) -> str:
        """Absolute URL for an API path"""
        return join_url(self.base_url, path)

    async def get(self, path: str) -> httpx.Response:
        """Issue a GET against the API and return the unread, streaming response.

        Transport failures propagate as ``httpx.HTTPError``. The caller owns the
        response and must ``aclose()`` it.
        """
        url = self.url_for(path)
        logger.debug("Requesting Typesense endpoint", url=url, event_type="upstream_request")
        request = self._client.build_request("GET", url)
        return await self._client.send(request, stream=True)

    async def aclose(self) -> None:
        """Close the underlying connection pool"""
        await self._client.aclose()
