import aiohttp
from typing import Any, Dict, Mapping, Optional, Union
from yarl import URL

from .error import AuthenticationError, NotFoundError

JSON = Dict[str, Any]

HEADERS = {
    "Accept": "application/json",
    "Content-Type": "application/json; charset=utf-8",
}

"""Default timeout in seconds"""
TIMEOUT: float = 10.0


class SessionManager:
    """Thin wrapper over an aiohttp session returning decoded JSON bodies."""

    def __init__(
        self,
        headers: Optional[Mapping] = None,
        timeout: float = TIMEOUT,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        merged_headers = dict(**HEADERS)
        merged_headers.update(headers or {})
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.session = session or aiohttp.ClientSession(
            headers=merged_headers, timeout=self.timeout
        )

    def _check(self, res: aiohttp.ClientResponse, raise_errors: bool) -> None:
        if res.status in (401, 403):
            raise AuthenticationError(res.reason or "Unauthorized")
        if res.status == 404:
            raise NotFoundError("Not found")
        if raise_errors:
            res.raise_for_status()

    async def post(
        self,
        url: Union[str, URL],
        data: Optional[JSON] = None,
        raise_errors: bool = True,
    ) -> Any:
        """Run a wrapped session HTTP POST request with a JSON payload."""
        async with self.session.post(
            str(url), json=data, timeout=self.timeout
        ) as res:
            self._check(res, raise_errors)
            return await res.json(content_type=None)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}<timeout={self.timeout.total}>"

    async def close(self) -> None:
        """Close the underlying session"""
        if self.session and not self.session.closed:
            await self.session.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()
