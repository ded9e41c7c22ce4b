import asyncio
from typing import Any, TypeVar
from urllib.parse import quote

import httpx
import structlog
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from bookcatalog.config import Config
from bookcatalog.core.core import Service
from bookcatalog.core.modules.book.models import Book
from bookcatalog.errors import (
    GatewayTimeoutError,
    RateLimitedError,
    UpstreamClientError,
    UpstreamServerError,
    UpstreamUnreachableError,
)

logger = structlog.get_logger(__name__)

API_PREFIX = "/api/v1"

_book_adapter = TypeAdapter(Book)
_book_list_adapter = TypeAdapter(list[Book])


class GatewayService(Service):
    """Proxies catalog reads to the internal synchronous API.

    Adds admission control, a bounded timeout and failure classification.
    Failures are raised as-is, the gateway never retries.
    """

    def __init__(self, config: Config) -> None:
        super().__init__(config)
        self.transport: httpx.AsyncBaseTransport | None = None
        self._client: httpx.AsyncClient | None = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.config.gateway_base_url,
                timeout=self.config.gateway_timeout_seconds,
                transport=self.transport,
            )
        return self._client

    async def on_stop(self) -> None:
        """Close the downstream connection pool."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def fetch(self, path: str, query: dict[str, str] | None, client_id: str) -> Any:
        """GET `path` from the internal API on behalf of `client_id` and return the decoded JSON."""
        decision = self.core.services.rate_limit.admit(client_id)
        if not decision.allowed:
            raise RateLimitedError(decision.retry_after)

        timeout = self.config.gateway_timeout_seconds
        try:
            async with asyncio.timeout(timeout):
                response = await self.client.get(path, params=query)
        except (httpx.TimeoutException, TimeoutError) as e:
            logger.warning("gateway_timeout", path=path, timeout=timeout)
            raise GatewayTimeoutError(f"Upstream did not answer within {timeout} seconds") from e
        except httpx.TransportError as e:
            logger.warning("gateway_unreachable", path=path, error=str(e))
            raise UpstreamUnreachableError(f"Upstream unreachable: {e}") from e

        return self._decode(response, path)

    def _decode(self, response: httpx.Response, path: str) -> Any:
        status = response.status_code
        if 400 <= status < 500:
            raise UpstreamClientError(status, response.text)
        if not response.is_success:
            logger.warning("gateway_upstream_error", path=path, status_code=status)
            raise UpstreamServerError(f"Upstream returned {status}")
        try:
            return response.json()
        except ValueError as e:
            logger.warning("gateway_malformed_response", path=path)
            raise UpstreamServerError("Upstream returned a malformed body") from e

    async def fetch_all_books(self, client_id: str) -> list[Book]:
        data = await self.fetch(f"{API_PREFIX}/books", None, client_id)
        return _parse(_book_list_adapter, data)

    async def fetch_book(self, client_id: str, isbn: str) -> Book:
        data = await self.fetch(f"{API_PREFIX}/books/isbn/{quote(isbn, safe='')}", None, client_id)
        return _parse(_book_adapter, data)

    async def fetch_books_by_author(self, client_id: str, author: str) -> list[Book]:
        data = await self.fetch(f"{API_PREFIX}/books/author/{quote(author, safe='')}", None, client_id)
        return _parse(_book_list_adapter, data)

    async def fetch_books_by_title(self, client_id: str, title: str) -> list[Book]:
        data = await self.fetch(f"{API_PREFIX}/books/title/{quote(title, safe='')}", None, client_id)
        return _parse(_book_list_adapter, data)


T = TypeVar("T")


def _parse(adapter: TypeAdapter[T], data: Any) -> T:
    try:
        return adapter.validate_python(data)
    except PydanticValidationError as e:
        raise UpstreamServerError("Upstream returned an unexpected payload") from e
