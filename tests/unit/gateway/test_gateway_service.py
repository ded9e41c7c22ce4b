"""Tests for the rate-limited gateway (respx mock)."""

import asyncio

import httpx
import pytest
import respx

from bookcatalog.core.core import Core
from bookcatalog.core.modules.book.models import Book
from bookcatalog.errors import (
    GatewayTimeoutError,
    RateLimitedError,
    UpstreamClientError,
    UpstreamServerError,
    UpstreamUnreachableError,
)

BASE_URL = "http://catalog.internal"
BOOK = {"isbn": "isbn-1", "title": "Things Fall Apart", "author": "Chinua Achebe"}


@pytest.fixture
async def gateway(config, clock):
    core = Core(config)
    core.services.rate_limit.clock = clock
    yield core.services.gateway
    await core.services.gateway.on_stop()


@pytest.fixture
def upstream():
    with respx.mock(base_url=BASE_URL, assert_all_called=False) as mock:
        yield mock


class TestFetch:
    """Tests for successful fetches."""

    async def test_returns_decoded_json(self, gateway, upstream):
        upstream.get("/api/v1/books/isbn/isbn-1").mock(return_value=httpx.Response(200, json=BOOK))

        assert await gateway.fetch("/api/v1/books/isbn/isbn-1", None, "client") == BOOK

    async def test_passes_query(self, gateway, upstream):
        route = upstream.get("/search", params={"q": "austen"}).mock(return_value=httpx.Response(200, json=[]))

        assert await gateway.fetch("/search", {"q": "austen"}, "client") == []
        assert route.called

    async def test_fetch_book(self, gateway, upstream):
        upstream.get("/api/v1/books/isbn/isbn-1").mock(return_value=httpx.Response(200, json=BOOK))

        assert await gateway.fetch_book("client", "isbn-1") == Book(**BOOK)

    async def test_fetch_all_books(self, gateway, upstream):
        upstream.get("/api/v1/books").mock(return_value=httpx.Response(200, json=[BOOK]))

        assert await gateway.fetch_all_books("client") == [Book(**BOOK)]

    async def test_fetch_books_by_author(self, gateway, upstream):
        route = upstream.get("/api/v1/books/author/Austen").mock(return_value=httpx.Response(200, json=[]))

        assert await gateway.fetch_books_by_author("client", "Austen") == []
        assert route.called

    async def test_fetch_books_by_title(self, gateway, upstream):
        upstream.get("/api/v1/books/title/Things").mock(return_value=httpx.Response(200, json=[BOOK]))

        assert await gateway.fetch_books_by_title("client", "Things") == [Book(**BOOK)]


class TestRateLimit:
    """Tests for admission control in front of the downstream call."""

    async def test_denied_request_makes_no_downstream_call(self, gateway, upstream):
        route = upstream.get("/api/v1/books").mock(return_value=httpx.Response(200, json=[]))
        for _ in range(3):
            await gateway.fetch("/api/v1/books", None, "client")

        with pytest.raises(RateLimitedError) as exc_info:
            await gateway.fetch("/api/v1/books", None, "client")

        assert route.call_count == 3
        assert exc_info.value.retry_after == pytest.approx(60.0)

    async def test_quota_is_per_client(self, gateway, upstream):
        upstream.get("/api/v1/books").mock(return_value=httpx.Response(200, json=[]))
        for _ in range(3):
            await gateway.fetch("/api/v1/books", None, "a")

        assert await gateway.fetch("/api/v1/books", None, "b") == []

    async def test_failed_downstream_calls_count(self, gateway, upstream):
        upstream.get("/api/v1/books").mock(return_value=httpx.Response(500))
        for _ in range(3):
            with pytest.raises(UpstreamServerError):
                await gateway.fetch("/api/v1/books", None, "client")

        with pytest.raises(RateLimitedError):
            await gateway.fetch("/api/v1/books", None, "client")


class TestErrorClassification:
    """Tests for classification of downstream failures."""

    async def test_client_error_keeps_status_and_body(self, gateway, upstream):
        upstream.get("/api/v1/books/isbn/missing").mock(
            return_value=httpx.Response(404, json={"message": "Book 'missing' not found", "type": "not_found"})
        )

        with pytest.raises(UpstreamClientError) as exc_info:
            await gateway.fetch_book("client", "missing")

        assert exc_info.value.status_code == 404
        assert "not found" in exc_info.value.body

    @pytest.mark.parametrize("status", [500, 502, 503])
    async def test_server_error(self, gateway, upstream, status):
        upstream.get("/api/v1/books").mock(return_value=httpx.Response(status, text="boom"))

        with pytest.raises(UpstreamServerError):
            await gateway.fetch("/api/v1/books", None, "client")

    async def test_malformed_body(self, gateway, upstream):
        upstream.get("/api/v1/books").mock(return_value=httpx.Response(200, text="<html>not json</html>"))

        with pytest.raises(UpstreamServerError):
            await gateway.fetch("/api/v1/books", None, "client")

    async def test_unexpected_payload_shape(self, gateway, upstream):
        upstream.get("/api/v1/books").mock(return_value=httpx.Response(200, json={"books": "none"}))

        with pytest.raises(UpstreamServerError):
            await gateway.fetch_all_books("client")

    async def test_redirect_is_not_followed(self, gateway, upstream):
        upstream.get("/api/v1/books").mock(return_value=httpx.Response(302, headers={"Location": "/elsewhere"}))

        with pytest.raises(UpstreamServerError):
            await gateway.fetch("/api/v1/books", None, "client")

    async def test_timeout(self, gateway, upstream):
        upstream.get("/api/v1/books").mock(side_effect=httpx.ReadTimeout("timed out"))

        with pytest.raises(GatewayTimeoutError):
            await gateway.fetch("/api/v1/books", None, "client")

    async def test_slow_upstream_hits_total_timeout(self, gateway, upstream, config):
        """Test that an upstream stalling past the deadline is cut off."""
        config.gateway_timeout_seconds = 0.05

        async def stall(request):
            await asyncio.sleep(5)
            return httpx.Response(200, json=[])

        upstream.get("/api/v1/books").mock(side_effect=stall)

        with pytest.raises(GatewayTimeoutError):
            await asyncio.wait_for(gateway.fetch("/api/v1/books", None, "client"), timeout=2)

    async def test_connect_error(self, gateway, upstream):
        upstream.get("/api/v1/books").mock(side_effect=httpx.ConnectError("refused"))

        with pytest.raises(UpstreamUnreachableError):
            await gateway.fetch("/api/v1/books", None, "client")

    async def test_no_retry(self, gateway, upstream):
        route = upstream.get("/api/v1/books").mock(side_effect=httpx.ConnectError("refused"))

        with pytest.raises(UpstreamUnreachableError):
            await gateway.fetch("/api/v1/books", None, "client")

        assert route.call_count == 1
