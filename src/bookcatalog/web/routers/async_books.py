"""Catalog reads routed through the rate-limited gateway."""

from fastapi import APIRouter

from bookcatalog.core.modules.book.models import Book
from bookcatalog.web.deps import AppDep, ClientIdDep
from bookcatalog.web.openapi import ErrorResponse

router: APIRouter = APIRouter(tags=["async"])

GATEWAY_RESPONSES: dict[int | str, dict[str, object]] = {
    429: {"model": ErrorResponse, "description": "Rate limit exceeded, see Retry-After"},
    502: {"model": ErrorResponse, "description": "Upstream unreachable or failed"},
    504: {"model": ErrorResponse, "description": "Upstream timed out"},
}


@router.get(
    "/async/books",
    summary="List books (gateway)",
    operation_id="asyncListBooks",
    responses=GATEWAY_RESPONSES,
)
async def list_books(app: AppDep, client_id: ClientIdDep) -> list[Book]:
    return await app.fetch_books(client_id)


@router.get(
    "/async/books/isbn/{isbn}",
    summary="Get book (gateway)",
    operation_id="asyncGetBook",
    responses={404: {"model": ErrorResponse, "description": "Book not found"}, **GATEWAY_RESPONSES},
)
async def get_book(isbn: str, app: AppDep, client_id: ClientIdDep) -> Book:
    return await app.fetch_book(client_id, isbn)


@router.get(
    "/async/books/author/{author}",
    summary="Find books by author (gateway)",
    operation_id="asyncFindBooksByAuthor",
    responses=GATEWAY_RESPONSES,
)
async def find_by_author(author: str, app: AppDep, client_id: ClientIdDep) -> list[Book]:
    return await app.fetch_books_by_author(client_id, author)


@router.get(
    "/async/books/title/{title}",
    summary="Find books by title (gateway)",
    operation_id="asyncFindBooksByTitle",
    responses=GATEWAY_RESPONSES,
)
async def find_by_title(title: str, app: AppDep, client_id: ClientIdDep) -> list[Book]:
    return await app.fetch_books_by_title(client_id, title)
