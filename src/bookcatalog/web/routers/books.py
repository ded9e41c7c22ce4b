"""Anonymous catalog reads."""

from fastapi import APIRouter

from bookcatalog.core.modules.book.models import Book
from bookcatalog.web.deps import AppDep
from bookcatalog.web.openapi import ErrorResponse

router: APIRouter = APIRouter(tags=["books"])


@router.get(
    "/books",
    summary="List books",
    description="Get every book in the catalog.",
    operation_id="listBooks",
)
async def list_books(app: AppDep) -> list[Book]:
    return await app.get_books()


@router.get(
    "/books/isbn/{isbn}",
    summary="Get book",
    description="Get a book by ISBN.",
    operation_id="getBook",
    responses={
        200: {"description": "Book details"},
        404: {"model": ErrorResponse, "description": "Book not found"},
    },
)
async def get_book(isbn: str, app: AppDep) -> Book:
    return await app.get_book(isbn)


@router.get(
    "/books/author/{author}",
    summary="Find books by author",
    description="Books whose author contains the given text, ignoring case.",
    operation_id="findBooksByAuthor",
)
async def find_by_author(author: str, app: AppDep) -> list[Book]:
    return await app.get_books_by_author(author)


@router.get(
    "/books/title/{title}",
    summary="Find books by title",
    description="Books whose title contains the given text, ignoring case.",
    operation_id="findBooksByTitle",
)
async def find_by_title(title: str, app: AppDep) -> list[Book]:
    return await app.get_books_by_title(title)
