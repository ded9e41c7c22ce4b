import json
from collections.abc import Iterable
from pathlib import Path
from types import MappingProxyType

import structlog

from bookcatalog.config import Config
from bookcatalog.core.core import Service
from bookcatalog.core.modules.book.models import Book
from bookcatalog.errors import BookNotFoundError, ValidationError

logger = structlog.get_logger(__name__)

BUNDLED_CATALOG = Path(__file__).with_name("books.json")


def load_catalog(path: Path) -> dict[str, Book]:
    """Load a JSON list of books keyed by ISBN. Duplicate ISBNs are rejected."""
    books: dict[str, Book] = {}
    for raw in json.loads(path.read_text(encoding="utf-8")):
        book = Book.model_validate(raw)
        if book.isbn in books:
            raise ValidationError(f"Duplicate ISBN '{book.isbn}' in catalog {path}")
        books[book.isbn] = book
    return books


def matches(value: str, fragment: str) -> bool:
    """Case-insensitive substring match."""
    return fragment.casefold() in value.casefold()


class BookService(Service):
    """Read-only book catalog."""

    def __init__(self, config: Config) -> None:
        super().__init__(config)
        self._books: MappingProxyType[str, Book] = MappingProxyType({})

    async def on_start(self) -> None:
        """Load the catalog."""
        path = Path(self.config.books_path) if self.config.books_path else BUNDLED_CATALOG
        self.set_books(load_catalog(path).values())
        logger.debug("book_service_started", book_count=len(self._books), path=str(path))

    def set_books(self, books: Iterable[Book]) -> None:
        """Replace the catalog with the given books."""
        self._books = MappingProxyType({book.isbn: book for book in books})

    def has_book(self, isbn: str) -> bool:
        return isbn in self._books

    def get_book(self, isbn: str) -> Book:
        """Get book by ISBN."""
        book = self._books.get(isbn)
        if book is None:
            raise BookNotFoundError(isbn)
        return book

    def get_all_books(self) -> list[Book]:
        return list(self._books.values())

    def search_by_author(self, author: str) -> list[Book]:
        return [book for book in self._books.values() if matches(book.author, author)]

    def search_by_title(self, title: str) -> list[Book]:
        return [book for book in self._books.values() if matches(book.title, title)]
