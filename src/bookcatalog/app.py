from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from bookcatalog.config import Config
from bookcatalog.core.core import Core
from bookcatalog.core.modules.book.models import Book
from bookcatalog.core.modules.review.models import Review
from bookcatalog.core.modules.session.models import Session, SessionId
from bookcatalog.core.modules.user.models import UserView
from bookcatalog.errors import AuthenticationError


class App:
    """Facade for all application operations, resolves identity before delegating to Core."""

    def __init__(self, config: Config) -> None:
        self._core = Core(config)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Application lifespan management - delegates to Core."""
        async with self._core.lifespan():
            yield

    @property
    def core(self) -> Core:
        return self._core

    # === Users and sessions ===
    async def register(self, username: str, password: str) -> UserView:
        """Register a new user."""
        user = self._core.services.user.create_user(username, password)
        return UserView.from_domain(user)

    async def login(self, username: str, password: str) -> Session:
        """Authenticate user and create session."""
        return self._core.services.session.login(username, password)

    async def logout(self, session_id: SessionId) -> None:
        """Invalidate user session."""
        self._core.services.session.logout(session_id)

    async def is_session_valid(self, session_id: SessionId) -> bool:
        """Check if the session resolves to a user."""
        try:
            self._core.services.access.ensure_authenticated(session_id)
        except AuthenticationError:
            return False
        return True

    async def get_current_user(self, session_id: SessionId) -> UserView:
        """Get current authenticated user profile."""
        user = self._core.services.access.ensure_authenticated(session_id)
        return UserView.from_domain(user)

    # === Catalog ===
    async def get_books(self) -> list[Book]:
        return self._core.services.book.get_all_books()

    async def get_book(self, isbn: str) -> Book:
        return self._core.services.book.get_book(isbn)

    async def get_books_by_author(self, author: str) -> list[Book]:
        return self._core.services.book.search_by_author(author)

    async def get_books_by_title(self, title: str) -> list[Book]:
        return self._core.services.book.search_by_title(title)

    # === Reviews ===
    async def get_reviews(self, isbn: str) -> dict[str, str]:
        """Get all reviews of a book keyed by reviewer."""
        return self._core.services.review.list_for(isbn)

    async def put_review(self, session_id: SessionId, isbn: str, text: str) -> Review:
        """Create or replace the current user's review of a book."""
        user = self._core.services.access.ensure_authenticated(session_id)
        return self._core.services.review.upsert(isbn, user.username, text)

    async def delete_review(self, session_id: SessionId, isbn: str, username: str | None = None) -> None:
        """Delete a review of a book (owner only).

        `username` names the review to delete and defaults to the current user's.
        """
        if username is None:
            user = self._core.services.access.ensure_authenticated(session_id)
        else:
            user = self._core.services.access.ensure_review_owner(session_id, username)
        self._core.services.review.delete(isbn, user.username)

    # === Gateway ===
    async def fetch_books(self, client_id: str) -> list[Book]:
        return await self._core.services.gateway.fetch_all_books(client_id)

    async def fetch_book(self, client_id: str, isbn: str) -> Book:
        return await self._core.services.gateway.fetch_book(client_id, isbn)

    async def fetch_books_by_author(self, client_id: str, author: str) -> list[Book]:
        return await self._core.services.gateway.fetch_books_by_author(client_id, author)

    async def fetch_books_by_title(self, client_id: str, title: str) -> list[Book]:
        return await self._core.services.gateway.fetch_books_by_title(client_id, title)
