import threading

import structlog

from bookcatalog.config import Config
from bookcatalog.core.core import Service
from bookcatalog.core.modules.review.models import Review
from bookcatalog.errors import InternalInvariantViolation, ReviewNotFoundError, ValidationError
from bookcatalog.utils import now

logger = structlog.get_logger(__name__)


class ReviewService(Service):
    """Stores at most one review per (isbn, username).

    Callers pass the username resolved from the session, never one taken from
    a request body. A single lock guards the collection; critical sections do
    not await, so a started mutation always completes.
    """

    def __init__(self, config: Config) -> None:
        super().__init__(config)
        self._reviews: dict[str, dict[str, Review]] = {}
        self._lock = threading.Lock()

    def upsert(self, isbn: str, username: str, text: str) -> Review:
        """Create the user's review for a book, or replace its text."""
        self.core.services.book.get_book(isbn)
        if not text:
            raise ValidationError("Review text must not be empty")

        with self._lock:
            by_user = self._reviews.setdefault(isbn, {})
            existing = by_user.get(username)
            if existing is None:
                review = Review(isbn=isbn, username=username, text=text)
            else:
                self._check_key(existing, isbn, username)
                review = existing.model_copy(update={"text": text, "updated_at": now()})
            by_user[username] = review

        logger.info("review_upserted", isbn=isbn, username=username, created=existing is None)
        return review

    def get_review(self, isbn: str, username: str) -> Review:
        self.core.services.book.get_book(isbn)
        with self._lock:
            review = self._reviews.get(isbn, {}).get(username)
        if review is None:
            raise ReviewNotFoundError(isbn, username)
        return review

    def delete(self, isbn: str, username: str) -> None:
        """Delete the review written by `username` for a book."""
        self.core.services.book.get_book(isbn)

        with self._lock:
            by_user = self._reviews.get(isbn)
            review = by_user.get(username) if by_user else None
            if by_user is None or review is None:
                raise ReviewNotFoundError(isbn, username)
            self._check_key(review, isbn, username)
            del by_user[username]
            if not by_user:
                del self._reviews[isbn]

        logger.info("review_deleted", isbn=isbn, username=username)

    def list_for(self, isbn: str) -> dict[str, str]:
        """Map of username to review text. Empty when the book has no reviews."""
        self.core.services.book.get_book(isbn)
        with self._lock:
            return {username: review.text for username, review in self._reviews.get(isbn, {}).items()}

    def count(self) -> int:
        with self._lock:
            return sum(len(by_user) for by_user in self._reviews.values())

    @staticmethod
    def _check_key(review: Review, isbn: str, username: str) -> None:
        if review.isbn != isbn or review.username != username:
            logger.error(
                "review_key_mismatch", isbn=isbn, username=username, stored_isbn=review.isbn, stored_username=review.username
            )
            raise InternalInvariantViolation(f"Review stored under ({isbn}, {username}) belongs to someone else")
