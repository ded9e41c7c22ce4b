"""Shared pytest fixtures."""

import pytest

from bookcatalog.app import App
from bookcatalog.config import Config
from bookcatalog.core.core import Core
from bookcatalog.core.modules.book.models import Book

SIGNING_KEY = "test-signing-key-0123456789abcdef-0123456789abcdef"


class FakeClock:
    """Settable clock for services that take a `clock` callable."""

    def __init__(self, now: float = 1_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def config():
    """Create a config that ignores the environment and any .env file."""
    return Config(
        _env_file=None,
        session_secret_key="test-session-secret",
        token_signing_key=SIGNING_KEY,
        rate_limit_requests=3,
        rate_limit_window_seconds=60.0,
        gateway_base_url="http://catalog.internal",
        gateway_timeout_seconds=1.0,
    )


@pytest.fixture
def mock_books():
    """Create a small catalog."""
    return [
        Book(isbn="isbn-1", title="Things Fall Apart", author="Chinua Achebe"),
        Book(isbn="isbn-2", title="Pride and Prejudice", author="Jane Austen"),
        Book(isbn="isbn-3", title="Emma", author="Jane Austen"),
    ]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def core(config, mock_books, clock):
    """Create a core with the mock catalog loaded and a fake token clock."""
    core = Core(config)
    core.services.book.set_books(mock_books)
    core.services.token.clock = clock
    return core


@pytest.fixture
def app(config, mock_books, clock):
    """Create an app facade over the mock catalog."""
    app = App(config)
    app.core.services.book.set_books(mock_books)
    app.core.services.token.clock = clock
    return app


@pytest.fixture
def alice(core):
    return core.services.user.create_user("alice", "alice-pw")


@pytest.fixture
def bob(core):
    return core.services.user.create_user("bob", "bob-pw")
