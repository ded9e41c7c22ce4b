"""Tests for ownership-gated review mutations through the app facade."""

import pytest

from bookcatalog.core.modules.session.models import SessionId
from bookcatalog.errors import AccessDeniedError, ReviewNotFoundError, UnauthenticatedError


@pytest.fixture
def users(app):
    app.core.services.user.create_user("alice", "alice-pw")
    app.core.services.user.create_user("bob", "bob-pw")


async def test_end_to_end_review_flow(app, users):
    """Test login, write, list and a failing delete of a missing review."""
    session = await app.login("alice", "alice-pw")

    await app.put_review(session.session_id, "isbn-1", "great book")

    assert await app.get_reviews("isbn-1") == {"alice": "great book"}
    with pytest.raises(ReviewNotFoundError):
        app.core.services.review.delete("isbn-1", "bob")


async def test_review_owner_comes_from_session(app, users):
    """Test that a write is stored under the session's user."""
    bob = await app.login("bob", "bob-pw")

    review = await app.put_review(bob.session_id, "isbn-1", "bob's take")

    assert review.username == "bob"
    assert await app.get_reviews("isbn-1") == {"bob": "bob's take"}


async def test_cannot_delete_another_users_review(app, users):
    """Test that deleting someone else's review is denied and removes nothing."""
    alice = await app.login("alice", "alice-pw")
    bob = await app.login("bob", "bob-pw")
    await app.put_review(alice.session_id, "isbn-1", "from alice")
    await app.put_review(bob.session_id, "isbn-1", "from bob")

    with pytest.raises(AccessDeniedError):
        await app.delete_review(bob.session_id, "isbn-1", "alice")

    assert await app.get_reviews("isbn-1") == {"alice": "from alice", "bob": "from bob"}


async def test_owner_can_delete_by_name(app, users):
    alice = await app.login("alice", "alice-pw")
    await app.put_review(alice.session_id, "isbn-1", "from alice")

    await app.delete_review(alice.session_id, "isbn-1", "alice")

    assert await app.get_reviews("isbn-1") == {}


async def test_delete_own_review(app, users):
    alice = await app.login("alice", "alice-pw")
    await app.put_review(alice.session_id, "isbn-1", "from alice")

    await app.delete_review(alice.session_id, "isbn-1")

    assert await app.get_reviews("isbn-1") == {}


async def test_mutations_require_session(app, users):
    with pytest.raises(UnauthenticatedError):
        await app.put_review(SessionId("bogus"), "isbn-1", "text")
    with pytest.raises(UnauthenticatedError):
        await app.delete_review(SessionId("bogus"), "isbn-1")


async def test_logged_out_session_cannot_write(app, users):
    alice = await app.login("alice", "alice-pw")
    await app.logout(alice.session_id)

    with pytest.raises(UnauthenticatedError):
        await app.put_review(alice.session_id, "isbn-1", "text")
    assert not await app.is_session_valid(alice.session_id)
