from bookcatalog.core.core import Service
from bookcatalog.core.modules.session.models import SessionId
from bookcatalog.core.modules.user.models import User
from bookcatalog.errors import AccessDeniedError, InternalInvariantViolation, NotFoundError


class AccessService(Service):
    def ensure_authenticated(self, session_id: SessionId) -> User:
        """Resolve the session to its user."""
        username = self.core.services.session.resolve(session_id)
        try:
            return self.core.services.user.get_user_by_username(username)
        except NotFoundError as e:
            # Users are never deleted, so a verified subject always has a user
            raise InternalInvariantViolation(f"Verified subject '{username}' has no user") from e

    def ensure_review_owner(self, session_id: SessionId, owner: str) -> User:
        """Ensure the authenticated user is the owner of reviews keyed by `owner`."""
        user = self.ensure_authenticated(session_id)
        if user.username != owner:
            raise AccessDeniedError(f"Access denied: '{user.username}' cannot modify reviews by '{owner}'")
        return user
