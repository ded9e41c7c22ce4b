import threading

import bcrypt
import structlog

from bookcatalog.config import Config
from bookcatalog.core.core import Service
from bookcatalog.core.modules.user.models import User
from bookcatalog.core.modules.user.validators import PASSWORD_MAX_BYTES, validate_password, validate_username
from bookcatalog.errors import NotFoundError, ValidationError

logger = structlog.get_logger(__name__)


class UserService(Service):
    """Manages registered users in memory.

    Usernames are unique ignoring case, but lookups for login are exact.
    """

    def __init__(self, config: Config) -> None:
        super().__init__(config)
        self._users: dict[str, User] = {}
        self._lock = threading.Lock()

    def get_user_by_username(self, username: str) -> User:
        """Get user by exact username."""
        user = self._users.get(username)
        if user is None:
            raise NotFoundError(f"User '{username}' not found")
        return user

    def has_username(self, username: str) -> bool:
        """Check if username exists, ignoring case."""
        folded = username.casefold()
        return any(name.casefold() == folded for name in self._users)

    def create_user(self, username: str, password: str) -> User:
        """Create user with hashed password."""
        validate_username(username)
        validate_password(password)
        password_hash = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")

        with self._lock:
            if self.has_username(username):
                raise ValidationError(f"User '{username}' already exists")
            user = User(username=username, password_hash=password_hash)
            self._users[username] = user

        logger.info("user_registered", username=username)
        return user

    def verify_password(self, username: str, password: str) -> bool:
        """Verify password against stored hash. Username match is case-sensitive."""
        user = self._users.get(username)
        if user is None or not password:
            return False
        encoded = password.encode("utf-8")
        if len(encoded) > PASSWORD_MAX_BYTES:
            return False
        return bcrypt.checkpw(encoded, user.password_hash.encode("utf-8"))
