import asyncio
import contextlib
import secrets
import threading

import structlog

from bookcatalog.config import Config
from bookcatalog.core.core import Service
from bookcatalog.core.modules.session.models import Session, SessionId
from bookcatalog.errors import (
    ExpiredTokenError,
    InternalInvariantViolation,
    InvalidCredentialsError,
    UnauthenticatedError,
)

logger = structlog.get_logger(__name__)


class _Binding:
    """One session with the lock that linearizes operations on it."""

    __slots__ = ("lock", "removed", "session")

    def __init__(self, session: Session) -> None:
        self.session = session
        self.lock = threading.Lock()
        self.removed = False


class SessionService(Service):
    """Binds client sessions to issued tokens.

    Every session has its own lock, so calls for the same session are
    linearized and calls for different sessions never wait on each other.
    The map lock only guards lookup, insertion and removal. A binding is
    marked removed under its own lock before it leaves the map, so a caller
    that looked it up earlier sees it as gone.
    """

    def __init__(self, config: Config) -> None:
        super().__init__(config)
        self._bindings: dict[SessionId, _Binding] = {}
        self._lock = threading.Lock()
        self._sweep_task: asyncio.Task[None] | None = None

    async def on_start(self) -> None:
        """Start the expired session sweep."""
        self._sweep_task = asyncio.create_task(self._sweep_loop())

    async def on_stop(self) -> None:
        """Cancel the expired session sweep."""
        if self._sweep_task is None:
            return
        self._sweep_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._sweep_task
        self._sweep_task = None

    def login(self, username: str, password: str) -> Session:
        """Check credentials and bind a freshly issued token to a new session."""
        if not self.core.services.user.verify_password(username, password):
            logger.info("login_failed", username=username)
            raise InvalidCredentialsError

        token = self.core.services.token.issue(username)
        session = Session(session_id=SessionId(secrets.token_urlsafe(32)), username=username, token=token)
        with self._lock:
            self._bindings[session.session_id] = _Binding(session)

        logger.info("user_logged_in", username=username, expires_at=token.expires_at.isoformat())
        return session

    def resolve(self, session_id: SessionId) -> str:
        """Return the verified username bound to the session.

        Raises:
            UnauthenticatedError: Nothing is bound to the session
            ExpiredTokenError: The bound token expired, the session is dropped
            InvalidSignatureError: The bound token no longer verifies
        """
        binding = self._get(session_id)
        if binding is None:
            raise UnauthenticatedError

        with binding.lock:
            if binding.removed:
                raise UnauthenticatedError
            session = binding.session

            try:
                subject = self.core.services.token.verify(session.token.value)
            except ExpiredTokenError:
                self._forget(session_id, binding)
                logger.info("session_expired", username=session.username)
                raise

            if subject != session.username:
                logger.error("session_subject_mismatch", username=session.username, subject=subject)
                raise InternalInvariantViolation(f"Session bound to '{session.username}' carries token for '{subject}'")
            return subject

    def logout(self, session_id: SessionId) -> None:
        """Remove the session binding. Unknown ids are ignored."""
        binding = self._get(session_id)
        if binding is None:
            return

        with binding.lock:
            if binding.removed:
                return
            self._forget(session_id, binding)
        logger.info("user_logged_out", username=binding.session.username)

    def sweep_expired(self) -> int:
        """Drop every session whose token has expired. Returns how many were dropped."""
        with self._lock:
            snapshot = list(self._bindings.items())

        token_service = self.core.services.token
        dropped = 0
        for session_id, binding in snapshot:
            with binding.lock:
                if binding.removed or not token_service.is_expired(binding.session.token):
                    continue
                self._forget(session_id, binding)
            dropped += 1
        return dropped

    def count(self) -> int:
        return len(self._bindings)

    def _get(self, session_id: SessionId) -> _Binding | None:
        with self._lock:
            return self._bindings.get(session_id)

    def _forget(self, session_id: SessionId, binding: _Binding) -> None:
        # Caller holds binding.lock
        binding.removed = True
        with self._lock:
            if self._bindings.get(session_id) is binding:
                del self._bindings[session_id]

    async def _sweep_loop(self) -> None:
        interval = self.config.session_sweep_interval_seconds
        while True:
            await asyncio.sleep(interval)
            try:
                dropped = self.sweep_expired()
            except Exception:
                logger.exception("session_sweep_failed")
                continue
            if dropped:
                logger.debug("sessions_expired", sessions=dropped, remaining_sessions=self.count())
