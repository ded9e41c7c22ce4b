import asyncio
import contextlib
import time
from collections.abc import Callable

import structlog

from bookcatalog.config import Config
from bookcatalog.core.core import Service
from bookcatalog.core.modules.ratelimit.limiter import SlidingWindowLimiter
from bookcatalog.core.modules.ratelimit.models import RateLimitDecision

logger = structlog.get_logger(__name__)


class RateLimitService(Service):
    """Per-client request quota with a periodic reclamation task."""

    def __init__(self, config: Config) -> None:
        super().__init__(config)
        self.limiter = SlidingWindowLimiter(
            limit=config.rate_limit_requests,
            window=config.rate_limit_window_seconds,
            grace=config.rate_limit_grace_seconds,
        )
        self.clock: Callable[[], float] = time.monotonic
        self._reclaim_task: asyncio.Task[None] | None = None

    def admit(self, client_id: str, now: float | None = None) -> RateLimitDecision:
        decision = self.limiter.admit(client_id, self.clock() if now is None else now)
        if not decision.allowed:
            logger.info("rate_limit_denied", client_id=client_id, retry_after=round(decision.retry_after, 3))
        return decision

    def reclaim(self, now: float | None = None) -> int:
        return self.limiter.reclaim(self.clock() if now is None else now)

    async def on_start(self) -> None:
        """Start the reclamation loop."""
        self._reclaim_task = asyncio.create_task(self._reclaim_loop())

    async def on_stop(self) -> None:
        """Cancel the reclamation loop."""
        if self._reclaim_task is None:
            return
        self._reclaim_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._reclaim_task
        self._reclaim_task = None

    async def _reclaim_loop(self) -> None:
        interval = self.config.rate_limit_reclaim_interval_seconds
        while True:
            await asyncio.sleep(interval)
            try:
                reclaimed = self.reclaim()
            except Exception:
                logger.exception("rate_limit_reclaim_failed")
                continue
            if reclaimed:
                logger.debug("rate_limit_reclaimed", clients=reclaimed, remaining_clients=self.limiter.client_count())
