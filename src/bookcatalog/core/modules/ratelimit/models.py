from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitDecision:
    """Admission result for one request."""

    allowed: bool
    remaining: int
    retry_after: float = 0.0  # Seconds until the oldest retained request leaves the window
