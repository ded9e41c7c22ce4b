from typing import Self

from pydantic import model_validator
from pydantic_settings import BaseSettings

WILDCARD_HOSTS = {"0.0.0.0", "::", ""}


class Config(BaseSettings):
    """Application configuration loaded from environment variables."""

    host: str = "127.0.0.1"
    port: int = 5000
    debug: bool = False
    session_secret_key: str
    token_signing_key: str  # Rotating it invalidates every outstanding token
    token_algorithm: str = "HS256"
    token_ttl_seconds: int = 60 * 60
    session_sweep_interval_seconds: float = 300.0  # How often expired sessions are dropped
    cors_origins: list[str] = []
    books_path: str | None = None  # JSON catalog override, bundled catalog when unset
    rate_limit_requests: int = 100
    rate_limit_window_seconds: float = 60.0
    rate_limit_reclaim_interval_seconds: float = 180.0
    rate_limit_grace_seconds: float = 60.0  # Idle time before an empty window is reclaimed
    gateway_base_url: str = ""  # Internal API the async routes call back into, this server when empty
    gateway_timeout_seconds: float = 5.0

    model_config = {
        "env_file": [".env"],
        "env_prefix": "BOOKCATALOG_",
        "extra": "ignore",
    }

    @model_validator(mode="after")
    def default_gateway_to_self(self) -> Self:
        if not self.gateway_base_url:
            host = "127.0.0.1" if self.host in WILDCARD_HOSTS else self.host
            if ":" in host:
                host = f"[{host}]"
            self.gateway_base_url = f"http://{host}:{self.port}"
        return self
