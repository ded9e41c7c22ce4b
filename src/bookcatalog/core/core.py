from __future__ import annotations

import importlib
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, cast

from bookcatalog.config import Config

if TYPE_CHECKING:
    from bookcatalog.core.modules.access.service import AccessService
    from bookcatalog.core.modules.book.service import BookService
    from bookcatalog.core.modules.gateway.service import GatewayService
    from bookcatalog.core.modules.ratelimit.service import RateLimitService
    from bookcatalog.core.modules.review.service import ReviewService
    from bookcatalog.core.modules.session.service import SessionService
    from bookcatalog.core.modules.token.service import TokenService
    from bookcatalog.core.modules.user.service import UserService


class Service:
    """Base class for services holding in-memory state."""

    def __init__(self, config: Config) -> None:
        self.config = config
        self._core: Core | None = None

    async def on_start(self) -> None:
        """Initialize service on application startup."""

    async def on_stop(self) -> None:
        """Cleanup service on application shutdown."""

    @property
    def core(self) -> Core:
        """Get the core application context."""
        if self._core is None:
            raise RuntimeError("Core not set for service")
        return self._core

    def set_core(self, core: Core) -> None:
        """Set the core application context."""
        self._core = core


class Services:
    """Service registry that automatically discovers and initializes services."""

    book: BookService
    user: UserService
    token: TokenService
    session: SessionService
    access: AccessService
    review: ReviewService
    rate_limit: RateLimitService
    gateway: GatewayService

    def __init__(self, config: Config) -> None:
        """Initialize all services automatically using service configuration."""
        self._services: list[Service] = []

        # Service configuration: (attribute_name, module_path, class_name)
        # Order matters for initialization - the catalog must load before reviews are served
        service_configs = [
            ("book", "bookcatalog.core.modules.book.service", "BookService"),
            ("user", "bookcatalog.core.modules.user.service", "UserService"),
            ("token", "bookcatalog.core.modules.token.service", "TokenService"),
            ("session", "bookcatalog.core.modules.session.service", "SessionService"),
            ("access", "bookcatalog.core.modules.access.service", "AccessService"),
            ("review", "bookcatalog.core.modules.review.service", "ReviewService"),
            ("rate_limit", "bookcatalog.core.modules.ratelimit.service", "RateLimitService"),
            ("gateway", "bookcatalog.core.modules.gateway.service", "GatewayService"),
        ]

        for attr_name, module_path, class_name in service_configs:
            module = importlib.import_module(module_path)
            service_class = cast(type[Service], getattr(module, class_name))
            service_instance = service_class(config)
            setattr(self, attr_name, service_instance)
            self._services.append(service_instance)

    def set_core(self, core: Core) -> None:
        """Set core reference for all services."""
        for service in self._services:
            service.set_core(core)

    async def start_all(self) -> None:
        """Start all services that have startup logic."""
        for service in self._services:
            await service.on_start()

    async def stop_all(self) -> None:
        """Stop all services in reverse start order."""
        for service in reversed(self._services):
            await service.on_stop()


class Core:
    """Container providing config and all service instances."""

    config: Config
    services: Services

    def __init__(self, config: Config) -> None:
        """Initialize core with config and auto-register services."""
        self.config = config
        self.services = Services(config)
        self.services.set_core(self)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Manage application lifecycle - startup and shutdown."""
        await self.on_start()
        try:
            yield
        finally:
            await self.on_stop()

    async def on_start(self) -> None:
        """Start all services on application startup."""
        await self.services.start_all()

    async def on_stop(self) -> None:
        """Stop all services on shutdown."""
        await self.services.stop_all()
