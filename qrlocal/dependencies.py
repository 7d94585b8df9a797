"""Dependency injection with a process-wide service manager.

This module owns the shared resources of the process (database engine,
session factory, optional Redis client, logger) and hands request handlers
the services built on top of them. Resources are acquired once in the
application lifespan and released at shutdown; nothing is re-initialised per
request.
"""

import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncEngine

from qrlocal.allocator import IdentifierAllocator
from qrlocal.cache import RedirectCache, create_redis
from qrlocal.config import Settings, get_settings
from qrlocal.database import close_db, create_engine, create_session_factory, init_db
from qrlocal.resolver import RedirectResolver
from qrlocal.service import RedirectService
from qrlocal.store import RedirectStore


# ============================================================================
# SINGLETON SERVICE MANAGER
# ============================================================================


class ServiceManager:
    """Singleton holder for the resources shared by all requests."""

    _instance: Optional["ServiceManager"] = None
    _initialized: bool = False

    def __new__(cls) -> "ServiceManager":
        """Implement singleton pattern."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    async def initialize(self, settings: Settings | None = None) -> None:
        """Initialize shared resources once at startup."""
        if self._initialized:
            return
        self.settings = settings or get_settings()
        self.logger = self._setup_logger()
        self.engine: AsyncEngine = create_engine(self.settings)
        await init_db(self.engine)
        self.store = RedirectStore(create_session_factory(self.engine))
        self.cache = RedirectCache(create_redis(self.settings), self.settings.CACHE_TTL_SECONDS)
        self.allocator = IdentifierAllocator(
            self.store,
            self.settings.MAX_ID_LENGTH,
            self.settings.MAX_ALLOCATION_ATTEMPTS,
        )
        self.resolver = RedirectResolver(self.store, self.cache)
        self._initialized = True
        self.logger.info(
            f"Service initialized ({self.settings.APP_ENV}): max_id_length={self.settings.MAX_ID_LENGTH}, "
            f"cache={'enabled' if self.cache.enabled else 'disabled'}"
        )

    def _setup_logger(self) -> logging.Logger:
        """Setup logger once."""
        logger = logging.getLogger("qrlocal")
        if not logger.handlers and not logging.getLogger().handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
            handler.setFormatter(formatter)
            logger.addHandler(handler)
        logger.setLevel(self.settings.LOG_LEVEL.upper())
        return logger

    async def cleanup(self) -> None:
        """Cleanup shared resources at shutdown."""
        if not self._initialized:
            return
        await self.resolver.drain()
        await self.cache.close()
        await close_db(self.engine)
        self._initialized = False


# Global singleton instance
_service_manager = ServiceManager()


# ============================================================================
# REQUEST CONTEXT
# ============================================================================


@dataclass
class RequestContext:
    """Per-request tracking around the shared service manager.

    Attributes:
        service_manager: Singleton service manager with shared resources
        request_id: Unique identifier for this request
        user_agent: Client user agent string
        client_ip: Client IP address
        start_time: Request start timestamp
    """

    service_manager: ServiceManager
    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    user_agent: Optional[str] = None
    client_ip: Optional[str] = None
    start_time: float = field(default_factory=lambda: time.time())

    @property
    def settings(self) -> Settings:
        return self.service_manager.settings

    @property
    def logger(self) -> logging.LoggerAdapter:
        """Shared logger carrying the request identity."""
        return logging.LoggerAdapter(
            self.service_manager.logger,
            {
                "request_id": self.request_id,
                "client_ip": self.client_ip,
                "user_agent": self.user_agent,
            },
        )

    def get_duration(self) -> float:
        """Get request duration in milliseconds."""
        return (time.time() - self.start_time) * 1000


# ============================================================================
# DEPENDENCY FUNCTIONS
# ============================================================================


async def get_service_manager() -> ServiceManager:
    if not _service_manager._initialized:
        await _service_manager.initialize()
    return _service_manager


async def get_request_context(
    request: Request,
    manager: ServiceManager = Depends(get_service_manager),
) -> RequestContext:
    return RequestContext(
        service_manager=manager,
        user_agent=request.headers.get("user-agent"),
        client_ip=request.client.host if request.client else None,
    )


def get_redirect_service(ctx: RequestContext = Depends(get_request_context)) -> RedirectService:
    manager = ctx.service_manager
    return RedirectService(
        store=manager.store,
        allocator=manager.allocator,
        cache=manager.cache,
        settings=manager.settings,
        logger=ctx.logger,
    )


def get_resolver(manager: ServiceManager = Depends(get_service_manager)) -> RedirectResolver:
    return manager.resolver
