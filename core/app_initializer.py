"""Application initialization orchestrator."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Optional

from aiohttp import web as aiohttp_web
from aiohttp_wsgi import WSGIHandler

from config import Config, load_config
from core.logger import get_logger

if TYPE_CHECKING:
    from services.container import ServiceContainer

logger = get_logger(__name__)


class ApplicationInitializer:
    """Orchestrates application initialization and lifecycle."""

    def __init__(self, config: Optional[Config] = None):
        self.config = config or load_config()
        self.services: Optional[ServiceContainer] = None
        self.web_runner: Optional[aiohttp_web.AppRunner] = None

    async def initialize(self) -> None:
        """Initialize all application components."""
        await self._init_services()
        await self._init_web_server()

    async def run(self) -> None:
        """Serve until cancelled."""
        try:
            logger.info("⚡ Step challenge API running...")
            await asyncio.Event().wait()
        finally:
            await self.cleanup()

    async def cleanup(self) -> None:
        """Stop accepting requests, flush notifications, close the pool."""
        if self.web_runner is not None:
            await self.web_runner.cleanup()
            self.web_runner = None
        if self.services is not None:
            await self.services.close()
            self.services = None
        logger.info("Shutdown complete")

    async def _init_services(self) -> None:
        """Open the pool, migrate, seed and wire services."""
        from database import init_db_pool, run_migrations, seed_roster
        from services.container import build_services

        pool = await init_db_pool(
            database_path=self.config.database_path,
            pool_size=self.config.db_pool_size,
            busy_timeout_ms=self.config.db_busy_timeout,
        )
        await run_migrations(pool)
        if self.config.seed_roster:
            await seed_roster(pool)
        logger.info("✅ Database initialized")

        self.services = build_services(self.config, pool)
        logger.info(
            f"✅ Services ready (challenge starts {self.config.challenge_start}, "
            f"zone {self.config.timezone}, week {self.services.calendar.current_week()})"
        )

    async def _init_web_server(self) -> None:
        """Mount the Flask app on aiohttp and start listening."""
        from services.async_runner import LoopRunner
        from web import create_app

        runner = LoopRunner(asyncio.get_running_loop())
        flask_app = create_app(self.config, services=self.services, runner=runner)
        flask_app.config.update({
            "LOG_FOLDER": self.config.log_folder,
            "WEB_HOST": self.config.web_host,
            "WEB_PORT": self.config.web_port,
        })

        wsgi_handler = WSGIHandler(flask_app)
        aio_app = aiohttp_web.Application()
        aio_app.router.add_route("*", "/{path_info:.*}", wsgi_handler)

        self.web_runner = aiohttp_web.AppRunner(aio_app)
        await self.web_runner.setup()

        site = aiohttp_web.TCPSite(self.web_runner, self.config.web_host, self.config.web_port)
        await site.start()

        logger.info(f"🚀 Web server started on http://{self.config.web_host}:{self.config.web_port}")
