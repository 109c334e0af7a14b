"""Application initialization orchestrator."""

from __future__ import annotations

import asyncio
import os
from contextlib import suppress
from typing import Optional

from aiohttp import web as aiohttp_web
from aiohttp_wsgi import WSGIHandler

from config import Config, load_config
from core.logger import get_logger
from database.storage import SQLiteKeyValueStore
from services.registry import ServiceRegistry, build_services

logger = get_logger(__name__)


class ApplicationInitializer:
    """Orchestrates application initialization and lifecycle."""

    def __init__(self, config: Optional[Config] = None):
        self.config = config or load_config()
        self.store: Optional[SQLiteKeyValueStore] = None
        self.services: Optional[ServiceRegistry] = None
        self.web_runner = None
        self.scheduler_task: Optional[asyncio.Task] = None

    async def initialize(self) -> None:
        """Initialize all application components."""
        await self._init_store()
        self.services = build_services(self.store, self.config)
        await self._init_web_server()

    async def run(self) -> None:
        """Run the application until cancelled."""
        if self.config.scheduled_org_ids:
            self.scheduler_task = asyncio.create_task(self._scheduler_loop())
            logger.info(
                f"Scheduler running every {self.config.scheduler_interval_seconds}s "
                f"for {len(self.config.scheduled_org_ids)} org(s)"
            )
        else:
            logger.info("No SCHEDULED_ORG_IDS set; rollover relies on requests and external cron")

        try:
            while True:
                await asyncio.sleep(3600)
        finally:
            await self.cleanup()

    async def cleanup(self) -> None:
        """Cleanup resources."""
        if self.scheduler_task:
            self.scheduler_task.cancel()
            with suppress(asyncio.CancelledError):
                await self.scheduler_task
        if self.web_runner:
            await self.web_runner.cleanup()
        if self.store:
            await self.store.close()
        logger.info("Shutdown complete")

    async def _init_store(self) -> None:
        self.store = SQLiteKeyValueStore(self.config.database_path)
        await self.store.init_schema()

    async def run_scheduled_checks(self) -> None:
        """One scheduler tick: rollover, then report rosters due for email."""
        for org_id in self.config.scheduled_org_ids:
            try:
                if await self.services.rollover.check(org_id):
                    logger.info(f"Scheduler rolled over org {org_id}")
                decision = await self.services.email.check_due(org_id)
                if decision.due:
                    logger.info(
                        f"Roster for org {org_id} period {decision.period_id} is due for delivery",
                        extra={"org_id": org_id}
                    )
            except Exception as e:
                # One broken org must not stop the loop for the others
                logger.error(
                    f"Scheduled check failed for org {org_id}: {e}",
                    exc_info=True,
                    extra={"org_id": org_id}
                )

    async def _scheduler_loop(self) -> None:
        while True:
            await self.run_scheduled_checks()
            await asyncio.sleep(self.config.scheduler_interval_seconds)

    async def _init_web_server(self) -> None:
        """Serve the Flask app through aiohttp."""
        from web import create_app

        flask_app = create_app(self.config, store=self.store)

        wsgi_handler = WSGIHandler(flask_app)
        aio_app = aiohttp_web.Application()
        aio_app.router.add_route("*", "/{path_info:.*}", wsgi_handler)

        self.web_runner = aiohttp_web.AppRunner(aio_app)
        await self.web_runner.setup()

        # Bind to PORT env var if present (Render/Heroku)
        effective_port = int(os.getenv("PORT", str(self.config.web_port)))
        effective_host = "0.0.0.0" if os.getenv("PORT") else self.config.web_host

        site = aiohttp_web.TCPSite(self.web_runner, effective_host, effective_port)
        await site.start()

        logger.info(f"Web server started on http://{effective_host}:{effective_port}")
