"""Small HTTP API exposing the analysis engine."""

from __future__ import annotations

import logging
from typing import Optional

from aiohttp import web

from .config import EngineConfig
from .errors import InvalidTargetError
from .pipeline import AnalysisEngine
from .storage.reports import ReportStore

logger = logging.getLogger(__name__)


class AnalysisServer:
    """Serves ``/healthz`` and ``/api/analyze``."""

    def __init__(
        self,
        host: str,
        port: int,
        config: EngineConfig,
        engine: Optional[AnalysisEngine] = None,
    ):
        self.host = host
        self.port = port
        self.config = config
        self.engine = engine
        self._store: ReportStore | None = None
        self._runner: web.AppRunner | None = None
        self._site: web.TCPSite | None = None
        self._analyses = 0

    def build_app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/healthz", self._handle_health)
        app.router.add_get("/api/analyze", self._handle_analyze)
        return app

    async def start(self):
        """Open the report store (if configured) and start listening."""
        if self.engine is None:
            if self.config.reports_db is not None:
                self._store = ReportStore(self.config.reports_db)
                await self._store.connect()
            self.engine = AnalysisEngine.from_config(self.config, report_store=self._store)

        self._runner = web.AppRunner(self.build_app())
        await self._runner.setup()
        self._site = web.TCPSite(self._runner, self.host, self.port)
        await self._site.start()
        logger.info("Analysis server listening on %s:%s", self.host, self.port)

    async def stop(self):
        """Stop the server and close the report store."""
        if self._site:
            await self._site.stop()
        if self._runner:
            await self._runner.cleanup()
        if self._store:
            await self._store.close()
        self._runner = None
        self._site = None
        self._store = None

    async def _handle_health(self, request):  # noqa: ANN001
        return web.json_response(
            {
                "status": "ok",
                "scale": self.config.scale,
                "analyses": self._analyses,
            }
        )

    async def _handle_analyze(self, request):  # noqa: ANN001
        url = request.query.get("url", "").strip()
        if not url:
            return web.json_response({"error": "missing 'url' query parameter"}, status=400)
        if self.engine is None:
            self.engine = AnalysisEngine.from_config(self.config)

        try:
            report = await self.engine.analyze(url)
        except InvalidTargetError as exc:
            return web.json_response({"error": str(exc)}, status=400)

        self._analyses += 1
        return web.json_response(report.to_dict(), headers={"Access-Control-Allow-Origin": "*"})
