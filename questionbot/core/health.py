"""
QuestionBot - Health Check Server
=================================

Simple HTTP health check endpoint for monitoring bot status.

Runs on PORT (default 5000) and provides:
- /health - JSON status with uptime, latency, database and scheduler state
- / - Plain text response for basic uptime pings

Usage:
    curl http://localhost:5000/health
"""

from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, Optional

from aiohttp import web

from questionbot.core.config import HEALTH_PORT, SCHEDULE_TZ
from questionbot.core.logger import logger

if TYPE_CHECKING:
    from questionbot.bot import QuestionBot


ROOT_TEXT = "Hello World!"


# =============================================================================
# Health Check Server
# =============================================================================

class HealthCheckServer:
    """Simple HTTP server for health checks."""

    def __init__(self, bot: "QuestionBot", port: int = HEALTH_PORT, host: str = "0.0.0.0") -> None:
        """
        Initialize health check server.

        Args:
            bot: The QuestionBot instance
            port: Port to run the server on
            host: Interface to bind
        """
        self.bot = bot
        self.port = port
        self.host = host
        self.start_time = datetime.now(SCHEDULE_TZ)
        self._runner: Optional[web.AppRunner] = None
        self._site: Optional[web.TCPSite] = None

    def create_app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/", self._handle_root)
        app.router.add_get("/health", self._handle_health)
        return app

    async def start(self) -> None:
        """Start the health check HTTP server."""
        self._runner = web.AppRunner(self.create_app())
        await self._runner.setup()

        self._site = web.TCPSite(self._runner, self.host, self.port)
        await self._site.start()

        logger.tree("Health Check Server Started", [
            ("Port", str(self.port)),
            ("Endpoints", "/, /health"),
        ], emoji="🏥")

    async def stop(self) -> None:
        """Stop the health check HTTP server."""
        if self._runner:
            await self._runner.cleanup()
            self._runner = None
            self._site = None
            logger.info("Health Check Server Stopped")

    async def _handle_root(self, request: web.Request) -> web.Response:
        return web.Response(text=ROOT_TEXT, content_type="text/plain")

    def build_status(self) -> Dict[str, Any]:
        """Assemble the /health payload."""
        now = datetime.now(SCHEDULE_TZ)
        uptime_seconds = (now - self.start_time).total_seconds()

        hours, remainder = divmod(int(uptime_seconds), 3600)
        minutes, seconds = divmod(remainder, 60)

        is_ready = self.bot.is_ready()
        latency_ms = round(self.bot.latency * 1000) if is_ready else None

        database = self.bot.store.db.health_check()
        scheduler = self.bot.daily_scheduler

        if not is_ready:
            status = "starting"
        elif not database["healthy"]:
            status = "degraded"
        else:
            status = "healthy"

        return {
            "status": status,
            "run_id": logger.run_id,
            "uptime": f"{hours}h {minutes}m {seconds}s",
            "uptime_seconds": int(uptime_seconds),
            "started_at": self.start_time.isoformat(),
            "timestamp": now.isoformat(),
            "discord": {
                "connected": is_ready,
                "latency_ms": latency_ms,
                "guilds": len(self.bot.guilds) if is_ready else 0,
            },
            "database": database,
            "scheduler": scheduler.get_status() if scheduler else None,
        }

    async def _handle_health(self, request: web.Request) -> web.Response:
        return web.json_response(self.build_status())


# =============================================================================
# Module Export
# =============================================================================

__all__ = ["HealthCheckServer", "ROOT_TEXT"]
