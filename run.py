"""Entry point for the User Registry API server.

Launches the FastAPI application under uvicorn.  Host, port and log
level come from the same environment variables as the rest of the
settings (``HOST``, ``PORT``, ``LOG_LEVEL``); see
``user_registry_api/app/core/config.py``.

Usage:
    python run.py
"""
import asyncio
import logging

from uvicorn import Config, Server

from user_registry_api.app.core.config import settings
from user_registry_api.app.main import app


async def main() -> None:
    """Serve the API until interrupted."""
    config = Config(
        app=app,
        host=settings.host,
        port=settings.port,
        reload=False,
        log_level=settings.log_level.lower(),
    )
    server = Server(config)
    logging.getLogger(__name__).info("Server is running on %s:%s", settings.host, settings.port)
    await server.serve()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except (KeyboardInterrupt, SystemExit):
        pass
