"""Entry point for the creature service.

This script starts the FastAPI application under Uvicorn.  It is
intended to be executed from the project root, for example under Docker
or a process supervisor, where you only specify a single Python file to
run.

Configuration such as HOST, PORT, STORAGE_BACKEND and MONGODB_URL
should be placed in a `.env` file in the same directory or in the
environment.  See `.env.example` for the supported variables.

Usage:
    python run.py
"""
import asyncio
import logging

from uvicorn import Config, Server

from creature_service.app.core.config import settings
from creature_service.app.main import app


async def run_api() -> None:
    """Serve the API until interrupted.

    Host and port are read from the ``HOST`` and ``PORT`` settings.
    Uvicorn handles SIGINT/SIGTERM and runs the application shutdown,
    which closes the storage connection.
    """
    config = Config(app=app, host=settings.host, port=settings.port, reload=False, log_level=settings.log_level.lower())
    server = Server(config)
    await server.serve()


def main() -> None:
    logging.getLogger(__name__).info("Starting server on %s:%s", settings.host, settings.port)
    asyncio.run(run_api())


if __name__ == "__main__":
    try:
        main()
    except (KeyboardInterrupt, SystemExit):
        pass
