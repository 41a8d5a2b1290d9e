"""
Main entrypoint for the Creature Service API.

This module assembles the FastAPI application, sets up logging, maps
service errors to HTTP responses and includes versioned routers.  The
``create_app`` function builds and configures the app, which is then
instantiated at module import time as ``app``.  Run it with uvicorn,
e.g.::

    uvicorn creature_service.app.main:app --port 4041

or via ``python run.py``.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .api.v1.router import router as v1_router
from .core.config import Settings, settings as default_settings
from .core.errors import CreatureServiceError
from .core.logging_config import setup_logging
from .services.creature_service import CreatureService
from .storage import CreatureStorage, create_storage

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, storage: Optional[CreatureStorage] = None) -> FastAPI:
    """Create and configure a FastAPI application.

    Parameters
    ----------
    settings : Optional[Settings]
        Configuration to use.  Defaults to the module-level settings
        read from the environment.
    storage : Optional[CreatureStorage]
        Storage adapter to serve from.  When omitted, the adapter named
        by ``settings.storage_backend`` is built at startup and closed
        at shutdown; an injected adapter is left open for the caller.

    Returns
    -------
    FastAPI
        A configured FastAPI application instance.
    """
    settings = settings or default_settings
    setup_logging(settings.log_level, settings.log_file or None)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        owned = None
        if storage is None:
            owned = create_storage(settings)
            app.state.creature_service = CreatureService(owned)
        logger.info("%s %s started", settings.project_name, settings.api_version)
        try:
            yield
        finally:
            if owned is not None:
                owned.close()
            logger.info("%s stopped", settings.project_name)

    app = FastAPI(title=settings.project_name, version=settings.api_version, lifespan=lifespan)
    app.state.settings = settings
    if storage is not None:
        app.state.creature_service = CreatureService(storage)

    @app.exception_handler(CreatureServiceError)
    async def creature_service_error_handler(request: Request, exc: CreatureServiceError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    app.include_router(v1_router, prefix="/api/v1")

    return app


# Create the application instance at import time so that tools such as
# uvicorn can locate it.  No storage connection is opened until startup.
app = create_app()
