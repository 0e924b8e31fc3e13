"""
Main entrypoint for the User Registry API.

This module assembles the FastAPI application, sets up logging,
registers the error handlers and includes the routers.  The
``create_app`` function builds and configures the app, which is then
instantiated at module import time as ``app``.  Importing the app here
makes it easy to run with uvicorn or another ASGI server, e.g.::

    uvicorn user_registry_api.app.main:app --reload

The store is created in the application lifespan and kept on
``app.state``; handlers receive it through ``Depends`` rather than a
module-level global.
"""

import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from .api.router import router
from .core.config import Settings, settings as default_settings
from .core.db import Database
from .core.exceptions import StoreError
from .core.logging_config import setup_logging
from .services.user_service import UserService

logger = logging.getLogger(__name__)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed bodies and missing parameters as 400."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(exc.errors())},
    )


async def store_exception_handler(request: Request, exc: StoreError) -> JSONResponse:
    """Report database failures as 500 with the driver's message."""
    logger.error("Store error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": str(exc)},
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure a FastAPI application.

    Parameters
    ----------
    settings : Optional[Settings]
        Configuration to use.  Defaults to the module-level settings
        read from the environment; tests pass their own to point the
        app at a temporary database.

    Returns
    -------
    FastAPI
        A configured FastAPI application instance.
    """
    settings = settings or default_settings
    # Initialise logging before anything else so that startup can log.
    setup_logging(settings.log_level, settings.log_file)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        database = Database.from_settings(settings)
        database.init_db()
        app.state.database = database
        app.state.user_service = UserService(database)
        logger.info("Using database %s", database.path)
        yield
        logger.info("Shutting down %s", settings.project_name)

    app = FastAPI(
        title=settings.project_name,
        version=settings.api_version,
        debug=settings.debug,
        lifespan=lifespan,
    )

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StoreError, store_exception_handler)

    app.include_router(router)

    # Serve a built frontend when one is configured.  It is mounted
    # under its own prefix so it never shadows the API paths.
    if settings.static_dir:
        if os.path.isdir(settings.static_dir):
            app.mount(
                settings.static_url,
                StaticFiles(directory=settings.static_dir, html=True),
                name="static",
            )
        else:
            logger.warning("Static directory %s does not exist; frontend disabled", settings.static_dir)

    return app


# Create the application instance at import time so that tools such as
# uvicorn can discover it without calling create_app manually.
app = create_app()
