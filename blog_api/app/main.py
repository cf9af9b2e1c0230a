"""
Main entrypoint for the Blog API.

This module assembles the FastAPI application, sets up logging, opens
the document store for the lifetime of the app and includes versioned
routers.  The ``create_app`` function builds and configures the app,
which is then instantiated at module import time as ``app``, e.g.::

    uvicorn blog_api.app.main:app --reload
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api.v1.router import router as v1_router
from .core.config import Settings, settings as default_settings
from .core.db import DocumentStore, init_db
from .core.exceptions import InvalidPostIdError, StoreUnavailableError, ValidationError
from .core.logging_config import setup_logging


def create_app(settings: Optional[Settings] = None, store: Optional[DocumentStore] = None) -> FastAPI:
    """Create and configure a FastAPI application.

    Parameters
    ----------
    settings : Optional[Settings]
        Settings to use instead of the environment-derived defaults.
    store : Optional[DocumentStore]
        Document store to serve from.  When omitted, one is built from
        ``settings.database_url``.  Either way the app connects it and
        applies migrations on startup, and closes it on shutdown.

    Returns
    -------
    FastAPI
        A configured FastAPI instance ready to be served.
    """
    settings = settings or default_settings
    setup_logging(settings.log_level, settings.log_file or None)

    store = store or DocumentStore(settings.database_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        store.connect()
        init_db(store)
        try:
            yield
        finally:
            store.close()

    app = FastAPI(
        title=settings.project_name,
        version=settings.api_version,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.store = store

    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": exc.messages})

    @app.exception_handler(InvalidPostIdError)
    async def invalid_id_handler(request: Request, exc: InvalidPostIdError) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": "Post not found"})

    @app.exception_handler(StoreUnavailableError)
    async def store_unavailable_handler(request: Request, exc: StoreUnavailableError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": "Document store unavailable"},
        )

    app.include_router(v1_router, prefix="/api/v1")

    return app


# Create the application instance at import time so that tools such as
# uvicorn can discover it without calling create_app manually.
app = create_app()
