"""
ASGI entry point: `uvicorn main:app` from the `api/` directory.

`create_app` builds the FastAPI application. Tests call it with their own
`Settings` and `Services`; the module-level `app` reads both from the
environment when the server starts.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from asset_collections import router as collections_router
from categories import router as categories_router
from core import db
from core.binding import Binder
from core.errors import install_exception_handlers
from core.log import configure_logging
from core.services import Services, load_services
from core.settings import Settings
from licenses import router as licenses_router
from models import router as models_router
from organizations import router as organizations_router
from reviews import router as reviews_router
from subt import router as subt_router
from users import router as users_router
from worlds import router as worlds_router

logger = logging.getLogger(__name__)

API_PREFIX = "/1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    if app.state.services is None:
        app.state.services = load_services(settings)

    # Initialize the DB pool once per process.
    if settings.database_url:
        await db.init_pool(settings.database_url)
    else:
        logger.warning("DATABASE_URL is not set; requests needing the database will fail")
    try:
        yield
    finally:
        await db.close_pool()


def create_app(settings: Settings | None = None, services: Services | None = None) -> FastAPI:
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    app = FastAPI(title="Asset hosting API", lifespan=lifespan)
    app.state.settings = settings
    app.state.services = services
    app.state.binder = Binder.from_settings(settings)

    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.cors_origins),
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
            expose_headers=["Link", "X-Total-Count", "X-Ign-Resource-Version"],
        )

    install_exception_handlers(app)
    app.add_exception_handler(db.DatabaseError, db.handle_database_error)

    # Fixed paths first: `/{username}/...` routes would shadow them otherwise.
    app.include_router(users_router.router, prefix=API_PREFIX, tags=["users"])
    app.include_router(licenses_router.router, prefix=API_PREFIX, tags=["licenses"])
    app.include_router(categories_router.router, prefix=API_PREFIX, tags=["categories"])
    app.include_router(organizations_router.router, prefix=API_PREFIX, tags=["organizations"])
    app.include_router(subt_router.router, prefix=API_PREFIX, tags=["subt"])
    app.include_router(collections_router.router, prefix=API_PREFIX, tags=["collections"])
    app.include_router(reviews_router.router, prefix=API_PREFIX, tags=["reviews"])
    app.include_router(models_router.router, prefix=API_PREFIX, tags=["models"])
    app.include_router(worlds_router.router, prefix=API_PREFIX, tags=["worlds"])

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    return app


app = create_app()
