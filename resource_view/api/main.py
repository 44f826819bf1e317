"""Resource View API app factory.

Applications create the app, then include their own resource routers that
render through element_response()/collection_response().
"""

import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from resource_view import __version__
from resource_view.api.responses import register_exception_handlers
from resource_view.api.routes import views
from resource_view.views.registry import ViewRegistry, get_view_registry

LOG_LEVEL = os.environ.get("RESOURCE_VIEW_LOG_LEVEL", "INFO").upper()

logger = logging.getLogger(__name__)


def create_app(registry: Optional[ViewRegistry] = None) -> FastAPI:
    """Create the API app around a view registry (the global one by default)."""
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler."""
        # Startup: views are wired by now; lock the registry
        view_registry = app.state.view_registry
        logger.info("Loading view definitions...")
        view_registry.load()
        if not view_registry.frozen:
            view_registry.freeze()
        logger.info(f"Loaded {view_registry.count()} views")
        logger.info("Resource View API ready")
        yield
        logger.info("Shutting down Resource View API")

    app = FastAPI(
        title="Resource View API",
        description="REST bodies rendered from view definitions.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.view_registry = registry or get_view_registry()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(views.router, prefix="/v1")

    @app.get("/")
    async def root():
        """Root endpoint with API info."""
        return {
            "service": "Resource View API",
            "version": __version__,
            "docs": "/docs",
            "endpoints": {
                "views": "/v1/views",
            },
        }

    return app
