"""FastAPI application factory and lifespan management."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from plugin_profiler import __version__
from plugin_profiler.api.routes import router
from plugin_profiler.config import settings
from plugin_profiler.logging import setup_logging


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Configure logging on startup.

    Args:
        app: The FastAPI application instance.
    """
    setup_logging(settings.log_level, json_output=settings.log_json)
    yield


def create_app() -> FastAPI:
    """Build and return the configured FastAPI application.

    Returns:
        A fully wired :class:`FastAPI` instance.
    """
    app = FastAPI(
        title=settings.app_name,
        version=__version__,
        description=(
            "Plugin Profiler: statically analyzes a WordPress plugin's PHP, "
            "JavaScript and block.json files and returns its architecture "
            "graph in Cytoscape-compatible JSON."
        ),
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router, tags=["Analysis"])
    return app


app = create_app()
