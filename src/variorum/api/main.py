"""FastAPI application."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from variorum.api.routes import router
from variorum.config import VERSION, Settings
from variorum.service import CollationRunner


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create the API app with its own collation runner."""
    settings = settings or Settings()
    settings.validate()

    runner = CollationRunner(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        runner.shutdown(wait=False)

    app = FastAPI(
        title="Variorum",
        description="Variant-graph collation of textual witnesses",
        version=VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # CORS for development
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.runner = runner
    app.include_router(router, prefix="/api/v1")

    @app.get("/")
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Variorum",
            "version": VERSION,
            "docs": "/docs",
            "api": "/api/v1",
        }

    return app


# Default app instance for uvicorn
app = create_app()
