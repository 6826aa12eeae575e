"""
Main application module for the gingival reconstruction backend.

This file sets up the FastAPI application, configures CORS so a
browser-based viewer can make cross-origin requests, maps the
reconstruction input errors onto HTTP responses and exposes a simple
health check endpoint.

Routers for the curve, profile, meshing and reconstruction APIs are
included under the `/api` namespace.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api.routes_curves import router as curves_router
from .api.routes_meshes import router as meshes_router
from .api.routes_profiles import router as profiles_router
from .api.routes_reconstructions import router as reconstructions_router
from .services.errors import GumlineError

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Factory to create and configure the FastAPI application.

    Returns:
        FastAPI: The configured FastAPI application instance.
    """
    app = FastAPI(title="Gumline")

    # Allow all origins by default.  In production you should restrict
    # this to the domains that are allowed to access your API.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Bad caller input from any pipeline stage becomes a 400 carrying
    # the error class so clients can tell the failures apart.
    @app.exception_handler(GumlineError)
    async def gumline_error_handler(request: Request, exc: GumlineError) -> JSONResponse:
        logger.warning("%s on %s: %s", type(exc).__name__, request.url.path, exc)
        return JSONResponse(
            status_code=400,
            content={"detail": str(exc), "error": type(exc).__name__},
        )

    # Health check endpoint for monitoring and deployment probes.
    @app.get("/api/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    # Include API routers under the /api prefix.  Tags are optional but
    # help organise endpoints in the automatically generated docs.
    app.include_router(curves_router, prefix="/api", tags=["curves"])
    app.include_router(profiles_router, prefix="/api", tags=["profiles"])
    app.include_router(meshes_router, prefix="/api", tags=["meshes"])
    app.include_router(reconstructions_router, prefix="/api", tags=["reconstructions"])

    return app


# Create the application instance.  Uvicorn will import this when
# running `uvicorn gumline.main:app` from within backend/
app = create_app()
