from __future__ import annotations

import logging

from fastapi import FastAPI

from pixshop.application.dtos.common_dto import HealthResponse, RootResponse
from pixshop.infrastructure.api.dependencies import get_settings
from pixshop.infrastructure.api.error_handlers import add_error_handlers
from pixshop.infrastructure.api.middlewares import add_default_middlewares
from pixshop.infrastructure.api.routes.display_routes import router as display_router
from pixshop.infrastructure.api.routes.preset_routes import router as preset_router
from pixshop.infrastructure.api.routes.session_routes import router as session_router


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = FastAPI(
        title="PixShop Backend",
        version="0.1.0",
        description="""
        ## PixShop Backend API

        AI photo editing sessions backed by a generative image model.

        ### Features
        - **Editor**: Retouch a point, apply global adjustments and filters, remove backgrounds
        - **Combine**: Move an element from a source image into a destination image
        - **History**: Undo, redo and reset, with later edits discarded on a new edit
        - **Fidelity**: Every result is upscaled and resampled to the original's exact size
        - **Export**: Download the current image as PNG or as JPEG flattened onto white

        ### Sessions
        Every operation runs inside a session created with `POST /sessions`.
        While a generation is in flight the session is busy and any other
        change is rejected with 409.

        ### Error Responses
        - **400 Bad Request**: A precondition of the operation is not met
        - **404 Not Found**: Session or display handle does not exist
        - **409 Conflict**: Another operation is already in progress
        - **422 Unprocessable Entity**: Validation error in request body
        - **502 Bad Gateway**: The image model did not return an image
        - **500 Internal Server Error**: Local image processing or configuration failed
        """,
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
    )
    add_default_middlewares(app, env=settings.env)
    add_error_handlers(app)

    @app.get(
        "/",
        response_model=RootResponse,
        summary="API Root",
        description="Get basic information about the PixShop API",
        response_description="API information including status and version",
    )
    def root():
        """Get API root information."""
        return {"status": "ok", "service": "pixshop-backend", "version": app.version}

    @app.get(
        "/health",
        response_model=HealthResponse,
        summary="Health Check",
        description="Check if the API service is running and which image backend is active",
        response_description="Health status of the API service",
    )
    def health():
        """Check API health status."""
        return {"status": "healthy", "transform_backend": "local" if settings.genai_disabled else "gemini"}

    app.include_router(session_router)
    app.include_router(display_router)
    app.include_router(preset_router)
    return app


app = create_app()
