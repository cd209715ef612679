from __future__ import annotations

import logging
import os

from fastapi import FastAPI

from src.application.dtos.common_dto import HealthResponse, RootResponse
from src.infrastructure.api.middlewares import add_default_middlewares
from src.infrastructure.api.routes.picture_routes import router as picture_router
from src.infrastructure.api.routes.tag_routes import router as tag_router


def create_app() -> FastAPI:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    app = FastAPI(
        title="Picture Review Backend",
        version="0.1.0",
        description="""
        ## Picture Review Backend API

        Review pipeline for scraped pictures: stage transfers, cropping with tag
        re-anchoring, and annotation management. Records live in one store per
        stage (Supabase or local PostgreSQL), files in Supabase Storage.

        ### Stages
        - **pending**: freshly ingested pictures
        - **validated**: accepted by a reviewer
        - **published**: released pictures
        - **blocked**: rejected pictures, their files are deleted

        ### Error Responses
        - **400 Bad Request**: Unknown stage, invalid transition, tag or crop box
        - **404 Not Found**: Picture or tag does not exist in the given stage
        - **409 Conflict**: Picture key already taken in the target stage
        - **422 Unprocessable Entity**: Validation error in request body
        - **500 Internal Server Error**: Partial transfer, orphan file or codec failure
        """,
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
    )
    add_default_middlewares(app)

    @app.get("/", response_model=RootResponse, summary="API Root")
    def root():
        """Get API root information."""
        return {"status": "ok", "service": "picture-review-backend", "version": app.version}

    @app.get("/health", response_model=HealthResponse, summary="Health Check")
    def health():
        return {"status": "healthy"}

    app.include_router(picture_router)
    app.include_router(tag_router)
    return app


app = create_app()
