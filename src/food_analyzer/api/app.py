"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException

from food_analyzer.api.images import request_from_body, request_from_upload
from food_analyzer.api.models import AnalyzeFoodBody, ErrorBody
from food_analyzer.app_logging import configure_logging
from food_analyzer.containers import AppContainer
from food_analyzer.domain.analysis import AnalysisRequest
from food_analyzer.domain.errors import (
    INVALID_REQUEST,
    UNKNOWN_ERROR,
    InvalidInputError,
    PipelineError,
)

GENERIC_FAILURE_MESSAGE = "Failed to analyze food image"
_FORM_CONTENT_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        app.state.container.registry.log_report()
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/api/analyzers")
    async def analyzers(request: Request) -> dict[str, object]:
        """Report strategy availability and the resolved fallback chain."""
        state_container: AppContainer = request.app.state.container
        return state_container.registry.describe().as_dict()

    @app.post("/api/analyze-food")
    async def analyze_food(request: Request) -> JSONResponse:
        """Analyze a food photo sent as a multipart upload or JSON body."""
        state_container: AppContainer = request.app.state.container
        try:
            analysis_request = await _read_analysis_request(
                request, state_container.settings.max_image_bytes
            )
        except InvalidInputError as exc:
            logger.info("Rejected analyze-food request: %s", exc.error_code)
            return _error(status.HTTP_400_BAD_REQUEST, exc.message, exc.error_code)

        try:
            response = await state_container.pipeline.analyze(analysis_request)
        except PipelineError as exc:
            logger.error(
                "Food analysis failed: %s",
                "; ".join(
                    f"{failure.strategy_id}={failure.kind.value}"
                    for failure in exc.failures
                ),
            )
            return _error(
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                GENERIC_FAILURE_MESSAGE,
                exc.error_code,
            )
        except Exception:
            logger.exception("Unexpected food analysis error")
            return _error(
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                GENERIC_FAILURE_MESSAGE,
                UNKNOWN_ERROR,
            )
        return JSONResponse(response.model_dump(by_alias=True, mode="json"))

    return app


async def _read_analysis_request(request: Request, max_bytes: int) -> AnalysisRequest:
    content_type = request.headers.get("content-type", "").lower()
    if content_type.startswith(_FORM_CONTENT_TYPES):
        try:
            form = await request.form()
        except StarletteHTTPException as exc:
            raise InvalidInputError(INVALID_REQUEST, "Unreadable form data") from exc
        upload = form.get("image")
        region = form.get("region")
        image_bytes = await upload.read() if isinstance(upload, UploadFile) else b""
        return request_from_upload(
            image_bytes,
            region if isinstance(region, str) else None,
            max_bytes,
        )

    try:
        payload = await request.json()
        body = AnalyzeFoodBody.model_validate(payload)
    except (ValueError, ValidationError) as exc:
        raise InvalidInputError(INVALID_REQUEST, "Invalid request body") from exc
    return request_from_body(body, max_bytes)


def _error(status_code: int, message: str, error_code: str) -> JSONResponse:
    body = ErrorBody(error=message, error_code=error_code)
    return JSONResponse(body.model_dump(by_alias=True), status_code=status_code)
