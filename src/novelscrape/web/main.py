"""
FastAPI application exposing the scrape pipeline over HTTP.
"""

from __future__ import annotations

import asyncio
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

import structlog
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from novelscrape import __version__
from novelscrape.config.config import Config, settings
from novelscrape.errors import NetworkError, NetworkErrorKind, ScrapeError
from novelscrape.observability.metrics import export_prometheus
from novelscrape.pipeline import ScrapePipeline
from novelscrape.security.validation import InvalidUrlKind, ValidationResult

logger = structlog.get_logger(__name__)


class ScrapeRequest(BaseModel):
    """Request body for ``POST /scrape``; the URL is validated by the pipeline."""

    url: Any = None


def create_app(config: Optional[Config] = None) -> FastAPI:
    """Build the application with its own pipeline and HTTP session."""
    config = config or Config()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info("Starting novelscrape web service", version=__version__)
        app.state.start_time = time.time()
        async with ScrapePipeline(config) as pipeline:
            app.state.pipeline = pipeline
            yield
        logger.info("Shutting down novelscrape web service")

    app = FastAPI(title="novelscrape", version=__version__, lifespan=lifespan)
    app.state.config = config

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.web.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "X-Request-ID"],
    )

    @app.exception_handler(ScrapeError)
    async def scrape_error_handler(request: Request, exc: ScrapeError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=exc.to_response())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        # Unreadable bodies carry no URL
        error = ValidationResult.failure(InvalidUrlKind.EMPTY_INPUT).to_error()
        return JSONResponse(status_code=error.status_code, content=error.to_response())

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("Unhandled error in web layer", path=request.url.path, error=str(exc), exc_info=True)
        return JSONResponse(status_code=500, content=ScrapeError().to_response())

    @app.post("/scrape")
    async def scrape(
        body: Optional[ScrapeRequest] = None,
        pipeline: ScrapePipeline = Depends(get_pipeline),
    ) -> Dict[str, Any]:
        """Scrape a single chapter page."""
        url = body.url if body is not None else None
        try:
            async with asyncio.timeout(config.web.request_timeout):
                result = await pipeline.scrape(url)
        except TimeoutError as e:
            logger.warning("Scrape request timed out", url=str(url), timeout=config.web.request_timeout)
            raise NetworkError(NetworkErrorKind.TIMEOUT, details={"timeout": config.web.request_timeout}) from e
        return result.to_dict()

    @app.get("/health")
    async def health_check() -> Dict[str, Any]:
        """Liveness probe."""
        return {"status": "ok", "timestamp": time.time(), "version": __version__}

    if config.monitoring.metrics_enabled:

        @app.get("/metrics")
        async def get_prometheus_metrics() -> Response:
            """Endpoint for Prometheus to scrape."""
            return Response(export_prometheus(), media_type="text/plain")

    return app


def get_pipeline(request: Request) -> ScrapePipeline:
    return request.app.state.pipeline


app = create_app(settings)


def run_web_server(host: str = "127.0.0.1", port: int = 8000, config: Optional[Config] = None) -> None:
    """Run the FastAPI server with uvicorn."""
    import uvicorn

    logger.info("Starting web server", host=host, port=port)
    uvicorn.run(create_app(config) if config else app, host=host, port=port)
