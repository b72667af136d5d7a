"""Web process entrypoint."""

from __future__ import annotations

import argparse
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from src.api.routes import router
from src.app import App, create_app
from src.config.logging import configure_logging
from src.config.settings import load_settings

logger = logging.getLogger(__name__)


async def _http_error(_request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse({"error": exc.detail}, status_code=exc.status_code)


def create_api(container: App | None = None) -> FastAPI:
    """Build the FastAPI application.

    Without a `container`, settings are loaded and the DB pool is opened on startup and closed on
    shutdown. Passing a ready container skips that (tests, embedding).
    """

    @asynccontextmanager
    async def lifespan(api: FastAPI) -> AsyncIterator[None]:
        if container is not None:
            yield
            return

        settings = load_settings()
        configure_logging(settings.log_level)

        app = create_app(settings)
        await app.pool.open(wait=True)
        api.state.container = app
        logger.info("started llm_enabled=%s", app.llm_config is not None)

        try:
            yield
        finally:
            logger.info("shutting down")
            await app.pool.close()

    api = FastAPI(title="Cemetery records search", lifespan=lifespan)
    if container is not None:
        api.state.container = container
    api.add_exception_handler(HTTPException, _http_error)
    api.include_router(router)
    return api


def main() -> None:
    """CLI entry point for serving the API."""

    parser = argparse.ArgumentParser(description="Serve the cemetery records search API.")
    parser.add_argument("--host", default="127.0.0.1", help="Interface to bind.")
    parser.add_argument("--port", type=int, default=8000, help="Port to bind.")
    args = parser.parse_args()

    uvicorn.run(create_api(), host=args.host, port=args.port)


if __name__ == "__main__":
    main()
