from __future__ import annotations
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from app.api import router
from logging_config import configure_logging
from services.publisher import PublishError, build_default_bridge


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    bridge = build_default_bridge()
    try:
        yield
    finally:
        bridge.close()
        build_default_bridge.cache_clear()


async def publish_error_handler(_request: Request, exc: PublishError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": str(exc)},
    )


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="Sensor Avro Producer",
        description="Publishes random sensor readings as Avro records via a schema registry.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.add_exception_handler(PublishError, publish_error_handler)
    app.include_router(router)
    return app

app = create_app()
