"""HTTP route definitions for the service."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from fastapi.responses import PlainTextResponse

from app.schemas import HealthStatus, PublishFailure
from services.generator import SensorGenerator, build_default_generator
from services.publisher import SUPPLIER_CHANNEL, Publisher, build_default_bridge

ACKNOWLEDGEMENT = "ok, have fun with v1 payload!"

router = APIRouter()


def get_publisher() -> Publisher:
    return build_default_bridge()


def get_generator() -> SensorGenerator:
    return build_default_generator()


@router.post(
    "/randomMessage",
    response_class=PlainTextResponse,
    status_code=status.HTTP_200_OK,
    summary="Generate a random sensor reading and publish it.",
    responses={status.HTTP_503_SERVICE_UNAVAILABLE: {"model": PublishFailure}},
)
def send_random_message(
    publisher: Publisher = Depends(get_publisher),
    generator: SensorGenerator = Depends(get_generator),
) -> str:
    publisher.send(SUPPLIER_CHANNEL, generator.generate())
    return ACKNOWLEDGEMENT


@router.get(
    "/health",
    response_model=HealthStatus,
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> HealthStatus:
    return HealthStatus()


@router.get(
    "/",
    response_model=HealthStatus,
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> HealthStatus:
    return HealthStatus(detail="POST /randomMessage to publish a reading.")
