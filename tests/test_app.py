from typing import Any, Iterator, List, Tuple
from uuid import UUID

import pytest
from fastapi.testclient import TestClient

from app.api import ACKNOWLEDGEMENT
from app.main import create_app
from models.records import SensorReading
from services.publisher import DeliveryReceipt, PublishError


class RecordingPublisher:
    def __init__(self) -> None:
        self.sent: List[Tuple[str, Any]] = []
        self.closed = False

    def send(self, channel: str, value: Any) -> DeliveryReceipt:
        self.sent.append((channel, value))
        return DeliveryReceipt(channel=channel, topic="sensor-topic", partition=0, offset=len(self.sent))

    def close(self) -> None:
        self.closed = True


class FailingPublisher(RecordingPublisher):
    def __init__(self, exc: Exception) -> None:
        super().__init__()
        self.exc = exc

    def send(self, channel: str, value: Any) -> DeliveryReceipt:
        self.sent.append((channel, value))
        raise self.exc


def _install_publisher(monkeypatch, publisher: RecordingPublisher) -> None:
    def build_test_bridge() -> RecordingPublisher:
        return publisher

    build_test_bridge.cache_clear = lambda: None  # type: ignore[attr-defined]

    monkeypatch.setattr("app.main.build_default_bridge", build_test_bridge)
    monkeypatch.setattr("app.api.build_default_bridge", build_test_bridge)


@pytest.fixture
def publisher(monkeypatch) -> RecordingPublisher:
    recording = RecordingPublisher()
    _install_publisher(monkeypatch, recording)
    return recording


@pytest.fixture
def api_client(publisher: RecordingPublisher) -> Iterator[TestClient]:
    app = create_app()
    with TestClient(app) as client:
        yield client


def test_random_message_publishes_one_reading(
    api_client: TestClient, publisher: RecordingPublisher
) -> None:
    response = api_client.post("/randomMessage")

    assert response.status_code == 200
    assert response.text == ACKNOWLEDGEMENT
    assert response.headers["content-type"].startswith("text/plain")

    assert len(publisher.sent) == 1
    channel, reading = publisher.sent[0]
    assert channel == "supplier-out-0"
    assert isinstance(reading, SensorReading)
    assert 0 <= reading.acceleration < 10
    assert 0 <= reading.velocity < 100
    assert 0 <= reading.temperature < 50
    assert reading.id.endswith("-v1")
    UUID(reading.id[: -len("-v1")])


def test_each_request_publishes_a_fresh_reading(
    api_client: TestClient, publisher: RecordingPublisher
) -> None:
    for _ in range(3):
        assert api_client.post("/randomMessage").status_code == 200

    ids = {reading.id for _, reading in publisher.sent}
    assert len(publisher.sent) == 3
    assert len(ids) == 3


def test_publish_failure_returns_service_unavailable(monkeypatch) -> None:
    failing = FailingPublisher(PublishError("supplier-out-0", "sensor-topic", "broker down"))
    _install_publisher(monkeypatch, failing)

    with TestClient(create_app()) as client:
        response = client.post("/randomMessage")

    assert response.status_code == 503
    assert ACKNOWLEDGEMENT not in response.text
    assert "broker down" in response.json()["detail"]
    assert len(failing.sent) == 1


def test_unexpected_error_falls_back_to_server_error(monkeypatch) -> None:
    failing = FailingPublisher(RuntimeError("boom"))
    _install_publisher(monkeypatch, failing)

    with TestClient(create_app(), raise_server_exceptions=False) as client:
        response = client.post("/randomMessage")

    assert response.status_code == 500
    assert ACKNOWLEDGEMENT not in response.text


def test_lifespan_closes_publisher(publisher: RecordingPublisher) -> None:
    with TestClient(create_app()):
        assert publisher.closed is False

    assert publisher.closed is True


def test_health_endpoints(api_client: TestClient) -> None:
    response = api_client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"

    root = api_client.get("/")
    assert root.status_code == 200
    assert "/randomMessage" in root.json()["detail"]
