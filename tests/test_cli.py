from __future__ import annotations

from typing import Any, Dict

import pytest
import typer
from typer.testing import CliRunner

from cli.app import app


class StubClient:
    def __init__(self, config) -> None:
        self.config = config
        self.sent = 0
        self.closed = False
        self.fail_after: int | None = None

    def send_random_message(self) -> str:
        if self.fail_after is not None and self.sent >= self.fail_after:
            typer.secho("Request failed with status 503: broker down", err=True)
            raise typer.Exit(code=1)
        self.sent += 1
        return "ok, have fun with v1 payload!"

    def health(self) -> Dict[str, Any]:
        return {"status": "ok"}

    def close(self) -> None:
        self.closed = True


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


def _install_stub(monkeypatch, stub: StubClient) -> None:
    def factory(config):
        stub.config = config
        return stub

    monkeypatch.setattr("cli.app.ApiClient", factory)


def test_send_single_message(monkeypatch, runner: CliRunner) -> None:
    stub = StubClient(config=None)
    _install_stub(monkeypatch, stub)

    result = runner.invoke(app, ["send"])

    assert result.exit_code == 0
    assert "[1/1] ok, have fun with v1 payload!" in result.stdout
    assert stub.sent == 1
    assert stub.closed is True


def test_send_with_count_and_base_url(monkeypatch, runner: CliRunner) -> None:
    stub = StubClient(config=None)
    _install_stub(monkeypatch, stub)

    result = runner.invoke(app, ["--base-url", "http://producer:9000/", "send", "--count", "3"])

    assert result.exit_code == 0
    assert stub.sent == 3
    assert stub.config.base_url == "http://producer:9000"
    assert "[3/3]" in result.stdout


def test_send_stops_on_failure(monkeypatch, runner: CliRunner) -> None:
    stub = StubClient(config=None)
    stub.fail_after = 1
    _install_stub(monkeypatch, stub)

    result = runner.invoke(app, ["send", "-n", "3"])

    assert result.exit_code == 1
    assert stub.sent == 1
    assert stub.closed is True


def test_health_command(monkeypatch, runner: CliRunner) -> None:
    stub = StubClient(config=None)
    _install_stub(monkeypatch, stub)

    result = runner.invoke(app, ["health"])

    assert result.exit_code == 0
    assert "status: ok" in result.stdout
