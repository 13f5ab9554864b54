from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Dict, Mapping


_BOOTSTRAP_SERVERS_ENV = "KAFKA_BOOTSTRAP_SERVERS"
_SCHEMA_REGISTRY_URL_ENV = "SCHEMA_REGISTRY_URL"
_AUTO_REGISTER_ENV = "SCHEMA_AUTO_REGISTER"
_BINDINGS_ENV = "STREAM_BINDINGS"
_CLIENT_ID_ENV = "KAFKA_CLIENT_ID"
_DELIVERY_TIMEOUT_ENV = "PUBLISH_TIMEOUT_SECONDS"
_LOG_LEVEL_ENV = "LOG_LEVEL"

DEFAULT_BINDINGS = "supplier-out-0=sensor-topic"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Settings:
    bootstrap_servers: str
    schema_registry_url: str
    auto_register_schemas: bool
    client_id: str
    delivery_timeout: float
    log_level: str
    bindings: Mapping[str, str] = field(default_factory=dict)


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_bool_env(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip().lower()
    if candidate in _TRUE_VALUES:
        return True
    if candidate in _FALSE_VALUES:
        return False
    return default


def _read_timeout(default: float) -> float:
    value = os.getenv(_DELIVERY_TIMEOUT_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


def parse_bindings(raw: str) -> Dict[str, str]:
    """Parse ``channel=topic`` pairs separated by commas.

    Entries without ``=`` or with an empty side are ignored.
    """
    bindings: Dict[str, str] = {}
    for entry in raw.split(","):
        channel, sep, topic = entry.partition("=")
        channel = channel.strip()
        topic = topic.strip()
        if not sep or not channel or not topic:
            continue
        bindings[channel] = topic
    return bindings


@lru_cache
def get_settings() -> Settings:
    return Settings(
        bootstrap_servers=_read_str_env(_BOOTSTRAP_SERVERS_ENV, "localhost:9092"),
        schema_registry_url=_read_str_env(_SCHEMA_REGISTRY_URL_ENV, "http://localhost:8081"),
        auto_register_schemas=_read_bool_env(_AUTO_REGISTER_ENV, True),
        client_id=_read_str_env(_CLIENT_ID_ENV, "sensor-producer"),
        delivery_timeout=_read_timeout(10.0),
        log_level=_read_log_level("INFO"),
        bindings=parse_bindings(_read_str_env(_BINDINGS_ENV, DEFAULT_BINDINGS)),
    )
