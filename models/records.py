"""Domain models published by the service."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from typing import Any, Dict

ID_SUFFIX = "-v1"

SENSOR_SCHEMA: Dict[str, Any] = {
    "type": "record",
    "name": "Sensor",
    "namespace": "com.example",
    "fields": [
        {"name": "id", "type": "string"},
        {"name": "acceleration", "type": "float"},
        {"name": "velocity", "type": "float"},
        {"name": "temperature", "type": "float"},
    ],
}

SENSOR_SCHEMA_STR = json.dumps(SENSOR_SCHEMA)


@dataclass(frozen=True, slots=True)
class SensorReading:
    """A single randomly generated sensor measurement."""

    id: str
    acceleration: float
    velocity: float
    temperature: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
