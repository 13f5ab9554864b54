"""Random sensor reading generation."""

from __future__ import annotations

import random
import struct
from functools import lru_cache
from threading import Lock
from typing import Optional
from uuid import uuid4

from models.records import ID_SUFFIX, SensorReading

MAX_ACCELERATION = 10.0
MAX_VELOCITY = 100.0
MAX_TEMPERATURE = 50.0

_FLOAT_MANTISSA_BITS = 24


def _to_float32(value: float) -> float:
    return struct.unpack("<f", struct.pack("<f", value))[0]


def _float32_below(value: float) -> float:
    """Largest float32 strictly below a positive float32 ``value``."""
    (bits,) = struct.unpack("<I", struct.pack("<f", value))
    return struct.unpack("<f", struct.pack("<I", bits - 1))[0]


def scaled_float32(rng: random.Random, upper: float) -> float:
    """Draw a float32-representable value in ``[0, upper)``.

    Readings are encoded as Avro ``float``, so values must survive narrowing
    to single precision without reaching ``upper``.
    """
    unit = rng.getrandbits(_FLOAT_MANTISSA_BITS) / (1 << _FLOAT_MANTISSA_BITS)
    value = _to_float32(unit * upper)
    if value >= upper:
        value = _float32_below(_to_float32(upper))
    return value


class SensorGenerator:
    """Builds sensor readings from a shared, lock-guarded random source."""

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self._rng = rng or random.Random()
        self._lock = Lock()

    def generate(self) -> SensorReading:
        with self._lock:
            acceleration = scaled_float32(self._rng, MAX_ACCELERATION)
            velocity = scaled_float32(self._rng, MAX_VELOCITY)
            temperature = scaled_float32(self._rng, MAX_TEMPERATURE)
        return SensorReading(
            id=f"{uuid4()}{ID_SUFFIX}",
            acceleration=acceleration,
            velocity=velocity,
            temperature=temperature,
        )


@lru_cache
def build_default_generator() -> SensorGenerator:
    return SensorGenerator()
