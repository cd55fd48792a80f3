from __future__ import annotations

import json
import os
import time
from dataclasses import dataclass
from typing import Any, Callable


def compact_json(payload: Any) -> bytes:
    return json.dumps(payload, separators=(",", ":")).encode("ascii")


def truthy(value: str | None) -> bool:
    return (value or "").strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class UuidV7:
    value: str

    def __str__(self) -> str:
        return self.value


def uuidv7(ts_ms: int | None = None) -> UuidV7:
    if ts_ms is None:
        ts_ms = int(time.time() * 1000)
    time_bytes = ts_ms.to_bytes(6, "big")
    rand = int.from_bytes(os.urandom(10), "big")
    rand_a = (rand >> 68) & 0x0FFF
    rand_b = (rand >> 6) & ((1 << 62) - 1)

    byte6 = 0x70 | ((rand_a >> 8) & 0x0F)
    byte7 = rand_a & 0xFF
    byte8 = 0x80 | ((rand_b >> 56) & 0x3F)
    bytes9_15 = (rand_b & ((1 << 56) - 1)).to_bytes(7, "big")

    raw = bytearray()
    raw.extend(time_bytes)
    raw.append(byte6)
    raw.append(byte7)
    raw.append(byte8)
    raw.extend(bytes9_15)
    hexed = raw.hex()
    uuid = f"{hexed[0:8]}-{hexed[8:12]}-{hexed[12:16]}-{hexed[16:20]}-{hexed[20:32]}"
    return UuidV7(uuid)


def random_id() -> str:
    """Default correlation id: a time-ordered UUIDv7 with 74 random bits."""
    return str(uuidv7())


def clock_id(clock: Callable[[], float] = time.time) -> str:
    """
    Correlation id from the wall clock at one-second resolution.

    Two calls inside the same second get the same id. Only use this when the
    daemon or its logs expect numeric ids.
    """
    return f"{int(clock())}"
