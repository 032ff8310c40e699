"""Line -> message classification for the newline-delimited JSON stream.

Two shapes are recognised:

    {"status": "<text>"}
    {"objects": [[[x, y, z], [vx, vy, vz]], ...],
     "object_count": n, "total_num_collisions": n, "step_num_collision": n}

Anything else is dropped with a warning. A bad line never ends the stream.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

import numpy as np

from simdrome.models import FrameStats

logger = logging.getLogger(__name__)

PREVIEW_CHARS = 120

# km (or km/s). Larger magnitudes are not orbital and overflow display scaling
MAX_COMPONENT = 1e12


@dataclass(frozen=True)
class StatusMessage:
    status: str


@dataclass(frozen=True)
class StreamFrame:
    """One simulation tick. positions_km / velocities_km_s are (N, 3) float arrays."""
    positions_km: np.ndarray
    velocities_km_s: np.ndarray
    object_count: int
    total_num_collisions: int
    step_num_collision: int

    def __len__(self) -> int:
        return len(self.positions_km)

    @property
    def stats(self) -> FrameStats:
        return FrameStats(
            object_count=self.object_count,
            total_num_collisions=self.total_num_collisions,
            step_num_collision=self.step_num_collision,
        )


Message = StatusMessage | StreamFrame


class MalformedMessage(ValueError):
    pass


def _reject_constant(name: str) -> Any:
    raise MalformedMessage(f"non-finite literal {name}")


def _counter(msg: dict, key: str, default: int) -> int:
    value = msg.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int):
        raise MalformedMessage(f"{key} must be an integer, got {value!r}")
    return value


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_vector(value: Any) -> bool:
    return isinstance(value, list) and len(value) == 3 and all(_is_number(c) for c in value)


def _parse_objects(objects: list) -> tuple[np.ndarray, np.ndarray]:
    if not objects:
        empty = np.empty((0, 3), dtype=float)
        return empty, empty.copy()
    for index, entry in enumerate(objects):
        if not (isinstance(entry, list) and len(entry) == 2 and all(_is_vector(v) for v in entry)):
            raise MalformedMessage(f"object {index} is not a [[x,y,z],[vx,vy,vz]] pair of numbers")
    try:
        arr = np.asarray(objects, dtype=float)
    except OverflowError as exc:
        raise MalformedMessage(f"objects contain out-of-range values: {exc}") from exc
    if not np.isfinite(arr).all():
        raise MalformedMessage("objects contain non-finite values")
    if (np.abs(arr) > MAX_COMPONENT).any():
        raise MalformedMessage(f"objects contain components beyond {MAX_COMPONENT:g}")
    return arr[:, 0, :], arr[:, 1, :]


def parse_message(line: str) -> Message:
    """Strict parse. Raises MalformedMessage for anything unrecognised."""
    try:
        msg = json.loads(line, parse_constant=_reject_constant)
    except MalformedMessage:
        raise
    except json.JSONDecodeError as exc:
        raise MalformedMessage(f"invalid JSON: {exc.msg}") from exc
    except (ValueError, RecursionError) as exc:
        # oversized integer literals, pathological nesting
        raise MalformedMessage(f"unparsable JSON: {type(exc).__name__}") from exc

    if not isinstance(msg, dict):
        raise MalformedMessage(f"expected a JSON object, got {type(msg).__name__}")

    if "status" in msg:
        return StatusMessage(status=str(msg["status"]))

    objects = msg.get("objects")
    if isinstance(objects, list):
        positions, velocities = _parse_objects(objects)
        return StreamFrame(
            positions_km=positions,
            velocities_km_s=velocities,
            object_count=_counter(msg, "object_count", len(positions)),
            total_num_collisions=_counter(msg, "total_num_collisions", 0),
            step_num_collision=_counter(msg, "step_num_collision", 0),
        )

    raise MalformedMessage(f"unrecognised message keys: {sorted(msg)[:5]}")


def classify_line(line: str) -> Message | None:
    """Classify one decoded line; None (and a log line) when it is not usable."""
    try:
        return parse_message(line)
    except MalformedMessage as exc:
        preview = line if len(line) <= PREVIEW_CHARS else line[:PREVIEW_CHARS] + "..."
        logger.warning("Skipping malformed stream line (%s): %s", exc, preview)
        return None
