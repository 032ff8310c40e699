"""Identity-keyed object cache and frame reconciliation.

Identity assumption ("stable positional identity"): the stream carries no
object ids, so an object's index within a frame is its id for the whole
session. If the backend ever reorders objects between frames, two objects
silently swap identities. All id assignment goes through positional_id() so
a protocol revision with real ids only has to change that one function.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Protocol

from simdrome.messages import StreamFrame
from simdrome.models import AltitudeBin, ObjectKind, Origin, TrackedObjectView, Vector3
from simdrome.orbital_math import altitude_bin, altitude_color, point_size, to_display

logger = logging.getLogger(__name__)


@dataclass
class TrackedObject:
    id: int
    kind: ObjectKind
    origin: Origin
    position: Vector3
    altitude_km: float
    altitude_bin: AltitudeBin
    velocity: Vector3 | None = None
    # Written only by VisibilityFilterEngine
    visible: bool = False

    def to_view(self) -> TrackedObjectView:
        return TrackedObjectView(
            id=self.id,
            kind=self.kind,
            origin=self.origin,
            position=self.position,
            altitude_km=self.altitude_km,
            altitude_bin=self.altitude_bin,
            color=altitude_color(self.altitude_bin),
            size=point_size(self.kind),
            visible=self.visible,
        )


class ClassificationSource(Protocol):
    def classify(self, object_id: int) -> tuple[ObjectKind, Origin]: ...


class _Unclassified:
    """Fallback when no catalog is loaded: everything is unattributed debris."""

    def classify(self, object_id: int) -> tuple[ObjectKind, Origin]:
        return ObjectKind.JUNK, Origin.OTHER


UNCLASSIFIED: ClassificationSource = _Unclassified()


def positional_id(index: int) -> int:
    """Id for the object at `index` within a frame."""
    return index


class ObjectReconciliationCache:
    """Insertion-ordered store of TrackedObjects, one per id.

    Single writer: only the session controller mutates it. Readers
    (the visibility engine, HTTP views) may flip `visible` but never touch
    identity fields.
    """

    def __init__(self, display_unit: str = "m"):
        self.display_unit = display_unit
        self._objects: dict[int, TrackedObject] = {}

    def __len__(self) -> int:
        return len(self._objects)

    def __contains__(self, object_id: int) -> bool:
        return object_id in self._objects

    def get(self, object_id: int) -> TrackedObject | None:
        return self._objects.get(object_id)

    def objects(self) -> Iterator[TrackedObject]:
        """Objects in the order their ids first appeared."""
        return iter(self._objects.values())

    def upsert(
        self,
        object_id: int,
        kind: ObjectKind,
        origin: Origin,
        position_km: Vector3,
        velocity_km_s: Vector3 | None = None,
    ) -> bool:
        """Create or update one object. Returns True when it was created.

        kind/origin are fixed at first sighting; later values are ignored.
        """
        display = to_display(position_km, self.display_unit)
        obj = self._objects.get(object_id)
        if obj is None:
            self._objects[object_id] = TrackedObject(
                id=object_id,
                kind=kind,
                origin=origin,
                position=display.position,
                altitude_km=display.altitude_km,
                altitude_bin=altitude_bin(display.altitude_km),
                velocity=velocity_km_s,
            )
            return True

        obj.position = display.position
        obj.altitude_km = display.altitude_km
        obj.altitude_bin = altitude_bin(display.altitude_km)
        obj.velocity = velocity_km_s
        return False

    def clear(self) -> None:
        if self._objects:
            logger.info("Clearing %d tracked objects", len(self._objects))
        self._objects.clear()


@dataclass(frozen=True)
class ReconcileResult:
    created: int
    updated: int


def reconcile_frame(
    cache: ObjectReconciliationCache,
    frame: StreamFrame,
    classifier: ClassificationSource = UNCLASSIFIED,
) -> ReconcileResult:
    """Turn one frame into per-object create/update operations on the cache."""
    created = 0
    for index, (pos, vel) in enumerate(zip(frame.positions_km.tolist(), frame.velocities_km_s.tolist())):
        object_id = positional_id(index)
        existing = cache.get(object_id)
        if existing is not None:
            kind, origin = existing.kind, existing.origin
        else:
            kind, origin = classifier.classify(object_id)
        if cache.upsert(object_id, kind, origin, tuple(pos), tuple(vel)):
            created += 1
    return ReconcileResult(created=created, updated=len(frame) - created)
