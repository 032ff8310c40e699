from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, model_validator


# --- Object classification ---

class ObjectKind(str, Enum):
    ACTIVE = "Active"
    JUNK = "Junk"


class Origin(str, Enum):
    UNITED_STATES = "United States"
    UNITED_KINGDOM = "United Kingdom"
    FRANCE = "France"
    JAPAN = "Japan"
    ITALY = "Italy"
    SOVIET_UNION = "Soviet Union"
    OTHER = "Other"


class AltitudeBin(str, Enum):
    BIN_0_200 = "0-200"
    BIN_200_400 = "200-400"
    BIN_400_800 = "400-800"
    BIN_800_1200 = "800-1200"
    BIN_1200_2000 = "1200-2000"
    BIN_2000_PLUS = "2000+"


Vector3 = tuple[float, float, float]


# --- Session parameters (sent to the simulation backend) ---

class SessionParams(BaseModel):
    collision_threshold: int = Field(default=0, ge=0, description="Collision count that ends the run")
    duration_s: int = Field(default=3600, ge=1, description="Simulated session length (seconds)")
    step_s: int = Field(default=60, ge=1, description="Simulation step size (seconds)")

    @model_validator(mode="after")
    def _step_within_duration(self) -> SessionParams:
        if self.step_s > self.duration_s:
            raise ValueError("step_s must not exceed duration_s")
        return self

    def as_query(self) -> dict[str, int]:
        return {
            "threshold": self.collision_threshold,
            "duration": self.duration_s,
            "step": self.step_s,
        }


# --- Filtering ---

class FilterCriteria(BaseModel):
    """Accepted values per dimension. An object must match all three."""
    kinds: set[ObjectKind] = Field(default_factory=lambda: set(ObjectKind))
    origins: set[Origin] = Field(default_factory=lambda: set(Origin))
    altitude_bins: set[AltitudeBin] = Field(default_factory=lambda: set(AltitudeBin))


class FilterUpdate(BaseModel):
    criteria: FilterCriteria | None = None
    capacity: int | None = Field(default=None, ge=0)


class VisibilityCounts(BaseModel):
    visible_count: int = 0
    eligible_count: int = 0


# --- Per-frame output ---

class FrameStats(BaseModel):
    object_count: int = 0
    total_num_collisions: int = 0
    step_num_collision: int = 0


class FrameSummary(BaseModel):
    stats: FrameStats
    counts: VisibilityCounts
    created: int = 0
    updated: int = 0


class TrackedObjectView(BaseModel):
    id: int
    kind: ObjectKind
    origin: Origin
    position: Vector3
    altitude_km: float
    altitude_bin: AltitudeBin
    color: str
    size: int
    visible: bool


# --- Session events (pushed over /ws/live) ---

class SessionEventType(str, Enum):
    STATE = "state"
    FRAME = "frame"
    STATUS = "status"
    ERROR = "error"


class SessionEvent(BaseModel):
    type: SessionEventType
    sequence: int
    data: Any = None


class SessionStateView(BaseModel):
    state: str
    sequence: int
    params: SessionParams | None = None
    capacity: int
    criteria: FilterCriteria
    counts: VisibilityCounts
    stats: FrameStats | None = None
    last_status: str | None = None
    last_error: str | None = None
    object_count: int = 0
    # False while the historical view is suspended by live mode
    historical_active: bool = True


# --- API responses ---

class HealthResponse(BaseModel):
    status: str = "ok"
