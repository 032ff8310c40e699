"""Live session state machine.

    Idle -> Starting -> Live -> Stopping -> Idle
                           \\-> Stopping -> Starting   (restart)

Everything runs on one event loop. The only suspension points are the
transport handshake and the wait for the next chunk, so decoding,
reconciliation and visibility recomputation for a chunk complete before any
UI-triggered recompute can run. The reader task is the single writer of the
cache; update_filters() only flips `visible` flags.

Each session gets a new sequence number. Lines are applied only if they are
tagged with the current one, so a slow read from a cancelled session can
never leak into the session that replaced it.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

from simdrome.errors import SessionStateError, TransportError
from simdrome.line_decoder import FrameLineDecoder
from simdrome.messages import StatusMessage, classify_line
from simdrome.models import (
    FilterCriteria,
    FrameStats,
    FrameSummary,
    SessionEvent,
    SessionEventType,
    SessionParams,
    SessionStateView,
    TrackedObjectView,
    VisibilityCounts,
)
from simdrome.reconciliation import (
    UNCLASSIFIED,
    ClassificationSource,
    ObjectReconciliationCache,
    reconcile_frame,
)
from simdrome.transport import LiveTransport
from simdrome.visibility import VisibilityFilterEngine

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    IDLE = "Idle"
    STARTING = "Starting"
    LIVE = "Live"
    STOPPING = "Stopping"


_TRANSITIONS: dict[SessionState, set[SessionState]] = {
    SessionState.IDLE: {SessionState.STARTING},
    SessionState.STARTING: {SessionState.LIVE, SessionState.STOPPING},
    SessionState.LIVE: {SessionState.STOPPING},
    SessionState.STOPPING: {SessionState.IDLE, SessionState.STARTING},
}


class HistoricalDisplay(Protocol):
    active: bool

    def suspend(self) -> None: ...

    def resume(self) -> None: ...


class HistoricalMode:
    """Tracks whether the historical (non-live) view should be shown."""

    def __init__(self):
        self.active = True

    def suspend(self) -> None:
        self.active = False

    def resume(self) -> None:
        self.active = True


SessionListener = Callable[[SessionEvent], None]


@dataclass
class SessionContext:
    cache: ObjectReconciliationCache
    capacity: int
    criteria: FilterCriteria = field(default_factory=FilterCriteria)
    sequence: int = 0
    state: SessionState = SessionState.IDLE
    params: SessionParams | None = None
    reader: asyncio.Task | None = None
    stats: FrameStats | None = None
    counts: VisibilityCounts = field(default_factory=VisibilityCounts)
    last_status: str | None = None
    last_error: str | None = None


class StreamSessionController:
    def __init__(
        self,
        transport: LiveTransport,
        capacity: int,
        classifier: ClassificationSource = UNCLASSIFIED,
        historical: HistoricalDisplay | None = None,
        display_unit: str = "m",
    ):
        if capacity < 0:
            raise ValueError(f"capacity must be >= 0, got {capacity}")
        self.transport = transport
        self.classifier = classifier
        self.historical = historical or HistoricalMode()
        self.context = SessionContext(cache=ObjectReconciliationCache(display_unit), capacity=capacity)
        self.engine = VisibilityFilterEngine(self.context.cache)
        self._listeners: list[SessionListener] = []

    # --- Listeners ---

    def subscribe(self, listener: SessionListener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: SessionListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _emit(self, event_type: SessionEventType, data=None) -> None:
        event = SessionEvent(type=event_type, sequence=self.context.sequence, data=data)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Session listener failed on %s event", event_type.value)

    # --- State machine ---

    @property
    def state(self) -> SessionState:
        return self.context.state

    @property
    def sequence(self) -> int:
        return self.context.sequence

    def _transition(self, new_state: SessionState) -> None:
        ctx = self.context
        if new_state not in _TRANSITIONS[ctx.state]:
            raise SessionStateError(f"cannot go from {ctx.state.value} to {new_state.value}")
        logger.info("Live session %d: %s -> %s", ctx.sequence, ctx.state.value, new_state.value)
        ctx.state = new_state
        self._emit(SessionEventType.STATE, new_state.value)

    def _is_current(self, sequence: int) -> bool:
        return sequence == self.context.sequence

    def _begin(self, params: SessionParams) -> None:
        ctx = self.context
        ctx.sequence += 1
        ctx.cache.clear()
        ctx.params = params
        ctx.stats = None
        ctx.counts = VisibilityCounts()
        ctx.last_status = None
        ctx.last_error = None
        self._transition(SessionState.STARTING)
        ctx.reader = asyncio.create_task(
            self._read(ctx.sequence, params), name=f"live-session-{ctx.sequence}"
        )

    async def start(self, params: SessionParams) -> int:
        """Enter live mode. Returns the new session's sequence number."""
        if self.context.state is not SessionState.IDLE:
            raise SessionStateError(f"session already {self.context.state.value}")
        self.historical.suspend()
        self._begin(params)
        return self.context.sequence

    async def restart(self, params: SessionParams) -> int:
        """Stop and start again with new parameters; historical view stays hidden."""
        if self.context.state is SessionState.IDLE:
            return await self.start(params)
        await self._halt()
        self._begin(params)
        return self.context.sequence

    async def stop(self) -> None:
        """Leave live mode: cancel the read, drop the cache, bring back the historical view."""
        if self.context.state is not SessionState.IDLE:
            await self._halt()
            self._transition(SessionState.IDLE)
        self.context.cache.clear()
        self.context.counts = VisibilityCounts()
        self.context.stats = None
        self.historical.resume()

    async def _halt(self) -> None:
        ctx = self.context
        self._transition(SessionState.STOPPING)
        reader, ctx.reader = ctx.reader, None
        if reader is not None and not reader.done():
            reader.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await reader

    # --- Reader ---

    async def _read(self, sequence: int, params: SessionParams) -> None:
        try:
            async with self.transport.open(params) as chunks:
                if not self._is_current(sequence):
                    return
                self._transition(SessionState.LIVE)
                decoder = FrameLineDecoder()
                async for chunk in chunks:
                    if not self._is_current(sequence):
                        return
                    for line in decoder.feed(chunk):
                        self.apply_line(sequence, line)
                decoder.finish()
        except TransportError as exc:
            if self._is_current(sequence):
                self._fail(exc)
            return
        except Exception as exc:
            logger.exception("Live session %d reader crashed", sequence)
            if self._is_current(sequence):
                self._fail(exc)
            return

        if self._is_current(sequence):
            logger.info("Live stream %d ended", sequence)
            self.context.reader = None
            self._transition(SessionState.STOPPING)
            self._transition(SessionState.IDLE)

    def _fail(self, exc: Exception) -> None:
        ctx = self.context
        logger.error("Live session %d failed: %s", ctx.sequence, exc)
        ctx.last_error = str(exc)
        ctx.reader = None
        self._emit(SessionEventType.ERROR, str(exc))
        self._transition(SessionState.STOPPING)
        self._transition(SessionState.IDLE)

    def apply_line(self, sequence: int, line: str) -> bool:
        """Apply one decoded line from session `sequence`. False when dropped."""
        ctx = self.context
        if not self._is_current(sequence) or ctx.state not in (SessionState.STARTING, SessionState.LIVE):
            logger.debug("Dropping line from stale session %d (current %d)", sequence, ctx.sequence)
            return False

        message = classify_line(line)
        if message is None:
            return False

        if isinstance(message, StatusMessage):
            ctx.last_status = message.status
            logger.info("Backend status: %s", message.status)
            self._emit(SessionEventType.STATUS, message.status)
            return True

        result = reconcile_frame(ctx.cache, message, self.classifier)
        ctx.stats = message.stats
        ctx.counts = self.engine.recompute(ctx.criteria, ctx.capacity)
        summary = FrameSummary(
            stats=ctx.stats,
            counts=ctx.counts,
            created=result.created,
            updated=result.updated,
        )
        self._emit(SessionEventType.FRAME, summary.model_dump(mode="json"))
        return True

    # --- UI-driven filtering ---

    def update_filters(
        self,
        criteria: FilterCriteria | None = None,
        capacity: int | None = None,
    ) -> VisibilityCounts:
        ctx = self.context
        if capacity is not None:
            if capacity < 0:
                raise ValueError(f"capacity must be >= 0, got {capacity}")
            ctx.capacity = capacity
        if criteria is not None:
            ctx.criteria = criteria
        ctx.counts = self.engine.recompute(ctx.criteria, ctx.capacity)
        return ctx.counts

    # --- Views ---

    def snapshot(self) -> SessionStateView:
        ctx = self.context
        return SessionStateView(
            state=ctx.state.value,
            sequence=ctx.sequence,
            params=ctx.params,
            capacity=ctx.capacity,
            criteria=ctx.criteria,
            counts=ctx.counts,
            stats=ctx.stats,
            last_status=ctx.last_status,
            last_error=ctx.last_error,
            object_count=len(ctx.cache),
            historical_active=self.historical.active,
        )

    def objects(self, include_hidden: bool = False) -> list[TrackedObjectView]:
        return [
            obj.to_view()
            for obj in self.context.cache.objects()
            if include_hidden or obj.visible
        ]


# Singleton
_controller: StreamSessionController | None = None


def get_controller() -> StreamSessionController:
    global _controller
    if _controller is None:
        from simdrome.config import get_settings
        from simdrome.transport import HttpStreamTransport

        settings = get_settings()
        _controller = StreamSessionController(
            HttpStreamTransport(settings),
            capacity=settings.max_visible,
            display_unit=settings.display_unit,
        )
    return _controller
