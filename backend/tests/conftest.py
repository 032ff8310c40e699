from __future__ import annotations

import asyncio
import json
from contextlib import asynccontextmanager

import pytest

from simdrome.reconciliation import ObjectReconciliationCache


class FakeTransport:
    """In-memory LiveTransport: replays chunks, then optionally blocks until released."""

    def __init__(self, chunks=(), hold=True, fail=None):
        self.chunks = list(chunks)
        self.hold = hold
        self.fail = fail
        self.release = asyncio.Event()
        self.opened = []
        self.closed = 0

    @asynccontextmanager
    async def open(self, params):
        self.opened.append(params)
        if self.fail is not None:
            raise self.fail
        try:
            yield self._iter()
        finally:
            self.closed += 1

    async def _iter(self):
        for chunk in self.chunks:
            yield chunk
            await asyncio.sleep(0)
        if self.hold:
            await self.release.wait()


async def settle(rounds: int = 10) -> None:
    """Let pending tasks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


def frame_line(positions, velocities=None, total=0, step=0) -> str:
    velocities = velocities or [[0.0, 7.0, 0.0]] * len(positions)
    return json.dumps({
        "objects": [[list(p), list(v)] for p, v in zip(positions, velocities)],
        "object_count": len(positions),
        "total_num_collisions": total,
        "step_num_collision": step,
    })


@pytest.fixture
def cache():
    return ObjectReconciliationCache()
