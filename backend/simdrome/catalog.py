"""Historical trajectory catalog — classification source for live objects.

The backend serves the historical dataset as

    {"start_time": iso, "end_time": iso,
     "trajectories": [{"id", "name", "type_field", "country",
                       "samples": [{"t", "lat", "lon", "alt"}, ...]}, ...]}

Only the classification metadata is kept here; sample playback belongs to
the renderer.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import BaseModel

from simdrome.config import Settings, get_settings
from simdrome.errors import CatalogError
from simdrome.models import ObjectKind, Origin

logger = logging.getLogger(__name__)

ACTIVE_TYPES = {"ACTIVE", "PAYLOAD"}

ORIGIN_ALIASES: dict[str, Origin] = {
    "UNITED STATES": Origin.UNITED_STATES,
    "US": Origin.UNITED_STATES,
    "USA": Origin.UNITED_STATES,
    "UNITED KINGDOM": Origin.UNITED_KINGDOM,
    "UK": Origin.UNITED_KINGDOM,
    "GBR": Origin.UNITED_KINGDOM,
    "FRANCE": Origin.FRANCE,
    "FR": Origin.FRANCE,
    "FRA": Origin.FRANCE,
    "JAPAN": Origin.JAPAN,
    "JPN": Origin.JAPAN,
    "JP": Origin.JAPAN,
    "ITALY": Origin.ITALY,
    "IT": Origin.ITALY,
    "ITA": Origin.ITALY,
    "SOVIET UNION": Origin.SOVIET_UNION,
    "CIS": Origin.SOVIET_UNION,
    "USSR": Origin.SOVIET_UNION,
    "SU": Origin.SOVIET_UNION,
}


def normalize_kind(raw: Any) -> ObjectKind:
    """Payloads are Active; debris, rocket bodies and anything unknown are Junk."""
    if isinstance(raw, str) and raw.strip().upper() in ACTIVE_TYPES:
        return ObjectKind.ACTIVE
    return ObjectKind.JUNK


def normalize_origin(raw: Any) -> Origin:
    if not isinstance(raw, str):
        return Origin.OTHER
    return ORIGIN_ALIASES.get(raw.strip().upper(), Origin.OTHER)


class CatalogEntry(BaseModel):
    catalog_id: int | str | None = None
    name: str
    kind: ObjectKind
    origin: Origin
    sample_count: int


class HistoricalCatalog(BaseModel):
    start_time: str | None = None
    end_time: str | None = None
    entries: list[CatalogEntry] = []

    def classify(self, object_id: int) -> tuple[ObjectKind, Origin]:
        """Classification for a live object, matched by position in the catalog."""
        if 0 <= object_id < len(self.entries):
            entry = self.entries[object_id]
            return entry.kind, entry.origin
        return ObjectKind.JUNK, Origin.OTHER


def parse_catalog(data: Any) -> HistoricalCatalog:
    if not isinstance(data, dict) or not isinstance(data.get("trajectories"), list):
        raise CatalogError("catalog payload has no 'trajectories' list")

    entries: list[CatalogEntry] = []
    skipped = 0
    for traj in data["trajectories"]:
        if not isinstance(traj, dict):
            skipped += 1
            continue
        samples = traj.get("samples")
        if not isinstance(samples, list) or not samples:
            skipped += 1
            continue
        catalog_id = traj.get("id")
        entries.append(CatalogEntry(
            catalog_id=catalog_id,
            name=str(traj.get("name") or f"OBJ-{catalog_id}"),
            kind=normalize_kind(traj.get("type_field")),
            origin=normalize_origin(traj.get("country")),
            sample_count=len(samples),
        ))

    if skipped:
        logger.info("Skipped %d trajectories without samples", skipped)
    return HistoricalCatalog(
        start_time=data.get("start_time"),
        end_time=data.get("end_time"),
        entries=entries,
    )


async def fetch_catalog(
    settings: Settings | None = None,
    client: httpx.AsyncClient | None = None,
) -> HistoricalCatalog:
    """Download and normalise the historical dataset."""
    settings = settings or get_settings()
    owns_client = client is None
    client = client or httpx.AsyncClient(timeout=settings.connect_timeout, follow_redirects=True)
    try:
        resp = await client.get(settings.catalog_url)
        resp.raise_for_status()
        data = resp.json()
    except (httpx.HTTPError, ValueError) as exc:
        raise CatalogError(f"failed to load catalog from {settings.catalog_url}: {exc}") from exc
    finally:
        if owns_client:
            await client.aclose()

    catalog = parse_catalog(data)
    logger.info("Loaded historical catalog: %d objects (%s → %s)",
                len(catalog.entries), catalog.start_time, catalog.end_time)
    return catalog
