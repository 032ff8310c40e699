"""Capacity-bounded visibility selection over the reconciliation cache."""

from __future__ import annotations

import logging

from simdrome.models import FilterCriteria, VisibilityCounts
from simdrome.reconciliation import ObjectReconciliationCache, TrackedObject

logger = logging.getLogger(__name__)


def is_eligible(obj: TrackedObject, criteria: FilterCriteria) -> bool:
    return (
        obj.kind in criteria.kinds
        and obj.origin in criteria.origins
        and obj.altitude_bin in criteria.altitude_bins
    )


class VisibilityFilterEngine:
    """Marks the first `capacity` eligible objects (in first-seen order) visible.

    Walking the cache in insertion order keeps the chosen subset stable:
    toggling a filter off and on again at the same capacity brings back the
    same objects rather than a reshuffled set.
    """

    def __init__(self, cache: ObjectReconciliationCache):
        self.cache = cache

    def recompute(self, criteria: FilterCriteria, capacity: int) -> VisibilityCounts:
        if capacity < 0:
            raise ValueError(f"capacity must be >= 0, got {capacity}")

        visible = 0
        eligible = 0
        for obj in self.cache.objects():
            if is_eligible(obj, criteria):
                eligible += 1
                if visible < capacity:
                    obj.visible = True
                    visible += 1
                    continue
            obj.visible = False

        logger.debug("Visibility recomputed: %d visible / %d eligible / %d total",
                     visible, eligible, len(self.cache))
        return VisibilityCounts(visible_count=visible, eligible_count=eligible)
