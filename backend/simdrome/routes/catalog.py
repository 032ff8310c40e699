"""Historical catalog endpoints: GET /api/catalog, POST /api/catalog/reload."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from simdrome.catalog import HistoricalCatalog, fetch_catalog
from simdrome.errors import CatalogError
from simdrome.session import StreamSessionController, get_controller

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/catalog")

# Last successfully loaded catalog
_catalog: HistoricalCatalog | None = None


@router.get("", response_model=HistoricalCatalog)
async def get_catalog():
    if _catalog is None:
        raise HTTPException(status_code=404, detail="catalog not loaded")
    return _catalog


@router.post("/reload", response_model=HistoricalCatalog)
async def reload_catalog(controller: StreamSessionController = Depends(get_controller)):
    """Fetch the historical dataset and use it to classify live objects."""
    global _catalog
    try:
        catalog = await fetch_catalog()
    except CatalogError as exc:
        logger.error("Catalog reload failed: %s", exc)
        raise HTTPException(status_code=502, detail=str(exc))
    _catalog = catalog
    controller.classifier = catalog
    return catalog
