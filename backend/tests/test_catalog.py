import asyncio

import httpx
import pytest

from simdrome.catalog import fetch_catalog, normalize_kind, normalize_origin, parse_catalog
from simdrome.config import Settings
from simdrome.errors import CatalogError
from simdrome.models import ObjectKind, Origin

SETTINGS = Settings(backend_url="http://sim.test", catalog_path="/api/v1/satellites")

SAMPLE = {"t": "2025-01-01T00:00:00Z", "lat": 10.0, "lon": 20.0, "alt": 550000.0}

PAYLOAD = {
    "start_time": "2025-01-01T00:00:00Z",
    "end_time": "2025-01-01T02:00:00Z",
    "trajectories": [
        {"id": 20580, "name": "HST", "type_field": "Active", "country": "United States", "samples": [SAMPLE]},
        {"id": 1, "name": "empty", "type_field": "Active", "country": "France", "samples": []},
        {"id": 22675, "name": "COSMOS 2251 DEB", "type_field": "Junk", "country": "Soviet Union",
         "samples": [SAMPLE, SAMPLE]},
        {"id": 7, "type_field": "PAYLOAD", "country": "JPN", "samples": [SAMPLE]},
    ],
}


@pytest.mark.parametrize("raw, expected", [
    ("Active", ObjectKind.ACTIVE),
    ("PAYLOAD", ObjectKind.ACTIVE),
    (" payload ", ObjectKind.ACTIVE),
    ("Junk", ObjectKind.JUNK),
    ("DEBRIS", ObjectKind.JUNK),
    ("ROCKET BODY", ObjectKind.JUNK),
    (None, ObjectKind.JUNK),
])
def test_normalize_kind(raw, expected):
    assert normalize_kind(raw) is expected


@pytest.mark.parametrize("raw, expected", [
    ("United States", Origin.UNITED_STATES),
    ("US", Origin.UNITED_STATES),
    ("gbr", Origin.UNITED_KINGDOM),
    ("FR", Origin.FRANCE),
    ("Japan", Origin.JAPAN),
    ("ITA", Origin.ITALY),
    ("CIS", Origin.SOVIET_UNION),
    ("PRC", Origin.OTHER),
    ("", Origin.OTHER),
    (42, Origin.OTHER),
])
def test_normalize_origin(raw, expected):
    assert normalize_origin(raw) is expected


def test_parse_catalog_skips_trajectories_without_samples():
    catalog = parse_catalog(PAYLOAD)
    assert [e.name for e in catalog.entries] == ["HST", "COSMOS 2251 DEB", "OBJ-7"]
    assert catalog.entries[1].sample_count == 2
    assert catalog.start_time == "2025-01-01T00:00:00Z"


def test_parse_catalog_skips_non_list_samples():
    catalog = parse_catalog({"trajectories": [{"id": 1, "samples": 5}, {"id": 2, "samples": "abc"}]})
    assert catalog.entries == []


def test_catalog_classifies_by_position():
    catalog = parse_catalog(PAYLOAD)
    assert catalog.classify(0) == (ObjectKind.ACTIVE, Origin.UNITED_STATES)
    assert catalog.classify(1) == (ObjectKind.JUNK, Origin.SOVIET_UNION)
    assert catalog.classify(2) == (ObjectKind.ACTIVE, Origin.JAPAN)
    assert catalog.classify(3) == (ObjectKind.JUNK, Origin.OTHER)


@pytest.mark.parametrize("payload", [None, [], {"trajectories": "x"}, {}])
def test_parse_catalog_rejects_bad_payload(payload):
    with pytest.raises(CatalogError):
        parse_catalog(payload)


def test_fetch_catalog():
    def handler(request):
        assert str(request.url) == "http://sim.test/api/v1/satellites"
        return httpx.Response(200, json=PAYLOAD)

    async def scenario():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await fetch_catalog(SETTINGS, client=client)

    catalog = asyncio.run(scenario())
    assert len(catalog.entries) == 3


@pytest.mark.parametrize("response", [
    httpx.Response(500),
    httpx.Response(200, content=b"<html>"),
])
def test_fetch_catalog_failures(response):
    async def scenario():
        transport = httpx.MockTransport(lambda request: response)
        async with httpx.AsyncClient(transport=transport) as client:
            return await fetch_catalog(SETTINGS, client=client)

    with pytest.raises(CatalogError):
        asyncio.run(scenario())
