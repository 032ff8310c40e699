"""Coordinate transforms — ECEF kilometres to display space plus derived altitude."""

from __future__ import annotations

import bisect
import logging
import math
from dataclasses import dataclass

from simdrome.errors import GeodeticProjectionError
from simdrome.models import AltitudeBin, ObjectKind, Vector3

logger = logging.getLogger(__name__)

# WGS-84
EARTH_RADIUS_KM = 6378.137
EARTH_FLATTENING = 1 / 298.257223563
EARTH_E2 = EARTH_FLATTENING * (2 - EARTH_FLATTENING)

GEODETIC_TOLERANCE_RAD = 1e-12
GEODETIC_MAX_ITERATIONS = 25
# Below this the projection is undefined (centre of the Earth)
MIN_RADIUS_KM = 1e-9

DISPLAY_SCALE = {"m": 1000.0, "km": 1.0}

# Lower edges of each altitude bin (km); last bin is open-ended
_BIN_EDGES_KM = [200.0, 400.0, 800.0, 1200.0, 2000.0]
_BINS = list(AltitudeBin)

ALTITUDE_COLORS: dict[AltitudeBin, str] = {
    AltitudeBin.BIN_0_200: "#ff4d4d",
    AltitudeBin.BIN_200_400: "#ff9f40",
    AltitudeBin.BIN_400_800: "#ffe14d",
    AltitudeBin.BIN_800_1200: "#5cd65c",
    AltitudeBin.BIN_1200_2000: "#4da6ff",
    AltitudeBin.BIN_2000_PLUS: "#b366ff",
}

POINT_SIZES: dict[ObjectKind, int] = {
    ObjectKind.ACTIVE: 6,
    ObjectKind.JUNK: 3,
}


@dataclass(frozen=True)
class DisplayPosition:
    position: Vector3
    altitude_km: float


def magnitude(v: Vector3) -> float:
    return math.sqrt(v[0] * v[0] + v[1] * v[1] + v[2] * v[2])


def ecef_to_geodetic(position_km: Vector3) -> tuple[float, float, float]:
    """Project an Earth-fixed Cartesian position onto the WGS-84 ellipsoid.

    Returns (lat_deg, lon_deg, alt_km). Latitude is solved by fixed-point
    iteration on phi = atan2(z + e^2 N sin(phi), p).

    Raises GeodeticProjectionError for non-finite input, a (near-)zero
    vector, or when the iteration fails to converge.
    """
    x, y, z = position_km
    if not all(math.isfinite(c) for c in (x, y, z)):
        raise GeodeticProjectionError(f"non-finite position {position_km!r}")
    if magnitude(position_km) < MIN_RADIUS_KM:
        raise GeodeticProjectionError("position is at the centre of the reference body")

    p = math.hypot(x, y)
    lon = math.atan2(y, x)
    lat = math.atan2(z, p * (1 - EARTH_E2))

    for _ in range(GEODETIC_MAX_ITERATIONS):
        sin_lat = math.sin(lat)
        n = EARTH_RADIUS_KM / math.sqrt(1 - EARTH_E2 * sin_lat * sin_lat)
        next_lat = math.atan2(z + EARTH_E2 * n * sin_lat, p)
        if abs(next_lat - lat) < GEODETIC_TOLERANCE_RAD:
            lat = next_lat
            break
        lat = next_lat
    else:
        raise GeodeticProjectionError(f"latitude did not converge for {position_km!r}")

    sin_lat = math.sin(lat)
    n = EARTH_RADIUS_KM / math.sqrt(1 - EARTH_E2 * sin_lat * sin_lat)
    alt = p * math.cos(lat) + (z + EARTH_E2 * n * sin_lat) * sin_lat - n
    if not math.isfinite(alt):
        raise GeodeticProjectionError(f"altitude is not finite for {position_km!r}")
    return math.degrees(lat), math.degrees(lon), alt


def altitude_km(position_km: Vector3) -> float:
    """Geodetic altitude, or |r| - R when the projection fails."""
    try:
        return ecef_to_geodetic(position_km)[2]
    except GeodeticProjectionError as exc:
        logger.debug("Geodetic projection failed (%s), using spherical altitude", exc)
        return magnitude(position_km) - EARTH_RADIUS_KM


def to_display(position_km: Vector3, unit: str = "m") -> DisplayPosition:
    scale = DISPLAY_SCALE[unit]
    x, y, z = position_km
    return DisplayPosition(
        position=(x * scale, y * scale, z * scale),
        altitude_km=altitude_km(position_km),
    )


def altitude_bin(alt_km: float) -> AltitudeBin:
    """Bin lookup; lower edge inclusive. Negative altitudes fall in the lowest bin."""
    if math.isnan(alt_km):
        return AltitudeBin.BIN_0_200
    return _BINS[bisect.bisect_right(_BIN_EDGES_KM, alt_km)]


def altitude_color(bin_: AltitudeBin) -> str:
    return ALTITUDE_COLORS[bin_]


def point_size(kind: ObjectKind) -> int:
    return POINT_SIZES[kind]
