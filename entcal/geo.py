"""Great-circle distance and address geocoding."""

from __future__ import annotations

import logging
import math
from typing import Optional

import httpx

logger = logging.getLogger(__name__)

EARTH_RADIUS_MILES = 3959
NOMINATIM_URL = "https://nominatim.openstreetmap.org/search"
USER_AGENT = "entcal/0.1 (+https://entertainmentcal.com)"


def distance_miles(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Haversine distance in miles between two decimal-degree coordinates.

    Non-finite inputs produce a non-finite result rather than an error;
    callers decide how to treat it.
    """
    if not all(math.isfinite(v) for v in (lat1, lon1, lat2, lon2)):
        # math.sin raises on infinities
        return math.nan
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    # Rounding can push ``a`` a hair past 1 for antipodal points.
    a = min(a, 1.0)
    return EARTH_RADIUS_MILES * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def geocode_address(
    address: str,
    client: Optional[httpx.Client] = None,
) -> tuple[float, float] | None:
    """Resolve a free-form address to ``(latitude, longitude)``.

    Returns None when the lookup fails or finds nothing.
    """
    address = address.strip()
    if not address:
        return None

    owns_client = client is None
    if owns_client:
        client = httpx.Client(timeout=20, follow_redirects=True)
    try:
        resp = client.get(
            NOMINATIM_URL,
            params={"q": address, "format": "json", "limit": 1},
            headers={"User-Agent": USER_AGENT},
        )
        resp.raise_for_status()
        results = resp.json()
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning("Geocoding failed for %r: %s", address, exc)
        return None
    finally:
        if owns_client:
            client.close()

    if not results:
        logger.info("No geocoding match for %r", address)
        return None

    lat, lon = float(results[0]["lat"]), float(results[0]["lon"])
    logger.debug("Geocoded %r -> (%.5f, %.5f)", address, lat, lon)
    return lat, lon
