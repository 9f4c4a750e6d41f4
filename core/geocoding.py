# =============================================================================
# core/geocoding.py  -  Geocoding Resolver (two-tier fallback chain)
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Turns an address label into a precise longitude/latitude plus the
#   geocoder's own match score.
#
# THE FALLBACK CHAIN:
#   1. Region geocoder  (portlandmaps.com ArcGIS locator, Portland-specific)
#   2. World geocoder   (ArcGIS World GeocodeServer, general purpose)
#   3. Nothing          (caller substitutes the fallback point)
#
#   A tier "fails" when the HTTP call errors, the status is non-2xx, the body
#   is not the expected JSON, or the candidate list is empty.  Any failure
#   moves on to the next tier.  The world tier is only called when the
#   region tier did not match.
#
# BOTH TIERS SPEAK THE SAME SHAPE:
#   {"candidates": [{"location": {"x": ..., "y": ...}, "score": ...}]}
#   so a single extraction routine (_first_match) handles either response.
#   Only the URL and the query parameters differ between tiers.
#
# FAILURE IS NEVER FATAL:
#   geocode() never raises.  Every exception from a tier is logged and
#   swallowed here, which is what lets the enricher run all candidates
#   concurrently without one bad call poisoning the others.
# =============================================================================

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

import httpx

from core.config import Settings
from core.errors import GeocodeUnavailable, TransportError
from core.http import get_json
from core.models import GeocodeMatch, GeocodeOutcome

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Tier definitions
# -----------------------------------------------------------------------------
def _region_params(address: str) -> dict[str, Any]:
    return {
        "SingleLine": address,
        "outSR": 4326,
        "f": "json",
        "maxLocations": 1,
    }


def _world_params(address: str) -> dict[str, Any]:
    return {
        "singleLine": address,
        "outFields": "Match_addr",
        "f": "json",
        "maxLocations": 1,
    }


@dataclass(frozen=True)
class GeocoderTier:
    """One geocoding service in the fallback chain."""

    name: str
    url: str
    build_params: Callable[[str], dict[str, Any]]


def default_tiers(settings: Settings) -> list[GeocoderTier]:
    """The region geocoder followed by the world geocoder."""
    return [
        GeocoderTier("region", settings.region_geocoder_url, _region_params),
        GeocoderTier("world", settings.world_geocoder_url, _world_params),
    ]


# -----------------------------------------------------------------------------
# Shared extraction
# -----------------------------------------------------------------------------
def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _first_match(data: Any, tier: str) -> Optional[GeocodeMatch]:
    """Pull the best candidate out of a findAddressCandidates response.

    Returns None when the candidate list is empty or the first candidate
    has no usable location.  Raises GeocodeUnavailable when the body is not
    a findAddressCandidates response at all (e.g. an ArcGIS error object).
    """
    if not isinstance(data, dict):
        raise GeocodeUnavailable(f"{tier} geocoder returned a non-object body")
    if "error" in data and "candidates" not in data:
        raise GeocodeUnavailable(f"{tier} geocoder error: {data['error']}")

    candidates = data.get("candidates") or []
    if not isinstance(candidates, list) or not candidates:
        return None

    best = candidates[0]
    if not isinstance(best, dict):
        return None
    location = best.get("location") or {}
    x = _as_float(location.get("x"))
    y = _as_float(location.get("y"))
    if x is None or y is None:
        return None

    score = _as_float(best.get("score"))
    return GeocodeMatch(x=x, y=y, match_score=score or 0.0, tier=tier)


# -----------------------------------------------------------------------------
# GeocodingResolver
# -----------------------------------------------------------------------------
class GeocodingResolver:
    """Walks the geocoder tiers in order and returns the first match.

    Holds no per-request state: one instance can geocode many addresses
    concurrently on the same event loop.
    """

    def __init__(self, client: httpx.AsyncClient, settings: Settings):
        self._client = client
        self._settings = settings
        self._tiers = default_tiers(settings)

    def qualify(self, address: str) -> str:
        """Append the region qualifier ("Portland, OR") to an address."""
        qualifier = self._settings.region_qualifier
        if not qualifier:
            return address
        return f"{address}, {qualifier}"

    async def _query_tier(self, tier: GeocoderTier, address: str) -> Optional[GeocodeMatch]:
        try:
            data = await get_json(self._client, tier.url, tier.build_params(address))
        except TransportError as e:
            raise GeocodeUnavailable(f"{tier.name} geocoder unavailable: {e}") from e
        return _first_match(data, tier.name)

    async def geocode(self, address: str) -> GeocodeOutcome:
        """Geocode an address label through the fallback chain.

        Never raises.  Returns an outcome whose match is None when every
        tier failed or came back empty.
        """
        qualified = self.qualify(address)
        errored = False

        for tier in self._tiers:
            try:
                match = await self._query_tier(tier, qualified)
            except Exception as e:
                errored = True
                logger.warning("Geocoding %r via %s tier failed: %s", address, tier.name, e)
                continue

            if match is not None:
                logger.debug(
                    "Geocoded %r via %s tier: (%s, %s) score=%s",
                    address, tier.name, match.x, match.y, match.match_score,
                )
                return GeocodeOutcome(match=match, errored=errored)

            logger.info("No %s geocoder candidates for %r", tier.name, address)

        return GeocodeOutcome(match=None, errored=errored)
