# =============================================================================
# core/resolver.py  -  Address-resolution pipeline (resolve_address)
# =============================================================================
#
# HOW IT WORKS (the flow):
#
#   query ──▶ lookup()                       core/suggest.py
#               │  N ranked RawSuggestions
#               ▼
#             enrich()  ── fan-out ──▶ GeocodingResolver.geocode()  x N
#               │        ◀─ fan-in ──   (asyncio.gather, waits for all)
#               │  N AddressCandidates, same order
#               ▼
#             filter_bbox()   (only when a bbox was given)
#               ▼
#             [:max_results]
#               ▼
#             ResolveResult
#
# SCORING:
#   The suggest API's ranking becomes a base score: 100 for the first entry,
#   5 less per position, never below 50.  When a geocoder matched, the final
#   score is the rounded mean of that base and the geocoder's own score.
#   When nothing matched, the base score stands on its own.
#
# PROVENANCE (AddressCandidate.source):
#   geocoder_match     a geocoder tier returned a candidate
#   fallback_default   no tier matched; coordinates are the fallback point
#   api_suggestion     only with DISTINGUISH_EMPTY_GEOCODE=true: every tier
#                      answered but none had a candidate
# =============================================================================

import asyncio
import logging
import math
from typing import Optional, Sequence

import httpx

from core.config import MAX_SUGGEST_COUNT, Settings, load_settings
from core.geocoding import GeocodingResolver
from core.http import open_client
from core.models import (
    SOURCE_API_SUGGESTION,
    SOURCE_FALLBACK_DEFAULT,
    SOURCE_GEOCODER_MATCH,
    AddressCandidate,
    RawSuggestion,
    ResolveRequest,
    ResolveResult,
)
from core.suggest import lookup

logger = logging.getLogger(__name__)

Bbox = tuple[float, float, float, float]


# =============================================================================
# Scoring
# =============================================================================
def base_score(position: int) -> int:
    """Score implied by the suggest API's ranking (0-based position)."""
    return max(100 - position * 5, 50)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def blend_score(base: int, match_score: float) -> int:
    """Mean of the rank-based score and the geocoder's score, kept in 0-100."""
    blended = _round_half_up((base + match_score) / 2)
    return max(0, min(100, blended))


# =============================================================================
# Candidate Enricher
# =============================================================================
async def _enrich_one(
    position: int,
    suggestion: RawSuggestion,
    geocoder: GeocodingResolver,
    settings: Settings,
    include_raw: bool,
) -> AddressCandidate:
    base = base_score(position)
    outcome = await geocoder.geocode(suggestion.label)

    if outcome.match is not None:
        score = blend_score(base, outcome.match.match_score)
        longitude, latitude = outcome.match.x, outcome.match.y
        source = SOURCE_GEOCODER_MATCH
    else:
        score = base
        longitude, latitude = settings.fallback_point
        if settings.distinguish_empty_geocode and not outcome.errored:
            source = SOURCE_API_SUGGESTION
        else:
            source = SOURCE_FALLBACK_DEFAULT

    return AddressCandidate(
        normalized_address=suggestion.label,
        score=score,
        longitude=longitude,
        latitude=latitude,
        source=source,
        property_id=suggestion.value,
        raw=dict(suggestion.record) if include_raw else None,
    )


async def enrich(
    suggestions: Sequence[RawSuggestion],
    include_raw: bool,
    geocoder: GeocodingResolver,
    settings: Settings,
) -> list[AddressCandidate]:
    """Geocode and score every suggestion concurrently, keeping input order."""
    tasks = [
        _enrich_one(i, suggestion, geocoder, settings, include_raw)
        for i, suggestion in enumerate(suggestions)
    ]
    # gather() returns results in task order, not completion order.
    return list(await asyncio.gather(*tasks))


# =============================================================================
# Bounding-Box Filter
# =============================================================================
def filter_bbox(
    candidates: Sequence[AddressCandidate],
    bbox: Optional[Bbox],
) -> list[AddressCandidate]:
    """Keep candidates inside [minLon, minLat, maxLon, maxLat] (inclusive)."""
    if bbox is None or len(bbox) != 4:
        return list(candidates)

    min_lon, min_lat, max_lon, max_lat = bbox
    return [
        c for c in candidates
        if min_lon <= c.longitude <= max_lon and min_lat <= c.latitude <= max_lat
    ]


# =============================================================================
# PUBLIC API: resolve_address
# =============================================================================
async def resolve_address(
    request: ResolveRequest,
    client: httpx.AsyncClient | None = None,
    settings: Settings | None = None,
) -> ResolveResult:
    """Run the full resolution pipeline for one request.

    Args:
        request: Validated request parameters.
        client: Optional httpx client.  When omitted, one is opened for this
            call and closed before returning.
        settings: Optional configuration; defaults to load_settings().

    Raises:
        TransportError: if the suggest API fails.  Geocoding failures never
            raise; they only lower a candidate's score and provenance.
    """
    settings = settings or load_settings()

    if client is None:
        async with open_client() as owned_client:
            return await resolve_address(request, owned_client, settings)

    count = min(max(request.max_results, settings.suggest_count), MAX_SUGGEST_COUNT)
    suggestions = await lookup(client, settings, request.query, count)

    # Without a bbox nothing is filtered, so anything past max_results would
    # be truncated anyway.  Skip geocoding it.
    if request.bbox is None:
        suggestions = suggestions[: request.max_results]

    geocoder = GeocodingResolver(client, settings)
    candidates = await enrich(suggestions, request.include_raw, geocoder, settings)

    filtered = filter_bbox(candidates, request.bbox)
    if request.bbox is not None:
        logger.info(
            "bbox kept %d of %d candidates for %r",
            len(filtered), len(candidates), request.query,
        )

    return ResolveResult(
        query=request.query,
        max_results=request.max_results,
        candidates=filtered[: request.max_results],
        bbox=request.bbox,
    )
