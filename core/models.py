# =============================================================================
# core/models.py  -  Data Models (the "nouns" of address resolution)
# =============================================================================
#
# These dataclasses define the shape of everything that flows through the
# resolve_address pipeline:
#
#   RawSuggestion   what the portlandmaps suggest API hands back
#   GeocodeMatch    one geocoder tier's best candidate
#   AddressCandidate  the caller-facing, enriched result
#   ResolveRequest / ResolveResult  one per tool call, discarded afterwards
#
# Nothing here is persisted.  Every object is built fresh for a request.
#
# SERIALIZATION:
#   The tool layer returns plain dicts over MCP.  to_dict() drops optional
#   fields that are absent (property_id, taxlot_id, raw, bbox) instead of
#   emitting nulls, so the agent only sees keys that carry information.
# =============================================================================

from dataclasses import dataclass, field
from typing import Any, Optional

from core.errors import ValidationError


# -----------------------------------------------------------------------------
# Provenance tags - where a candidate's coordinate came from
# -----------------------------------------------------------------------------
SOURCE_API_SUGGESTION = "api_suggestion"
SOURCE_GEOCODER_MATCH = "geocoder_match"
SOURCE_FALLBACK_DEFAULT = "fallback_default"

SOURCES = frozenset(
    {SOURCE_API_SUGGESTION, SOURCE_GEOCODER_MATCH, SOURCE_FALLBACK_DEFAULT}
)

MIN_QUERY_LENGTH = 3
MIN_RESULTS = 1
MAX_RESULTS = 25
DEFAULT_MAX_RESULTS = 10


# -----------------------------------------------------------------------------
# RawSuggestion - one entry of the suggest API's "candidates" array
# -----------------------------------------------------------------------------
# The API's ordering matters: earlier entries are more relevant, and the
# enricher turns that position into a base score.
# -----------------------------------------------------------------------------
@dataclass
class RawSuggestion:
    """A single address suggestion, exactly as the suggest API returned it."""

    label: str                          # "1234 SW MAIN ST"
    type: str = ""                      # e.g. "address", "intersection"
    value: Optional[str] = None         # opaque property identifier
    city: Optional[str] = None
    county: Optional[str] = None
    record: dict[str, Any] = field(default_factory=dict, repr=False)
    # record keeps the untouched upstream dict for include_raw.

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "RawSuggestion":
        value = record.get("value")
        if value is not None and value != "":
            value = str(value)
        else:
            value = None
        return cls(
            label=str(record.get("label") or ""),
            type=str(record.get("type") or ""),
            value=value,
            city=record.get("city"),
            county=record.get("county"),
            record=dict(record),
        )


# -----------------------------------------------------------------------------
# GeocodeMatch - a geocoder's best guess for one address string
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class GeocodeMatch:
    """The first candidate a geocoder tier returned."""

    x: float                            # longitude (WGS84)
    y: float                            # latitude (WGS84)
    match_score: float                  # geocoder's own 0-100 quality score
    tier: str = ""                      # "region" or "world"


@dataclass(frozen=True)
class GeocodeOutcome:
    """Result of running the full geocoder fallback chain.

    match is None when no tier produced a candidate.  errored records whether
    any tier failed outright (as opposed to answering with zero candidates).
    """

    match: Optional[GeocodeMatch] = None
    errored: bool = False


# -----------------------------------------------------------------------------
# AddressCandidate - the caller-facing unit
# -----------------------------------------------------------------------------
# longitude/latitude are ALWAYS populated.  How much to trust them is what
# the source tag is for.
# -----------------------------------------------------------------------------
@dataclass
class AddressCandidate:
    """A resolved address with coordinates, confidence and provenance."""

    normalized_address: str
    score: int                          # 0-100
    longitude: float
    latitude: float
    source: str                         # one of SOURCES
    property_id: Optional[str] = None
    taxlot_id: Optional[str] = None     # not provided by the current source
    raw: Optional[dict[str, Any]] = None

    def __post_init__(self):
        if self.source not in SOURCES:
            raise ValidationError(f"unknown candidate source: {self.source!r}")

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"normalized_address": self.normalized_address}
        if self.property_id is not None:
            result["property_id"] = self.property_id
        if self.taxlot_id is not None:
            result["taxlot_id"] = self.taxlot_id
        result["score"] = self.score
        result["longitude"] = self.longitude
        result["latitude"] = self.latitude
        result["source"] = self.source
        if self.raw is not None:
            result["raw"] = self.raw
        return result


# -----------------------------------------------------------------------------
# ResolveRequest - validated input to resolve_address
# -----------------------------------------------------------------------------
# FastMCP already enforces these limits from the tool signature.  The checks
# are repeated here so core/ can be called directly with the same guarantees.
# -----------------------------------------------------------------------------
@dataclass
class ResolveRequest:
    """One resolve_address call's parameters."""

    query: str
    max_results: int = DEFAULT_MAX_RESULTS
    bbox: Optional[tuple[float, float, float, float]] = None
    include_raw: bool = False

    def __post_init__(self):
        if not isinstance(self.query, str) or len(self.query.strip()) < MIN_QUERY_LENGTH:
            raise ValidationError(
                f"query must be at least {MIN_QUERY_LENGTH} characters"
            )

        if isinstance(self.max_results, bool) or not isinstance(self.max_results, int):
            raise ValidationError("max_results must be an integer")
        if not MIN_RESULTS <= self.max_results <= MAX_RESULTS:
            raise ValidationError(
                f"max_results must be between {MIN_RESULTS} and {MAX_RESULTS}"
            )

        if self.bbox is not None:
            self.bbox = _validate_bbox(self.bbox)


def _validate_bbox(bbox) -> tuple[float, float, float, float]:
    try:
        values = [float(v) for v in bbox]
    except (TypeError, ValueError):
        raise ValidationError("bbox must be four numbers") from None

    if len(values) != 4:
        raise ValidationError(
            "bbox must be [minLon, minLat, maxLon, maxLat] (exactly 4 numbers)"
        )

    min_lon, min_lat, max_lon, max_lat = values
    if min_lon > max_lon or min_lat > max_lat:
        raise ValidationError("bbox minimums must not exceed maximums")
    return (min_lon, min_lat, max_lon, max_lat)


# -----------------------------------------------------------------------------
# ResolveResult - what the resolve_address tool returns
# -----------------------------------------------------------------------------
@dataclass
class ResolveResult:
    """Echo of the request plus the ordered candidate list."""

    query: str
    max_results: int
    candidates: list[AddressCandidate] = field(default_factory=list)
    bbox: Optional[tuple[float, float, float, float]] = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "query": self.query,
            "max_results": self.max_results,
        }
        if self.bbox is not None:
            result["bbox"] = list(self.bbox)
        result["candidates"] = [c.to_dict() for c in self.candidates]
        return result
