# =============================================================================
# core/config.py  -  Endpoint configuration for the Portland Maps tools
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Collects every fixed value the tools depend on (endpoint URLs, the city
#   name, the fallback point) into one immutable Settings object.
#
# HOW TO OVERRIDE:
#   Every field can be overridden with an environment variable (or a line in
#   a .env file, which the entry points load with python-dotenv):
#
#     PORTLANDMAPS_BASE_URL       https://www.portlandmaps.com
#     PORTLANDMAPS_CITY           Portland
#     REGION_GEOCODER_URL         portlandmaps.com ArcGIS address locator
#     WORLD_GEOCODER_URL          ArcGIS World geocoder
#     GEOCODE_REGION_QUALIFIER    "Portland, OR"
#     FALLBACK_LONGITUDE          -122.6765
#     FALLBACK_LATITUDE           45.5231
#     SUGGEST_COUNT               10
#     DISTINGUISH_EMPTY_GEOCODE   false
#
# The Settings object is built once per call to load_settings() and passed
# down explicitly.  Nothing in core/ reads the environment on its own.
# =============================================================================

import os
from dataclasses import dataclass

from core.errors import ConfigurationError


DEFAULT_BASE_URL = "https://www.portlandmaps.com"
DEFAULT_REGION_GEOCODER_URL = (
    "https://www.portlandmaps.com/arcgis/rest/services/Public/"
    "Address_Geocoding_PDX/GeocodeServer/findAddressCandidates"
)
DEFAULT_WORLD_GEOCODER_URL = (
    "https://geocode.arcgis.com/arcgis/rest/services/World/"
    "GeocodeServer/findAddressCandidates"
)

# Pioneer Courthouse Square, downtown Portland.
DEFAULT_FALLBACK_POINT = (-122.6765, 45.5231)

# Upper bound on suggestions requested from the suggest API per call.
MAX_SUGGEST_COUNT = 25


@dataclass(frozen=True)
class Settings:
    """Static configuration shared (read-only) by every request."""

    base_url: str = DEFAULT_BASE_URL
    city: str = "Portland"
    region_geocoder_url: str = DEFAULT_REGION_GEOCODER_URL
    world_geocoder_url: str = DEFAULT_WORLD_GEOCODER_URL
    region_qualifier: str = "Portland, OR"
    fallback_longitude: float = DEFAULT_FALLBACK_POINT[0]
    fallback_latitude: float = DEFAULT_FALLBACK_POINT[1]
    suggest_count: int = 10
    # When True, "every geocoder answered but found nothing" is tagged
    # api_suggestion instead of fallback_default.
    distinguish_empty_geocode: bool = False

    @property
    def suggest_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/api/suggest/"

    @property
    def fallback_point(self) -> tuple[float, float]:
        return (self.fallback_longitude, self.fallback_latitude)


def _env_flag(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).lower() == "true"


def _env_number(name: str, default, convert):
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return convert(raw)
    except ValueError:
        raise ConfigurationError(
            f"{name} must be a number, got {raw!r}"
        ) from None


def load_settings() -> Settings:
    """Build a Settings object from environment variables.

    Unset variables keep the defaults declared on Settings.

    Raises:
        ConfigurationError: if a numeric variable cannot be parsed.
    """
    suggest_count = _env_number("SUGGEST_COUNT", 10, int)

    return Settings(
        base_url=os.environ.get("PORTLANDMAPS_BASE_URL", DEFAULT_BASE_URL),
        city=os.environ.get("PORTLANDMAPS_CITY", "Portland"),
        region_geocoder_url=os.environ.get(
            "REGION_GEOCODER_URL", DEFAULT_REGION_GEOCODER_URL
        ),
        world_geocoder_url=os.environ.get(
            "WORLD_GEOCODER_URL", DEFAULT_WORLD_GEOCODER_URL
        ),
        region_qualifier=os.environ.get("GEOCODE_REGION_QUALIFIER", "Portland, OR"),
        fallback_longitude=_env_number(
            "FALLBACK_LONGITUDE", DEFAULT_FALLBACK_POINT[0], float
        ),
        fallback_latitude=_env_number(
            "FALLBACK_LATITUDE", DEFAULT_FALLBACK_POINT[1], float
        ),
        suggest_count=max(1, min(suggest_count, MAX_SUGGEST_COUNT)),
        distinguish_empty_geocode=_env_flag("DISTINGUISH_EMPTY_GEOCODE"),
    )
