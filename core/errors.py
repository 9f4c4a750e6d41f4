# =============================================================================
# core/errors.py  -  Error taxonomy for the Portland Maps tools
# =============================================================================
#
# Only these ever reach a caller of resolve_address:
#   - TransportError     the suggestion service failed (nothing to enrich)
#   - ValidationError    the request itself was malformed
#   - ConfigurationError an environment override could not be parsed
#
# GeocodeUnavailable is raised by a single geocoder tier and is always caught
# inside core/geocoding.py.  A candidate whose geocoding failed still comes
# back, just with the fallback point and a lower-trust provenance tag.
# =============================================================================


class PortlandMapsError(Exception):
    """Base class for every error raised by this package."""


class TransportError(PortlandMapsError):
    """An outbound HTTP call failed: network error, non-2xx status or a body
    that could not be decoded as JSON."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class GeocodeUnavailable(PortlandMapsError):
    """One geocoder tier could not produce a usable candidate."""


class ValidationError(PortlandMapsError, ValueError):
    """A ResolveRequest violated its input constraints."""


class ConfigurationError(PortlandMapsError):
    """An environment variable held a value that could not be parsed."""
