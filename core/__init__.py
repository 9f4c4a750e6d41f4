# =============================================================================
# core/__init__.py
# =============================================================================
# All Portland Maps logic lives here: the address-resolution pipeline
# (suggest -> geocode -> score -> filter) and the text reports.
#
# Nothing in this package imports FastMCP or Google ADK.  The only outside
# dependency is httpx for the outbound HTTP calls, so every module can be
# exercised from a test with an httpx.MockTransport and no network.
#
# Modules, leaf-first:
#   errors.py            exception taxonomy
#   config.py            Settings (endpoints, fallback point) from env vars
#   models.py            dataclasses for requests, suggestions, candidates
#   http.py              httpx client + JSON GET helper
#   suggest.py           suggestion lookup
#   geocoding.py         two-tier geocoder fallback chain
#   resolver.py          enrichment, bbox filter, resolve_address
#   property_reports.py  property / zoning / permit / tax text reports
# =============================================================================
