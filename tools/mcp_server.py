# =============================================================================
# tools/mcp_server.py  -  FastMCP Tool Server (ALL tools in one place)
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Defines every MCP tool an assistant can call to look up Portland property
#   records.  Each tool is a thin wrapper around a core/ coroutine: it checks
#   the arguments, calls core/, logs the call, and shapes the result.
#
# HOW IT WORKS (the flow):
#   1. The assistant decides it needs information (e.g., a zoning lookup)
#   2. It calls a tool by name via MCP (e.g., "get_zoning_info")
#   3. FastMCP validates the arguments against the signature below
#   4. The function awaits core/ logic and returns a dict or text
#
# TOOLS:
#   - resolve_address       address text -> ranked, geocoded candidates (JSON)
#   - get_property_info     overview + links for the top matches
#   - get_zoning_info       zoning links for the top matches
#   - get_permit_history    permit links for the best match
#   - get_tax_info          assessment & taxation links for the best match
#   - get_property_details  links for a known property id
#   All tools are read-only and hold no state between calls.
#
# ERRORS:
#   A failing suggest API is reported as a ToolError, which FastMCP turns
#   into an error result (isError=true) instead of a crash.  Geocoding
#   failures never surface here: they only lower a candidate's trust.
#
# RUNNING THIS SERVER:
#   a) Standalone:            python -m tools.mcp_server
#   b) Installed script:      portlandmaps-mcp
#   c) From the demo agent:   spawned over stdio by agent/portland_agent.py
# =============================================================================

import json
import logging
import sys
from typing import Annotated, Optional

from dotenv import load_dotenv
from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from pydantic import Field

from core.config import load_settings
from core.errors import PortlandMapsError
from core import property_reports
from core.models import (
    DEFAULT_MAX_RESULTS,
    MAX_RESULTS,
    MIN_QUERY_LENGTH,
    MIN_RESULTS,
    SOURCE_GEOCODER_MATCH,
    ResolveRequest,
)
from core.resolver import resolve_address as run_resolve_address

load_dotenv()

# =============================================================================
# Logging Setup
# =============================================================================
# Logs go to STDERR: STDOUT is the MCP transport, and anything else written
# there would corrupt the JSON-RPC stream.
#
# Color codes:
#   CYAN    incoming tool calls
#   GREEN   responses
#   YELLOW  intermediate status
# =============================================================================

_CYAN = "\033[36m"
_GREEN = "\033[32m"
_YELLOW = "\033[33m"
_RESET = "\033[0m"

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [MCP] %(message)s",
    datefmt="%H:%M:%S",
    stream=sys.stderr,
)


def _log_request(tool_name: str, **params) -> None:
    """Log an incoming tool call with its parameters in CYAN."""
    param_str = ", ".join(f"{k}={v!r}" for k, v in params.items())
    logging.info(f"{_CYAN}{tool_name} called with: {param_str}{_RESET}")


def _log_status(message: str) -> None:
    """Log an intermediate status message in YELLOW."""
    logging.info(f"{_YELLOW}  → {message}{_RESET}")


def _log_response(tool_name: str, result):
    """Log the tool response in GREEN, then return it."""
    if isinstance(result, dict):
        shown = json.dumps(result, separators=(",", ":"))
    else:
        shown = f"{len(result)} chars of text"
    logging.info(f"{_GREEN}  ← {tool_name} response: {shown}{_RESET}")
    return result


def _fail(tool_name: str, error: Exception) -> ToolError:
    logging.error(f"{tool_name} failed: {error}")
    return ToolError(str(error))


# =============================================================================
# Create the FastMCP server instance
# =============================================================================
mcp = FastMCP(
    "portlandmaps-mcp",
    instructions=(
        "Unofficial access to City of Portland property records from "
        "portlandmaps.com. Use resolve_address to turn an address into "
        "coordinates and a property_id; use the get_* tools for zoning, "
        "permits, taxes and property overviews. Always point users to "
        "https://www.portlandmaps.com for official information."
    ),
)


# =============================================================================
# TOOL 1: resolve_address
# =============================================================================
# The only tool that returns structured data.  Everything the pipeline does
# lives in core/resolver.py; this wrapper only validates and serializes.
# =============================================================================
@mcp.tool()
async def resolve_address(
    query: Annotated[str, Field(min_length=MIN_QUERY_LENGTH, description="Address or partial query string (minimum 3 characters)")],
    max_results: Annotated[int, Field(ge=MIN_RESULTS, le=MAX_RESULTS, description="Maximum number of address candidates to return (1-25, default 10)")] = DEFAULT_MAX_RESULTS,
    bbox: Optional[Annotated[list[float], Field(min_length=4, max_length=4, description="Optional bounding box filter as [minLon, minLat, maxLon, maxLat] in WGS84 coordinates")]] = None,
    include_raw: Annotated[bool, Field(description="Include raw API response data in results")] = False,
) -> dict:
    """Resolve a human-entered address or partial query into normalized address
    candidates with stable identifiers (property_id/taxlot_id) and a point
    geometry for downstream queries.

    WHEN TO CALL THIS: Whenever you need coordinates or a property_id for an
    address, or need to disambiguate a partial address.

    Args:
        query: Address text, e.g. "1234 SW Main St".
        max_results: How many candidates to return (1-25).
        bbox: Optional [minLon, minLat, maxLon, maxLat]; candidates outside
              it are dropped before max_results is applied.
        include_raw: Attach the untouched suggest API record to each candidate.

    Returns:
        A dict with:
          - query, max_results (and bbox if given): echoed back
          - candidates: best first, each with normalized_address,
            property_id (if known), score (0-100), longitude, latitude and
            source ("geocoder_match", "fallback_default" or "api_suggestion").
            fallback_default coordinates are a city-center placeholder.
    """
    _log_request("resolve_address", query=query, max_results=max_results,
                 bbox=bbox, include_raw=include_raw)

    try:
        request = ResolveRequest(
            query=query,
            max_results=max_results,
            bbox=tuple(bbox) if bbox is not None else None,
            include_raw=include_raw,
        )
        result = await run_resolve_address(request, settings=load_settings())
    except PortlandMapsError as e:
        raise _fail("resolve_address", e) from e

    geocoded = sum(1 for c in result.candidates if c.source == SOURCE_GEOCODER_MATCH)
    _log_status(f"{len(result.candidates)} candidates, {geocoded} geocoded")
    return _log_response("resolve_address", result.to_dict())


# =============================================================================
# TOOLS 2-5: address-based text reports
# =============================================================================
@mcp.tool()
async def get_property_info(
    address: Annotated[str, Field(description="The property address to look up")],
) -> str:
    """Get comprehensive property information including details, zoning, and
    available resources. Returns links to view full property details on
    portlandmaps.com.

    IMPORTANT: This is unofficial - always direct users to
    https://www.portlandmaps.com for official information.
    """
    _log_request("get_property_info", address=address)
    try:
        text = await property_reports.get_property_info(address, settings=load_settings())
    except PortlandMapsError as e:
        raise _fail("get_property_info", e) from e
    return _log_response("get_property_info", text)


@mcp.tool()
async def get_zoning_info(
    address: Annotated[str, Field(description="The address to get zoning information for")],
) -> str:
    """Get zoning information for a property or address. Returns zoning
    designations and links to official zoning maps and regulations.
    Includes disclaimer about unofficial use.
    """
    _log_request("get_zoning_info", address=address)
    try:
        text = await property_reports.get_zoning_info(address, settings=load_settings())
    except PortlandMapsError as e:
        raise _fail("get_zoning_info", e) from e
    return _log_response("get_zoning_info", text)


@mcp.tool()
async def get_permit_history(
    address: Annotated[str, Field(description="The address to get permit history for")],
) -> str:
    """Get permit history information for a property. Returns information
    about how to access building permits, land use reviews, and
    environmental reviews on portlandmaps.com.
    """
    _log_request("get_permit_history", address=address)
    try:
        text = await property_reports.get_permit_history(address, settings=load_settings())
    except PortlandMapsError as e:
        raise _fail("get_permit_history", e) from e
    return _log_response("get_permit_history", text)


@mcp.tool()
async def get_tax_info(
    address: Annotated[str, Field(description="The address to get tax information for")],
) -> str:
    """Get property tax and assessment information. Returns information
    about how to access assessed value, real market value, and tax details
    on portlandmaps.com.
    """
    _log_request("get_tax_info", address=address)
    try:
        text = await property_reports.get_tax_info(address, settings=load_settings())
    except PortlandMapsError as e:
        raise _fail("get_tax_info", e) from e
    return _log_response("get_tax_info", text)


# =============================================================================
# TOOL 6: get_property_details
# =============================================================================
# Takes a property_id (from resolve_address) instead of an address, so it
# makes no outbound call at all.
# =============================================================================
@mcp.tool()
def get_property_details(
    property_id: Annotated[str, Field(min_length=1, description="Property ID, e.g. the property_id returned by resolve_address")],
) -> str:
    """Get links to the official detail page and OpenData service for a
    known property ID.

    WHEN TO CALL THIS: After resolve_address returned a property_id and the
    user wants the official record for that specific property.
    """
    _log_request("get_property_details", property_id=property_id)
    try:
        text = property_reports.get_property_details(property_id, settings=load_settings())
    except PortlandMapsError as e:
        raise _fail("get_property_details", e) from e
    return _log_response("get_property_details", text)


# =============================================================================
# Server entry point
# =============================================================================
def main() -> None:
    logging.info("Portland Maps MCP Server running on stdio")
    logging.info("DISCLAIMER: This is an unofficial integration with portlandmaps.com")
    logging.info("For official information, visit https://www.portlandmaps.com")
    mcp.run()


if __name__ == "__main__":
    main()
