# =============================================================================
# core/property_reports.py  -  Property / zoning / permit / tax summaries
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Builds the human-readable text answers for the non-geocoding tools.
#   Each report is the same recipe:
#     1. Look the address up with the suggest API
#     2. Pick the best match (or the top few)
#     3. Fill in a text template with links to the official detail pages
#     4. Append the disclaimer
#
# WHY LINKS AND NOT DATA?
#   portlandmaps.com only offers owner, assessment and permit details on its
#   HTML detail pages.  This project does not scrape those pages, so the
#   reports point the user at the right page and tab instead.
#
# The formatting helpers (format_*) are pure functions over a list of
# RawSuggestion and can be tested without any HTTP.
# =============================================================================

from urllib.parse import quote

import httpx

from core.config import Settings, load_settings
from core.http import open_client
from core.models import RawSuggestion
from core.suggest import lookup


DISCLAIMER = (
    "\n\n---\n"
    "**Disclaimer:** This is an unofficial use of Portland Maps data. "
    "For official information, please visit https://www.portlandmaps.com. "
    "Consider supporting the City of Portland's mapping services.\n"
    "Data provided by the City of Portland - https://www.portlandmaps.com"
)

ZONING_MAP_URL = "https://www.portlandmaps.com/bps/zoning/"
ZONING_CODE_URL = "https://www.portland.gov/bps/zoning"
PERMIT_SEARCH_URL = "https://www.portlandmaps.com/permits/"
TAX_ASSESSMENT_URL = "https://multco.us/assessment-taxation"
GIS_OPEN_DATA_URL = "https://gis-pdx.opendata.arcgis.com/"

REPORT_SUGGEST_COUNT = 10


def add_disclaimer(text: str) -> str:
    """Append the unofficial-use disclaimer to a report."""
    return text + DISCLAIMER


def detail_url(settings: Settings, property_id: str) -> str:
    base = settings.base_url.rstrip("/")
    return f"{base}/detail.cfm?propertyid={quote(property_id, safe='')}"


def _no_results(address: str) -> str:
    return add_disclaimer(f"No results found for address: {address}")


# =============================================================================
# Formatters (pure)
# =============================================================================
def format_property_info(
    address: str, suggestions: list[RawSuggestion], settings: Settings
) -> str:
    if not suggestions:
        return _no_results(address)

    lines = [
        f"Property Information for: {address}",
        "",
        f"Search Results ({len(suggestions)} found):",
        "",
    ]
    for i, suggestion in enumerate(suggestions[:3], start=1):
        lines.append(f"{i}. {suggestion.label}")
        lines.append(f"   Type: {suggestion.type}")
        if suggestion.value:
            lines.append(f"   Property ID: {suggestion.value}")
            lines.append(f"   View full details: {detail_url(settings, suggestion.value)}")
            lines.append("")
            lines.append("   Available information at this URL includes:")
            lines.append("   - Property details (owner, lot size, year built)")
            lines.append("   - Zoning information")
            lines.append("   - Assessment & taxation data")
            lines.append("   - Permit history")
            lines.append("   - Sales history")
            lines.append("   - Aerial photos and maps")
        lines.append("")

    lines.append("")
    lines.append("Additional Resources:")
    lines.append(f"- Zoning Maps: {ZONING_MAP_URL}")
    lines.append(f"- Permit Search: {PERMIT_SEARCH_URL}")
    lines.append(f"- GIS Data: {GIS_OPEN_DATA_URL}")
    return add_disclaimer("\n".join(lines) + "\n")


def format_zoning_info(
    address: str, suggestions: list[RawSuggestion], settings: Settings
) -> str:
    if not suggestions:
        return _no_results(address)

    lines = [
        f"Zoning Information Search Results for: {address}",
        "",
        f"Found {len(suggestions)} matching locations:",
        "",
    ]
    for i, suggestion in enumerate(suggestions[:5], start=1):
        lines.append(f"{i}. {suggestion.label}")
        lines.append(f"   Type: {suggestion.type}")
        if suggestion.value:
            lines.append(f"   Property ID: {suggestion.value}")
            lines.append(f"   View details: {detail_url(settings, suggestion.value)}")
        lines.append("")

    lines.append("")
    lines.append("To view zoning regulations and maps, visit:")
    lines.append(ZONING_MAP_URL)
    lines.append("")
    lines.append("For zoning code details, see:")
    lines.append(ZONING_CODE_URL)
    return add_disclaimer("\n".join(lines) + "\n")


def _format_best_match_report(
    title: str,
    address: str,
    suggestions: list[RawSuggestion],
    settings: Settings,
    tab: tuple[str, str],
    tab_contents: list[str],
    footer_label: str,
    footer_url: str,
) -> str:
    if not suggestions:
        return _no_results(address)

    top = suggestions[0]
    lines = [
        f"{title} for: {address}",
        "",
        f"Best Match: {top.label}",
        f"Type: {top.type}",
        "",
    ]
    if top.value:
        lines.append(f"To view {tab[1]}, visit:")
        lines.append(detail_url(settings, top.value))
        lines.append("")
        lines.append(f'Then select the "{tab[0]}" tab to view:')
        lines.extend(f"- {item}" for item in tab_contents)
        lines.append("")

    lines.append(f"{footer_label}:")
    lines.append(footer_url)
    return add_disclaimer("\n".join(lines) + "\n")


def format_permit_history(
    address: str, suggestions: list[RawSuggestion], settings: Settings
) -> str:
    return _format_best_match_report(
        "Permit History Information",
        address,
        suggestions,
        settings,
        tab=("Permits", "permit history"),
        tab_contents=[
            "Building permits",
            "Land use reviews",
            "Environmental reviews",
            "Historic permits",
        ],
        footer_label="For general permit information search",
        footer_url=PERMIT_SEARCH_URL,
    )


def format_tax_info(
    address: str, suggestions: list[RawSuggestion], settings: Settings
) -> str:
    return _format_best_match_report(
        "Property Tax Information",
        address,
        suggestions,
        settings,
        tab=("Assessment & Taxation", "property tax information"),
        tab_contents=[
            "Assessed value",
            "Real market value",
            "Property tax amount",
            "Tax account information",
        ],
        footer_label="For property tax assessment information",
        footer_url=TAX_ASSESSMENT_URL,
    )


def format_property_details(property_id: str, settings: Settings) -> str:
    """Report for a known property id.  Needs no lookup."""
    base = settings.base_url.rstrip("/")
    lines = [
        f"Property Details for ID: {property_id}",
        "",
        "To view full property details, visit:",
        detail_url(settings, property_id),
        "",
        "For programmatic access, use the Portland Maps OpenData API:",
        f"{base}/od/rest/services/COP_OpenData_Property/MapServer",
        "",
        "This can be queried for specific property information including:",
        "- Property boundaries",
        "- Zoning information",
        "- Tax lot details",
        "- Property characteristics",
    ]
    return add_disclaimer("\n".join(lines))


# =============================================================================
# PUBLIC API: one coroutine per tool
# =============================================================================
async def _report(formatter, address: str, client, settings) -> str:
    settings = settings or load_settings()
    if client is None:
        async with open_client() as owned_client:
            return await _report(formatter, address, owned_client, settings)

    suggestions = await lookup(client, settings, address, REPORT_SUGGEST_COUNT)
    return formatter(address, suggestions, settings)


async def get_property_info(
    address: str,
    client: httpx.AsyncClient | None = None,
    settings: Settings | None = None,
) -> str:
    """Top three matches with detail links and what each page offers."""
    return await _report(format_property_info, address, client, settings)


async def get_zoning_info(
    address: str,
    client: httpx.AsyncClient | None = None,
    settings: Settings | None = None,
) -> str:
    """Top five matches plus links to the zoning maps and zoning code."""
    return await _report(format_zoning_info, address, client, settings)


async def get_permit_history(
    address: str,
    client: httpx.AsyncClient | None = None,
    settings: Settings | None = None,
) -> str:
    return await _report(format_permit_history, address, client, settings)


async def get_tax_info(
    address: str,
    client: httpx.AsyncClient | None = None,
    settings: Settings | None = None,
) -> str:
    return await _report(format_tax_info, address, client, settings)


def get_property_details(property_id: str, settings: Settings | None = None) -> str:
    return format_property_details(property_id, settings or load_settings())
