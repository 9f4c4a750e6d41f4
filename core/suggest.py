# =============================================================================
# core/suggest.py  -  Suggestion Lookup (portlandmaps.com /api/suggest/)
# =============================================================================
#
# One HTTP GET, one JSON decode, one list of RawSuggestion.  The order the
# service returns is kept as-is: it is the relevance ranking the enricher
# scores against.
#
# A failure here is the only thing that aborts resolve_address.  Without
# suggestions there is nothing to enrich.
# =============================================================================

import logging

import httpx

from core.config import Settings
from core.errors import TransportError
from core.http import get_json
from core.models import RawSuggestion

logger = logging.getLogger(__name__)


async def lookup(
    client: httpx.AsyncClient,
    settings: Settings,
    text: str,
    limit: int,
) -> list[RawSuggestion]:
    """Query the suggest API and return its candidates in ranked order.

    Args:
        client: The request-scoped httpx client.
        settings: Endpoint configuration.
        text: Free-text address query.
        limit: Value passed as the API's ``count`` parameter.

    Raises:
        TransportError: if the suggest API is unreachable, answers with a
            non-2xx status, or returns something other than JSON.
    """
    params = {"query": text, "city": settings.city, "count": limit}

    try:
        data = await get_json(client, settings.suggest_url, params)
    except TransportError as e:
        raise TransportError(
            f"Failed to search address: {e}", status_code=e.status_code
        ) from e

    records = data.get("candidates") if isinstance(data, dict) else None
    if not records:
        logger.info("No suggestions for %r", text)
        return []

    suggestions = [
        RawSuggestion.from_record(record)
        for record in records
        if isinstance(record, dict)
    ]
    logger.info("Suggest API returned %d candidates for %r", len(suggestions), text)
    return suggestions
