# =============================================================================
# core/http.py  -  Shared HTTP plumbing (httpx)
# =============================================================================
#
# Every outbound call in this project is an unauthenticated JSON GET.  This
# module turns the ways such a call can go wrong (connection refused, 5xx,
# an HTML error page instead of JSON) into a single TransportError, so the
# callers only ever handle one exception type.
#
# No retries and no timeout override: a call is attempted exactly once with
# httpx's default timeout.
# =============================================================================

import logging
from typing import Any

import httpx

from core.errors import TransportError

logger = logging.getLogger(__name__)

USER_AGENT = "portlandmaps-mcp/1.0 (unofficial)"


def open_client(transport: httpx.AsyncBaseTransport | None = None) -> httpx.AsyncClient:
    """Create the AsyncClient used for one tool call.

    transport is only passed by tests (httpx.MockTransport).
    """
    return httpx.AsyncClient(
        headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
        transport=transport,
    )


async def get_json(
    client: httpx.AsyncClient,
    url: str,
    params: dict[str, Any] | None = None,
) -> Any:
    """GET url and decode the body as JSON.

    Raises:
        TransportError: on a network failure, a non-2xx status, or a body
            that is not valid JSON.
    """
    try:
        response = await client.get(url, params=params)
    except httpx.HTTPError as e:
        raise TransportError(f"request to {url} failed: {e}") from e

    if not response.is_success:
        raise TransportError(
            f"API request failed: {response.status_code} {response.reason_phrase}",
            status_code=response.status_code,
        )

    try:
        data = response.json()
    except ValueError as e:
        raise TransportError(f"invalid JSON from {url}: {e}") from e

    logger.debug("GET %s -> %s", response.url, response.status_code)
    return data
