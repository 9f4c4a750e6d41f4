from __future__ import annotations

import asyncio
from typing import Callable, Optional

import httpx
import pytest

from core.config import Settings
from core.http import open_client

QUALIFIER_SUFFIX = ", Portland, OR"


def arcgis_match(x: float, y: float, score: float) -> httpx.Response:
    return httpx.Response(
        200,
        json={
            "spatialReference": {"wkid": 4326},
            "candidates": [
                {"address": "MATCH", "location": {"x": x, "y": y}, "score": score}
            ],
        },
    )


def arcgis_empty() -> httpx.Response:
    return httpx.Response(200, json={"spatialReference": {"wkid": 4326}, "candidates": []})


def unavailable() -> httpx.Response:
    return httpx.Response(503, text="Service Unavailable")


def suggestion(label: str, value: Optional[str] = None, type_: str = "address") -> dict:
    record = {"label": label, "type": type_, "city": "PORTLAND", "county": "MULTNOMAH"}
    if value is not None:
        record["value"] = value
    return record


class FakeUpstream:
    """Routes requests for the suggest API and both geocoders.

    region / world are callables taking the unqualified address label and
    returning an httpx.Response.  Every request is recorded in ``calls`` as
    (service, params).
    """

    def __init__(
        self,
        suggestions: list[dict] | None = None,
        suggest_response: httpx.Response | None = None,
        region: Callable[[str], httpx.Response] | None = None,
        world: Callable[[str], httpx.Response] | None = None,
    ):
        self.suggestions = suggestions or []
        self.suggest_response = suggest_response
        self.region = region or (lambda address: arcgis_empty())
        self.world = world or (lambda address: arcgis_empty())
        self.calls: list[tuple[str, dict]] = []

    def calls_to(self, service: str) -> list[dict]:
        return [params for name, params in self.calls if name == service]

    def handler(self, request: httpx.Request) -> httpx.Response:
        params = dict(request.url.params)
        path = request.url.path

        if path.startswith("/api/suggest"):
            self.calls.append(("suggest", params))
            if self.suggest_response is not None:
                return self.suggest_response
            return httpx.Response(200, json={"candidates": self.suggestions})

        if request.url.host == "geocode.arcgis.com":
            self.calls.append(("world", params))
            return self.world(params["singleLine"].removesuffix(QUALIFIER_SUFFIX))

        if "GeocodeServer" in path:
            self.calls.append(("region", params))
            return self.region(params["SingleLine"].removesuffix(QUALIFIER_SUFFIX))

        return httpx.Response(404)

    def client(self) -> httpx.AsyncClient:
        return open_client(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def run():
    """Drive a coroutine to completion from a plain test function."""
    return asyncio.run
