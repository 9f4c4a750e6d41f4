import asyncio
import dataclasses

import httpx
import pytest

from conftest import FakeUpstream, arcgis_empty, arcgis_match, suggestion, unavailable
from core.errors import TransportError
from core.http import open_client
from core.models import AddressCandidate, ResolveRequest
from core.resolver import base_score, blend_score, filter_bbox, resolve_address

FALLBACK = (-122.6765, 45.5231)

MAIN_ST = [
    suggestion("1234 SW MAIN ST", "R100001"),
    suggestion("1234 SE MAIN ST", "R100002"),
    suggestion("1234 NE MAIN ST", "R100003"),
]

REGION_POINTS = {
    "1234 SW MAIN ST": (-122.6850, 45.5160, 100),
    "1234 SE MAIN ST": (-122.6530, 45.5135, 95),
    "1234 NE MAIN ST": (-122.6500, 45.5300, 90),
}


def region_from(points):
    def respond(address):
        if address in points:
            return arcgis_match(*points[address])
        return arcgis_empty()

    return respond


def _resolve(upstream, settings, run, **request_kwargs):
    async def go():
        async with upstream.client() as client:
            return await resolve_address(ResolveRequest(**request_kwargs), client, settings)

    return run(go())


# -----------------------------------------------------------------------------
# Scoring
# -----------------------------------------------------------------------------
def test_base_score_steps_down_and_floors_at_fifty():
    assert [base_score(i) for i in range(12)] == [
        100, 95, 90, 85, 80, 75, 70, 65, 60, 55, 50, 50,
    ]
    assert base_score(40) == 50


def test_blend_score_rounds_half_up_and_stays_in_range():
    assert blend_score(100, 100) == 100
    assert blend_score(95, 90) == 93      # 92.5
    assert blend_score(50, 0) == 25
    assert blend_score(100, 250) == 100


# -----------------------------------------------------------------------------
# Scenarios
# -----------------------------------------------------------------------------
def test_three_candidates_all_geocoded_by_region(settings, run):
    upstream = FakeUpstream(suggestions=MAIN_ST, region=region_from(REGION_POINTS))

    result = _resolve(upstream, settings, run, query="1234 SW Main St")

    assert [c.normalized_address for c in result.candidates] == [
        "1234 SW MAIN ST", "1234 SE MAIN ST", "1234 NE MAIN ST",
    ]
    expected = [
        int((max(100 - 5 * i, 50) + REGION_POINTS[s["label"]][2]) / 2 + 0.5)
        for i, s in enumerate(MAIN_ST)
    ]
    assert [c.score for c in result.candidates] == expected == [100, 95, 90]
    assert all(c.source == "geocoder_match" for c in result.candidates)
    assert [c.property_id for c in result.candidates] == ["R100001", "R100002", "R100003"]
    assert result.candidates[0].longitude == -122.6850
    assert result.candidates[0].latitude == 45.5160
    assert upstream.calls_to("world") == []


def test_max_results_one_returns_first_suggestion(settings, run):
    five = [suggestion(f"{n} SW MAIN ST", f"R{n}") for n in range(100, 600, 100)]
    upstream = FakeUpstream(
        suggestions=five, region=lambda a: arcgis_match(-122.68, 45.52, 80)
    )

    result = _resolve(upstream, settings, run, query="SW Main St", max_results=1)

    assert len(result.candidates) == 1
    assert result.candidates[0].normalized_address == "100 SW MAIN ST"
    assert result.candidates[0].score == 90


def test_bbox_excluding_everything_returns_empty_list(settings, run):
    upstream = FakeUpstream(suggestions=MAIN_ST, region=region_from(REGION_POINTS))

    result = _resolve(
        upstream, settings, run,
        query="1234 Main St", bbox=(-80.0, 40.0, -79.0, 41.0),
    )

    assert result.candidates == []
    assert result.bbox == (-80.0, 40.0, -79.0, 41.0)


def test_both_geocoders_503_falls_back_for_every_candidate(settings, run):
    upstream = FakeUpstream(
        suggestions=MAIN_ST,
        region=lambda a: unavailable(),
        world=lambda a: unavailable(),
    )

    result = _resolve(upstream, settings, run, query="1234 Main St")

    assert len(result.candidates) == 3
    for i, candidate in enumerate(result.candidates):
        assert (candidate.longitude, candidate.latitude) == FALLBACK
        assert candidate.source == "fallback_default"
        assert candidate.score == base_score(i)


# -----------------------------------------------------------------------------
# Properties
# -----------------------------------------------------------------------------
def test_geocodes_run_concurrently_and_keep_suggestion_order(settings, run):
    labels = [f"{n}00 SE DIVISION ST" for n in range(1, 6)]
    in_flight = 0
    peak = 0

    async def handler(request):
        nonlocal in_flight, peak
        if request.url.path.startswith("/api/suggest"):
            return httpx.Response(
                200, json={"candidates": [suggestion(label) for label in labels]}
            )

        address = request.url.params["SingleLine"].removesuffix(", Portland, OR")
        position = labels.index(address)
        in_flight += 1
        peak = max(peak, in_flight)
        # Later suggestions answer first.
        await asyncio.sleep(0.01 * (len(labels) - position))
        in_flight -= 1
        return arcgis_match(-122.65, 45.50, 90 - position)

    async def go():
        async with open_client(transport=httpx.MockTransport(handler)) as client:
            request = ResolveRequest(query="SE Division", max_results=5)
            return await resolve_address(request, client, settings)

    result = run(go())

    assert peak == len(labels)
    assert [c.normalized_address for c in result.candidates] == labels
    assert [c.score for c in result.candidates] == [95, 92, 89, 86, 83]


def test_world_geocoder_used_when_region_fails(settings, run):
    upstream = FakeUpstream(
        suggestions=MAIN_ST[:1],
        region=lambda a: unavailable(),
        world=lambda a: arcgis_match(-122.6851, 45.5161, 88),
    )

    (candidate,) = _resolve(upstream, settings, run, query="1234 SW Main").candidates

    assert candidate.source == "geocoder_match"
    assert (candidate.longitude, candidate.latitude) == (-122.6851, 45.5161)
    assert candidate.score == 94


def test_empty_geocode_results_use_fallback_by_default(settings, run):
    upstream = FakeUpstream(suggestions=MAIN_ST[:2])

    result = _resolve(upstream, settings, run, query="1234 Main")

    assert [c.source for c in result.candidates] == ["fallback_default"] * 2
    assert all((c.longitude, c.latitude) == FALLBACK for c in result.candidates)


def test_distinguish_empty_geocode_setting(settings, run):
    distinguishing = dataclasses.replace(settings, distinguish_empty_geocode=True)
    failing_for_se = FakeUpstream(
        suggestions=MAIN_ST[:2],
        region=lambda a: unavailable() if a == "1234 SE MAIN ST" else arcgis_empty(),
    )

    result = _resolve(failing_for_se, distinguishing, run, query="1234 Main")

    assert [c.source for c in result.candidates] == ["api_suggestion", "fallback_default"]
    assert all((c.longitude, c.latitude) == FALLBACK for c in result.candidates)


def test_one_failing_geocode_does_not_affect_siblings(settings, run):
    def region(address):
        if address == "1234 SE MAIN ST":
            raise httpx.ReadTimeout("timed out")
        return region_from(REGION_POINTS)(address)

    upstream = FakeUpstream(suggestions=MAIN_ST, region=region)

    result = _resolve(upstream, settings, run, query="1234 Main")

    assert [c.source for c in result.candidates] == [
        "geocoder_match", "fallback_default", "geocoder_match",
    ]


def test_scores_always_within_range(settings, run):
    many = [suggestion(f"{n} N WILLIAMS AVE") for n in range(25)]
    upstream = FakeUpstream(
        suggestions=many, region=lambda a: arcgis_match(-122.67, 45.55, 100)
    )

    result = _resolve(upstream, settings, run, query="N Williams", max_results=25)

    assert len(result.candidates) == 25
    assert all(0 <= c.score <= 100 for c in result.candidates)


def test_repeated_query_is_idempotent(settings, run):
    upstream = FakeUpstream(suggestions=MAIN_ST, region=region_from(REGION_POINTS))

    first = _resolve(upstream, settings, run, query="1234 Main")
    second = _resolve(upstream, settings, run, query="1234 Main")

    assert first == second


def test_bbox_filters_before_truncation(settings, run):
    # SW and SE fall inside, NE (lat 45.53) does not.
    bbox = (-122.70, 45.50, -122.60, 45.52)
    labels = ["1234 NE MAIN ST", "1234 SW MAIN ST", "1234 SE MAIN ST"]
    upstream = FakeUpstream(
        suggestions=[suggestion(label) for label in labels],
        region=region_from(REGION_POINTS),
    )

    result = _resolve(upstream, settings, run, query="1234 Main", max_results=2, bbox=bbox)

    assert [c.normalized_address for c in result.candidates] == [
        "1234 SW MAIN ST", "1234 SE MAIN ST",
    ]
    for c in result.candidates:
        assert bbox[0] <= c.longitude <= bbox[2]
        assert bbox[1] <= c.latitude <= bbox[3]
    # Positions come from the unfiltered ranking.
    assert [c.score for c in result.candidates] == [98, 93]


def test_filter_bbox_is_inclusive_and_order_preserving():
    def at(name, lon, lat):
        return AddressCandidate(name, 80, lon, lat, "geocoder_match")

    candidates = [at("a", -122.7, 45.5), at("b", -122.0, 46.0), at("c", -122.6, 45.6)]

    kept = filter_bbox(candidates, (-122.7, 45.5, -122.6, 45.6))

    assert [c.normalized_address for c in kept] == ["a", "c"]
    assert filter_bbox(candidates, None) == candidates


def test_include_raw_attaches_untouched_record(settings, run):
    record = dict(suggestion("1234 SW MAIN ST", "R100001"), id=42, extra="kept")
    upstream = FakeUpstream(suggestions=[record], region=region_from(REGION_POINTS))

    with_raw = _resolve(upstream, settings, run, query="1234 SW Main", include_raw=True)
    without_raw = _resolve(upstream, settings, run, query="1234 SW Main")

    assert with_raw.candidates[0].raw == record
    assert without_raw.candidates[0].raw is None
    assert "raw" not in without_raw.to_dict()["candidates"][0]


def test_suggest_request_parameters(settings, run):
    upstream = FakeUpstream(suggestions=MAIN_ST)

    _resolve(upstream, settings, run, query="1234 Main", max_results=3)
    _resolve(upstream, settings, run, query="1234 Main", max_results=20)

    first, second = upstream.calls_to("suggest")
    assert first == {"query": "1234 Main", "city": "Portland", "count": "10"}
    assert second["count"] == "20"


def test_without_bbox_only_needed_candidates_are_geocoded(settings, run):
    five = [suggestion(f"{n} SW MAIN ST") for n in range(5)]
    upstream = FakeUpstream(suggestions=five)

    _resolve(upstream, settings, run, query="SW Main", max_results=2)

    assert len(upstream.calls_to("region")) == 2


def test_suggest_failure_aborts_request(settings, run):
    upstream = FakeUpstream(suggest_response=httpx.Response(500, text="boom"))

    with pytest.raises(TransportError) as excinfo:
        _resolve(upstream, settings, run, query="1234 Main")

    assert excinfo.value.status_code == 500
    assert "Failed to search address" in str(excinfo.value)


def test_no_suggestions_is_an_empty_result(settings, run):
    result = _resolve(FakeUpstream(), settings, run, query="zzz nowhere")

    assert result.to_dict() == {"query": "zzz nowhere", "max_results": 10, "candidates": []}
