import json

import pytest

from worldschool.pathways.drafts import build_fallback_drafts, parse_drafts
from worldschool.pathways.errors import (
    FinalizeSchemaError,
    FinalizeValidationError,
    GenerationParseError,
    NothingToPlanError,
)
from worldschool.pathways.finalize import finalize_pathway, validate_edited_draft
from worldschool.pathways.llm.prompts import FINALIZE_SYSTEM_PROMPT
from worldschool.pathways.types import PrivacyOptions


@pytest.fixture
def chosen(trip, day_set, drafts_json):
    return parse_drafts(drafts_json(day_set), trip, day_set)[1]


@pytest.mark.asyncio
async def test_finalize_binds_days_to_day_set(trip, profile, effort, day_set, chosen, text_service_cls, plan_json):
    service = text_service_cls(plan_json(day_set, blocks_per_day=2, summary="Tiles week"))

    plan = await finalize_pathway(chosen, day_set, effort, profile, trip, text_service=service)

    assert [d.day for d in plan.days] == [1, 2, 3]
    assert [d.date for d in plan.days] == list(day_set)
    assert all(len(d.schedule_blocks) == 2 for d in plan.days)
    assert plan.summary == "Tiles week"
    assert service.instructions == [FINALIZE_SYSTEM_PROMPT]
    assert chosen.title in service.prompts[0]


@pytest.mark.asyncio
async def test_generated_day_numbers_are_ignored(trip, profile, effort, day_set, chosen, text_service_cls, plan_json):
    data = json.loads(plan_json(day_set))
    for day in data["days"]:
        day["day"] = 7
    service = text_service_cls(json.dumps(data))

    plan = await finalize_pathway(chosen, day_set, effort, profile, trip, text_service=service)

    assert [d.day for d in plan.days] == [1, 2, 3]


@pytest.mark.asyncio
async def test_wrong_day_count_is_schema_error(trip, profile, effort, day_set, chosen, text_service_cls, plan_json):
    service = text_service_cls(plan_json(day_set[:2]))

    with pytest.raises(FinalizeSchemaError) as exc_info:
        await finalize_pathway(chosen, day_set, effort, profile, trip, text_service=service)

    assert exc_info.value.message == "AI response does not match expected schema"
    assert exc_info.value.details


@pytest.mark.asyncio
async def test_unparseable_output(trip, profile, effort, day_set, chosen, text_service_cls):
    service = text_service_cls("no json here")

    with pytest.raises(GenerationParseError):
        await finalize_pathway(chosen, day_set, effort, profile, trip, text_service=service)


@pytest.mark.asyncio
async def test_empty_day_set(trip, profile, effort, chosen, text_service_cls):
    service = text_service_cls("unused")

    with pytest.raises(NothingToPlanError):
        await finalize_pathway(chosen, (), effort, profile, trip, text_service=service)

    assert service.call_count == 0


@pytest.mark.asyncio
async def test_edited_draft_used_in_prompt(trip, profile, effort, day_set, chosen, text_service_cls, plan_json):
    edited = chosen.to_wire()
    edited["days"][0]["headline"] = "Chasing azulejos in Alfama"
    service = text_service_cls(plan_json(day_set))

    await finalize_pathway(chosen, day_set, effort, profile, trip, text_service=service, edited_draft=edited)

    assert "Chasing azulejos in Alfama" in service.prompts[0]


@pytest.mark.asyncio
async def test_invalid_edited_draft_makes_no_call(trip, profile, effort, day_set, chosen, text_service_cls, plan_json):
    edited = chosen.to_wire()
    edited["days"] = edited["days"][:2]
    service = text_service_cls(plan_json(day_set))

    with pytest.raises(FinalizeValidationError) as exc_info:
        await finalize_pathway(chosen, day_set, effort, profile, trip, text_service=service, edited_draft=edited)

    assert exc_info.value.message == (
        "Invalid editedDraft: days array length (2) must match selectedDates length (3)"
    )
    assert service.call_count == 0


def test_edited_draft_missing_fields(day_set, chosen):
    edited = chosen.to_wire()
    del edited["whyItFits"]

    with pytest.raises(FinalizeValidationError) as exc_info:
        validate_edited_draft(edited, day_set)

    assert "missing required fields (id, type, title, overview, whyItFits)" in exc_info.value.message
    assert exc_info.value.details == ["missing: whyItFits"]


def test_edited_draft_day_missing_headline(day_set, chosen):
    edited = chosen.to_wire()
    edited["days"][1]["headline"] = ""

    with pytest.raises(FinalizeValidationError) as exc_info:
        validate_edited_draft(edited, day_set)

    assert exc_info.value.message == "Invalid editedDraft: day 2 missing required fields (day, date, headline)"


def test_edited_draft_date_mismatch(day_set, chosen):
    edited = chosen.to_wire()
    edited["days"][2]["date"] = "2025-03-12"

    with pytest.raises(FinalizeValidationError) as exc_info:
        validate_edited_draft(edited, day_set)

    assert "day 3 date (2025-03-12)" in exc_info.value.message


def test_edited_draft_model_accepted(day_set):
    draft = build_fallback_drafts(day_set)[0]

    assert validate_edited_draft(draft, day_set) == draft


@pytest.mark.asyncio
async def test_enrichment_attaches_options(
    trip, profile, effort, day_set, chosen, text_service_cls, venue_finder_cls, plan_json
):
    service = text_service_cls(plan_json(day_set))
    finder = venue_finder_cls(results=3)

    plan = await finalize_pathway(chosen, day_set, effort, profile, trip, text_service=service, venue_finder=finder)

    assert all(block.local_options for day in plan.days for block in day.schedule_blocks)
    assert finder.geocode_calls == [trip.base_location]


@pytest.mark.asyncio
async def test_enrichment_failure_isolated(
    trip, profile, effort, day_set, chosen, text_service_cls, venue_finder_cls, day_json
):
    blocks = [
        {"startTime": "2025-03-10T09:00:00", "duration": 60, "title": "Museum of tiles"},
        {"startTime": "2025-03-10T11:00:00", "duration": 60, "title": "Picnic in the park"},
    ]
    data = {
        "days": [
            day_json(1, day_set[0], blocks, fieldExperience="Explore"),
            day_json(2, day_set[1], fieldExperience="Explore"),
            day_json(3, day_set[2], fieldExperience="Explore"),
        ]
    }
    service = text_service_cls(json.dumps(data))
    finder = venue_finder_cls(fail_on=("park",))

    plan = await finalize_pathway(chosen, day_set, effort, profile, trip, text_service=service, venue_finder=finder)

    museum, park = plan.days[0].schedule_blocks
    assert museum.local_options
    assert park.local_options is None
    assert len(plan.days) == 3


@pytest.mark.asyncio
async def test_venue_links_disabled_skips_enrichment(
    trip, profile, effort, day_set, chosen, text_service_cls, venue_finder_cls, plan_json
):
    service = text_service_cls(plan_json(day_set))
    finder = venue_finder_cls()

    plan = await finalize_pathway(
        chosen,
        day_set,
        effort,
        profile,
        trip,
        PrivacyOptions(venue_links_enabled=False),
        text_service=service,
        venue_finder=finder,
    )

    assert finder.geocode_calls == []
    assert finder.search_calls == []
    assert all(block.local_options is None for day in plan.days for block in day.schedule_blocks)
