"""Finalizer.

Expands the chosen (possibly edited) draft into a detailed, schema-validated
and venue-enriched pathway plan.

Flow:
1. Validate the edited draft structurally (before any network call)
2. Generate the detailed plan and parse it
3. Validate it against the day-count schema
4. Enrich every block with venue suggestions (best effort)
5. Assemble days in day-set order, dates taken from the day-set
"""

from collections.abc import Mapping
from typing import Any

from loguru import logger
from pydantic import ValidationError

from worldschool.pathways.day_set import DaySet, require_days
from worldschool.pathways.enrichment import VenueEnricher, VenueFinder
from worldschool.pathways.errors import FinalizeSchemaError, FinalizeValidationError
from worldschool.pathways.llm.json_extract import extract_json
from worldschool.pathways.llm.prompts import FINALIZE_SYSTEM_PROMPT, build_finalize_prompt
from worldschool.pathways.schemas.detailed_plan import PlanSchemaError, validate_detailed_plan
from worldschool.pathways.types import (
    EffortMode,
    FinalBlock,
    FinalDayPlan,
    FinalPathwayPlan,
    LearnerProfile,
    PathwayDraft,
    PrivacyOptions,
    TripContext,
    VenueSuggestion,
)
from worldschool.services.llm.text_service import GenerativeTextService

_REQUIRED_DRAFT_FIELDS = {
    "id": "id",
    "type": "type",
    "title": "title",
    "overview": "overview",
    "whyItFits": "why_it_fits",
}


def validate_edited_draft(edited: PathwayDraft | Mapping[str, Any], day_set: DaySet) -> PathwayDraft:
    """Structurally validate an edited draft against the day-set.

    Args:
        edited: Edited draft, as a model or as raw request data
        day_set: Authoritative dates

    Returns:
        The edited draft as a model

    Raises:
        FinalizeValidationError: With a field-specific message
    """
    raw = edited.to_wire() if isinstance(edited, PathwayDraft) else dict(edited)

    missing = [wire for wire, attr in _REQUIRED_DRAFT_FIELDS.items() if not (raw.get(wire) or raw.get(attr))]
    if missing:
        raise FinalizeValidationError(
            "Invalid editedDraft: missing required fields (id, type, title, overview, whyItFits)",
            [f"missing: {', '.join(missing)}"],
        )

    days = raw.get("days")
    day_count = len(days) if isinstance(days, list | tuple) else 0
    if day_count != len(day_set):
        raise FinalizeValidationError(
            f"Invalid editedDraft: days array length ({day_count}) must match selectedDates length ({len(day_set)})"
        )

    for index, day in enumerate(days):
        if not isinstance(day, Mapping) or not day.get("day") or not day.get("date") or not day.get("headline"):
            raise FinalizeValidationError(
                f"Invalid editedDraft: day {index + 1} missing required fields (day, date, headline)"
            )
        if day["date"] != day_set[index]:
            raise FinalizeValidationError(
                f"Invalid editedDraft: day {index + 1} date ({day['date']}) does not match "
                f"selectedDates[{index}] ({day_set[index]})"
            )

    try:
        return PathwayDraft.model_validate(raw)
    except ValidationError as e:
        raise FinalizeValidationError(
            "Invalid editedDraft",
            [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()],
        ) from e


async def finalize_pathway(
    chosen_draft: PathwayDraft,
    day_set: DaySet,
    effort_mode: EffortMode,
    profile: LearnerProfile,
    trip: TripContext,
    privacy: PrivacyOptions | None = None,
    *,
    text_service: GenerativeTextService,
    venue_finder: VenueFinder | None = None,
    edited_draft: PathwayDraft | Mapping[str, Any] | None = None,
) -> FinalPathwayPlan:
    """Produce the final detailed pathway plan.

    Once the generation call is issued it runs to completion; there is no
    cancellation path.

    Args:
        chosen_draft: Draft selected by the caller
        day_set: Resolved dates to plan
        effort_mode: Daily effort
        profile: Learner profile
        trip: Trip context
        privacy: Venue link and address privacy options
        text_service: Generative text service
        venue_finder: Venue service; enrichment is skipped when None
        edited_draft: Caller's edited version of the chosen draft, if any

    Returns:
        FinalPathwayPlan with exactly one day per day-set date

    Raises:
        NothingToPlanError: If the day-set is empty
        FinalizeValidationError: If the edited draft is malformed
        UpstreamError: If the text service fails
        GenerationParseError: If the output is not JSON
        FinalizeSchemaError: If the detailed plan fails the schema
    """
    require_days(day_set)
    privacy = privacy or PrivacyOptions()
    draft = validate_edited_draft(edited_draft, day_set) if edited_draft is not None else chosen_draft

    prompt = build_finalize_prompt(profile, trip, day_set, effort_mode, draft)
    logger.info(
        "Finalizing pathway",
        trip_id=trip.id,
        draft_id=draft.id,
        edited=edited_draft is not None,
        day_count=len(day_set),
        prompt_length=len(prompt),
    )
    text = await text_service.generate(prompt, instructions=FINALIZE_SYSTEM_PROMPT)

    result = validate_detailed_plan(extract_json(text), len(day_set))
    if isinstance(result, PlanSchemaError):
        logger.error(
            "Detailed plan does not match expected schema",
            trip_id=trip.id,
            error_count=len(result.details),
            details=result.details[:10],
        )
        raise FinalizeSchemaError("AI response does not match expected schema", result.details)
    plan = result.plan

    if privacy.venue_links_enabled and venue_finder is not None:
        enricher = VenueEnricher(venue_finder, trip.base_location, show_exact_addresses=privacy.show_exact_addresses)
        local_options: list[list[list[VenueSuggestion] | None]] = await enricher.enrich(
            [(day.field_experience, day.schedule_blocks) for day in plan.days]
        )
    else:
        local_options = [[None] * len(day.schedule_blocks) for day in plan.days]

    days = [
        FinalDayPlan(
            day=index + 1,
            date=day_set[index],
            driving_question=day.driving_question,
            field_experience=day.field_experience,
            inquiry_task=day.inquiry_task,
            artifact=day.artifact,
            reflection_prompt=day.reflection_prompt,
            critique_step=day.critique_step,
            schedule_blocks=[
                FinalBlock(
                    start_time=block.start_time,
                    duration=block.duration,
                    title=block.title,
                    description=block.description,
                    local_options=options,
                )
                for block, options in zip(day.schedule_blocks, local_options[index], strict=True)
            ],
        )
        for index, day in enumerate(plan.days)
    ]

    logger.info(
        "Pathway finalized",
        trip_id=trip.id,
        day_count=len(days),
        block_count=sum(len(d.schedule_blocks) for d in days),
    )
    return FinalPathwayPlan(days=days, summary=plan.summary, verify_locally=plan.verify_locally)
