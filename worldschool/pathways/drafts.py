"""Draft Generator.

Asks the generative text service for three lightweight pathway outlines.

Rules:
- Exactly 3 drafts are returned, in slot order continuous, themes, hybrid
- Every draft has exactly one day per day-set date
- Dates always come from the day-set, never from the generated text
- Draft ids are stable for a given trip and day-set so edits survive a regenerate
- No partial draft sets: any malformed entry fails the whole generation
"""

import hashlib
from typing import Any

from loguru import logger
from pydantic import ValidationError

from worldschool.pathways.day_set import DaySet, require_days
from worldschool.pathways.errors import GenerationSchemaError
from worldschool.pathways.llm.json_extract import extract_json
from worldschool.pathways.llm.prompts import DRAFTS_SYSTEM_PROMPT, build_drafts_prompt
from worldschool.pathways.types import (
    DRAFT_SLOTS,
    DraftDay,
    DraftType,
    EffortMode,
    LearnerProfile,
    PathwayDraft,
    TripContext,
)
from worldschool.services.llm.text_service import GenerativeTextService

FALLBACK_DRAFT_ID = "fallback-continuous"


def draft_id_for(trip_id: str, day_set: DaySet, slot: DraftType) -> str:
    digest = hashlib.sha1(f"{trip_id}|{','.join(day_set)}".encode()).hexdigest()[:10]
    return f"draft-{slot.value}-{digest}"


def _raw_draft_list(parsed: Any) -> list[Any]:
    if isinstance(parsed, dict):
        parsed = parsed.get("drafts")
    if not isinstance(parsed, list):
        raise GenerationSchemaError(
            "Generated output has no drafts list",
            [f"expected a 'drafts' array, got {type(parsed).__name__}"],
        )
    if len(parsed) != len(DRAFT_SLOTS):
        raise GenerationSchemaError(
            f"Expected exactly {len(DRAFT_SLOTS)} pathway drafts, got {len(parsed)}",
        )
    return parsed


def _build_days(raw_days: Any, day_set: DaySet, draft_index: int) -> tuple[DraftDay, ...]:
    if not isinstance(raw_days, list) or len(raw_days) != len(day_set):
        got = len(raw_days) if isinstance(raw_days, list) else 0
        raise GenerationSchemaError(
            f"Draft {draft_index + 1} has {got} days, expected {len(day_set)}",
        )

    days = []
    for index, raw_day in enumerate(raw_days):
        headline = raw_day.get("headline") if isinstance(raw_day, dict) else None
        if not isinstance(headline, str) or not headline.strip():
            raise GenerationSchemaError(
                f"Draft {draft_index + 1} day {index + 1} is missing a headline",
            )
        summary = raw_day.get("summary")
        days.append(
            DraftDay(
                day=index + 1,
                date=day_set[index],
                headline=headline.strip(),
                summary=summary if isinstance(summary, str) and summary.strip() else None,
            )
        )
    return tuple(days)


def parse_drafts(text: str, trip: TripContext, day_set: DaySet) -> list[PathwayDraft]:
    """Parse and validate generated draft text.

    Args:
        text: Raw generative output
        trip: Trip the drafts belong to
        day_set: Authoritative dates

    Returns:
        Three drafts in slot order

    Raises:
        GenerationParseError: If no JSON can be parsed
        GenerationSchemaError: If the structure is wrong
    """
    raw_drafts = _raw_draft_list(extract_json(text))

    drafts = []
    for index, slot in enumerate(DRAFT_SLOTS):
        raw = raw_drafts[index]
        if not isinstance(raw, dict):
            raise GenerationSchemaError(f"Draft {index + 1} is not an object")

        days = _build_days(raw.get("days"), day_set, index)
        try:
            draft = PathwayDraft(
                id=draft_id_for(trip.id, day_set, slot),
                type=slot,
                title=raw.get("title") or f"{slot.value.capitalize()} Approach",
                overview=raw.get("overview") or "A learning pathway tailored to your trip.",
                why_it_fits=raw.get("whyItFits") or raw.get("why_it_fits") or "This pathway aligns with your learner profile.",
                rationale=raw.get("rationale") or None,
                days=days,
            )
        except ValidationError as e:
            raise GenerationSchemaError(
                f"Draft {index + 1} has malformed fields",
                [f"drafts.{index}.{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()],
            ) from e
        drafts.append(draft)
    return drafts


async def generate_drafts(
    profile: LearnerProfile,
    trip: TripContext,
    day_set: DaySet,
    effort_mode: EffortMode,
    *,
    text_service: GenerativeTextService,
) -> list[PathwayDraft]:
    """Generate three candidate pathway drafts.

    Args:
        profile: Learner profile
        trip: Trip context
        day_set: Resolved dates to plan
        effort_mode: Daily effort
        text_service: Generative text service

    Returns:
        Exactly three drafts

    Raises:
        NothingToPlanError: If the day-set is empty
        UpstreamError: If the text service fails
        GenerationParseError: If the output is not JSON
        GenerationSchemaError: If the drafts are malformed
    """
    require_days(day_set)
    prompt = build_drafts_prompt(profile, trip, day_set, effort_mode)

    logger.info(
        "Generating pathway drafts",
        trip_id=trip.id,
        day_count=len(day_set),
        effort_track=effort_mode.track.value,
        prompt_length=len(prompt),
    )
    text = await text_service.generate(prompt, instructions=DRAFTS_SYSTEM_PROMPT)

    try:
        drafts = parse_drafts(text, trip, day_set)
    except Exception as e:
        logger.error(
            "Pathway draft generation returned unusable output",
            error_type=type(e).__name__,
            error_message=str(e),
            trip_id=trip.id,
        )
        raise

    logger.info("Pathway drafts generated", trip_id=trip.id, draft_ids=[d.id for d in drafts])
    return drafts


def build_fallback_drafts(day_set: DaySet) -> list[PathwayDraft]:
    """Build the locally synthesized fallback offered after a failed generation.

    The same basic continuous draft fills all three slots.

    Raises:
        NothingToPlanError: If the day-set is empty
    """
    require_days(day_set)
    fallback = PathwayDraft(
        id=FALLBACK_DRAFT_ID,
        type=DraftType.CONTINUOUS,
        title="Basic Continuous Pathway",
        overview="A straightforward day-by-day learning progression.",
        why_it_fits="This pathway provides a reliable foundation for your trip.",
        days=tuple(
            DraftDay(day=index + 1, date=iso_date, headline=f"Day {index + 1} learning activities")
            for index, iso_date in enumerate(day_set)
        ),
    )
    return [fallback, fallback, fallback]
