"""Schedule Materializer.

Turns a final pathway plan into persisted schedule blocks and merges them
with the trip's existing blocks.

Rules:
- A block's date is its plan day's date; its start time is that date plus the
  generated time of day
- Every new block is marked generated and gets a trip-unique id
- Manual (non-generated) existing blocks are preserved verbatim and in order
- Previously generated blocks are replaced, never merged
- A plan that yields zero blocks is an error, not an empty schedule
"""

import uuid
from collections.abc import Mapping
from datetime import date, datetime, timedelta, timezone
from typing import Any

from loguru import logger

from worldschool.pathways.errors import FinalizeSchemaError, MaterializationEmptyError
from worldschool.pathways.materialization.images import detect_activity_type, image_alt, image_url, pick_image
from worldschool.pathways.schemas.detailed_plan import PlanSchemaError, validate_applied_plan
from worldschool.pathways.types import FinalBlock, FinalDayPlan, FinalPathwayPlan, ScheduleBlock, parse_time_of_day


def bind_start_time(day_date: str, start_time: str) -> str:
    """Move a generated start time onto the plan day's date, keeping time of day and offset."""
    return datetime.combine(date.fromisoformat(day_date), parse_time_of_day(start_time)).isoformat()


def block_notes(day: FinalDayPlan) -> str | None:
    if not day.field_experience:
        return None
    return f"{day.field_experience}\n\n{day.inquiry_task}\n\nArtifact: {day.artifact}"


def merge_blocks(existing_blocks: list[ScheduleBlock], new_blocks: list[ScheduleBlock]) -> list[ScheduleBlock]:
    """Keep manual blocks, drop previously generated ones, append the new batch."""
    return [b for b in existing_blocks if not b.is_generated] + new_blocks


def materialize(
    plan: FinalPathwayPlan,
    existing_blocks: list[ScheduleBlock],
    trip_id: str,
    trip_location: str | None = None,
    *,
    image_salt: str | None = None,
    now: datetime | None = None,
) -> list[ScheduleBlock]:
    """Materialize a final plan into the trip's schedule.

    Args:
        plan: Final pathway plan
        existing_blocks: The trip's current schedule blocks
        trip_id: Trip the blocks belong to
        trip_location: Location shown on blocks whose day has a field experience
        image_salt: Optional salt mixed into image selection
        now: Creation timestamp (defaults to the current UTC time)

    Returns:
        Manual existing blocks followed by the new generated blocks

    Raises:
        MaterializationEmptyError: If the plan contains no blocks
    """
    created_at = now or datetime.now(timezone.utc)
    used_images: set[str] = set()
    new_blocks: list[ScheduleBlock] = []
    block_index = 0

    logger.debug("Materializing pathway", trip_id=trip_id, day_count=len(plan.days))

    for day in plan.days:
        location = trip_location if day.field_experience and trip_location else None
        notes = block_notes(day)
        for block in day.schedule_blocks:
            activity_type = detect_activity_type(block.title, block.description, day.field_experience)
            image_key = f"{block.title}-day{day.day}-block{block_index}"
            if image_salt:
                image_key = f"{image_key}-{image_salt}"
            photo_id = pick_image(activity_type, image_key, used_images)

            new_blocks.append(
                ScheduleBlock(
                    id=f"pathway-{trip_id}-day{day.day}-{block_index}-{uuid.uuid4().hex[:8]}",
                    date=day.date,
                    start_time=bind_start_time(day.date, block.start_time),
                    duration=block.duration,
                    title=block.title,
                    description=block.description,
                    location=location,
                    notes=notes,
                    is_generated=True,
                    created_at=created_at,
                    driving_question=day.driving_question,
                    field_experience=day.field_experience,
                    inquiry_task=day.inquiry_task,
                    artifact=day.artifact,
                    reflection_prompt=day.reflection_prompt,
                    critique_step=day.critique_step,
                    local_options=[option.model_copy() for option in block.local_options] if block.local_options else None,
                    image_url=image_url(photo_id),
                    image_alt=image_alt(activity_type, location),
                    image_mode="off",
                )
            )
            block_index += 1

    if not new_blocks:
        raise MaterializationEmptyError("No activities were generated, please try again.")

    merged = merge_blocks(existing_blocks, new_blocks)
    logger.info(
        "Pathway materialized",
        trip_id=trip_id,
        new_blocks=len(new_blocks),
        kept_manual=len(merged) - len(new_blocks),
        replaced_generated=sum(1 for b in existing_blocks if b.is_generated),
    )
    return merged


def plan_from_applied_draft(applied: Mapping[str, Any], trip_start: date | str) -> FinalPathwayPlan:
    """Convert a one-shot applied plan into a plan the materializer accepts.

    Days are numbered from the trip start: day N falls on trip_start + (N - 1).
    Applied plans carry no venue suggestions.

    Raises:
        FinalizeSchemaError: If the applied plan is malformed
    """
    result = validate_applied_plan(applied)
    if isinstance(result, PlanSchemaError):
        raise FinalizeSchemaError("Applied plan does not match expected schema", result.details)

    start = trip_start if isinstance(trip_start, date) else date.fromisoformat(trip_start[:10])
    days = [
        FinalDayPlan(
            day=day.day,
            date=(start + timedelta(days=day.day - 1)).isoformat(),
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
                )
                for block in day.schedule_blocks
            ],
        )
        for day in result.plan.days
    ]
    return FinalPathwayPlan(days=days, summary=result.plan.summary, verify_locally=result.plan.verify_locally)
