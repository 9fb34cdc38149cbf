"""Pathway API endpoints.

Draft generation, finalization and applying a plan to a trip's schedule.
"""

from fastapi import APIRouter, Depends
from loguru import logger

from worldschool.api.dependencies.auth import get_current_user_id
from worldschool.api.dependencies.services import get_pipeline_guards, get_text_service, get_venue_finder
from worldschool.api.schemas import ApplyRequest, DraftsRequest, DraftsResponse, FinalizeRequest
from worldschool.db.session import get_session
from worldschool.pathways.day_set import DaySet, require_days, resolve_day_set
from worldschool.pathways.drafts import generate_drafts
from worldschool.pathways.enrichment import VenueFinder
from worldschool.pathways.finalize import finalize_pathway
from worldschool.pathways.materialization.materializer import plan_from_applied_draft
from worldschool.pathways.single_flight import SingleFlightRegistry
from worldschool.pathways.types import DayMode, FinalPathwayPlan, ScheduleBlock, TripContext
from worldschool.services.llm.text_service import GenerativeTextService
from worldschool.trips.store import TripStateStore, trip_locks

router = APIRouter(prefix="/pathways", tags=["pathways"])


def _day_set_for(trip: TripContext, selected_dates: list[str]) -> DaySet:
    return require_days(
        resolve_day_set(trip.start_date, trip.end_date, DayMode.SELECT_DAYS, selected_dates=selected_dates)
    )


@router.post("/drafts", response_model=DraftsResponse, response_model_exclude_none=True)
async def create_drafts(
    body: DraftsRequest,
    user_id: str = Depends(get_current_user_id),
    text_service: GenerativeTextService = Depends(get_text_service),
    guards: SingleFlightRegistry = Depends(get_pipeline_guards),
) -> DraftsResponse:
    """Generate three pathway drafts for the selected dates.

    Raises:
        NothingToPlanError: 400 if no selected date lies within the trip
        PipelineBusyError: 409 if a request for this trip is already running
        GenerationParseError, GenerationSchemaError, UpstreamError: 502
    """
    logger.info("Pathway drafts requested", user_id=user_id, trip_id=body.trip_id, learner_id=body.learner_id)
    day_set = _day_set_for(body.trip, body.selected_dates)

    with guards.hold(user_id, body.trip_id, "draft generation"):
        drafts = await generate_drafts(
            body.learner_profile,
            body.trip,
            day_set,
            body.effort(),
            text_service=text_service,
        )
    return DraftsResponse(drafts=drafts)


@router.post("/finalize", response_model=FinalPathwayPlan, response_model_exclude_none=True)
async def finalize(
    body: FinalizeRequest,
    user_id: str = Depends(get_current_user_id),
    text_service: GenerativeTextService = Depends(get_text_service),
    venue_finder: VenueFinder = Depends(get_venue_finder),
    guards: SingleFlightRegistry = Depends(get_pipeline_guards),
) -> FinalPathwayPlan:
    """Expand the chosen draft into a detailed, venue-enriched plan.

    Raises:
        FinalizeValidationError: 400 if the edited draft is malformed
        PipelineBusyError: 409 if a request for this trip is already running
        FinalizeSchemaError, GenerationParseError, UpstreamError: 502
    """
    logger.info(
        "Pathway finalize requested",
        user_id=user_id,
        trip_id=body.trip_id,
        chosen_draft_id=body.chosen_draft_id,
        edited=body.edited_draft is not None,
    )
    day_set = _day_set_for(body.trip, body.selected_dates)

    with guards.hold(user_id, body.trip_id, "finalize"):
        return await finalize_pathway(
            body.chosen_draft,
            day_set,
            body.effort(),
            body.learner_profile,
            body.trip,
            body.privacy(),
            text_service=text_service,
            venue_finder=venue_finder,
            edited_draft=body.edited_draft,
        )


@router.post("/apply")
async def apply_pathway(
    body: ApplyRequest,
    user_id: str = Depends(get_current_user_id),
) -> dict[str, list[dict]]:
    """Materialize a plan into the trip's stored schedule.

    Manual blocks are kept, previously generated blocks are replaced.

    Raises:
        MaterializationEmptyError: 422 if the plan has no blocks
        FinalizeSchemaError: 502 if an applied plan is malformed
    """
    if body.plan is not None:
        plan = body.plan
    else:
        plan = plan_from_applied_draft(body.applied_plan or {}, body.trip_start_date)

    logger.info("Applying pathway to schedule", user_id=user_id, trip_id=body.trip_id, day_count=len(plan.days))
    async with trip_locks.lock(user_id, body.trip_id):
        with get_session() as session:
            blocks: list[ScheduleBlock] = TripStateStore(session).apply_pathway(
                user_id,
                body.trip_id,
                plan,
                body.trip_location,
                image_salt=body.image_salt,
            )
    return {"scheduleBlocks": [block.to_wire() for block in blocks]}
