"""Per-user trip state endpoints.

Read and replace the schedule blocks and the saved pathway of one trip.
"""

from fastapi import APIRouter, Depends, Query
from loguru import logger

from worldschool.api.dependencies.auth import get_current_user_id
from worldschool.api.schemas import PathwayBody, ScheduleBlocksBody
from worldschool.db.session import get_session
from worldschool.trips.store import TripStateStore, trip_locks

router = APIRouter(prefix="/user", tags=["user"])


@router.get("/schedule-blocks")
def get_schedule_blocks(
    trip_id: str = Query(..., alias="tripId", min_length=1),
    user_id: str = Depends(get_current_user_id),
) -> dict[str, list[dict]]:
    with get_session() as session:
        blocks = TripStateStore(session).get_schedule_blocks(user_id, trip_id)
    return {"scheduleBlocks": [block.to_wire() for block in blocks]}


@router.put("/schedule-blocks")
async def put_schedule_blocks(
    body: ScheduleBlocksBody,
    user_id: str = Depends(get_current_user_id),
) -> dict[str, bool | str]:
    async with trip_locks.lock(user_id, body.trip_id):
        with get_session() as session:
            TripStateStore(session).save_schedule_blocks(user_id, body.trip_id, body.schedule_blocks)

    logger.info(
        "Schedule blocks saved",
        user_id=user_id,
        trip_id=body.trip_id,
        block_count=len(body.schedule_blocks),
    )
    return {"success": True, "message": "Schedule blocks saved successfully"}


@router.get("/pathways")
def get_pathway(
    trip_id: str = Query(..., alias="tripId", min_length=1),
    user_id: str = Depends(get_current_user_id),
) -> dict[str, dict | None]:
    with get_session() as session:
        pathway = TripStateStore(session).get_pathway(user_id, trip_id)
    return {"pathway": pathway.to_wire() if pathway is not None else None}


@router.put("/pathways")
async def put_pathway(
    body: PathwayBody,
    user_id: str = Depends(get_current_user_id),
) -> dict[str, bool | str]:
    async with trip_locks.lock(user_id, body.trip_id):
        with get_session() as session:
            TripStateStore(session).save_pathway(user_id, body.trip_id, body.pathway)

    logger.info("Pathway saved", user_id=user_id, trip_id=body.trip_id, day_count=len(body.pathway.days))
    return {"success": True, "message": "Pathway saved successfully"}
