"""Per-trip pathway state storage.

Schedule blocks and the finalized pathway are stored per (user, trip) as JSON
in wire format. Applying a pathway is a read-modify-write of the trip's
blocks and must be serialized per trip.
"""

import asyncio
from collections import defaultdict
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from loguru import logger
from sqlalchemy import select
from sqlalchemy.orm import Session

from worldschool.db.models import TripState
from worldschool.pathways.materialization.materializer import materialize
from worldschool.pathways.types import FinalPathwayPlan, ScheduleBlock


class TripStateStore:
    def __init__(self, session: Session) -> None:
        self.session = session

    def _get(self, user_id: str, trip_id: str) -> TripState | None:
        return self.session.execute(
            select(TripState).where(TripState.user_id == user_id, TripState.trip_id == trip_id)
        ).scalar_one_or_none()

    def _get_or_create(self, user_id: str, trip_id: str) -> TripState:
        state = self._get(user_id, trip_id)
        if state is None:
            state = TripState(user_id=user_id, trip_id=trip_id, schedule_blocks=[], pathway=None)
            self.session.add(state)
        return state

    def get_schedule_blocks(self, user_id: str, trip_id: str) -> list[ScheduleBlock]:
        state = self._get(user_id, trip_id)
        if state is None:
            return []
        return [ScheduleBlock.model_validate(raw) for raw in state.schedule_blocks or []]

    def save_schedule_blocks(self, user_id: str, trip_id: str, blocks: list[ScheduleBlock]) -> None:
        state = self._get_or_create(user_id, trip_id)
        # Reassign so the JSON column is flagged dirty
        state.schedule_blocks = [block.to_wire() for block in blocks]
        logger.debug("Schedule blocks saved", user_id=user_id, trip_id=trip_id, block_count=len(blocks))

    def get_pathway(self, user_id: str, trip_id: str) -> FinalPathwayPlan | None:
        state = self._get(user_id, trip_id)
        if state is None or state.pathway is None:
            return None
        return FinalPathwayPlan.model_validate(state.pathway)

    def save_pathway(self, user_id: str, trip_id: str, plan: FinalPathwayPlan | None) -> None:
        state = self._get_or_create(user_id, trip_id)
        state.pathway = plan.to_wire() if plan is not None else None
        logger.debug("Pathway saved", user_id=user_id, trip_id=trip_id, cleared=plan is None)

    def apply_pathway(
        self,
        user_id: str,
        trip_id: str,
        plan: FinalPathwayPlan,
        trip_location: str | None = None,
        *,
        image_salt: str | None = None,
    ) -> list[ScheduleBlock]:
        """Materialize a plan into the trip's stored blocks and save both.

        Manual blocks already stored for the trip are preserved; previously
        generated blocks are replaced.

        Raises:
            MaterializationEmptyError: If the plan contains no blocks
        """
        existing = self.get_schedule_blocks(user_id, trip_id)
        merged = materialize(plan, existing, trip_id, trip_location, image_salt=image_salt)
        self.save_schedule_blocks(user_id, trip_id, merged)
        self.save_pathway(user_id, trip_id, plan)
        return merged


class TripLockRegistry:
    """One asyncio lock per (user, trip) to serialize read-modify-write of trip state.

    A lock is dropped when its last holder or waiter leaves.
    """

    def __init__(self) -> None:
        self._locks: defaultdict[tuple[str, str], asyncio.Lock] = defaultdict(asyncio.Lock)
        self._users: defaultdict[tuple[str, str], int] = defaultdict(int)

    @asynccontextmanager
    async def lock(self, user_id: str, trip_id: str) -> AsyncIterator[None]:
        key = (user_id, trip_id)
        self._users[key] += 1
        try:
            async with self._locks[key]:
                yield
        finally:
            self._users[key] -= 1
            if not self._users[key]:
                del self._users[key]
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)


trip_locks = TripLockRegistry()
