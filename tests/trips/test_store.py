import asyncio

import pytest

from worldschool.db.session import get_session
from worldschool.pathways.errors import MaterializationEmptyError
from worldschool.pathways.types import FinalBlock, FinalDayPlan, FinalPathwayPlan, ScheduleBlock
from worldschool.trips.store import TripLockRegistry, TripStateStore


def _plan(block_titles: list[str]) -> FinalPathwayPlan:
    return FinalPathwayPlan(
        days=[
            FinalDayPlan(
                day=1,
                date="2025-03-10",
                driving_question="Q",
                field_experience="Walk",
                inquiry_task="Task",
                artifact="Artifact",
                reflection_prompt="Reflect",
                critique_step="Critique",
                schedule_blocks=[FinalBlock(start_time="09:00", duration=30, title=t) for t in block_titles],
            )
        ],
        summary="Tiles",
    )


def _manual() -> ScheduleBlock:
    return ScheduleBlock(
        id="manual-1",
        date="2025-03-10",
        start_time="2025-03-10T18:00:00",
        duration=60,
        title="Dinner",
        customColor="teal",
    )


def test_empty_trip_has_no_state(db_engine):
    with get_session() as session:
        store = TripStateStore(session)
        assert store.get_schedule_blocks("u1", "t1") == []
        assert store.get_pathway("u1", "t1") is None


def test_schedule_blocks_round_trip_keeps_extra_fields(db_engine):
    with get_session() as session:
        TripStateStore(session).save_schedule_blocks("u1", "t1", [_manual()])

    with get_session() as session:
        blocks = TripStateStore(session).get_schedule_blocks("u1", "t1")

    assert [b.id for b in blocks] == ["manual-1"]
    assert blocks[0].to_wire()["customColor"] == "teal"


def test_state_is_per_user(db_engine):
    with get_session() as session:
        TripStateStore(session).save_schedule_blocks("u1", "t1", [_manual()])

    with get_session() as session:
        assert TripStateStore(session).get_schedule_blocks("u2", "t1") == []


def test_apply_pathway_twice_replaces_generated_blocks(db_engine):
    with get_session() as session:
        TripStateStore(session).save_schedule_blocks("u1", "t1", [_manual()])

    with get_session() as session:
        TripStateStore(session).apply_pathway("u1", "t1", _plan(["Museum", "Park"]), "Lisbon")
    with get_session() as session:
        TripStateStore(session).apply_pathway("u1", "t1", _plan(["Market"]), "Lisbon")

    with get_session() as session:
        store = TripStateStore(session)
        blocks = store.get_schedule_blocks("u1", "t1")
        pathway = store.get_pathway("u1", "t1")

    assert [b.title for b in blocks] == ["Dinner", "Market"]
    assert blocks[1].is_generated is True
    assert pathway.summary == "Tiles"
    assert pathway.days[0].schedule_blocks[0].title == "Market"


def test_failed_apply_leaves_state_untouched(db_engine):
    with get_session() as session:
        TripStateStore(session).save_schedule_blocks("u1", "t1", [_manual()])

    with pytest.raises(MaterializationEmptyError):
        with get_session() as session:
            TripStateStore(session).apply_pathway("u1", "t1", _plan([]))

    with get_session() as session:
        store = TripStateStore(session)
        assert [b.id for b in store.get_schedule_blocks("u1", "t1")] == ["manual-1"]
        assert store.get_pathway("u1", "t1") is None


def test_save_pathway_none_clears(db_engine):
    with get_session() as session:
        TripStateStore(session).save_pathway("u1", "t1", _plan(["Museum"]))
    with get_session() as session:
        TripStateStore(session).save_pathway("u1", "t1", None)

    with get_session() as session:
        assert TripStateStore(session).get_pathway("u1", "t1") is None


@pytest.mark.asyncio
async def test_trip_lock_serializes_same_trip():
    locks = TripLockRegistry()
    order: list[str] = []

    async def worker(name: str):
        async with locks.lock("u1", "t1"):
            order.append(f"{name}-start")
            await asyncio.sleep(0.01)
            order.append(f"{name}-end")

    await asyncio.gather(worker("a"), worker("b"))

    assert order == ["a-start", "a-end", "b-start", "b-end"]
    assert len(locks) == 0


@pytest.mark.asyncio
async def test_trip_lock_dropped_after_failure():
    locks = TripLockRegistry()

    with pytest.raises(RuntimeError):
        async with locks.lock("u1", "t1"):
            assert len(locks) == 1
            raise RuntimeError("write failed")

    assert len(locks) == 0
    async with locks.lock("u1", "t1"):
        assert len(locks) == 1
