"""Root conftest for all tests.

Shared fakes for the generative text service and the venue finder, common
trip/profile fixtures, and an isolated in-memory database.
"""

import json
from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from worldschool.pathways.types import (
    Coordinates,
    EffortMode,
    EffortTrack,
    LearnerProfile,
    TripContext,
    VenueSuggestion,
)


class FakeTextService:
    """Returns queued responses in order and records every prompt.

    A queued exception instance is raised instead of returned.
    """

    def __init__(self, *responses):
        self.responses = list(responses)
        self.prompts: list[str] = []
        self.instructions: list[str | None] = []

    @property
    def call_count(self) -> int:
        return len(self.prompts)

    async def generate(self, prompt: str, *, instructions: str | None = None) -> str:
        self.prompts.append(prompt)
        self.instructions.append(instructions)
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response


class FakeVenueFinder:
    """In-memory venue finder.

    Queries containing any string in ``fail_on`` raise a RuntimeError.
    """

    def __init__(self, coordinates: Coordinates | None = None, fail_on: tuple[str, ...] = (), results: int = 3):
        self.coordinates = coordinates if coordinates is not None else Coordinates(38.72, -9.14, "Lisbon, Portugal")
        self.fail_on = fail_on
        self.results = results
        self.geocode_calls: list[str] = []
        self.search_calls: list[str] = []

    async def geocode(self, location: str) -> Coordinates | None:
        self.geocode_calls.append(location)
        return self.coordinates

    async def search(
        self,
        query: str,
        near: Coordinates,
        radius_meters: int = 5000,
        max_results: int = 3,
        show_exact_addresses: bool = False,
    ) -> list[VenueSuggestion]:
        self.search_calls.append(query)
        if any(marker in query for marker in self.fail_on):
            raise RuntimeError(f"search failed for {query}")
        return [
            VenueSuggestion(
                place_id=f"place-{len(self.search_calls)}-{i}",
                display_name=f"{query} #{i}",
                area_label="Baixa, Lisbon",
                google_maps_uri=f"https://www.google.com/maps/search/?api=1&query=x&query_place_id=place-{i}",
            )
            for i in range(min(self.results, max_results))
        ]


def make_day_json(day: int, iso_date: str, blocks: list[dict] | None = None, **overrides) -> dict:
    payload = {
        "day": day,
        "drivingQuestion": f"What shapes daily life on day {day}?",
        "fieldExperience": f"Walk the old town on day {day}",
        "inquiryTask": "Sketch three doorways",
        "artifact": "Annotated sketchbook page",
        "reflectionPrompt": "What surprised you today?",
        "critiqueStep": "Share the sketch and ask for one improvement",
        "scheduleBlocks": blocks
        if blocks is not None
        else [{"startTime": f"{iso_date}T09:00:00", "duration": 60, "title": "Morning sketch walk"}],
    }
    payload.update(overrides)
    return payload


def make_plan_json(day_set, blocks_per_day: int = 1, **plan_fields) -> str:
    days = []
    for index, iso_date in enumerate(day_set):
        blocks = [
            {"startTime": f"{iso_date}T{9 + b:02d}:00:00", "duration": 45, "title": f"Block {b + 1} of day {index + 1}"}
            for b in range(blocks_per_day)
        ]
        days.append(make_day_json(index + 1, iso_date, blocks))
    return json.dumps({"days": days, **plan_fields})


def make_drafts_json(day_set, draft_count: int = 3, day_counts: list[int] | None = None) -> str:
    drafts = []
    for index, draft_type in enumerate(["continuous", "themes", "hybrid", "extra"][:draft_count]):
        count = day_counts[index] if day_counts else len(day_set)
        drafts.append(
            {
                "type": draft_type,
                "title": f"{draft_type.title()} Journey",
                "overview": "An overview.",
                "whyItFits": "It fits.",
                "days": [
                    {"day": i + 1, "date": "1999-01-01", "headline": f"{draft_type} headline {i + 1}"}
                    for i in range(count)
                ],
            }
        )
    return "```json\n" + json.dumps({"drafts": drafts}) + "\n```"


@pytest.fixture
def text_service_cls():
    return FakeTextService


@pytest.fixture
def venue_finder_cls():
    return FakeVenueFinder


@pytest.fixture
def plan_json():
    return make_plan_json


@pytest.fixture
def drafts_json():
    return make_drafts_json


@pytest.fixture
def day_json():
    return make_day_json


@pytest.fixture
def trip() -> TripContext:
    return TripContext(
        id="trip-lisbon",
        title="Spring in Lisbon",
        start_date=date(2025, 3, 10),
        end_date=date(2025, 3, 16),
        base_location="Lisbon, Portugal",
    )


@pytest.fixture
def profile() -> LearnerProfile:
    return LearnerProfile.model_validate(
        {
            "name": "Maya",
            "timezone": "Europe/Lisbon",
            "pblProfile": {
                "interests": ["architecture", "tiles"],
                "currentLevel": "intermediate",
                "learningGoals": ["observe patterns"],
                "preferredArtifactTypes": ["visual"],
            },
            "experientialProfile": {"reflectionStyle": "journal", "inquiryApproach": "guided"},
        }
    )


@pytest.fixture
def effort() -> EffortMode:
    return EffortMode(track=EffortTrack.SIXTY_MIN)


@pytest.fixture
def day_set() -> tuple[str, ...]:
    return ("2025-03-10", "2025-03-11", "2025-03-13")


@pytest.fixture
def db_engine():
    """Isolated in-memory SQLite engine bound to the session factory."""
    from worldschool.db import session as session_module

    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    previous = (session_module._engine, session_module._SessionLocal)
    session_module.configure_engine(engine)
    try:
        yield engine
    finally:
        session_module._engine, session_module._SessionLocal = previous
        engine.dispose()
