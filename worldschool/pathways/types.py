"""Pathway data model.

Field names are snake_case in Python and camelCase on the wire
(``why_it_fits`` <-> ``whyItFits``). Both spellings are accepted on input.

Rules:
- Drafts and finalized plans are immutable once produced
- A draft's day count always equals the day-set length
- Only generated schedule blocks are ever replaced by a new pathway
"""

from dataclasses import dataclass
from datetime import date, datetime, time
from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


def parse_time_of_day(value: str) -> time:
    """Extract the time of day from an ISO datetime or a bare clock time.

    The returned time keeps the UTC offset when the input carried one.

    Raises:
        ValueError: If the value has no parseable time component
    """
    text = value.strip()
    if "T" in text or " " in text:
        return datetime.fromisoformat(text).timetz()
    return time.fromisoformat(text)


def check_iso_date(value: str) -> str:
    """Reject anything that is not a ``YYYY-MM-DD`` calendar date."""
    try:
        date.fromisoformat(value)
    except ValueError as e:
        raise ValueError(f"date must be an ISO calendar date (YYYY-MM-DD), got {value!r}") from e
    return value


class CamelModel(BaseModel):
    """Base model serializing to camelCase and accepting either spelling."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class DayMode(StrEnum):
    ENTIRE_TRIP = "entire-trip"
    DATE_RANGE = "date-range"
    SELECT_DAYS = "select-days"


class EffortTrack(StrEnum):
    FIFTEEN_MIN = "15min"
    SIXTY_MIN = "60min"
    FOUR_HOURS = "4hrs"
    WEEKLY = "weekly"


TRACK_DAILY_MINUTES: dict[EffortTrack, int] = {
    EffortTrack.FIFTEEN_MIN: 15,
    EffortTrack.SIXTY_MIN: 60,
    EffortTrack.FOUR_HOURS: 240,
}


class DraftType(StrEnum):
    CONTINUOUS = "continuous"
    THEMES = "themes"
    HYBRID = "hybrid"


# Slot order of the three generated drafts
DRAFT_SLOTS: tuple[DraftType, ...] = (DraftType.CONTINUOUS, DraftType.THEMES, DraftType.HYBRID)


class TripContext(CamelModel):
    """Trip the pathway is planned for. Dates are inclusive calendar dates."""

    id: str
    title: str = ""
    start_date: date
    end_date: date
    base_location: str = ""

    @model_validator(mode="after")
    def check_date_order(self) -> "TripContext":
        if self.end_date < self.start_date:
            raise ValueError(f"Trip end date {self.end_date} is before start date {self.start_date}")
        return self


class LearningPreferences(CamelModel):
    model_config = ConfigDict(extra="allow")

    preferred_learning_times: list[str] = Field(default_factory=list)
    preferred_duration: Literal["short", "medium", "long"] = "medium"
    preferred_duration_minutes: int | None = None
    interaction_style: Literal["solo", "collaborative", "mixed"] = "mixed"
    content_format: list[str] = Field(default_factory=list)


class LearningConstraints(CamelModel):
    model_config = ConfigDict(extra="allow")

    max_daily_minutes: int | None = None
    available_days: list[str] | None = None
    must_avoid_times: list[str] | None = None


class PBLProfile(CamelModel):
    model_config = ConfigDict(extra="allow")

    interests: list[str] = Field(default_factory=list)
    dislikes: list[str] | None = None
    current_level: Literal["beginner", "intermediate", "advanced"] = "beginner"
    learning_goals: list[str] = Field(default_factory=list)
    preferred_artifact_types: list[str] = Field(default_factory=list)


class ExperientialProfile(CamelModel):
    model_config = ConfigDict(extra="allow")

    preferred_field_experiences: list[str] = Field(default_factory=list)
    reflection_style: Literal["journal", "discussion", "artistic", "analytical"] = "journal"
    inquiry_approach: Literal["structured", "open-ended", "guided"] = "guided"


class LearnerProfile(CamelModel):
    """Learner profile. Only used to build generation prompts."""

    model_config = ConfigDict(extra="allow")

    name: str
    timezone: str = "UTC"
    age_band: str | None = None
    languages: list[str] = Field(default_factory=list)
    preferences: LearningPreferences = Field(default_factory=LearningPreferences)
    constraints: LearningConstraints = Field(default_factory=LearningConstraints)
    pbl_profile: PBLProfile = Field(default_factory=PBLProfile)
    experiential_profile: ExperientialProfile = Field(default_factory=ExperientialProfile)


class EffortMode(CamelModel):
    """Daily learning effort.

    Fixed tracks map to 15, 60 or 240 minutes a day. The weekly track spreads
    ``weekly_hours`` evenly across the planned days.
    """

    track: EffortTrack
    weekly_hours: float | None = None

    @model_validator(mode="after")
    def check_weekly_hours(self) -> "EffortMode":
        if self.track == EffortTrack.WEEKLY and not (self.weekly_hours and self.weekly_hours > 0):
            raise ValueError("weekly effort mode requires weekly_hours > 0")
        return self

    def daily_minutes(self, day_count: int) -> int:
        """Target minutes per planned day.

        Args:
            day_count: Number of days in the day-set

        Returns:
            Minutes per day (at least 1 for the weekly track)
        """
        if self.track != EffortTrack.WEEKLY:
            return TRACK_DAILY_MINUTES[self.track]
        if day_count <= 0:
            raise ValueError("day_count must be positive")
        return max(1, round((self.weekly_hours or 0) * 60 / day_count))

    def describe(self, day_count: int) -> str:
        if self.track == EffortTrack.WEEKLY:
            return f"{self.weekly_hours} hours per week (about {self.daily_minutes(day_count)} minutes per day)"
        return f"{self.daily_minutes(day_count)} minutes per day"


class DraftDay(CamelModel):
    model_config = ConfigDict(frozen=True)

    day: int = Field(ge=1)
    date: str
    headline: str
    summary: str | None = None


class PathwayDraft(CamelModel):
    """Candidate day-by-day outline. Immutable; edits live in the overlay."""

    model_config = ConfigDict(frozen=True)

    id: str
    type: DraftType
    title: str
    overview: str
    why_it_fits: str
    rationale: str | None = None
    days: tuple[DraftDay, ...]


@dataclass(frozen=True)
class Coordinates:
    """Geocoded location.

    Attributes:
        latitude: Latitude in degrees
        longitude: Longitude in degrees
        formatted_address: Address the geocoder resolved to
    """

    latitude: float
    longitude: float
    formatted_address: str = ""


class VenueSuggestion(CamelModel):
    place_id: str
    display_name: str
    area_label: str = ""
    google_maps_uri: str
    website_uri: str | None = None
    rating: float | None = None
    user_rating_count: int | None = None
    open_now: bool | None = None


class FinalBlock(CamelModel):
    start_time: str
    duration: int = Field(gt=0)
    title: str = Field(min_length=1)
    description: str | None = None
    local_options: list[VenueSuggestion] | None = None

    @field_validator("start_time")
    @classmethod
    def check_start_time(cls, v: str) -> str:
        parse_time_of_day(v)
        return v


class FinalDayPlan(CamelModel):
    day: int = Field(ge=1)
    date: str
    driving_question: str
    field_experience: str
    inquiry_task: str
    artifact: str
    reflection_prompt: str
    critique_step: str
    schedule_blocks: list[FinalBlock]

    @field_validator("date")
    @classmethod
    def check_date(cls, v: str) -> str:
        return check_iso_date(v)


class FinalPathwayPlan(CamelModel):
    days: list[FinalDayPlan]
    summary: str | None = None
    verify_locally: str | None = None


class PrivacyOptions(CamelModel):
    venue_links_enabled: bool = True
    show_exact_addresses: bool = False


class ScheduleBlock(CamelModel):
    """Persisted schedule block.

    Manual blocks (``is_generated=False``) are never touched by a pathway.
    """

    model_config = ConfigDict(extra="allow")

    id: str
    date: str
    start_time: str
    duration: int
    title: str
    description: str | None = None
    location: str | None = None
    notes: str | None = None
    is_generated: bool = False
    created_at: datetime | None = None
    driving_question: str | None = None
    field_experience: str | None = None
    inquiry_task: str | None = None
    artifact: str | None = None
    reflection_prompt: str | None = None
    critique_step: str | None = None
    local_options: list[VenueSuggestion] | None = None
    image_url: str | None = None
    image_alt: str | None = None
    image_mode: Literal["off", "stock", "google"] = "off"

    @field_validator("date")
    @classmethod
    def check_date(cls, v: str) -> str:
        return check_iso_date(v)
