"""Request and response bodies for the pathway and user-state endpoints."""

from datetime import date
from typing import Any

from pydantic import Field, model_validator

from worldschool.pathways.types import (
    CamelModel,
    EffortMode,
    EffortTrack,
    FinalPathwayPlan,
    LearnerProfile,
    PathwayDraft,
    PrivacyOptions,
    ScheduleBlock,
    TripContext,
)


class PathwayRequestBase(CamelModel):
    trip_id: str = Field(min_length=1)
    learner_id: str = Field(min_length=1)
    selected_dates: list[str]
    effort_mode: EffortTrack
    weekly_hours: float | None = None
    trip: TripContext
    learner_profile: LearnerProfile

    @model_validator(mode="after")
    def check_effort(self) -> "PathwayRequestBase":
        if self.effort_mode == EffortTrack.WEEKLY and not (self.weekly_hours and self.weekly_hours > 0):
            raise ValueError("weekly effort mode requires weeklyHours > 0")
        return self

    def effort(self) -> EffortMode:
        return EffortMode(track=self.effort_mode, weekly_hours=self.weekly_hours)


class DraftsRequest(PathwayRequestBase):
    pass


class DraftsResponse(CamelModel):
    drafts: list[PathwayDraft]


class FinalizeRequest(PathwayRequestBase):
    chosen_draft_id: str = Field(min_length=1)
    chosen_draft: PathwayDraft
    # Raw so that structural problems get field-specific messages
    edited_draft: dict[str, Any] | None = None
    venue_links_enabled: bool = True
    show_exact_addresses: bool = False

    def privacy(self) -> PrivacyOptions:
        return PrivacyOptions(
            venue_links_enabled=self.venue_links_enabled,
            show_exact_addresses=self.show_exact_addresses,
        )


class ApplyRequest(CamelModel):
    """Apply a finalized plan, or a one-shot applied plan, to a trip's schedule."""

    trip_id: str = Field(min_length=1)
    trip_location: str | None = None
    plan: FinalPathwayPlan | None = None
    applied_plan: dict[str, Any] | None = None
    trip_start_date: date | None = None
    image_salt: str | None = None

    @model_validator(mode="after")
    def check_source(self) -> "ApplyRequest":
        if (self.plan is None) == (self.applied_plan is None):
            raise ValueError("exactly one of plan or appliedPlan is required")
        if self.applied_plan is not None and self.trip_start_date is None:
            raise ValueError("tripStartDate is required with appliedPlan")
        return self


class ScheduleBlocksBody(CamelModel):
    trip_id: str = Field(min_length=1)
    schedule_blocks: list[ScheduleBlock]


class PathwayBody(CamelModel):
    trip_id: str = Field(min_length=1)
    pathway: FinalPathwayPlan
