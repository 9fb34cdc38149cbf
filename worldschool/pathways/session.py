"""Pathway session driver.

Drives one interactive pathway run for a trip: load drafts, retry or fall
back, select and edit a draft, then finalize.

Rules:
- One draft generation or finalize request in flight at a time
- Draft failures offer retry and the local fallback; finalize failures offer retry only
- Edits survive a regenerate when the draft id and day count still match
- Finalize cannot be cancelled once the generation call is issued
- User-visible messages go through the injected notifier only
"""

from collections.abc import Mapping
from enum import StrEnum
from typing import Any, Protocol

from loguru import logger

from worldschool.pathways.day_set import DaySet, require_days
from worldschool.pathways.drafts import build_fallback_drafts, generate_drafts
from worldschool.pathways.enrichment import VenueFinder
from worldschool.pathways.errors import NothingToPlanError, PathwayError
from worldschool.pathways.finalize import finalize_pathway
from worldschool.pathways.overlay import DraftEditOverlay
from worldschool.pathways.single_flight import SingleFlightGuard
from worldschool.pathways.types import (
    EffortMode,
    FinalPathwayPlan,
    LearnerProfile,
    PathwayDraft,
    PrivacyOptions,
    TripContext,
)
from worldschool.services.llm.text_service import GenerativeTextService


class NotificationKind(StrEnum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


class Notifier(Protocol):
    def notify(self, message: str, kind: NotificationKind) -> None: ...


class LoggingNotifier:
    """Notifier that only logs. Used when no UI channel is attached."""

    def notify(self, message: str, kind: NotificationKind) -> None:
        if kind == NotificationKind.ERROR:
            logger.warning("Pathway notification", kind=kind.value, text=message)
        else:
            logger.info("Pathway notification", kind=kind.value, text=message)


class PathwaySession:
    """Interactive pathway run for one trip, learner and day-set.

    Args:
        trip: Trip context
        profile: Learner profile
        day_set: Resolved dates to plan
        effort_mode: Daily effort
        text_service: Generative text service
        venue_finder: Venue service for enrichment (optional)
        privacy: Venue link and address privacy options
        notifier: Receives user-visible messages
    """

    def __init__(
        self,
        trip: TripContext,
        profile: LearnerProfile,
        day_set: DaySet,
        effort_mode: EffortMode,
        *,
        text_service: GenerativeTextService,
        venue_finder: VenueFinder | None = None,
        privacy: PrivacyOptions | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        self.trip = trip
        self.profile = profile
        self.day_set = day_set
        self.effort_mode = effort_mode
        self.text_service = text_service
        self.venue_finder = venue_finder
        self.privacy = privacy or PrivacyOptions()
        self.notifier = notifier or LoggingNotifier()

        self.guard = SingleFlightGuard(name=f"pathway:{trip.id}")
        self.overlay = DraftEditOverlay()
        self.drafts: list[PathwayDraft] = []
        self.selected_draft_id: str | None = None
        self.last_error: PathwayError | None = None
        self.fallback_available = False

    def _fail(self, error: PathwayError, *, fallback: bool) -> None:
        self.last_error = error
        self.fallback_available = fallback
        self.notifier.notify(error.user_message, NotificationKind.ERROR)

    def _install_drafts(self, drafts: list[PathwayDraft]) -> None:
        self.overlay.reconcile(drafts)
        self.drafts = drafts
        if self.selected_draft_id not in {d.id for d in drafts}:
            self.selected_draft_id = drafts[0].id

    async def load_drafts(self) -> list[PathwayDraft]:
        """Generate drafts for the session's day-set.

        Raises:
            NothingToPlanError: If the day-set is empty
            PipelineBusyError: If another request is in flight
            PathwayError: If generation fails (retry and fallback are offered)
        """
        try:
            require_days(self.day_set)
        except NothingToPlanError as e:
            self._fail(e, fallback=False)
            raise

        with self.guard.hold("draft generation"):
            try:
                drafts = await generate_drafts(
                    self.profile,
                    self.trip,
                    self.day_set,
                    self.effort_mode,
                    text_service=self.text_service,
                )
            except PathwayError as e:
                self._fail(e, fallback=True)
                raise

        self.last_error = None
        self.fallback_available = False
        self._install_drafts(drafts)
        return drafts

    async def retry(self) -> list[PathwayDraft]:
        return await self.load_drafts()

    def use_fallback(self) -> list[PathwayDraft]:
        drafts = build_fallback_drafts(self.day_set)
        self.last_error = None
        self.fallback_available = False
        self._install_drafts(drafts)
        self.notifier.notify("Using a basic pathway. You can edit it before finalizing.", NotificationKind.INFO)
        return drafts

    def select(self, draft_id: str) -> PathwayDraft:
        """Select a draft by id.

        Raises:
            KeyError: If no current draft has this id
        """
        draft = self.overlay.get_effective(draft_id, self.drafts)
        if draft is None:
            raise KeyError(f"Unknown draft id: {draft_id}")
        self.selected_draft_id = draft_id
        return draft

    def save_edit(self, draft_id: str, edited: PathwayDraft) -> None:
        self.overlay.save_edit(draft_id, edited)

    def discard_edit(self, draft_id: str) -> None:
        self.overlay.discard_edit(draft_id)

    def effective_drafts(self) -> list[PathwayDraft]:
        return self.overlay.effective_drafts(self.drafts)

    def _base_draft(self) -> PathwayDraft:
        draft = next((d for d in self.drafts if d.id == self.selected_draft_id), None)
        if draft is None:
            raise KeyError("No draft selected")
        return draft

    async def finalize(self, edited_draft: PathwayDraft | Mapping[str, Any] | None = None) -> FinalPathwayPlan:
        """Finalize the selected draft.

        The overlay's edit for the selected draft is used unless an explicit
        edited draft is passed. The request is not cancellable once issued.

        Raises:
            KeyError: If no draft is selected
            PipelineBusyError: If another request is in flight
            PathwayError: If finalization fails (retry only)
        """
        base = self._base_draft()
        if edited_draft is None and base.id in self.overlay:
            edited_draft = self.overlay.get_effective(base.id, self.drafts)

        with self.guard.hold("finalize"):
            try:
                plan = await finalize_pathway(
                    base,
                    self.day_set,
                    self.effort_mode,
                    self.profile,
                    self.trip,
                    self.privacy,
                    text_service=self.text_service,
                    venue_finder=self.venue_finder,
                    edited_draft=edited_draft,
                )
            except PathwayError as e:
                self._fail(e, fallback=False)
                raise

        self.last_error = None
        self.notifier.notify("Your learning pathway is ready.", NotificationKind.SUCCESS)
        return plan
