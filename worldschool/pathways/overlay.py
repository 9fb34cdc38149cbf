"""Draft Edit Overlay.

Holds caller edits to drafts, keyed by draft id. Base drafts are never
mutated; the effective draft is the base with the edited prose applied.

Rules:
- Editable fields are the rationale and each day's headline and summary
- Dates and day numbers always come from the base draft
- Edits whose draft id no longer exists after a regenerate are dropped
- Edits whose day count differs from the regenerated draft are dropped
"""

from loguru import logger

from worldschool.pathways.types import PathwayDraft


def _apply_edit(base: PathwayDraft, edit: PathwayDraft) -> PathwayDraft:
    days = tuple(
        base_day.model_copy(update={"headline": edited_day.headline, "summary": edited_day.summary})
        for base_day, edited_day in zip(base.days, edit.days, strict=True)
    )
    return base.model_copy(update={"rationale": edit.rationale, "days": days})


class DraftEditOverlay:
    def __init__(self) -> None:
        self._edits: dict[str, PathwayDraft] = {}

    def __contains__(self, draft_id: str) -> bool:
        return draft_id in self._edits

    def __len__(self) -> int:
        return len(self._edits)

    def save_edit(self, draft_id: str, edited: PathwayDraft) -> None:
        if edited.id != draft_id:
            edited = edited.model_copy(update={"id": draft_id})
        self._edits[draft_id] = edited
        logger.debug("Draft edit saved", draft_id=draft_id)

    def discard_edit(self, draft_id: str) -> None:
        if self._edits.pop(draft_id, None) is not None:
            logger.debug("Draft edit discarded", draft_id=draft_id)

    def get_edit(self, draft_id: str) -> PathwayDraft | None:
        return self._edits.get(draft_id)

    def get_effective(self, draft_id: str, base_drafts: list[PathwayDraft]) -> PathwayDraft | None:
        """Return the base draft with any saved edit applied.

        Args:
            draft_id: Draft to look up
            base_drafts: Current generated (or fallback) drafts

        Returns:
            Effective draft, or None if no base draft has this id
        """
        base = next((d for d in base_drafts if d.id == draft_id), None)
        if base is None:
            return None
        edit = self._edits.get(draft_id)
        if edit is None or len(edit.days) != len(base.days):
            return base
        return _apply_edit(base, edit)

    def effective_drafts(self, base_drafts: list[PathwayDraft]) -> list[PathwayDraft]:
        return [self.get_effective(d.id, base_drafts) or d for d in base_drafts]

    def reconcile(self, new_drafts: list[PathwayDraft]) -> None:
        """Re-point edits onto a freshly generated draft set.

        An edit survives only if a new draft carries the same id and the same
        number of days; its prose is re-applied onto the new day skeleton.
        """
        by_id = {d.id: d for d in new_drafts}
        kept: dict[str, PathwayDraft] = {}
        dropped: list[str] = []

        for draft_id, edit in self._edits.items():
            base = by_id.get(draft_id)
            if base is None or len(base.days) != len(edit.days):
                dropped.append(draft_id)
                continue
            kept[draft_id] = _apply_edit(base, edit)

        self._edits = kept
        if dropped:
            logger.info("Dropped stale draft edits", dropped=dropped, kept=list(kept))
