"""Venue Enrichment.

Attaches nearby venue suggestions to every block of a detailed plan.

Rules:
- Every block is looked up independently and concurrently
- A failed lookup for one block never affects any other block or the plan
- The trip location is geocoded at most once per enrichment pass
- Output order is plan order, not completion order
- At most ``max_results`` suggestions per block; no suggestions is valid
"""

import asyncio
from collections.abc import Sequence
from typing import Protocol

from loguru import logger

from worldschool.config.settings import settings
from worldschool.pathways.errors import EnrichmentError
from worldschool.pathways.types import Coordinates, VenueSuggestion

# First category with a matching keyword wins
VENUE_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("shop", ("shop", "store", "market", "boutique")),
    ("museum", ("museum", "gallery", "exhibition")),
    ("park", ("park", "garden", "nature", "outdoor")),
    ("restaurant", ("restaurant", "cafe", "food", "dining")),
    ("library", ("library", "bookstore", "books")),
    ("workshop", ("workshop", "studio", "class", "course")),
    ("theater", ("theater", "cinema", "performance", "show")),
    ("market", ("market", "bazaar", "vendor", "stall")),
)


class VenueFinder(Protocol):
    async def geocode(self, location: str) -> Coordinates | None: ...

    async def search(
        self,
        query: str,
        near: Coordinates,
        radius_meters: int = 5000,
        max_results: int = 3,
        show_exact_addresses: bool = False,
    ) -> list[VenueSuggestion]: ...


class BlockLike(Protocol):
    title: str
    description: str | None


def venue_search_query(
    title: str,
    description: str | None,
    field_experience: str | None,
    location: str,
) -> str | None:
    """Derive a venue search query from a block's text.

    Returns:
        "{category} {location}" for the first matching category,
        "{title} {location}" otherwise, or None without a title or location
    """
    activity_text = f"{title} {description or ''} {field_experience or ''}".lower()
    for category, keywords in VENUE_KEYWORDS:
        if any(keyword in activity_text for keyword in keywords):
            return f"{category} {location}"
    if title and location:
        return f"{title} {location}"
    return None


class _GeocodeMemo:
    """Shares one geocode call per location across concurrent block lookups."""

    def __init__(self, finder: VenueFinder) -> None:
        self._finder = finder
        self._tasks: dict[str, asyncio.Task] = {}

    async def get(self, location: str) -> Coordinates | None:
        task = self._tasks.get(location)
        if task is None:
            task = asyncio.ensure_future(self._finder.geocode(location))
            self._tasks[location] = task
        return await asyncio.shield(task)


class VenueEnricher:
    """One enrichment pass over a plan.

    Args:
        venue_finder: Geocoding and venue search service
        location: Trip base location used for the geocode and the queries
        show_exact_addresses: Keep street addresses in area labels
        radius_meters: Search radius around the geocoded location
        max_results: Maximum suggestions per block
    """

    def __init__(
        self,
        venue_finder: VenueFinder,
        location: str,
        *,
        show_exact_addresses: bool = False,
        radius_meters: int | None = None,
        max_results: int | None = None,
    ) -> None:
        self.venue_finder = venue_finder
        self.location = location
        self.show_exact_addresses = show_exact_addresses
        self.radius_meters = radius_meters or settings.venue_search_radius_meters
        self.max_results = max_results or settings.venue_max_results
        self._geocodes = _GeocodeMemo(venue_finder)

    async def _lookup(self, block: BlockLike, field_experience: str | None) -> list[VenueSuggestion] | None:
        query = venue_search_query(block.title, block.description, field_experience, self.location)
        if not query:
            return None
        try:
            near = await self._geocodes.get(self.location)
            if near is None:
                logger.debug("Trip location did not resolve, skipping venue lookup", location=self.location)
                return None
            suggestions = await self.venue_finder.search(
                query,
                near,
                radius_meters=self.radius_meters,
                max_results=self.max_results,
                show_exact_addresses=self.show_exact_addresses,
            )
        except Exception as e:
            raise EnrichmentError(f"Venue lookup failed for block '{block.title}'", [f"{type(e).__name__}: {e}"]) from e

        logger.debug("Venue lookup finished", block_title=block.title, query=query, result_count=len(suggestions))
        return list(suggestions[: self.max_results]) or None

    async def lookup_block(self, block: BlockLike, field_experience: str | None) -> list[VenueSuggestion] | None:
        """Look up venues for one block. Never raises."""
        try:
            return await self._lookup(block, field_experience)
        except EnrichmentError as e:
            logger.warning(
                "Venue enrichment failed, continuing without local options",
                block_title=block.title,
                error_code=e.code,
                error_details=e.details,
            )
            return None

    async def enrich(
        self,
        days: Sequence[tuple[str | None, Sequence[BlockLike]]],
    ) -> list[list[list[VenueSuggestion] | None]]:
        """Look up venues for every block of every day concurrently.

        Args:
            days: Per day, its field experience and its blocks

        Returns:
            Per day, per block, the suggestions (or None), in input order
        """
        coroutines = [
            self.lookup_block(block, field_experience) for field_experience, blocks in days for block in blocks
        ]
        flat = await asyncio.gather(*coroutines)

        results: list[list[list[VenueSuggestion] | None]] = []
        position = 0
        for _, blocks in days:
            results.append(list(flat[position : position + len(blocks)]))
            position += len(blocks)

        logger.info(
            "Venue enrichment finished",
            location=self.location,
            block_count=len(flat),
            enriched_count=sum(1 for r in flat if r),
        )
        return results
