"""Google Places (New) client for geocoding and nearby venue search.

Both operations use the Text Search endpoint. Results are privacy-reduced:
street-level geocodes are rounded to city precision and venue area labels
drop the street part of the address unless exact addresses are requested.
"""

from __future__ import annotations

import re
from urllib.parse import quote

import httpx
from loguru import logger

from worldschool.config.settings import settings
from worldschool.pathways.types import Coordinates, VenueSuggestion

_GEOCODE_FIELD_MASK = "places.id,places.displayName,places.formattedAddress,places.location"
_SEARCH_FIELD_MASK = (
    "places.id,places.displayName,places.formattedAddress,places.location,places.rating,"
    "places.userRatingCount,places.websiteUri,places.currentOpeningHours"
)
_STREET_ADDRESS = re.compile(r"\d+\s+\w+\s+(street|st|avenue|ave|road|rd|boulevard|blvd|drive|dr)", re.IGNORECASE)


class PlacesAPIError(RuntimeError):
    """Raised when the Places API rejects a request.

    Attributes:
        status_code: HTTP status returned by the API (None for transport errors)
    """

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


def _raise_for_status(response: httpx.Response) -> None:
    if response.is_success:
        return
    error_text = response.text[:200]
    if response.status_code == 403 or "API key" in error_text:
        raise PlacesAPIError(
            "Places API authentication failed. Check PLACES_API_KEY and that Places API (New) is enabled.",
            response.status_code,
        )
    if response.status_code == 429 or "quota" in error_text:
        raise PlacesAPIError("Places API quota exceeded.", response.status_code)
    raise PlacesAPIError(f"Places API error: {response.status_code} - {error_text}", response.status_code)


def area_label_for(formatted_address: str, show_exact_addresses: bool) -> str:
    """Reduce an address to neighbourhood/city level.

    "123 Main St, Springfield, IL" becomes "Springfield, IL" unless exact
    addresses are enabled.
    """
    if show_exact_addresses or not formatted_address:
        return formatted_address
    parts = formatted_address.split(",")
    if len(parts) >= 2:
        return ",".join(parts[1:]).strip()
    return formatted_address


def maps_search_uri(display_name: str, place_id: str) -> str:
    return f"https://www.google.com/maps/search/?api=1&query={quote(display_name, safe='')}&query_place_id={place_id}"


class PlacesClient:
    """Async client for the Places API (New).

    Without an API key the client is disabled: ``geocode`` returns None and
    ``search`` returns an empty list without touching the network.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = (api_key if api_key is not None else settings.places_api_key).strip()
        self.base_url = base_url or settings.places_base_url
        self.timeout = timeout or settings.places_timeout_seconds
        self._transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    async def _search_text(self, body: dict, field_mask: str) -> list[dict]:
        headers = {
            "Content-Type": "application/json",
            "X-Goog-Api-Key": self.api_key,
            "X-Goog-FieldMask": field_mask,
        }
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                response = await client.post("/places:searchText", json=body, headers=headers)
        except httpx.RequestError as e:
            raise PlacesAPIError(f"Places API request failed: {type(e).__name__}: {e}") from e

        _raise_for_status(response)
        try:
            data = response.json()
        except ValueError as e:
            raise PlacesAPIError("Places API returned invalid JSON", response.status_code) from e
        places = data.get("places") if isinstance(data, dict) else None
        return places or []

    async def geocode(self, location: str) -> Coordinates | None:
        """Resolve a location name to coordinates.

        Street-level results are rounded to two decimals (about 1 km).

        Returns:
            Coordinates, or None if disabled, not found or the request failed
        """
        if not self.enabled or not location.strip():
            return None

        try:
            places = await self._search_text({"textQuery": location, "maxResultCount": 1}, _GEOCODE_FIELD_MASK)
        except PlacesAPIError as e:
            logger.warning("Places geocode failed", location=location, error_message=str(e))
            return None

        place = places[0] if places else None
        point = place.get("location") if place else None
        if not point or "latitude" not in point or "longitude" not in point:
            logger.warning("No place found for location", location=location)
            return None

        formatted_address = place.get("formattedAddress") or ""
        latitude = float(point["latitude"])
        longitude = float(point["longitude"])
        if _STREET_ADDRESS.search(formatted_address):
            latitude = round(latitude, 2)
            longitude = round(longitude, 2)

        return Coordinates(latitude=latitude, longitude=longitude, formatted_address=formatted_address)

    async def search(
        self,
        query: str,
        near: Coordinates,
        radius_meters: int = 5000,
        max_results: int = 3,
        show_exact_addresses: bool = False,
    ) -> list[VenueSuggestion]:
        """Search venues near a point.

        Returns:
            Up to ``max_results`` suggestions, empty when disabled

        Raises:
            PlacesAPIError: If the API rejects the request or is unreachable
        """
        if not self.enabled:
            return []

        body = {
            "textQuery": query,
            "maxResultCount": max_results,
            "locationBias": {
                "circle": {
                    "center": {"latitude": near.latitude, "longitude": near.longitude},
                    "radius": radius_meters,
                }
            },
        }
        places = await self._search_text(body, _SEARCH_FIELD_MASK)

        suggestions = []
        for place in places[:max_results]:
            place_id = place.get("id")
            if not place_id:
                continue
            display_name = (place.get("displayName") or {}).get("text") or query
            suggestions.append(
                VenueSuggestion(
                    place_id=place_id,
                    display_name=display_name,
                    area_label=area_label_for(place.get("formattedAddress") or "", show_exact_addresses),
                    google_maps_uri=maps_search_uri(display_name, place_id),
                    website_uri=place.get("websiteUri"),
                    rating=place.get("rating"),
                    user_rating_count=place.get("userRatingCount"),
                    open_now=(place.get("currentOpeningHours") or {}).get("openNow"),
                )
            )
        return suggestions


def get_places_client() -> PlacesClient:
    """Get a configured Places client instance."""
    return PlacesClient()
