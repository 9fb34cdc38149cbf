"""FastAPI dependencies for external services.

Overridden in tests via ``app.dependency_overrides``.
"""

from functools import lru_cache

from worldschool.integrations.places.client import PlacesClient, get_places_client
from worldschool.pathways.single_flight import SingleFlightRegistry
from worldschool.services.llm.text_service import AgentTextService, GenerativeTextService


@lru_cache(maxsize=1)
def get_text_service() -> GenerativeTextService:
    return AgentTextService()


def get_venue_finder() -> PlacesClient:
    return get_places_client()


_pipeline_guards = SingleFlightRegistry()


def get_pipeline_guards() -> SingleFlightRegistry:
    return _pipeline_guards
