"""Fixtures for API tests: app with faked services and an isolated database."""

import pytest
from fastapi.testclient import TestClient

from worldschool.api.dependencies.services import get_pipeline_guards, get_text_service, get_venue_finder
from worldschool.main import create_app
from worldschool.pathways.single_flight import SingleFlightRegistry

USER_HEADERS = {"X-User-Id": "user-1"}


@pytest.fixture
def headers():
    return dict(USER_HEADERS)


@pytest.fixture
def text_service(text_service_cls):
    return text_service_cls('{"drafts": []}')


@pytest.fixture
def venue_finder(venue_finder_cls):
    return venue_finder_cls()


@pytest.fixture
def guards():
    return SingleFlightRegistry()


@pytest.fixture
def client(db_engine, text_service, venue_finder, guards):
    app = create_app()
    app.dependency_overrides[get_text_service] = lambda: text_service
    app.dependency_overrides[get_venue_finder] = lambda: venue_finder
    app.dependency_overrides[get_pipeline_guards] = lambda: guards
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def trip_payload():
    return {
        "id": "trip-lisbon",
        "title": "Spring in Lisbon",
        "startDate": "2025-03-10",
        "endDate": "2025-03-16",
        "baseLocation": "Lisbon, Portugal",
    }


@pytest.fixture
def learner_payload():
    return {
        "name": "Maya",
        "timezone": "Europe/Lisbon",
        "pblProfile": {"interests": ["tiles"], "currentLevel": "beginner"},
    }


@pytest.fixture
def request_base(trip_payload, learner_payload):
    return {
        "tripId": "trip-lisbon",
        "learnerId": "learner-1",
        "selectedDates": ["2025-03-13", "2025-03-10", "2025-03-11"],
        "effortMode": "60min",
        "trip": trip_payload,
        "learnerProfile": learner_payload,
    }
