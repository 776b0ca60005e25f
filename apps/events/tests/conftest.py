import pytest
from datetime import datetime, timezone as dt_timezone
from rest_framework.test import APIClient

from apps.events.services import create_event, join_event


@pytest.fixture
def api_client():
    """Return an API client (the API needs no authentication)."""
    return APIClient()


@pytest.fixture
def trip_dates():
    """Start and end of the Weekend Trip."""
    return (
        datetime(2024, 1, 1, 0, 0, tzinfo=dt_timezone.utc),
        datetime(2024, 1, 5, 0, 0, tzinfo=dt_timezone.utc),
    )


@pytest.fixture
def event_with_creator(db, trip_dates):
    """Create the Weekend Trip event with Alice as creator."""
    start_date, end_date = trip_dates
    return create_event(
        name='Weekend Trip',
        description='Two days in the mountains',
        start_date=start_date,
        end_date=end_date,
        creator_name='Alice',
    )


@pytest.fixture
def event(event_with_creator):
    return event_with_creator[0]


@pytest.fixture
def alice(event_with_creator):
    return event_with_creator[1]


@pytest.fixture
def bob_membership(event):
    """Bob joins the Weekend Trip."""
    return join_event(slug=event.slug, participant_name='Bob')


@pytest.fixture
def bob(bob_membership):
    return bob_membership.participant
