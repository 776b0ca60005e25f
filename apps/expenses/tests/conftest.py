import pytest
from datetime import datetime, timezone as dt_timezone
from decimal import Decimal
from django.core.files.uploadedfile import SimpleUploadedFile
from rest_framework.test import APIClient

from apps.events.services import create_event, join_event
from apps.expenses.models import ParticipantTag, SplittingMethod
from apps.expenses.services import create_expense


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
def bob(event):
    """Bob joins the Weekend Trip."""
    return join_event(slug=event.slug, participant_name='Bob').participant


@pytest.fixture
def carol(event):
    """Carol joins the Weekend Trip."""
    return join_event(slug=event.slug, participant_name='Carol').participant


@pytest.fixture
def outsider(db, trip_dates):
    """Participant of a different event."""
    start_date, end_date = trip_dates
    _, participant = create_event(
        name='Other Trip',
        start_date=start_date,
        end_date=end_date,
        creator_name='Dave',
    )
    return participant


@pytest.fixture
def equal_expense(event, alice, bob, carol, trip_dates):
    """Hotel: 300.00 split equally, Alice pays, Bob and Carol share."""
    start_date, end_date = trip_dates
    return create_expense(
        event_id=event.id,
        name='Hotel',
        amount=Decimal('300.00'),
        start_date=start_date,
        end_date=end_date,
        splitting_method=SplittingMethod.EQUAL,
        participants=[
            {'id': alice.id, 'tag': ParticipantTag.PAYER},
            {'id': bob.id, 'tag': ParticipantTag.PARTICIPANT},
            {'id': carol.id, 'tag': ParticipantTag.PARTICIPANT},
        ],
    )


@pytest.fixture
def bob_obligation(equal_expense, bob):
    return equal_expense.expense_participants.get(participant=bob)


@pytest.fixture
def png_file():
    """Return a small PNG upload."""
    return SimpleUploadedFile('transfer.png', b'\x89PNG\r\n\x1a\nfake', content_type='image/png')


@pytest.fixture
def pdf_file():
    """Return a small PDF upload."""
    return SimpleUploadedFile('receipt.pdf', b'%PDF-1.4 fake', content_type='application/pdf')
