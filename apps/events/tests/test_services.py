"""
Service layer unit tests for events app.

Tests cover:
- Event creation with creator membership
- Joining events
- Event updates
- Member listing and sorting
"""

import pytest
from datetime import timedelta
from uuid import uuid4

from apps.common.exceptions import ValidationError
from apps.events.models import Event, EventParticipant, Participant
from apps.events.services import (
    create_event,
    get_event_by_slug,
    get_event_by_id,
    update_event,
    join_event,
    list_event_participants,
)
from apps.events.services.exceptions import EventNotFoundError


# =============================================================================
# Event Management Service Tests
# =============================================================================

@pytest.mark.django_db
class TestEventManagement:
    """Tests for event_management.py service functions."""

    def test_create_event_success(self, trip_dates):
        """Creating an event also creates the creator and its membership."""
        start_date, end_date = trip_dates
        event, creator = create_event(
            name='Weekend Trip',
            start_date=start_date,
            end_date=end_date,
            creator_name='Alice',
        )

        assert event.name == 'Weekend Trip'
        assert event.slug.startswith('weekend-trip-')
        assert creator.name == 'Alice'
        assert creator.slug.startswith('alice-')

        membership = EventParticipant.objects.get(event=event, participant=creator)
        assert membership.is_event_creator is True

    def test_create_event_same_dates_allowed(self, trip_dates):
        start_date, _ = trip_dates
        event, _ = create_event(
            name='Lunch',
            start_date=start_date,
            end_date=start_date,
            creator_name='Alice',
        )

        assert event.start_date == event.end_date

    def test_create_event_generates_distinct_slugs(self, trip_dates):
        start_date, end_date = trip_dates
        first, _ = create_event(name='Trip', start_date=start_date, end_date=end_date, creator_name='A')
        second, _ = create_event(name='Trip', start_date=start_date, end_date=end_date, creator_name='A')

        assert first.slug != second.slug

    def test_create_event_reversed_dates(self, trip_dates):
        """Start after end is rejected and nothing is written."""
        start_date, end_date = trip_dates

        with pytest.raises(ValidationError, match='Start date cannot be after end date'):
            create_event(
                name='Backwards',
                start_date=end_date,
                end_date=start_date,
                creator_name='Alice',
            )

        assert Event.objects.count() == 0
        assert Participant.objects.count() == 0

    def test_create_event_missing_fields(self, trip_dates):
        start_date, end_date = trip_dates

        with pytest.raises(ValidationError, match=r'Missing required fields \(name, creator_name\)'):
            create_event(name='  ', start_date=start_date, end_date=end_date, creator_name='')

    def test_get_event_by_slug(self, event):
        assert get_event_by_slug(slug=event.slug) == event

    def test_get_event_by_slug_not_found(self):
        with pytest.raises(EventNotFoundError):
            get_event_by_slug(slug='no-such-event')

    def test_get_event_by_id_not_found(self):
        with pytest.raises(EventNotFoundError):
            get_event_by_id(event_id=uuid4())

    def test_update_event_name_and_description(self, event):
        updated = update_event(event_id=event.id, name='Long Weekend', description='Three days')

        assert updated.name == 'Long Weekend'
        assert updated.description == 'Three days'
        assert updated.slug == event.slug

    def test_update_event_dates_together(self, event):
        new_end = event.end_date + timedelta(days=1)

        updated = update_event(event_id=event.id, start_date=event.start_date, end_date=new_end)

        assert updated.end_date == new_end

    def test_update_event_single_date_rejected(self, event):
        with pytest.raises(ValidationError, match='Both start_date and end_date must be present'):
            update_event(event_id=event.id, start_date=event.start_date)

    def test_update_event_reversed_dates(self, event):
        with pytest.raises(ValidationError):
            update_event(event_id=event.id, start_date=event.end_date, end_date=event.start_date)

    def test_update_event_not_found(self):
        with pytest.raises(EventNotFoundError):
            update_event(event_id=uuid4(), name='Nothing')


# =============================================================================
# Participant Management Service Tests
# =============================================================================

@pytest.mark.django_db
class TestParticipantManagement:
    """Tests for participant_management.py service functions."""

    def test_join_event(self, event):
        membership = join_event(slug=event.slug, participant_name='Bob')

        assert membership.event == event
        assert membership.participant.name == 'Bob'
        assert membership.is_event_creator is False
        assert event.memberships.filter(participant=membership.participant).exists()

    def test_join_event_not_found(self):
        with pytest.raises(EventNotFoundError):
            join_event(slug='missing', participant_name='Bob')

        assert Participant.objects.count() == 0

    def test_join_event_blank_name(self, event):
        with pytest.raises(ValidationError, match=r'Missing required fields \(participant_name\)'):
            join_event(slug=event.slug, participant_name='   ')

    def test_same_name_gets_new_participant(self, event):
        first = join_event(slug=event.slug, participant_name='Bob')
        second = join_event(slug=event.slug, participant_name='Bob')

        assert first.participant_id != second.participant_id
        assert first.participant.slug != second.participant.slug

    def test_list_participants_default_order(self, event, alice, bob):
        """Newest membership first by default."""
        memberships = list_event_participants(slug=event.slug)

        assert [m.participant.name for m in memberships] == ['Bob', 'Alice']

    def test_list_participants_sorted_by_name(self, event, alice, bob):
        join_event(slug=event.slug, participant_name='Carol')

        memberships = list_event_participants(slug=event.slug, sort_by='name', order_by='asc')

        assert [m.participant.name for m in memberships] == ['Alice', 'Bob', 'Carol']

    def test_list_participants_invalid_sort(self, event):
        with pytest.raises(ValidationError, match='Invalid sort_by'):
            list_event_participants(slug=event.slug, sort_by='age')

    def test_list_participants_event_not_found(self):
        with pytest.raises(EventNotFoundError):
            list_event_participants(slug='missing')
