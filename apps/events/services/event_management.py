"""
Event management service.

Handles event creation (with its creator), lookup and update.
"""

import logging
from datetime import datetime
from typing import Optional, Tuple
from uuid import UUID

from django.db import transaction

from apps.common.exceptions import ValidationError
from apps.common.identifiers import create_with_unique_slugs
from apps.common.validators import require_fields, validate_date_range
from apps.events.models import Event, EventParticipant, Participant

from .exceptions import EventNotFoundError

logger = logging.getLogger(__name__)


def create_event(
    *,
    name: str,
    start_date: datetime,
    end_date: datetime,
    creator_name: str,
    description: str = ''
) -> Tuple[Event, Participant]:
    """
    Create an event together with its creator participant.

    This is a multi-step operation wrapped in one transaction:
    1. Generate unique slugs for the event and the creator
    2. Create the event
    3. Create the creator participant
    4. Create the creator membership (is_event_creator=True)

    Args:
        name: Event name
        start_date: Event start (aware datetime)
        end_date: Event end (aware datetime)
        creator_name: Name of the participant creating the event
        description: Optional event description

    Returns:
        Tuple of (Event, creator Participant)

    Raises:
        ValidationError: If a required field is blank or dates are reversed
        PersistenceError: If the insert fails for a reason other than a slug race
    """
    require_fields(
        name=name,
        start_date=start_date,
        end_date=end_date,
        creator_name=creator_name,
    )
    validate_date_range(start_date, end_date)

    def _create(event_slug, participant_slug):
        event = Event.objects.create(
            slug=event_slug,
            name=name.strip(),
            description=description or '',
            start_date=start_date,
            end_date=end_date,
        )
        creator = Participant.objects.create(
            slug=participant_slug,
            name=creator_name.strip(),
        )
        EventParticipant.objects.create(
            event=event,
            participant=creator,
            is_event_creator=True,
        )
        return event, creator

    event, creator = create_with_unique_slugs(
        _create,
        (name, Event),
        (creator_name, Participant),
    )

    logger.info("Created event %s with creator %s", event.slug, creator.slug)
    return event, creator


def get_event_by_slug(*, slug: str) -> Event:
    """
    Get an event by its slug.

    Raises:
        EventNotFoundError: If no event has this slug
    """
    try:
        return Event.objects.get(slug=slug)
    except Event.DoesNotExist:
        raise EventNotFoundError(f"Event {slug} not found")


def get_event_by_id(*, event_id: UUID) -> Event:
    """
    Get an event by its ID.

    Raises:
        EventNotFoundError: If event doesn't exist
    """
    try:
        return Event.objects.get(id=event_id)
    except Event.DoesNotExist:
        raise EventNotFoundError(f"Event with ID {event_id} not found")


@transaction.atomic
def update_event(
    *,
    event_id: UUID,
    name: Optional[str] = None,
    description: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None
) -> Event:
    """
    Update event name, description or dates.

    Dates must be supplied together. Uses select_for_update to prevent
    concurrent modifications.

    Raises:
        EventNotFoundError: If event doesn't exist
        ValidationError: If only one date is given, dates are reversed
            or the name is blank
    """
    try:
        event = Event.objects.select_for_update().get(id=event_id)
    except Event.DoesNotExist:
        raise EventNotFoundError(f"Event with ID {event_id} not found")

    update_fields = ['updated_at']

    if name is not None:
        require_fields(name=name)
        event.name = name.strip()
        update_fields.append('name')

    if description is not None:
        event.description = description
        update_fields.append('description')

    if (start_date is None) != (end_date is None):
        raise ValidationError(
            "Both start_date and end_date must be present",
            field='start_date' if start_date is None else 'end_date',
        )

    if start_date is not None:
        validate_date_range(start_date, end_date)
        event.start_date = start_date
        event.end_date = end_date
        update_fields.extend(['start_date', 'end_date'])

    event.save(update_fields=update_fields)

    logger.info("Updated event %s (%s)", event.slug, ', '.join(update_fields[1:]) or 'no fields')
    return event
