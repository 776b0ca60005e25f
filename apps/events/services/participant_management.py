"""
Participant management service.

Handles joining events and listing event members.
"""

import logging

from django.db.models import QuerySet

from apps.common.exceptions import ValidationError
from apps.common.identifiers import create_with_unique_slugs
from apps.common.pagination import order_queryset
from apps.common.validators import require_fields
from apps.events.models import EventParticipant, Participant

from .event_management import get_event_by_slug

logger = logging.getLogger(__name__)

# Sort keys accepted by list_event_participants, mapped to membership lookups.
PARTICIPANT_SORT_FIELDS = {
    'name': 'participant__name',
    'created_at': 'created_at',
}


def join_event(*, slug: str, participant_name: str) -> EventParticipant:
    """
    Create a new participant and add it to an existing event.

    The participant and its membership are written in one transaction.

    Args:
        slug: Slug of the event to join
        participant_name: Display name of the new participant

    Returns:
        Created EventParticipant (is_event_creator=False)

    Raises:
        ValidationError: If participant_name is blank
        EventNotFoundError: If event doesn't exist
    """
    require_fields(participant_name=participant_name)
    event = get_event_by_slug(slug=slug)

    def _create(participant_slug):
        participant = Participant.objects.create(
            slug=participant_slug,
            name=participant_name.strip(),
        )
        return EventParticipant.objects.create(
            event=event,
            participant=participant,
            is_event_creator=False,
        )

    membership = create_with_unique_slugs(_create, (participant_name, Participant))

    logger.info("Participant %s joined event %s", membership.participant.slug, event.slug)
    return membership


def list_event_participants(
    *,
    slug: str,
    sort_by: str = 'created_at',
    order_by: str = 'desc'
) -> QuerySet:
    """
    Get an event's members, ordered for pagination.

    Sorting by ``name`` goes through the membership to the participant's
    name; ties keep whatever order the database returns.

    Returns:
        Ordered EventParticipant queryset with participants joined

    Raises:
        EventNotFoundError: If event doesn't exist
        ValidationError: If sort_by or order_by is not recognised
    """
    if sort_by not in PARTICIPANT_SORT_FIELDS:
        raise ValidationError(
            f"Invalid sort_by: '{sort_by}'. Valid options: {', '.join(PARTICIPANT_SORT_FIELDS)}",
            field='sort_by',
        )

    event = get_event_by_slug(slug=slug)

    queryset = EventParticipant.objects.filter(event=event).select_related('participant')
    return order_queryset(queryset, sort_field=PARTICIPANT_SORT_FIELDS[sort_by], order_by=order_by)
