"""
Events app services layer.

Services own event and participant identity, membership, and listing.
All state-changing operations run in transactions.
"""

from .exceptions import (
    EventNotFoundError,
    ParticipantNotFoundError,
)

from .event_management import (
    create_event,
    get_event_by_slug,
    get_event_by_id,
    update_event,
)

from .participant_management import (
    join_event,
    list_event_participants,
    PARTICIPANT_SORT_FIELDS,
)


__all__ = [
    # Exceptions
    'EventNotFoundError',
    'ParticipantNotFoundError',

    # Event Management
    'create_event',
    'get_event_by_slug',
    'get_event_by_id',
    'update_event',

    # Participant Management
    'join_event',
    'list_event_participants',
    'PARTICIPANT_SORT_FIELDS',
]
