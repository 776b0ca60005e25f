"""
Domain-specific exceptions for events app.

These build on the shared hierarchy in ``apps.common.exceptions`` so the
DRF exception handler can map them to HTTP responses.
"""

from apps.common.exceptions import NotFoundError


class EventNotFoundError(NotFoundError):
    """Raised when an event does not exist."""

    default_message = 'Event not found'


class ParticipantNotFoundError(NotFoundError):
    """Raised when a participant does not exist."""

    default_message = 'Participant not found'
