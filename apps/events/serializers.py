from rest_framework import serializers

from apps.common.serializers import (
    PaginationQuerySerializer,
    PaginationSerializer,
    RFC3339DateTimeField,
)
from .models import Event, Participant, EventParticipant
from .services import PARTICIPANT_SORT_FIELDS


# =============================================================================
# Input Serializers
# =============================================================================

class EventCreateSerializer(serializers.Serializer):
    """
    Validate input for creating an event.

    Fields:
        name (str): Event name
        description (str): Optional description
        start_date (datetime): RFC3339 start timestamp
        end_date (datetime): RFC3339 end timestamp
        creator_name (str): Name of the participant creating the event
    """

    name = serializers.CharField(max_length=200)
    description = serializers.CharField(required=False, allow_blank=True, default='')
    start_date = RFC3339DateTimeField()
    end_date = RFC3339DateTimeField()
    creator_name = serializers.CharField(max_length=200)

    def validate(self, attrs):
        """Validate date range."""
        if attrs['start_date'] > attrs['end_date']:
            raise serializers.ValidationError({
                'start_date': 'Start date cannot be after end date'
            })
        return attrs


class EventUpdateSerializer(serializers.Serializer):
    """Validate input for updating an event. Dates must come as a pair."""

    name = serializers.CharField(max_length=200, required=False)
    description = serializers.CharField(required=False, allow_blank=True)
    start_date = RFC3339DateTimeField(required=False)
    end_date = RFC3339DateTimeField(required=False)

    def validate(self, attrs):
        start_date = attrs.get('start_date')
        end_date = attrs.get('end_date')

        if (start_date is None) != (end_date is None):
            raise serializers.ValidationError(
                'Both start_date and end_date must be present'
            )

        if start_date and end_date and start_date > end_date:
            raise serializers.ValidationError({
                'start_date': 'Start date cannot be after end date'
            })

        return attrs


class ParticipateEventSerializer(serializers.Serializer):
    """Validate input for joining an event."""

    participant_name = serializers.CharField(max_length=200)


class EventParticipantQuerySerializer(PaginationQuerySerializer):
    """Query parameters for listing event participants."""

    sort_by = serializers.ChoiceField(
        choices=list(PARTICIPANT_SORT_FIELDS),
        required=False,
        default='created_at',
    )


# =============================================================================
# Output Serializers
# =============================================================================

class ParticipantSerializer(serializers.ModelSerializer):
    """Participant identity."""

    class Meta:
        model = Participant
        fields = ['id', 'slug', 'name', 'created_at']
        read_only_fields = fields


class EventSerializer(serializers.ModelSerializer):
    """Main serializer for events."""

    class Meta:
        model = Event
        fields = [
            'id',
            'slug',
            'name',
            'description',
            'start_date',
            'end_date',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class EventCreatedSerializer(serializers.Serializer):
    """Response for event creation: the event and its creator."""

    event = EventSerializer()
    participant = ParticipantSerializer()


class EventParticipantSerializer(serializers.ModelSerializer):
    """Member of an event."""

    participant = ParticipantSerializer(read_only=True)
    joined_at = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = EventParticipant
        fields = ['id', 'participant', 'is_event_creator', 'joined_at']
        read_only_fields = fields


class EventParticipantPageSerializer(serializers.Serializer):
    data = EventParticipantSerializer(many=True)
    pagination = PaginationSerializer()
