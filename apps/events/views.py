from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema

from apps.common.pagination import SplitBillPagination
from apps.common.serializers import ErrorSerializer
from .models import Event
from .serializers import (
    EventSerializer,
    EventCreateSerializer,
    EventUpdateSerializer,
    EventCreatedSerializer,
    EventParticipantSerializer,
    EventParticipantPageSerializer,
    EventParticipantQuerySerializer,
    ParticipateEventSerializer,
)
from .services import (
    create_event,
    get_event_by_slug,
    update_event,
    join_event,
    list_event_participants,
)


class EventViewSet(viewsets.GenericViewSet):
    """
    ViewSet for events and their members.

    All business logic is handled by services; domain errors are turned
    into responses by the project exception handler.

    create: Create an event and its creator participant
    retrieve: Get an event by slug
    partial_update: Update name, description or dates
    participants: List members (paginated)
    participate: Join the event as a new participant
    """

    queryset = Event.objects.all()
    serializer_class = EventSerializer
    permission_classes = [AllowAny]
    pagination_class = SplitBillPagination
    lookup_field = 'slug'

    def get_serializer_class(self):
        """Use different serializers for different actions."""
        if self.action == 'create':
            return EventCreateSerializer
        elif self.action == 'partial_update':
            return EventUpdateSerializer
        elif self.action == 'participate':
            return ParticipateEventSerializer
        return EventSerializer

    @extend_schema(responses={201: EventCreatedSerializer, 400: ErrorSerializer})
    def create(self, request, *args, **kwargs):
        """Create an event with its creator."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        event, participant = create_event(
            name=data['name'],
            description=data.get('description', ''),
            start_date=data['start_date'],
            end_date=data['end_date'],
            creator_name=data['creator_name'],
        )

        output = EventCreatedSerializer({'event': event, 'participant': participant})
        return Response(output.data, status=status.HTTP_201_CREATED)

    @extend_schema(responses={200: EventSerializer, 404: ErrorSerializer})
    def retrieve(self, request, slug=None):
        """Get an event by slug."""
        event = get_event_by_slug(slug=slug)
        return Response(EventSerializer(event).data)

    @extend_schema(responses={200: EventSerializer, 400: ErrorSerializer, 404: ErrorSerializer})
    def partial_update(self, request, slug=None):
        """Update an event."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        event = get_event_by_slug(slug=slug)
        event = update_event(event_id=event.id, **serializer.validated_data)

        return Response(EventSerializer(event).data)

    @extend_schema(
        parameters=[EventParticipantQuerySerializer],
        responses={200: EventParticipantPageSerializer, 404: ErrorSerializer},
    )
    @action(detail=True, methods=['get'])
    def participants(self, request, slug=None):
        """Get one page of the event's members."""
        query = EventParticipantQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        memberships = list_event_participants(
            slug=slug,
            sort_by=query.validated_data['sort_by'],
            order_by=query.validated_data['order_by'],
        )

        page = self.paginate_queryset(memberships)
        serializer = EventParticipantSerializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    @extend_schema(responses={201: EventParticipantSerializer, 404: ErrorSerializer})
    @action(detail=True, methods=['post'])
    def participate(self, request, slug=None):
        """Join the event as a new participant."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        membership = join_event(
            slug=slug,
            participant_name=serializer.validated_data['participant_name'],
        )

        return Response(
            EventParticipantSerializer(membership).data,
            status=status.HTTP_201_CREATED,
        )
