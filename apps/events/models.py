from django.db import models
import uuid


class Event(models.Model):
    """Shared context under which participants log and split expenses."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    slug = models.SlugField(max_length=64, unique=True, editable=False)
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    start_date = models.DateTimeField()
    end_date = models.DateTimeField()
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'events'
        indexes = [
            models.Index(fields=['created_at'], name='events_created_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return self.name


class Participant(models.Model):
    """A person who joins events and owes or pays obligations."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    slug = models.SlugField(max_length=64, unique=True, editable=False)
    name = models.CharField(max_length=200)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'participants'
        ordering = ['created_at']

    def __str__(self):
        return self.name


class EventParticipant(models.Model):
    """Membership of a participant in an event."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name='memberships')
    participant = models.ForeignKey(Participant, on_delete=models.CASCADE, related_name='memberships')
    is_event_creator = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'event_participants'
        constraints = [
            models.UniqueConstraint(fields=['event', 'participant'], name='unique_event_participant'),
        ]
        indexes = [
            models.Index(fields=['event', 'created_at'], name='event_part_event_created_idx'),
            models.Index(fields=['event', 'is_event_creator'], name='event_part_event_creator_idx'),
        ]
        ordering = ['created_at']

    def __str__(self):
        role = 'creator' if self.is_event_creator else 'member'
        return f"{self.participant.name} in {self.event.name} ({role})"
