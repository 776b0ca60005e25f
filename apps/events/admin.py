from django.contrib import admin
from apps.events.models import Event, Participant, EventParticipant


class EventParticipantInline(admin.TabularInline):
    """Inline admin for event memberships."""
    model = EventParticipant
    extra = 0
    fields = ['participant', 'is_event_creator', 'created_at']
    readonly_fields = ['created_at']


@admin.register(Event)
class EventAdmin(admin.ModelAdmin):
    """Admin interface for Events."""

    list_display = ['name', 'slug', 'start_date', 'end_date', 'participant_count', 'created_at']
    list_filter = ['start_date', 'created_at']
    search_fields = ['name', 'slug', 'description']
    readonly_fields = ['slug', 'created_at', 'updated_at']
    inlines = [EventParticipantInline]
    date_hierarchy = 'start_date'
    ordering = ['-created_at']

    def participant_count(self, obj):
        """Show number of members."""
        return obj.memberships.count()
    participant_count.short_description = 'Participants'


@admin.register(Participant)
class ParticipantAdmin(admin.ModelAdmin):
    """Admin interface for Participants."""

    list_display = ['name', 'slug', 'created_at']
    search_fields = ['name', 'slug']
    readonly_fields = ['slug', 'created_at', 'updated_at']
    ordering = ['-created_at']
