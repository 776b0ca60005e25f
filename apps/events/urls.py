from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'events'

# Router for ViewSets
router = DefaultRouter()
router.register(r'', views.EventViewSet, basename='event')

urlpatterns = [
    # Event ViewSet routes
    # POST   /api/events/                      - Create event with creator
    # GET    /api/events/{slug}/               - Get event
    # PATCH  /api/events/{slug}/               - Update event

    # Custom event actions
    # GET    /api/events/{slug}/participants/  - List members (paginated)
    # POST   /api/events/{slug}/participate/   - Join event

    path('', include(router.urls)),
]
