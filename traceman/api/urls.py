"""
Traceman API URLs.

Include this in your project's urlpatterns:

    path('api/traceman/', include('traceman.api.urls')),
"""

from rest_framework.routers import DefaultRouter

from .views import (
    AuditViewSet,
    CalendarViewSet,
    HandlerViewSet,
    RecipeViewSet,
    ScheduleItemViewSet,
    ScheduleViewSet,
    SupplierViewSet,
)

router = DefaultRouter()
router.register("schedules", ScheduleViewSet, basename="schedule")
router.register("schedule-items", ScheduleItemViewSet, basename="schedule-item")
router.register("audits", AuditViewSet, basename="audit")
router.register("recipes", RecipeViewSet, basename="recipe")
router.register("handlers", HandlerViewSet, basename="handler")
router.register("suppliers", SupplierViewSet, basename="supplier")
router.register("calendar", CalendarViewSet, basename="calendar")

urlpatterns = router.urls
