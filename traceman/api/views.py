"""
Traceman API ViewSets.

Every endpoint reads and writes through the configured document store
(`TRACEMAN["STORE_BACKEND"]`), so the API serves one data set whichever
backend is installed. Schedules and audits are read-only here: items
change through `schedule-items/`, which enforces the status rules.
"""

import logging

from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from traceman.cache import DepartmentDirectory
from traceman.conf import get_store_backend
from traceman.departments import normalize_department
from traceman.exceptions import PersistenceError, ReferentialError, TraceError, TraceValidationError
from traceman.services.lifecycle import ScheduleItemLifecycle
from traceman.services.suppliers import SupplierMatcher

from .serializers import RescheduleSerializer, TransitionSerializer

logger = logging.getLogger(__name__)

_TRUE_VALUES = ("1", "true", "yes")


def error_response(error: TraceError) -> Response:
    """Map a TraceError to an HTTP response."""
    if isinstance(error, PersistenceError):
        code = status.HTTP_503_SERVICE_UNAVAILABLE
    elif isinstance(error, ReferentialError):
        code = status.HTTP_409_CONFLICT
    elif isinstance(error, TraceValidationError) and error.code == "ITEM_NOT_FOUND":
        code = status.HTTP_404_NOT_FOUND
    else:
        code = status.HTTP_400_BAD_REQUEST
    return Response({"error": error.as_dict()}, status=code)


def not_found(kind: str, key) -> TraceValidationError:
    return TraceValidationError("ITEM_NOT_FOUND", f"{kind} {key} not found", **{kind.lower(): str(key)})


def request_department(request) -> str:
    return normalize_department(request.query_params.get("department") or request.data.get("department"))


def request_actor(request) -> str:
    return request.user.get_username() or "System"


def lifecycle_for(request) -> ScheduleItemLifecycle:
    """Loaded lifecycle of the request's department."""
    store = get_store_backend()
    lifecycle = ScheduleItemLifecycle(
        store,
        request_department(request),
        directory=DepartmentDirectory(store),
    )
    lifecycle.load()
    return lifecycle


# ══════════════════════════════════════════════════════════════
# REFERENCE DATA
# ══════════════════════════════════════════════════════════════


class RecipeViewSet(viewsets.ViewSet):
    """
    Recipes of a department (read-only, ?department=).

    list: List active recipes
    retrieve: Get a recipe by product code
    """

    permission_classes = [IsAuthenticated]
    lookup_value_regex = "[^/]+"

    def list(self, request):
        try:
            recipes = get_store_backend().fetch_recipes(request_department(request))
        except TraceError as e:
            return error_response(e)
        return Response([recipe.as_dict() for recipe in recipes])

    def retrieve(self, request, pk=None):
        try:
            recipes = get_store_backend().fetch_recipes(request_department(request))
            recipe = next((r for r in recipes if r.product_code == pk), None)
            if recipe is None:
                raise not_found("Recipe", pk)
        except TraceError as e:
            return error_response(e)
        return Response(recipe.as_dict())


class HandlerViewSet(viewsets.ViewSet):
    """
    Department staff (read-only).

    list: List active staff (?department=, ?role=Handler|Manager)
    """

    permission_classes = [IsAuthenticated]

    def list(self, request):
        try:
            staff = get_store_backend().fetch_handlers(request_department(request))
        except TraceError as e:
            return error_response(e)
        role = request.query_params.get("role")
        if role:
            staff = [person for person in staff if person.role == role]
        return Response([person.as_dict() for person in staff])


class SupplierViewSet(viewsets.ViewSet):
    """
    Supplier catalog (read-only).

    list: List catalog rows (?department= narrows to one department)
    lookup: Resolve the supplier of an ingredient
    """

    permission_classes = [IsAuthenticated]

    def list(self, request):
        department = request.query_params.get("department")
        try:
            rows = get_store_backend().fetch_supplier_catalog(
                normalize_department(department) if department else None
            )
        except TraceError as e:
            return error_response(e)
        return Response([row.as_dict() for row in rows])

    @action(detail=False, methods=["get"])
    def lookup(self, request):
        """
        Resolve the supplier of an ingredient.

        GET /api/traceman/suppliers/lookup/?ingredient=CAKE%20FLOUR%20(10023)&department=BAKERY
        """
        ingredient = request.query_params.get("ingredient", "")
        department = normalize_department(request.query_params.get("department"))
        try:
            rows = get_store_backend().fetch_supplier_catalog()
        except TraceError as e:
            return error_response(e)
        detail = SupplierMatcher(rows).match(ingredient, department)
        return Response(
            {
                "ingredient": ingredient,
                "department": department,
                "found": not detail.is_unknown,
                "supplier": detail.as_dict(),
            }
        )


# ══════════════════════════════════════════════════════════════
# SCHEDULES AND AUDITS
# ══════════════════════════════════════════════════════════════


class ScheduleViewSet(viewsets.ViewSet):
    """
    Schedules of a department (?department=).

    There is no create or update: whole schedule documents would bypass
    the status rules and the change history.

    list: List schedules
    retrieve: Get a schedule
    destroy: Delete a schedule (?purge_audits=true also deletes its audits)
    """

    permission_classes = [IsAuthenticated]
    lookup_value_regex = "[^/]+"

    def list(self, request):
        try:
            schedules = lifecycle_for(request).schedules
        except TraceError as e:
            return error_response(e)
        return Response([schedule.as_dict() for schedule in schedules])

    def retrieve(self, request, pk=None):
        try:
            schedule = lifecycle_for(request).get_schedule(pk)
            if schedule is None:
                raise not_found("Schedule", pk)
        except TraceError as e:
            return error_response(e)
        return Response(schedule.as_dict())

    def destroy(self, request, pk=None):
        purge = request.query_params.get("purge_audits", "").lower() in _TRUE_VALUES
        try:
            purged = lifecycle_for(request).delete_schedule(pk, purge_audits=purge)
        except TraceError as e:
            return error_response(e)
        logger.info(
            f"Schedule {pk} deleted by {request_actor(request)}",
            extra={"schedule": pk, "purged": purged, "actor": request_actor(request)},
        )
        return Response(status=status.HTTP_204_NO_CONTENT)


class AuditViewSet(viewsets.ViewSet):
    """
    Audit records of a department (read-only, ?department=).

    Audit records are created by completing schedule items and deleted
    only together with their schedule.

    list: List audits
    retrieve: Get an audit record
    """

    permission_classes = [IsAuthenticated]
    lookup_value_regex = "[^/]+"

    def list(self, request):
        try:
            audits = get_store_backend().fetch_audits(request_department(request))
        except TraceError as e:
            return error_response(e)
        return Response([record.as_dict() for record in audits])

    def retrieve(self, request, pk=None):
        try:
            audits = get_store_backend().fetch_audits(request_department(request))
            record = next((a for a in audits if a.id == str(pk) or a.uid == pk), None)
            if record is None:
                raise not_found("Audit", pk)
        except TraceError as e:
            return error_response(e)
        return Response(record.as_dict())


class ScheduleItemViewSet(viewsets.ViewSet):
    """
    ViewSet for schedule items of one department (?department=).

    list: List items of every schedule
    create: Schedule a new item
    retrieve: Get an item
    partial_update: Edit item fields
    destroy: Remove an item
    transition: Change an item's status (completion creates the audit)
    reschedule: Move an item to another date or time slot
    history: Get the item's change history
    """

    permission_classes = [IsAuthenticated]
    lookup_value_regex = "[^/]+"

    def get_lifecycle(self) -> ScheduleItemLifecycle:
        return lifecycle_for(self.request)

    def list(self, request):
        try:
            lifecycle = self.get_lifecycle()
        except TraceError as e:
            return error_response(e)
        return Response(
            [
                {"scheduleId": schedule.id, **item.as_dict()}
                for schedule in lifecycle.schedules
                for item in schedule.items
            ]
        )

    def retrieve(self, request, pk=None):
        try:
            item = self.get_lifecycle().locate(pk)[1]
        except TraceError as e:
            return error_response(e)
        return Response(item.as_dict())

    def create(self, request):
        data = {k: v for k, v in request.data.items() if k != "department"}
        try:
            item = self.get_lifecycle().create(data, actor=request_actor(request))
        except TraceError as e:
            return error_response(e)
        return Response(item.as_dict(), status=status.HTTP_201_CREATED)

    def partial_update(self, request, pk=None):
        patch = {k: v for k, v in request.data.items() if k != "department"}
        try:
            item = self.get_lifecycle().edit(pk, patch, actor=request_actor(request))
        except TraceError as e:
            return error_response(e)
        return Response(item.as_dict())

    def destroy(self, request, pk=None):
        try:
            self.get_lifecycle().remove_item(pk, actor=request_actor(request))
        except TraceError as e:
            return error_response(e)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["post"])
    def transition(self, request, pk=None):
        """
        Change an item's status.

        POST /api/traceman/schedule-items/{id}/transition/?department=BAKERY
        {
            "status": "completed",
            "actualQty": 18,      // optional
            "qualityScore": 4     // optional
        }
        """
        serializer = TransitionSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        production = dict(serializer.validated_data)
        new_status = production.pop("status")
        packing = production.pop("packingBatchCode", None)
        if packing:
            production["packing_batch_code"] = packing

        try:
            result = self.get_lifecycle().transition(
                pk, new_status, actor=request_actor(request), **production
            )
        except TraceError as e:
            return error_response(e)

        return Response(
            {
                "item": result.item.as_dict(),
                "scheduleId": result.schedule.id if result.schedule else None,
                "audit": result.audit.as_dict() if result.audit else None,
            }
        )

    @action(detail=True, methods=["post"])
    def reschedule(self, request, pk=None):
        """
        Move an item in time.

        POST /api/traceman/schedule-items/{id}/reschedule/?department=BAKERY
        {"date": "2025-03-02", "startTime": "08:00", "endTime": "10:00"}
        """
        serializer = RescheduleSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        data = serializer.validated_data
        try:
            item = self.get_lifecycle().direct_time_update(
                pk,
                data["date"].isoformat(),
                data["startTime"],
                data["endTime"],
                actor=request_actor(request),
            )
        except TraceError as e:
            return error_response(e)
        return Response(item.as_dict())

    @action(detail=True, methods=["get"])
    def history(self, request, pk=None):
        try:
            entries = self.get_lifecycle().history(pk)
        except TraceError as e:
            return error_response(e)
        return Response([entry.as_dict() for entry in entries])


class CalendarViewSet(viewsets.ViewSet):
    """
    Calendar events of a department (?department=).

    GET /api/traceman/calendar/?department=BAKERY
    """

    permission_classes = [IsAuthenticated]

    def list(self, request):
        try:
            events = lifecycle_for(request).calendar_events()
        except TraceError as e:
            return error_response(e)
        return Response([event.as_dict() for event in events])
