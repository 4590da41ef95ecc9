import logging

from django.http import Http404
from django.utils import timezone
from django.utils.dateparse import parse_date
from rest_framework import generics, permissions, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response

from . import services
from .exceptions import TableNotFound
from .models import CustomUser, Hall, Reservation
from .permissions import CanEditFloorPlan
from .serializers import (
    CustomUserSerializer,
    HallSerializer,
    ReservationSerializer,
    TableSerializer,
    TableStatusSerializer,
    TableWithReservationsSerializer,
)

logger = logging.getLogger(__name__)


def requested_date(request):
    """``?date=YYYY-MM-DD`` of the request, today when absent."""
    raw = request.query_params.get("date")
    if not raw:
        return timezone.localdate()
    try:
        day = parse_date(raw)
    except ValueError:
        day = None
    if day is None:
        raise ValidationError({"date": "Use the YYYY-MM-DD format."})
    return day


# ==============================================================================
# HALLS
# ==============================================================================

class HallListView(generics.ListAPIView):
    queryset = Hall.objects.all()
    serializer_class = HallSerializer
    permission_classes = [permissions.IsAuthenticated]
    pagination_class = None


# ==============================================================================
# TABLES
# ==============================================================================

class TableViewSet(viewsets.ModelViewSet):
    """
    Floor plan tables. Tables are never deleted through the API; position,
    size and capacity change through PATCH, the live status through
    ``PATCH /tables/{id}/status/``.
    """

    serializer_class = TableWithReservationsSerializer
    permission_classes = [CanEditFloorPlan]
    http_method_names = ["get", "post", "patch", "head", "options"]
    pagination_class = None

    def get_queryset(self):
        hall = self.request.query_params.get("hall")
        return services.list_tables(hall=hall, date=requested_date(self.request))

    def get_serializer_class(self):
        if self.action == "create":
            return TableSerializer
        return super().get_serializer_class()

    def get_serializer_context(self):
        context = super().get_serializer_context()
        if self.request is not None:
            context["date"] = requested_date(self.request)
        return context

    def get_object(self):
        try:
            return super().get_object()
        except Http404:
            raise TableNotFound()

    def perform_create(self, serializer):
        table = serializer.save()
        logger.info(f"🪑 Table {table.number} created in {table.hall_id} by {self.request.user.username}")

    def partial_update(self, request, *args, **kwargs):
        table = services.update_table(kwargs["pk"], request.data, user=request.user)
        return Response(TableSerializer(table).data)

    @action(detail=True, methods=["patch"], url_path="status", permission_classes=[permissions.IsAuthenticated])
    def set_status(self, request, pk=None):
        serializer = TableStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        table = services.set_table_status(pk, serializer.validated_data["status"], user=request.user)
        return Response(TableSerializer(table).data)


# ==============================================================================
# RESERVATIONS
# ==============================================================================

class ReservationViewSet(viewsets.ModelViewSet):
    serializer_class = ReservationSerializer
    permission_classes = [permissions.IsAuthenticated]
    http_method_names = ["get", "post", "patch", "delete", "head", "options"]
    pagination_class = None

    def get_queryset(self):
        qs = Reservation.objects.select_related("table", "created_by")
        if self.action == "list":
            qs = qs.on_date(requested_date(self.request))
            table = self.request.query_params.get("table")
            if table:
                qs = qs.filter(table_id=table)
        return qs.order_by("date", "time")

    def create(self, request, *args, **kwargs):
        if not isinstance(request.data, dict):
            raise ValidationError({"non_field_errors": ["Expected a JSON object."]})
        # An unknown table is a 404, a missing one is a field error.
        if request.data.get("table") not in (None, ""):
            services.get_table(request.data["table"])
        return super().create(request, *args, **kwargs)

    def perform_create(self, serializer):
        serializer.instance = services.create_reservation(serializer.validated_data, user=self.request.user)

    def perform_update(self, serializer):
        serializer.instance = services.update_reservation(serializer.instance, serializer.validated_data)

    def perform_destroy(self, instance):
        logger.info(f"🗑️ Reservation {instance.pk} deleted by {self.request.user.username}")
        instance.delete()


# ==============================================================================
# API VIEWSETS
# ==============================================================================

class CustomUserViewSet(viewsets.ModelViewSet):
    queryset = CustomUser.objects.all().order_by('id')
    serializer_class = CustomUserSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):
        user = self.request.user
        if user.is_staff or user.is_superuser:
            return CustomUser.objects.all().order_by('id')
        return CustomUser.objects.filter(id=user.id)

    def get_permissions(self):
        if self.action in ("create", "destroy"):
            return [permissions.IsAdminUser()]
        return super().get_permissions()
