"""
booking/services.py

Synchronous service layer shared by the REST views and the floor plan
gateway. Every table write goes through :func:`update_table`, so the REST
endpoint and the live editor apply the same validation and audit logging.
"""

import logging

from django.db import transaction
from django.db.models import Prefetch
from django.utils import timezone

from .exceptions import ReservationConflict, TableNotFound
from .models import Reservation, Table
from .serializers import TableUpdateSerializer

logger = logging.getLogger(__name__)
audit_logger = logging.getLogger("audit")


# -----------------------------------------------------------------------------
# Tables
# -----------------------------------------------------------------------------
def list_tables(hall=None, date=None):
    """Tables of one hall (or all halls) with that day's reservations prefetched."""
    day = date or timezone.localdate()
    qs = Table.objects.select_related("hall").prefetch_related(
        Prefetch("reservations", queryset=Reservation.objects.on_date(day).order_by("time"))
    )
    if hall:
        qs = qs.filter(hall_id=hall)
    return qs.order_by("number")


def get_table(table_id):
    try:
        return Table.objects.select_related("hall").get(pk=table_id)
    except (Table.DoesNotExist, ValueError, TypeError):
        raise TableNotFound()


@transaction.atomic
def update_table(table_id, fields, user=None):
    """
    Apply a partial update to a table and return the saved instance.

    Raises ``TableNotFound`` for an unknown id and DRF ``ValidationError`` for
    out-of-range values (negative position, size below the minimum, capacity
    outside 1..20, unknown status).
    """
    try:
        table = Table.objects.select_for_update().get(pk=table_id)
    except (Table.DoesNotExist, ValueError, TypeError):
        raise TableNotFound()

    serializer = TableUpdateSerializer(table, data=fields, partial=True)
    serializer.is_valid(raise_exception=True)
    changes = dict(serializer.validated_data)
    table = serializer.save()

    who = getattr(user, "username", None) or "system"
    audit_logger.info(f"Table {table.number} updated by {who}: {changes}")
    return table


def set_table_status(table_id, status, user=None):
    return update_table(table_id, {"status": status}, user=user)


# -----------------------------------------------------------------------------
# Reservations
# -----------------------------------------------------------------------------
def find_conflict(table, day, time, exclude_id=None):
    """Active reservation of ``table`` starting at exactly ``day`` / ``time``."""
    qs = Reservation.objects.active().filter(table=table, date=day, time=time)
    if exclude_id is not None:
        qs = qs.exclude(pk=exclude_id)
    return qs.first()


@transaction.atomic
def create_reservation(validated_data, user=None):
    table = validated_data["table"]
    # Lock the table row so two bookings of the same slot cannot interleave.
    Table.objects.select_for_update().filter(pk=table.pk).first()

    day = validated_data.get("date") or timezone.localdate()
    if find_conflict(table, day, validated_data["time"]):
        logger.info(f"Reservation refused: table {table.number} already booked at {day} {validated_data['time']}")
        raise ReservationConflict()

    if user is not None and not user.is_authenticated:
        user = None
    reservation = Reservation.objects.create(created_by=user, **validated_data)
    logger.info(f"📅 Reservation {reservation.pk} created for table {table.number}")
    return reservation


@transaction.atomic
def update_reservation(reservation, validated_data):
    table = validated_data.get("table", reservation.table)
    day = validated_data.get("date", reservation.date)
    time = validated_data.get("time", reservation.time)
    status = validated_data.get("status", reservation.status)

    if status == Reservation.Status.ACTIVE and find_conflict(table, day, time, exclude_id=reservation.pk):
        raise ReservationConflict()

    for attr, value in validated_data.items():
        setattr(reservation, attr, value)
    reservation.save()
    return reservation


def table_detail(table_id, date=None):
    """Single table with the reservations of ``date`` prefetched."""
    table = list_tables(date=date).filter(pk=table_id).first()
    if table is None:
        raise TableNotFound()
    return table
