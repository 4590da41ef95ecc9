import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.db import transaction
from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from .models import Reservation, Table
from .serializers import TableSerializer

# -----------------------------------------------------------------------------
# Logger
# -----------------------------------------------------------------------------
logger = logging.getLogger(__name__)

FLOOR_PLAN_GROUP = "floor_plan"


def broadcast(event_type, data):
    channel_layer = get_channel_layer()
    if not channel_layer:
        logger.warning("⚠️ Channels layer not found. Skipping real-time broadcast.")
        return
    try:
        async_to_sync(channel_layer.group_send)(FLOOR_PLAN_GROUP, {"type": event_type, "data": data})
    except Exception as exc:
        # A broker outage must not fail the write that triggered the broadcast.
        logger.error(f"Floor plan broadcast failed: {exc}", exc_info=True)


# -----------------------------------------------------------------------------
# Table saved -> every open floor plan
# -----------------------------------------------------------------------------
@receiver(post_save, sender=Table)
def notify_on_table_update(sender, instance, created, **kwargs):
    data = dict(TableSerializer(instance).data)
    transaction.on_commit(lambda: broadcast("table_update", data))


# -----------------------------------------------------------------------------
# Reservation created / changed / deleted
# -----------------------------------------------------------------------------
@receiver(post_save, sender=Reservation)
def notify_on_reservation_update(sender, instance, created, **kwargs):
    data = {
        "event": "created" if created else "updated",
        "id": instance.pk,
        "table_id": instance.table_id,
        "date": instance.date.isoformat() if hasattr(instance.date, "isoformat") else instance.date,
        "status": instance.status,
    }
    logger.info(f"🔄 Reservation {instance.pk} {data['event']} (table {instance.table_id})")
    transaction.on_commit(lambda: broadcast("reservation_update", data))


@receiver(post_delete, sender=Reservation)
def notify_on_reservation_delete(sender, instance, **kwargs):
    data = {"event": "deleted", "id": instance.pk, "table_id": instance.table_id}
    transaction.on_commit(lambda: broadcast("reservation_update", data))
