"""
booking/gateway.py

Async persistence gateway used by the floor plan surface. It runs the
synchronous service layer through ``database_sync_to_async`` and hands back
the same JSON-ready records the REST API returns.
"""

import logging

from channels.db import database_sync_to_async
from django.db import DatabaseError
from rest_framework.exceptions import ValidationError

from . import services
from .exceptions import GatewayError, TableNotFound
from .serializers import TableSerializer, TableWithReservationsSerializer

logger = logging.getLogger(__name__)


class OrmTableGateway:
    """Table reads and partial updates against the Django ORM."""

    def __init__(self, user=None):
        self.user = user

    @database_sync_to_async
    def list_tables(self, hall=None):
        return TableSerializer(services.list_tables(hall=hall), many=True).data

    @database_sync_to_async
    def update_table(self, table_id, fields):
        try:
            table = services.update_table(table_id, fields, user=self.user)
        except TableNotFound:
            raise
        except ValidationError as exc:
            raise GatewayError("Invalid table values", errors=exc.detail)
        except DatabaseError as exc:
            logger.error(f"Storing table {table_id} failed: {exc}", exc_info=True)
            raise GatewayError("Table could not be saved")
        return TableSerializer(table).data

    @database_sync_to_async
    def table_detail(self, table_id, date=None):
        table = services.table_detail(table_id, date=date)
        return TableWithReservationsSerializer(table, context={"date": date}).data
