import json
import logging
from urllib.parse import parse_qs

from channels.generic.websocket import AsyncWebsocketConsumer
from django.conf import settings

from .exceptions import FloorPlanError
from .floorplan import FloorPlanSurface
from .gateway import OrmTableGateway

logger = logging.getLogger(__name__)

FLOOR_PLAN_GROUP = "floor_plan"


# ==============================================================================
# Base Helper
# ==============================================================================
class SafeConsumer(AsyncWebsocketConsumer):
    """Base consumer with safe JSON sending method."""

    async def safe_send(self, data: dict):
        try:
            await self.send(text_data=json.dumps(data, default=str))
        except Exception as exc:
            logger.error(f"{self.__class__.__name__} failed to send data: {exc}")


# ==============================================================================
# Floor Plan Editor Consumer
# ==============================================================================
class FloorPlanConsumer(SafeConsumer):
    """
    One floor plan editing session.

    The browser streams raw pointer events; the server-side surface turns
    them into move/resize/select/detail outcomes, commits finished gestures
    and reports every change back. Table updates saved anywhere else arrive
    through the ``floor_plan`` group.
    """

    # --------------------------------------------------------------------------
    # Connection lifecycle
    # --------------------------------------------------------------------------
    async def connect(self):
        user = self.scope.get("user")
        if not user or user.is_anonymous:
            await self.close(code=4001)
            logger.warning("❌ Floor plan connect refused (unauthorized user)")
            return

        query = parse_qs(self.scope.get("query_string", b"").decode())
        route_kwargs = self.scope.get("url_route", {}).get("kwargs", {})
        self.hall = route_kwargs.get("hall") or (query.get("hall") or [None])[0]

        self.surface = FloorPlanSurface(
            OrmTableGateway(user=user),
            hall=self.hall,
            notify=self.relay,
            can_edit=user.can_edit_floor_plan,
            double_activation_window=getattr(settings, "DOUBLE_ACTIVATION_WINDOW", 0.5),
        )

        await self.channel_layer.group_add(FLOOR_PLAN_GROUP, self.channel_name)
        await self.accept()
        await self.surface.load()
        logger.info(f"✅ Floor plan connected: {user.username} (hall={self.hall or 'all'})")

    async def disconnect(self, code):
        await self.channel_layer.group_discard(FLOOR_PLAN_GROUP, self.channel_name)
        surface = getattr(self, "surface", None)
        if surface is not None:
            # Let commits already sent to the database finish.
            await surface.drain()

    # --------------------------------------------------------------------------
    # Inbound actions
    # --------------------------------------------------------------------------
    async def receive(self, text_data=None, bytes_data=None):
        try:
            data = json.loads(text_data or "")
            action = data["action"]
            handler = self.ACTIONS[action]
        except (ValueError, TypeError, KeyError) as exc:
            await self.relay("error", {"message": "Invalid payload"})
            logger.debug(f"Floor plan payload rejected: {text_data!r} ({exc})")
            return

        try:
            await handler(self, data)
        except FloorPlanError as exc:
            await self.relay("error", {"message": exc.message})
        except (KeyError, ValueError, TypeError) as exc:
            await self.relay("error", {"message": f"Invalid {action} payload"})
            logger.debug(f"Floor plan {action} rejected: {exc}")

    async def _pointer_down(self, data):
        await self.surface.pointer_down(
            int(data["table_id"]),
            data["pointer_id"],
            int(data["x"]),
            int(data["y"]),
            handle=data.get("handle"),
        )

    async def _pointer_move(self, data):
        await self.surface.pointer_move(data["pointer_id"], int(data["x"]), int(data["y"]))

    async def _pointer_up(self, data):
        await self.surface.pointer_up(data["pointer_id"])

    async def _pointer_cancel(self, data):
        await self.surface.pointer_cancel(data["pointer_id"])

    async def _toggle_edit(self, data):
        if "edit_mode" in data:
            await self.surface.set_edit_mode(data["edit_mode"])
        else:
            await self.surface.toggle_edit_mode()

    async def _editor_nudge(self, data):
        await self.surface.edit("nudge", data["direction"])

    async def _editor_capacity(self, data):
        await self.surface.edit("change_capacity", int(data["delta"]))

    async def _editor_position(self, data):
        await self.surface.edit("set_position", x=data.get("x"), y=data.get("y"))

    async def _editor_save(self, data):
        await self.surface.save_editor()

    async def _editor_cancel(self, data):
        await self.surface.cancel_editor()

    async def _refresh(self, data):
        await self.surface.load()

    ACTIONS = {
        "pointerdown": _pointer_down,
        "pointermove": _pointer_move,
        "pointerup": _pointer_up,
        "pointercancel": _pointer_cancel,
        "toggle_edit": _toggle_edit,
        "editor_nudge": _editor_nudge,
        "editor_capacity": _editor_capacity,
        "editor_position": _editor_position,
        "editor_save": _editor_save,
        "editor_cancel": _editor_cancel,
        "refresh": _refresh,
    }

    # --------------------------------------------------------------------------
    # Outbound
    # --------------------------------------------------------------------------
    async def relay(self, event, data):
        """Surface notifications go straight to the browser."""
        await self.safe_send({"type": event, "data": data})

    async def table_update(self, event):
        """A table was saved (by any session or the REST API)."""
        record = event["data"]
        if await self.surface.apply_remote(record):
            await self.safe_send({"type": "table_update", "data": record})

    async def reservation_update(self, event):
        data = event["data"]
        if data.get("table_id") in self.surface.tables:
            await self.safe_send({"type": "reservation_update", "data": data})
