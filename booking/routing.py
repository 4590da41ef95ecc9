"""
booking/routing.py
=====================================================================================
WebSocket route mappings for Django Channels.
=====================================================================================
"""

from django.urls import re_path
from . import consumers

websocket_urlpatterns = [
    # -------------------------------------------------------------------------
    # Floor plan editor
    # Example connection: ws://host/ws/floor-plan/?hall=white
    # or with the hall in the path: ws://host/ws/floor-plan/white/
    # -------------------------------------------------------------------------
    re_path(r"^ws/floor-plan/$", consumers.FloorPlanConsumer.as_asgi()),
    re_path(r"^ws/floor-plan/(?P<hall>[-\w]+)/$", consumers.FloorPlanConsumer.as_asgi()),
]
