# reservation_admin/asgi.py

import os

from django.core.asgi import get_asgi_application

# -----------------------------------------------------------------------------
# Environment setup (must run before any model import)
# -----------------------------------------------------------------------------
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'reservation_admin.settings')
django_asgi_app = get_asgi_application()

from channels.auth import AuthMiddlewareStack  # noqa: E402
from channels.routing import ProtocolTypeRouter, URLRouter  # noqa: E402
from channels.security.websocket import AllowedHostsOriginValidator  # noqa: E402

from booking import routing  # noqa: E402

# -----------------------------------------------------------------------------
# ASGI application configuration
# -----------------------------------------------------------------------------
application = ProtocolTypeRouter({
    # Handles traditional HTTP requests (REST API, admin)
    "http": django_asgi_app,

    # Floor plan editor sessions via Django Channels
    "websocket": AllowedHostsOriginValidator(
        AuthMiddlewareStack(
            URLRouter(routing.websocket_urlpatterns)
        )
    ),
})

if os.getenv("DEBUG_CHANNELS", "false").lower() == "true":
    print("✅ ASGI: Django Channels routing loaded successfully.")
