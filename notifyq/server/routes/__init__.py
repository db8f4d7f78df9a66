"""Route handlers for the notification queue service."""
from notifyq.server.routes.health import create_health_router
from notifyq.server.routes.notifications import create_notifications_router
__all__ = [
    "create_health_router",
    "create_notifications_router",
]
