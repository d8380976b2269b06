"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from huddle.api.routes import auth, events, join, notifications

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(auth.router)
# Before events: its static /events/my-* paths must win over /events/{event_id}
api_router.include_router(join.router)
api_router.include_router(events.router)
api_router.include_router(notifications.router)
