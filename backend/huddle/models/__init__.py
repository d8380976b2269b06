from huddle.models.user import User
from huddle.models.event import Event
from huddle.models.join_request import JoinRequest

__all__ = ["User", "Event", "JoinRequest"]
