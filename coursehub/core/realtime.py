# coursehub/core/realtime.py
"""Access to the process-wide room registry and broadcaster."""
from starlette.requests import HTTPConnection

from ..services.chat.broadcaster import Broadcaster
from ..services.chat.room_registry import RoomRegistry


def get_room_registry(connection: HTTPConnection) -> RoomRegistry:
    return connection.app.state.room_registry


def get_broadcaster(connection: HTTPConnection) -> Broadcaster:
    return connection.app.state.broadcaster
