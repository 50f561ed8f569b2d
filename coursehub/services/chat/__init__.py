# coursehub/services/chat/__init__.py
from .chat_service import ChatService
from .room_registry import RoomRegistry
from .broadcaster import Broadcaster
from .connection import ConnectionSession, SessionState

__all__ = ["ChatService", "RoomRegistry", "Broadcaster", "ConnectionSession", "SessionState"]
