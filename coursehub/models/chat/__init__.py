from .chat_room import ChatRoom, ChatParticipant
from .chat_message import ChatMessage

__all__ = ["ChatRoom", "ChatParticipant", "ChatMessage"]
