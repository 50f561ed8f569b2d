from sqlalchemy import Column, Integer, Text, Boolean, DateTime, ForeignKey, Uuid, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from ..base import Base

class ChatMessage(Base):
    __tablename__ = "chat_messages"

    chat_room_id = Column(Uuid, ForeignKey("chat_rooms.id"), nullable=False, index=True)
    sender_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    sequence = Column(Integer, nullable=False)
    sent_at = Column(DateTime(timezone=True), nullable=False)
    # Only ever flipped from False to True
    is_read = Column(Boolean, default=False, nullable=False)

    # Relationships
    chat_room = relationship("ChatRoom", back_populates="messages")
    sender = relationship("User")

    __table_args__ = (
        UniqueConstraint("chat_room_id", "sequence", name="uq_chat_message_sequence"),
        Index("idx_chat_message_unread", "chat_room_id", "is_read"),
    )

    def to_dict(self, sender: dict = None) -> dict:
        return {
            "id": str(self.id),
            "sender": sender if sender is not None else str(self.sender_id),
            "content": self.content,
            "timestamp": self.sent_at.isoformat(),
            "isRead": self.is_read,
        }
