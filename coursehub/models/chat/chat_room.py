from sqlalchemy import Column, Integer, DateTime, ForeignKey, Uuid, UniqueConstraint
from sqlalchemy.orm import relationship
from ..base import Base

class ChatRoom(Base):
    __tablename__ = "chat_rooms"

    # One room per course; the unique index arbitrates concurrent lazy creation
    course_id = Column(Uuid, ForeignKey("courses.id"), nullable=False, unique=True, index=True)
    last_message_at = Column(DateTime(timezone=True), nullable=False)
    # Incremented with a row lock on every append; the new value is the message sequence
    message_count = Column(Integer, nullable=False, default=0)

    # Relationships
    participants = relationship("ChatParticipant", back_populates="chat_room", cascade="all, delete-orphan")
    messages = relationship(
        "ChatMessage",
        back_populates="chat_room",
        order_by="ChatMessage.sequence",
        cascade="all, delete-orphan",
    )


class ChatParticipant(Base):
    """Tutor or student recorded when the room was created."""
    __tablename__ = "chat_participants"

    chat_room_id = Column(Uuid, ForeignKey("chat_rooms.id"), nullable=False, index=True)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)

    # Relationships
    chat_room = relationship("ChatRoom", back_populates="participants")
    user = relationship("User")

    __table_args__ = (
        UniqueConstraint("chat_room_id", "user_id", name="uq_chat_participant"),
    )
