# coursehub/services/chat/chat_service.py
from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID
import logging
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import selectinload
from sqlalchemy import select, update, and_, func
from ..base_service import BaseService
from ..course_directory import CourseDirectory
from .broadcaster import Broadcaster
from . import events
from ...core.exceptions import ConflictError, NotFoundError, StorageError, ValidationError
from ...models.chat.chat_room import ChatRoom, ChatParticipant
from ...models.chat.chat_message import ChatMessage

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ChatService(BaseService[ChatRoom]):
    """Course group chat: room lifecycle, message log and read state.

    The broadcaster is optional so that the persistence operations can be
    used without a live connection layer (tests, scripts).
    """

    def __init__(
        self,
        db: AsyncSession,
        directory: CourseDirectory,
        broadcaster: Optional[Broadcaster] = None,
    ):
        super().__init__(ChatRoom, db)
        self.directory = directory
        self.broadcaster = broadcaster

    async def get_room(self, course_id: UUID, with_history: bool = False) -> Optional[ChatRoom]:
        options = [selectinload(ChatRoom.participants).selectinload(ChatParticipant.user)]
        if with_history:
            options.append(selectinload(ChatRoom.messages).selectinload(ChatMessage.sender))
        stmt = (
            select(ChatRoom)
            .options(*options)
            .where(ChatRoom.course_id == course_id)
            .execution_options(populate_existing=True)
        )
        return await self._scalar(stmt)

    async def get_or_create_room(self, course_id: UUID, with_history: bool = False) -> ChatRoom:
        """Get the course chat room, creating it on first access.

        Participants are the tutor and the students enrolled right now.
        Two first readers may race to insert; the unique index on
        ``course_id`` lets exactly one win and the loser re-reads.
        """
        room = await self.get_room(course_id, with_history)
        if room is not None:
            return room

        course = await self.directory.get_course(course_id)
        try:
            await self._insert_room(course.id, self.directory.member_ids(course))
        except ConflictError as e:
            logger.info(f"{e.message}, re-fetching")

        room = await self.get_room(course_id, with_history)
        if room is None:
            raise StorageError()
        return room

    async def _insert_room(self, course_id: UUID, member_ids: List[UUID]) -> None:
        room = ChatRoom(
            course_id=course_id,
            last_message_at=utcnow(),
            message_count=0,
            participants=[ChatParticipant(user_id=user_id) for user_id in member_ids],
        )
        self.db.add(room)
        try:
            await self.db.commit()
            logger.info(f"Created chat room for course {course_id} with {len(member_ids)} participants")
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError(f"Chat room for course {course_id} created concurrently")
        except SQLAlchemyError as e:
            logger.error(f"Failed to create chat room for course {course_id}: {e}")
            await self.db.rollback()
            raise StorageError()

    async def append_message(self, course_id: UUID, sender_id: UUID, content: str) -> ChatMessage:
        """Append to the room log. The only write path for messages."""
        if content is None or not content.strip():
            raise ValidationError("Message content cannot be empty", field="content")

        now = utcnow()
        # Row lock on the room serialises appends; the counter value is the sequence
        stmt = (
            update(ChatRoom)
            .where(ChatRoom.course_id == course_id)
            .values(message_count=ChatRoom.message_count + 1, last_message_at=now)
            .returning(ChatRoom.id, ChatRoom.message_count)
            .execution_options(synchronize_session=False)
        )
        row = (await self._execute(stmt)).first()
        if row is None:
            raise NotFoundError("Chat", course_id)

        message = ChatMessage(
            chat_room_id=row.id,
            sender_id=sender_id,
            content=content,
            sequence=row.message_count,
            sent_at=now,
            is_read=False,
        )
        self.db.add(message)
        await self._commit()
        return message

    async def send_message(self, course_id: UUID, sender_id: UUID, content: str) -> ChatMessage:
        """Persist, then broadcast ``newMessage`` to the course room.

        Nothing is published if persistence fails. A failed publish is
        logged only; the stored message is the outcome.
        """
        message = await self.append_message(course_id, sender_id, content)

        if self.broadcaster is not None:
            try:
                sender = await self.directory.get_user_profile(sender_id)
                await self.broadcaster.publish(course_id, events.NEW_MESSAGE, message.to_dict(sender=sender))
            except Exception as e:
                logger.error(f"Message {message.id} stored but broadcast failed: {e}")

        return message

    async def get_history(self, course_id: UUID, limit: int = 50, offset: int = 0) -> List[ChatMessage]:
        room_id = await self._room_id(course_id)
        stmt = (
            select(ChatMessage)
            .options(selectinload(ChatMessage.sender))
            .where(ChatMessage.chat_room_id == room_id)
            .order_by(ChatMessage.sequence)
            .offset(offset)
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        result = await self._execute(stmt)
        return list(result.scalars().all())

    async def mark_read(self, course_id: UUID, reader_id: UUID) -> int:
        """Mark every message not sent by the reader as read; returns how many flipped."""
        room_id = await self._room_id(course_id)
        stmt = (
            update(ChatMessage)
            .where(
                and_(
                    ChatMessage.chat_room_id == room_id,
                    ChatMessage.sender_id != reader_id,
                    ChatMessage.is_read == False,
                )
            )
            .values(is_read=True)
            .execution_options(synchronize_session=False)
        )
        result = await self._execute(stmt)
        await self._commit()
        return result.rowcount

    async def unread_count(self, course_id: UUID, reader_id: UUID) -> int:
        room_id = await self._room_id(course_id)
        stmt = select(func.count(ChatMessage.id)).where(
            and_(
                ChatMessage.chat_room_id == room_id,
                ChatMessage.sender_id != reader_id,
                ChatMessage.is_read == False,
            )
        )
        result = await self._execute(stmt)
        return result.scalar_one()

    async def _room_id(self, course_id: UUID) -> UUID:
        room_id = await self._scalar(select(ChatRoom.id).where(ChatRoom.course_id == course_id))
        if room_id is None:
            raise NotFoundError("Chat", course_id)
        return room_id
