# coursehub/routers/chat/chat_router.py
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from ...core.cache import CacheManager, get_cache
from ...core.database import get_db
from ...core.realtime import get_broadcaster
from ...core.security import AuthenticatedUser, get_current_user
from ...models.chat.chat_room import ChatRoom
from ...schemas.chat import (
    ChatRoomOut, MarkReadResponse, MessageHistoryOut, MessageOut, SendMessageRequest, UnreadCountResponse,
)
from ...services.chat.broadcaster import Broadcaster
from ...services.chat.chat_service import ChatService
from ...services.course_directory import CourseDirectory

router = APIRouter(prefix="/api/chat", tags=["Course Chat"])


def _room_to_dict(room: ChatRoom) -> dict:
    return {
        "id": str(room.id),
        "course": str(room.course_id),
        "participants": [
            participant.user.to_profile() if participant.user else {"id": str(participant.user_id), "firstName": "", "lastName": ""}
            for participant in room.participants
        ],
        "messages": [
            message.to_dict(sender=message.sender.to_profile() if message.sender else None)
            for message in room.messages
        ],
        "lastMessage": room.last_message_at.isoformat(),
    }


@router.get("/course/{course_id}", response_model=ChatRoomOut)
async def get_course_chat(
    course_id: UUID,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    cache: CacheManager = Depends(get_cache),
):
    """Get the course chat room, creating it on first access"""
    directory = CourseDirectory(db, cache)
    await directory.ensure_member(course_id, user.id)

    service = ChatService(db, directory)
    room = await service.get_or_create_room(course_id, with_history=True)
    return _room_to_dict(room)


@router.post("/course/{course_id}/messages", response_model=MessageOut)
async def send_message(
    course_id: UUID,
    request: SendMessageRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    cache: CacheManager = Depends(get_cache),
    broadcaster: Broadcaster = Depends(get_broadcaster),
):
    """Send a message to everyone in the course room"""
    directory = CourseDirectory(db, cache)
    await directory.ensure_member(course_id, user.id)

    service = ChatService(db, directory, broadcaster)
    message = await service.send_message(course_id, user.id, request.content)
    return message.to_dict()


@router.get("/course/{course_id}/messages", response_model=MessageHistoryOut)
async def get_message_history(
    course_id: UUID,
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    cache: CacheManager = Depends(get_cache),
):
    """Page through the course chat in send order"""
    directory = CourseDirectory(db, cache)
    await directory.ensure_member(course_id, user.id)

    service = ChatService(db, directory)
    messages = await service.get_history(course_id, limit, offset)
    return {
        "courseId": str(course_id),
        "messages": [
            message.to_dict(sender=message.sender.to_profile() if message.sender else None)
            for message in messages
        ],
        "limit": limit,
        "offset": offset,
    }


@router.patch("/course/{course_id}/messages/read", response_model=MarkReadResponse)
async def mark_messages_as_read(
    course_id: UUID,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    cache: CacheManager = Depends(get_cache),
):
    """Mark messages from other participants as read"""
    directory = CourseDirectory(db, cache)
    await directory.ensure_member(course_id, user.id)

    service = ChatService(db, directory)
    marked = await service.mark_read(course_id, user.id)
    return {"message": "Messages marked as read", "markedCount": marked}


@router.get("/course/{course_id}/messages/unread", response_model=UnreadCountResponse)
async def get_unread_message_count(
    course_id: UUID,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    cache: CacheManager = Depends(get_cache),
):
    """Count messages from other participants the caller has not read"""
    directory = CourseDirectory(db, cache)
    await directory.ensure_member(course_id, user.id)

    service = ChatService(db, directory)
    return {"unreadCount": await service.unread_count(course_id, user.id)}
