# coursehub/schemas/chat.py
from typing import List, Optional, Union
from pydantic import BaseModel, Field


class SendMessageRequest(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)


class SenderOut(BaseModel):
    id: str
    firstName: str
    lastName: str
    profilePicture: Optional[str] = None


class MessageOut(BaseModel):
    id: str
    sender: Union[SenderOut, str]
    content: str
    timestamp: str
    isRead: bool


class ChatRoomOut(BaseModel):
    id: str
    course: str
    participants: List[SenderOut]
    messages: List[MessageOut]
    lastMessage: str


class MessageHistoryOut(BaseModel):
    courseId: str
    messages: List[MessageOut]
    limit: int
    offset: int


class MarkReadResponse(BaseModel):
    message: str
    markedCount: int


class UnreadCountResponse(BaseModel):
    unreadCount: int
