# coursehub/services/chat/connection.py
"""One authenticated WebSocket and the rooms it is subscribed to."""
import asyncio
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Optional
from uuid import UUID, uuid4

from pydantic import ValidationError as PydanticValidationError

from . import events
from .broadcaster import Broadcaster
from .room_registry import RoomRegistry
from ...core.config import settings
from ...core.exceptions import CourseHubException, NotParticipantError, UnauthorizedError, ValidationError
from ...core.security import AuthenticatedUser, decode_access_token
from ...schemas.progress import VideoProgressEvent

logger = logging.getLogger(__name__)

# WebSocket close codes
POLICY_VIOLATION = 1008
TRY_AGAIN_LATER = 1013

JoinAuthorizer = Callable[[AuthenticatedUser, UUID], Awaitable[Any]]

_CLOSE = object()


class SessionState(str, Enum):
    CONNECTING = "connecting"
    AUTHENTICATED = "authenticated"
    ACTIVE = "active"
    CLOSED = "closed"


class ConnectionSession:
    """State machine for one real-time link.

    ``connecting -> authenticated -> active -> closed``. Outbound frames go
    through a bounded queue drained by ``run_writer`` so that broadcasting
    never waits on a slow socket. Room memberships are released once, on
    the first transition to ``closed``.
    """

    def __init__(
        self,
        websocket,
        registry: RoomRegistry,
        broadcaster: Broadcaster,
        authorize_join: Optional[JoinAuthorizer] = None,
        verify_token: Callable[[Optional[str]], AuthenticatedUser] = decode_access_token,
        outbox_size: Optional[int] = None,
    ):
        self.id = uuid4().hex[:12]
        self.websocket = websocket
        self.registry = registry
        self.broadcaster = broadcaster
        self.state = SessionState.CONNECTING
        self.user: Optional[AuthenticatedUser] = None
        self._authorize_join = authorize_join
        self._verify_token = verify_token
        self._outbox: asyncio.Queue = asyncio.Queue(maxsize=outbox_size or settings.ws_outbox_size)
        self._handlers = {
            events.JOIN_COURSE: self._handle_join,
            events.LEAVE_COURSE: self._handle_leave,
            events.VIDEO_PROGRESS_UPDATE: self._handle_video_progress,
        }

    def __repr__(self) -> str:
        user = self.user.id if self.user else None
        return f"<ConnectionSession {self.id} user={user} state={self.state.value}>"

    @property
    def is_active(self) -> bool:
        return self.state is SessionState.ACTIVE

    # Lifecycle

    async def authenticate(self, token: Optional[str]) -> AuthenticatedUser:
        if self.state is not SessionState.CONNECTING:
            raise RuntimeError(f"Cannot authenticate a session in state {self.state.value}")

        try:
            self.user = self._verify_token(token)
        except UnauthorizedError as e:
            logger.info(f"WebSocket handshake rejected: {e.message}")
            self.state = SessionState.CLOSED
            await self.websocket.close(code=POLICY_VIOLATION, reason=e.message)
            raise

        self.state = SessionState.AUTHENTICATED
        return self.user

    async def activate(self):
        if self.state is not SessionState.AUTHENTICATED:
            raise RuntimeError(f"Cannot activate a session in state {self.state.value}")

        await self.websocket.accept()
        self.state = SessionState.ACTIVE
        logger.info(f"User {self.user.id} ({self.user.role}) connected as {self.id}")
        await self.push(events.CONNECTED, {"userId": str(self.user.id), "connectionId": self.id})

    async def on_disconnect(self) -> bool:
        """Enter ``closed``. Returns False if the session was already closed."""
        if self.state is SessionState.CLOSED:
            return False
        self.state = SessionState.CLOSED

        rooms = await self.registry.leave_all(self)
        try:
            self._outbox.put_nowait(_CLOSE)
        except asyncio.QueueFull:
            # Writer checks the state after every frame
            pass
        logger.info(f"{self!r} disconnected, released {len(rooms)} room(s)")
        return True

    async def close(self, code: int = 1000, reason: str = ""):
        if not await self.on_disconnect():
            return
        try:
            await self.websocket.close(code=code, reason=reason)
        except RuntimeError as e:
            logger.debug(f"{self!r} socket already closed: {e}")

    # Rooms

    async def on_join_course(self, course_id) -> bool:
        if not self.is_active:
            logger.warning(f"{self!r} cannot join course {course_id}")
            return False

        if self._authorize_join is not None:
            await self._authorize_join(self.user, course_id)

        course_key = str(course_id)
        added = await self.registry.join(course_key, self)
        await self.push(events.JOINED_COURSE, {"courseId": course_key})
        return added

    async def on_leave_course(self, course_id) -> bool:
        if not self.is_active:
            return False

        course_key = str(course_id)
        removed = await self.registry.leave(course_key, self)
        await self.push(events.LEFT_COURSE, {"courseId": course_key})
        return removed

    # Outbound

    async def push(self, event: str, payload: Any) -> bool:
        """Queue a frame for this client. False if the session cannot take it."""
        if not self.is_active:
            return False

        try:
            self._outbox.put_nowait((event, payload))
        except asyncio.QueueFull:
            logger.warning(f"{self!r} outbound queue full, closing slow consumer")
            await self.close(code=TRY_AGAIN_LATER, reason="Outbound queue overflow")
            return False
        return True

    async def send_error(self, exc: CourseHubException):
        await self.push(events.ERROR, {"kind": exc.kind, "message": exc.message})

    async def run_writer(self):
        """Send queued frames in order until the session closes."""
        while True:
            item = await self._outbox.get()
            try:
                if item is _CLOSE or self.state is SessionState.CLOSED:
                    break
                event, payload = item
                try:
                    await self.websocket.send_json({"type": event, "data": payload})
                except Exception as e:
                    logger.error(f"Error sending {event} to {self!r}: {e}")
                    await self.on_disconnect()
                    break
            finally:
                self._outbox.task_done()

    async def flush(self):
        """Wait until every queued frame has been handed to the socket."""
        await self._outbox.join()

    # Inbound

    async def dispatch(self, frame: Any):
        """Route one decoded client frame; failures become ``error`` frames."""
        if not isinstance(frame, dict) or not isinstance(frame.get("type"), str):
            await self.send_error(ValidationError("Frame must be an object with a string 'type'"))
            return

        event = frame["type"]
        handler = self._handlers.get(event)
        if handler is None:
            await self.send_error(ValidationError(f"Unknown event type: {event}", field="type"))
            return

        try:
            await handler(frame.get("data"))
        except CourseHubException as e:
            logger.info(f"{self!r} {event} failed: {e.kind}: {e.message}")
            await self.send_error(e)

    async def _handle_join(self, data):
        await self.on_join_course(_course_id(data))

    async def _handle_leave(self, data):
        await self.on_leave_course(_course_id(data))

    async def _handle_video_progress(self, data):
        try:
            update = VideoProgressEvent.model_validate(data)
        except PydanticValidationError as e:
            error = e.errors()[0]
            raise ValidationError(error["msg"], field=".".join(str(part) for part in error["loc"]))

        course_key = str(update.course_id)
        if course_key not in await self.registry.rooms_of(self):
            raise NotParticipantError("Join the course before sending progress updates")

        payload = update.model_dump(by_alias=True, mode="json")
        payload["userId"] = str(self.user.id)
        await self.broadcaster.publish(course_key, events.VIDEO_PROGRESS_UPDATE, payload, exclude=self)


def _course_id(data) -> UUID:
    """joinCourse/leaveCourse carry the bare id, or ``{"courseId": id}``."""
    if isinstance(data, dict):
        data = data.get("courseId")
    try:
        return UUID(str(data))
    except ValueError:
        raise ValidationError("courseId must be a valid UUID", field="courseId")
