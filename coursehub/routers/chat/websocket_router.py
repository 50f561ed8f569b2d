# coursehub/routers/chat/websocket_router.py
import asyncio
import contextlib
import json
import logging
from typing import Optional
from fastapi import APIRouter, WebSocket, WebSocketDisconnect, Depends, Query
from sqlalchemy.ext.asyncio import async_sessionmaker
from ...core.cache import CacheManager, get_cache
from ...core.database import get_session_factory
from ...core.exceptions import UnauthorizedError, ValidationError
from ...core.realtime import get_broadcaster, get_room_registry
from ...services.chat.broadcaster import Broadcaster
from ...services.chat.connection import ConnectionSession
from ...services.chat.room_registry import RoomRegistry
from ...services.course_directory import join_authorizer

logger = logging.getLogger(__name__)
router = APIRouter()

@router.websocket("/ws")
async def websocket_endpoint(
    websocket: WebSocket,
    token: Optional[str] = Query(None),
    session_factory: async_sessionmaker = Depends(get_session_factory),
    cache: CacheManager = Depends(get_cache),
    registry: RoomRegistry = Depends(get_room_registry),
    broadcaster: Broadcaster = Depends(get_broadcaster),
):
    """Real-time channel for course rooms"""
    session = ConnectionSession(
        websocket, registry, broadcaster, authorize_join=join_authorizer(session_factory, cache)
    )

    try:
        await session.authenticate(token)
    except UnauthorizedError:
        return

    await session.activate()
    writer = asyncio.create_task(session.run_writer())

    try:
        while session.is_active:
            data = await websocket.receive_text()
            try:
                frame = json.loads(data)
            except json.JSONDecodeError:
                await session.send_error(ValidationError("Frame is not valid JSON"))
                continue
            await session.dispatch(frame)
    except WebSocketDisconnect:
        logger.info(f"{session!r} closed by client")
    except Exception as e:
        logger.error(f"WebSocket error for {session!r}: {e}")
    finally:
        await session.on_disconnect()
        writer.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await writer
