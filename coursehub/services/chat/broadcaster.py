# coursehub/services/chat/broadcaster.py
"""Same-process fan-out of events to every connection in a room."""
import logging
from typing import Any, Optional

from .room_registry import RoomRegistry

logger = logging.getLogger(__name__)

class Broadcaster:
    def __init__(self, registry: RoomRegistry):
        self.registry = registry

    async def publish(self, room_id: Any, event: str, payload: Any, exclude: Optional[Any] = None) -> int:
        """Push ``(event, payload)`` to the current members of a room.

        Members are snapshotted once; connections joining afterwards do not
        receive this event. A member whose push is refused has already gone
        away and is dropped from the registry. Returns the delivered count.
        """
        room_key = str(room_id)
        members = await self.registry.members_of(room_key)
        if not members:
            logger.debug(f"No live members in room {room_key} for {event}")
            return 0

        delivered = 0
        stale = []
        for member in members:
            if member is exclude:
                continue
            if await member.push(event, payload):
                delivered += 1
            else:
                stale.append(member)

        for member in stale:
            await self.registry.leave_all(member)

        logger.info(f"Broadcast {event} to room {room_key}: {delivered} delivered, {len(stale)} dropped")
        return delivered
