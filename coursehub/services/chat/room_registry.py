# coursehub/services/chat/room_registry.py
"""In-memory course room membership for live connections."""
import asyncio
import logging
from typing import Dict, FrozenSet, Hashable, Set

logger = logging.getLogger(__name__)


class RoomRegistry:
    """Maps room ids to the connection handles subscribed to them.

    Rooms are created on first join and dropped once empty. A reverse
    index keeps ``leave_all`` proportional to the rooms a handle joined.
    Handles only need to be hashable; the registry never calls into them,
    so the lock is never held across I/O.
    """

    def __init__(self):
        self._rooms: Dict[str, Set[Hashable]] = {}
        self._memberships: Dict[Hashable, Set[str]] = {}
        self._lock = asyncio.Lock()

    async def join(self, room_id: str, handle: Hashable) -> bool:
        """Add handle to room. Returns False if it was already a member."""
        room_key = str(room_id)
        async with self._lock:
            members = self._rooms.setdefault(room_key, set())
            if handle in members:
                return False
            members.add(handle)
            self._memberships.setdefault(handle, set()).add(room_key)
        logger.debug(f"{handle} joined room {room_key}")
        return True

    async def leave(self, room_id: str, handle: Hashable) -> bool:
        """Remove handle from room. Returns False if it was not a member."""
        room_key = str(room_id)
        async with self._lock:
            if not self._discard(room_key, handle):
                return False
            rooms = self._memberships.get(handle)
            if rooms is not None:
                rooms.discard(room_key)
                if not rooms:
                    del self._memberships[handle]
        logger.debug(f"{handle} left room {room_key}")
        return True

    async def leave_all(self, handle: Hashable) -> FrozenSet[str]:
        """Remove handle from every room it joined; returns those rooms."""
        async with self._lock:
            rooms = self._memberships.pop(handle, set())
            for room_key in rooms:
                self._discard(room_key, handle)
        if rooms:
            logger.debug(f"{handle} removed from {len(rooms)} room(s)")
        return frozenset(rooms)

    async def members_of(self, room_id: str) -> FrozenSet[Hashable]:
        async with self._lock:
            return frozenset(self._rooms.get(str(room_id), ()))

    async def rooms_of(self, handle: Hashable) -> FrozenSet[str]:
        async with self._lock:
            return frozenset(self._memberships.get(handle, ()))

    def stats(self) -> dict:
        return {
            "rooms": len(self._rooms),
            "connections": len(self._memberships),
        }

    def _discard(self, room_key: str, handle: Hashable) -> bool:
        # Caller holds the lock
        members = self._rooms.get(room_key)
        if not members or handle not in members:
            return False
        members.discard(handle)
        if not members:
            del self._rooms[room_key]
        return True
