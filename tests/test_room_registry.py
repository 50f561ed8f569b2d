import asyncio

from coursehub.services.chat.room_registry import RoomRegistry


async def test_join_then_leave_removes_member():
    registry = RoomRegistry()
    assert await registry.join("room-1", "c1") is True
    assert await registry.leave("room-1", "c1") is True
    assert "c1" not in await registry.members_of("room-1")


async def test_members_of_lists_every_joined_handle():
    registry = RoomRegistry()
    await registry.join("room-1", "c1")
    await registry.join("room-1", "c2")
    assert await registry.members_of("room-1") == {"c1", "c2"}


async def test_join_and_leave_are_idempotent():
    registry = RoomRegistry()
    assert await registry.join("room-1", "c1") is True
    assert await registry.join("room-1", "c1") is False
    assert await registry.members_of("room-1") == {"c1"}

    assert await registry.leave("room-1", "c1") is True
    assert await registry.leave("room-1", "c1") is False
    assert await registry.leave("never-joined", "c1") is False


async def test_unknown_room_is_empty():
    registry = RoomRegistry()
    assert await registry.members_of("nobody-here") == frozenset()


async def test_leave_all_releases_every_room_of_a_handle():
    registry = RoomRegistry()
    await registry.join("room-1", "c1")
    await registry.join("room-2", "c1")
    await registry.join("room-2", "c2")

    released = await registry.leave_all("c1")

    assert released == {"room-1", "room-2"}
    assert await registry.members_of("room-1") == frozenset()
    assert await registry.members_of("room-2") == {"c2"}
    assert await registry.rooms_of("c1") == frozenset()
    assert await registry.leave_all("c1") == frozenset()


async def test_empty_rooms_are_dropped():
    registry = RoomRegistry()
    await registry.join("room-1", "c1")
    await registry.join("room-2", "c2")
    assert registry.stats() == {"rooms": 2, "connections": 2}

    await registry.leave("room-1", "c1")
    await registry.leave_all("c2")
    assert registry.stats() == {"rooms": 0, "connections": 0}


async def test_members_of_returns_a_snapshot():
    registry = RoomRegistry()
    await registry.join("room-1", "c1")
    snapshot = await registry.members_of("room-1")
    await registry.join("room-1", "c2")
    assert snapshot == {"c1"}


async def test_concurrent_joins_do_not_lose_members():
    registry = RoomRegistry()
    handles = [f"c{i}" for i in range(50)]
    await asyncio.gather(*(registry.join("room-1", handle) for handle in handles))
    assert await registry.members_of("room-1") == set(handles)

    await asyncio.gather(*(registry.leave_all(handle) for handle in handles[::2]))
    assert await registry.members_of("room-1") == set(handles[1::2])
