import uuid

import pytest

from coursehub.core.exceptions import NotFoundError, NotParticipantError
from coursehub.core.security import AuthenticatedUser
from coursehub.services.course_directory import CourseDirectory, join_authorizer

from .conftest import FakeCache, seed_course


class TrackingSessionFactory:
    """Wraps a session factory and keeps every session it hands out."""

    def __init__(self, factory):
        self.factory = factory
        self.sessions = []

    def __call__(self):
        session = self.factory()
        self.sessions.append(session)
        return session


async def test_join_check_releases_its_session(db, session_factory):
    course, tutor, (student,) = await seed_course(db, students=1)
    factory = TrackingSessionFactory(session_factory)
    authorize_join = join_authorizer(factory, FakeCache())

    for user in (tutor, student, tutor):
        await authorize_join(AuthenticatedUser(id=user.id, role="student"), course.id)

    assert len(factory.sessions) == 3
    assert all(not session.in_transaction() for session in factory.sessions)


async def test_join_check_refuses_outsider_and_releases_its_session(db, session_factory):
    course, _, _ = await seed_course(db)
    factory = TrackingSessionFactory(session_factory)
    authorize_join = join_authorizer(factory)

    with pytest.raises(NotParticipantError):
        await authorize_join(AuthenticatedUser(id=uuid.uuid4(), role="student"), course.id)
    with pytest.raises(NotFoundError):
        await authorize_join(AuthenticatedUser(id=uuid.uuid4(), role="student"), uuid.uuid4())

    assert all(not session.in_transaction() for session in factory.sessions)


async def test_membership_follows_live_enrollment(db):
    course, tutor, (student,) = await seed_course(db, students=1)
    directory = CourseDirectory(db)

    assert CourseDirectory.member_ids(await directory.get_course(course.id)) == [tutor.id, student.id]
    assert await directory.is_member(course.id, student.id) is True
    assert await directory.is_member(course.id, uuid.uuid4()) is False
    await directory.ensure_member(course.id, tutor.id)


async def test_sender_profile_is_cached(db):
    _, tutor, _ = await seed_course(db)
    cache = FakeCache()
    directory = CourseDirectory(db, cache)

    profile = await directory.get_user_profile(tutor.id)
    assert profile["firstName"] == "Ada"
    assert cache._store[f"user_profile:{tutor.id}"] == profile

    with pytest.raises(NotFoundError):
        await directory.get_user_profile(uuid.uuid4())
