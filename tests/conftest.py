import asyncio
import os
import uuid

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./coursehub_test.db")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")

import jwt
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from coursehub.core.config import settings
from coursehub.models import Base, Course, CourseEnrollment, User


class FakeCache:
    def __init__(self):
        self._store = {}

    async def get(self, key):
        return self._store.get(key)

    async def set(self, key, value, expire=None):
        self._store[key] = value
        return True


class FakeWebSocket:
    def __init__(self, fail_send=False):
        self.fail_send = fail_send
        self.accepted = False
        self.closed = None
        self.sent = []

    async def accept(self):
        self.accepted = True

    async def send_json(self, data):
        if self.fail_send:
            raise RuntimeError("socket gone")
        self.sent.append(data)

    async def close(self, code=1000, reason=""):
        self.closed = (code, reason)

    def frames(self, event):
        return [frame["data"] for frame in self.sent if frame["type"] == event]


def make_token(user_id, role="student"):
    return jwt.encode({"id": str(user_id), "role": role}, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


async def seed_course(session: AsyncSession, students: int = 1):
    """Create a tutor, some enrolled students and their course."""
    tag = uuid.uuid4().hex[:8]
    tutor = User(email=f"tutor-{tag}@example.com", first_name="Ada", last_name="Tutor", role="tutor")
    learners = [
        User(email=f"student{i}-{tag}@example.com", first_name=f"Student{i}", last_name="Learner", role="student")
        for i in range(students)
    ]
    session.add_all([tutor, *learners])
    await session.flush()

    course = Course(title=f"Course {tag}", tutor_id=tutor.id)
    session.add(course)
    await session.flush()
    session.add_all([CourseEnrollment(course_id=course.id, student_id=learner.id) for learner in learners])
    await session.commit()
    return course, tutor, learners


async def _create_schema(engine):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'chat.db'}", poolclass=NullPool)
    await _create_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession, autoflush=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def sync_session_factory(tmp_path):
    """Session factory usable from TestClient's own event loop."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'api.db'}", poolclass=NullPool)
    asyncio.run(_create_schema(engine))
    yield async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession, autoflush=False)
    asyncio.run(engine.dispose())
