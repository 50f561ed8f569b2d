# coursehub/services/course_directory.py
"""Read-only view of the course and user collaborators used by chat."""
import logging
from typing import List, Optional
from uuid import UUID
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from .base_service import BaseService
from ..core.cache import CacheManager
from ..core.config import settings
from ..core.exceptions import NotFoundError, NotParticipantError
from ..models.course import Course
from ..models.user import User

logger = logging.getLogger(__name__)


class CourseDirectory(BaseService[Course]):
    def __init__(self, db: AsyncSession, cache: Optional[CacheManager] = None):
        super().__init__(Course, db)
        self.cache = cache

    async def get_course(self, course_id: UUID) -> Course:
        """Course with its enrollments loaded; NotFoundError if absent."""
        stmt = (
            select(Course)
            .options(selectinload(Course.enrollments))
            .where(Course.id == course_id)
            .execution_options(populate_existing=True)
        )
        course = await self._scalar(stmt)
        if course is None:
            raise NotFoundError("Course", course_id)
        return course

    @staticmethod
    def member_ids(course: Course) -> List[UUID]:
        """Tutor first, then enrolled students, without duplicates."""
        members = [course.tutor_id]
        for student_id in course.enrolled_student_ids:
            if student_id not in members:
                members.append(student_id)
        return members

    async def is_member(self, course_id: UUID, user_id: UUID) -> bool:
        course = await self.get_course(course_id)
        return user_id in self.member_ids(course)

    async def ensure_member(self, course_id: UUID, user_id: UUID) -> None:
        """Check against the live enrollment, not the chat room snapshot."""
        if not await self.is_member(course_id, user_id):
            raise NotParticipantError()

    async def get_user_profile(self, user_id: UUID) -> dict:
        """Display fields used to expand message senders."""
        cache_key = f"user_profile:{user_id}"
        if self.cache is not None:
            cached = await self.cache.get(cache_key)
            if cached:
                return cached

        user = await self._scalar(select(User).where(User.id == user_id))
        if user is None:
            raise NotFoundError("User", user_id)

        profile = user.to_profile()
        if self.cache is not None:
            await self.cache.set(cache_key, profile, expire=settings.profile_cache_ttl)
        return profile


def join_authorizer(session_factory: async_sessionmaker, cache: Optional[CacheManager] = None):
    """Membership check for socket joins.

    Each call runs in its own session, closed before returning, so an idle
    connection never pins a pooled database connection.
    """
    async def authorize_join(user, course_id: UUID) -> None:
        async with session_factory() as db:
            await CourseDirectory(db, cache).ensure_member(course_id, user.id)

    return authorize_join
