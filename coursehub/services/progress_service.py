# coursehub/services/progress_service.py
"""Per-viewer video progress records."""
import logging
from datetime import datetime, timezone
from uuid import UUID
from sqlalchemy import select, and_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .base_service import BaseService
from ..core.exceptions import StorageError
from ..models.video_progress import VideoProgress
from ..schemas.progress import VideoProgressUpdate

logger = logging.getLogger(__name__)

# Watching this much of a video counts as finishing it
COMPLETION_THRESHOLD = 90


class ProgressService(BaseService[VideoProgress]):
    def __init__(self, db: AsyncSession):
        super().__init__(VideoProgress, db)

    async def get_progress(self, course_id: UUID, video_id: str, user_id: UUID) -> VideoProgress:
        """Stored record, or an unsaved zero record if the video was never opened."""
        record = await self._find(course_id, video_id, user_id)
        if record is None:
            record = VideoProgress(
                course_id=course_id,
                video_id=video_id,
                user_id=user_id,
                progress=0,
                completed=False,
                last_watched=None,
            )
        return record

    async def record_progress(
        self, course_id: UUID, video_id: str, user_id: UUID, update: VideoProgressUpdate
    ) -> VideoProgress:
        record = await self._find(course_id, video_id, user_id)
        if record is None:
            record = VideoProgress(course_id=course_id, video_id=video_id, user_id=user_id, progress=0, completed=False)
            self.db.add(record)
        apply_update(record, update)

        try:
            await self.db.commit()
        except IntegrityError:
            # Another device inserted the row first; merge onto it
            await self.db.rollback()
            record = await self._find(course_id, video_id, user_id)
            apply_update(record, update)
            await self._commit()
        except SQLAlchemyError as e:
            logger.error(f"Failed to record progress for {user_id}: {e}")
            await self.db.rollback()
            raise StorageError()
        else:
            logger.debug(f"Progress {course_id}/{video_id} for {user_id}: {record.progress}%")
        return record

    async def _find(self, course_id: UUID, video_id: str, user_id: UUID):
        stmt = select(VideoProgress).where(
            and_(
                VideoProgress.course_id == course_id,
                VideoProgress.video_id == video_id,
                VideoProgress.user_id == user_id,
            )
        ).execution_options(populate_existing=True)
        return await self._scalar(stmt)


def apply_update(record: VideoProgress, update: VideoProgressUpdate):
    """Merge the allow-listed fields of an update onto a record.

    Completion is sticky: once a video is completed it stays completed.
    """
    record.progress = update.progress
    record.completed = bool(
        record.completed
        or update.completed
        or update.progress >= COMPLETION_THRESHOLD
    )
    record.last_watched = datetime.now(timezone.utc)
