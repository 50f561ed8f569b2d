# coursehub/routers/progress.py
"""Video progress endpoints used to resume playback across devices."""
from uuid import UUID
from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.cache import CacheManager, get_cache
from ..core.database import get_db
from ..core.security import AuthenticatedUser, get_current_user
from ..models.video_progress import VideoProgress
from ..schemas.progress import VideoProgressResponse, VideoProgressUpdate
from ..services.course_directory import CourseDirectory
from ..services.progress_service import ProgressService

router = APIRouter(prefix="/api/courses", tags=["Video Progress"])


def _progress_to_dict(record: VideoProgress) -> dict:
    return {
        "course_id": record.course_id,
        "video_id": record.video_id,
        "progress": record.progress,
        "completed": record.completed,
        "last_watched": record.last_watched,
    }


@router.get("/{course_id}/videos/{video_id}/progress", response_model=VideoProgressResponse)
async def get_video_progress(
    course_id: UUID,
    video_id: str = Path(..., min_length=1, max_length=64),
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    cache: CacheManager = Depends(get_cache),
):
    await CourseDirectory(db, cache).ensure_member(course_id, user.id)
    record = await ProgressService(db).get_progress(course_id, video_id, user.id)
    return _progress_to_dict(record)


@router.post("/{course_id}/videos/{video_id}/progress", response_model=VideoProgressResponse)
async def update_video_progress(
    course_id: UUID,
    update: VideoProgressUpdate,
    video_id: str = Path(..., min_length=1, max_length=64),
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    cache: CacheManager = Depends(get_cache),
):
    await CourseDirectory(db, cache).ensure_member(course_id, user.id)
    record = await ProgressService(db).record_progress(course_id, video_id, user.id, update)
    return _progress_to_dict(record)
