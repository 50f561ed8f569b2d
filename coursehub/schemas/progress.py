# coursehub/schemas/progress.py
from datetime import datetime
from typing import Optional
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field


class VideoProgressUpdate(BaseModel):
    """Fields a viewer may change; anything else in the body is ignored."""
    progress: int = Field(..., ge=0, le=100)
    completed: Optional[bool] = None


class VideoProgressResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    course_id: UUID = Field(serialization_alias="courseId")
    video_id: str = Field(serialization_alias="videoId")
    progress: int
    completed: bool
    last_watched: Optional[datetime] = Field(default=None, serialization_alias="lastWatched")


class VideoProgressEvent(BaseModel):
    """Payload of a ``video:progress:update`` frame."""
    model_config = ConfigDict(populate_by_name=True)

    course_id: UUID = Field(alias="courseId")
    video_id: str = Field(alias="videoId", min_length=1)
    progress: int = Field(..., ge=0, le=100)
    completed: bool = False
