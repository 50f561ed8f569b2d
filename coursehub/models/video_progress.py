from sqlalchemy import Column, Integer, Boolean, DateTime, String, ForeignKey, Uuid, UniqueConstraint, CheckConstraint
from .base import Base

class VideoProgress(Base):
    __tablename__ = "video_progress"

    course_id = Column(Uuid, ForeignKey("courses.id"), nullable=False, index=True)
    video_id = Column(String(64), nullable=False)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    progress = Column(Integer, nullable=False, default=0)
    completed = Column(Boolean, nullable=False, default=False)
    last_watched = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint("course_id", "video_id", "user_id", name="uq_video_progress_viewer"),
        CheckConstraint("progress >= 0 AND progress <= 100", name="ck_video_progress_range"),
    )
