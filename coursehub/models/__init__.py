"""Import all models here, if needed for Alembic migration."""
from .base import Base

# Collaborator records
from .user import User
from .course import Course, CourseEnrollment

# Chat and progress
from .chat import ChatRoom, ChatParticipant, ChatMessage
from .video_progress import VideoProgress
