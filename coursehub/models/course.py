from sqlalchemy import Column, String, ForeignKey, Uuid, UniqueConstraint
from sqlalchemy.orm import relationship
from .base import Base

class Course(Base):
    """Catalog entry owned by the course service; chat only reads tutor and enrollment."""
    __tablename__ = "courses"

    title = Column(String(200), nullable=False)
    tutor_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)

    # Relationships
    tutor = relationship("User")
    enrollments = relationship("CourseEnrollment", back_populates="course", cascade="all, delete-orphan")

    @property
    def enrolled_student_ids(self):
        return [enrollment.student_id for enrollment in self.enrollments]


class CourseEnrollment(Base):
    __tablename__ = "course_enrollments"

    course_id = Column(Uuid, ForeignKey("courses.id"), nullable=False, index=True)
    student_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)

    # Relationships
    course = relationship("Course", back_populates="enrollments")

    __table_args__ = (
        UniqueConstraint("course_id", "student_id", name="uq_course_enrollment"),
    )
