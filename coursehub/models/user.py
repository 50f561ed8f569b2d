from sqlalchemy import Column, String, Enum
from .base import Base

class User(Base):
    """Account record owned by the account service; read-only here."""
    __tablename__ = "users"

    email = Column(String(255), unique=True, index=True, nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    profile_picture = Column(String(500), nullable=True)
    role = Column(Enum("tutor", "student", name="user_role"), nullable=False, default="student")

    def to_profile(self) -> dict:
        return {
            "id": str(self.id),
            "firstName": self.first_name,
            "lastName": self.last_name,
            "profilePicture": self.profile_picture,
        }
