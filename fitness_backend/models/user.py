"""User model definitions."""

from sqlalchemy import Column, Integer, String
from fitness_backend.database import Base

ADMIN_ROLE = "admin"
MEMBER_ROLE = "member"


class User(Base):
    """Represents an authenticated application user."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True)
    hashed_password = Column(String)
    role = Column(String, default=MEMBER_ROLE)  # member/admin

    @property
    def is_admin(self) -> bool:
        return (self.role or "").strip().lower() == ADMIN_ROLE
