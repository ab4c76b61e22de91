"""Member model definitions."""

from sqlalchemy import Column, ForeignKey, Integer, String
from fitness_backend.database import Base


class Member(Base):
    """Gym member profile attached to a user account."""
    __tablename__ = "members"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, index=True)
    first_name = Column(String(50))
    last_name = Column(String(50))
    fitness_goal = Column(String(200))

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()
