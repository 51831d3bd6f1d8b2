from sqlalchemy import Column, Integer, ForeignKey
from sqlalchemy.orm import relationship
from app.core.database import Base

DEFAULT_API_CALLS = 20


class ApiUsage(Base):
    """Remaining story-generation calls for a user (one row per user)."""

    __tablename__ = "api_usage"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
        index=True,
    )
    api_calls = Column(Integer, default=DEFAULT_API_CALLS, nullable=False)

    user = relationship("User", back_populates="api_usage")
