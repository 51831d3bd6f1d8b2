from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
)
from sqlalchemy.orm import relationship
from datetime import datetime
from app.core.database import Base

MAX_TAG_LENGTH = 50


# Many-to-many association table for stories and tags
story_tags = Table(
    "story_tags",
    Base.metadata,
    Column(
        "story_id",
        Integer,
        ForeignKey("stories.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "tag_id", Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True
    ),
)


class Story(Base):
    __tablename__ = "stories"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    is_favorite = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    # Relationships
    user = relationship("User", back_populates="stories")
    tags = relationship("Tag", secondary=story_tags, back_populates="stories")

    @property
    def tag_names(self):
        return sorted(tag.name for tag in self.tags)


class Tag(Base):
    """Tags are shared across users; names are globally unique."""

    __tablename__ = "tags"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(MAX_TAG_LENGTH), unique=True, nullable=False, index=True)

    stories = relationship("Story", secondary=story_tags, back_populates="tags")
