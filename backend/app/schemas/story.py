from pydantic import BaseModel, Field, StrictBool, field_validator
from datetime import datetime
from typing import Optional, List
from app.models.story import MAX_TAG_LENGTH


class StoryCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    content: str = Field(min_length=1)
    tags: Optional[List[str]] = []

    @field_validator("title", "content")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Title and content are required")
        return v

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: Optional[List[str]]) -> List[str]:
        for name in v or []:
            # Lower-casing can lengthen a name ("\u0130" becomes two code points)
            if len(name.strip().lower()) > MAX_TAG_LENGTH:
                raise ValueError(
                    f"Tag name cannot exceed {MAX_TAG_LENGTH} characters"
                )
        return v or []


class Story(BaseModel):
    id: int
    user_id: int
    title: str
    content: str
    is_favorite: bool
    created_at: datetime
    tags: List[str] = Field(default_factory=list, validation_alias="tag_names")

    class Config:
        from_attributes = True


class FavoriteUpdate(BaseModel):
    """``isFavorite`` sets the flag; leaving it out toggles it."""

    is_favorite: Optional[StrictBool] = Field(None, alias="isFavorite")

    class Config:
        populate_by_name = True


class TagUsage(BaseModel):
    id: int
    name: str
    usage_count: int
