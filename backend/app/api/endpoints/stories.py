from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from app.api.validation import StoryIdPath
from app.core.database import get_db
from app.core.metering import track_usage
from app.models.user import User
from app.schemas.story import (
    FavoriteUpdate,
    Story as StorySchema,
    StoryCreate,
    TagUsage,
)
from app.services import stories as story_service

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/createStory", status_code=status.HTTP_201_CREATED)
async def create_story(
    story_data: StoryCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(track_usage),
):
    """
    Save a story with optional tags.

    - Tags are created on first use and shared between stories
    - Returns the saved story with its tags
    """
    try:
        story = story_service.create_story(
            db,
            user_id=current_user.id,
            title=story_data.title,
            content=story_data.content,
            tags=story_data.tags,
        )
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error creating story for user {current_user.id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to create story.")

    return {
        "message": "Story created successfully.",
        "story": StorySchema.model_validate(story).model_dump(mode="json"),
    }


@router.get("/getStories", response_model=List[StorySchema])
async def get_stories(
    tag: Optional[List[str]] = Query(
        None, description="Only stories carrying all of these tags"
    ),
    favorite: bool = Query(False, description="Only favorite stories"),
    search: Optional[str] = Query(None, max_length=255, description="Title search"),
    sort: str = Query("newest", pattern="^(newest|oldest|alphabetical)$"),
    db: Session = Depends(get_db),
    current_user: User = Depends(track_usage),
):
    """All stories of the current user, newest first unless ``sort`` says otherwise."""
    try:
        return story_service.list_stories(
            db,
            current_user.id,
            tags=tag,
            favorites_only=favorite,
            search=search,
            sort=sort,
        )
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error fetching stories for user {current_user.id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch stories.")


@router.delete("/deleteStory/{story_id}")
async def delete_story(
    story_id: int = StoryIdPath,
    db: Session = Depends(get_db),
    current_user: User = Depends(track_usage),
):
    """Delete a story and its tag links; shared tags stay."""
    try:
        deleted = story_service.delete_story(db, story_id, current_user.id)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error deleting story {story_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to delete story.")

    if not deleted:
        raise HTTPException(status_code=400, detail="Story not found.")

    return {"message": "Story deleted successfully."}


@router.put("/favorite/{story_id}")
async def favorite_story(
    story_id: int = StoryIdPath,
    favorite: Optional[FavoriteUpdate] = Body(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(track_usage),
):
    """
    Mark or unmark a story as favorite.

    ``{"isFavorite": true|false}`` sets the flag; an empty body toggles it.
    """
    try:
        if favorite is None or favorite.is_favorite is None:
            story = story_service.toggle_favorite(db, story_id, current_user.id)
        else:
            story = story_service.set_favorite(
                db, story_id, current_user.id, favorite.is_favorite
            )
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error updating favorite for story {story_id}: {e}")
        raise HTTPException(
            status_code=500, detail="Failed to update favorite status."
        )

    if not story:
        raise HTTPException(status_code=400, detail="Story not found.")

    return {"message": "Favorite status updated.", "isFavorite": story.is_favorite}


@router.get("/tags", response_model=List[TagUsage])
async def get_tags(
    search: Optional[str] = Query(None, max_length=50, description="Tag name prefix"),
    db: Session = Depends(get_db),
    current_user: User = Depends(track_usage),
):
    """Tags on the current user's stories with usage counts, most used first."""
    try:
        return story_service.list_tags(db, current_user.id, search=search)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error fetching tags for user {current_user.id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch tags.")
