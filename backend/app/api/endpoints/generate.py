from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
import logging

from app.core.config import settings
from app.core.database import get_db
from app.core.metering import track_usage
from app.core.rate_limit import limiter
from app.models.user import User
from app.schemas.generate import GenerateRequest
from app.services import usage as usage_service
from app.services.story_generator import (
    StoryGenerationError,
    StoryGenerator,
    build_story_prompt,
    get_story_generator,
)

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/generate")
@limiter.limit("20/minute")
async def generate_story(
    request: Request,
    generate_request: GenerateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(track_usage),
    generator: StoryGenerator = Depends(get_story_generator),
):
    """
    Generate a story with the language model.

    The model's JSON text is relayed as ``generatedText``. One API call is
    used up only when generation succeeds.
    """
    if generate_request.prompt and generate_request.prompt.strip():
        prompt = generate_request.prompt.strip()
    else:
        try:
            prompt = build_story_prompt(generate_request.story_parameters())
        except ValidationError as e:
            raise HTTPException(
                status_code=400,
                detail="; ".join(err["msg"] for err in e.errors()),
            )

    try:
        remaining = usage_service.get_api_calls(db, current_user.id)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error reading API calls for user {current_user.id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to generate story.")

    if settings.ENFORCE_API_QUOTA and remaining <= 0:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You have no API calls remaining.",
        )

    try:
        generated_text = await generator.generate(prompt)
    except StoryGenerationError as e:
        logger.error(f"Story generation failed for user {current_user.id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to generate story.")

    try:
        remaining = usage_service.decrement_api_calls(db, current_user.id)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error decrementing API calls for user {current_user.id}: {e}")

    logger.info(f"Generated story for user {current_user.id} ({remaining} calls left)")

    return {"generatedText": generated_text, "apiCalls": remaining}
