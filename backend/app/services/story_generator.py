from openai import AsyncOpenAI
from pydantic import ValidationError
from typing import Optional
from app.core.config import settings
from app.schemas.generate import GeneratedStory, StoryParameters
import logging
import json

logger = logging.getLogger(__name__)

STORY_PROMPT_TEMPLATE = (
    "Write a {tone} {genre} story set in a {setting}. "
    "The main character is {character_name}, who plays the role of a {role}. "
    "{plot_twist_text}\n"
    'Can you please return the story in this json format please: { "title": '
    '(string, title of the story), "paragraphs": (array of strings for each '
    "paragraph of the story) }"
)

PLOT_TWIST_TEXT = "Add an unexpected plot twist."


class StoryGenerationError(Exception):
    """The model could not be reached or returned unusable output."""


def build_story_prompt(params: StoryParameters) -> str:
    """Fill the story template from the user's story configuration."""
    return STORY_PROMPT_TEMPLATE.format(
        tone=params.tone.lower(),
        genre=params.genre.lower(),
        setting=params.setting.lower(),
        character_name=params.character_name,
        role=params.role.lower(),
        plot_twist_text=PLOT_TWIST_TEXT if params.plot_twist else "",
    )


class StoryGenerator:
    """Thin proxy to an OpenAI-compatible chat completion endpoint."""

    def __init__(self, client: Optional[AsyncOpenAI] = None):
        self.client = client or AsyncOpenAI(
            api_key=settings.OPENAI_API_KEY, base_url=settings.LLM_BASE_URL
        )
        self.validate_output = settings.VALIDATE_STORY_OUTPUT

    async def generate(self, prompt: str) -> str:
        """
        Send the prompt to the model and return its raw JSON text.

        The text is parsed to make sure it is a JSON object; when output
        validation is on it must also have a title and a list of paragraphs.

        Raises:
            StoryGenerationError: on API failure or unusable output
        """
        logger.debug(f"LLM request ({settings.LLM_MODEL}): {prompt}")

        try:
            response = await self.client.chat.completions.create(
                model=settings.LLM_MODEL,
                messages=[{"role": "user", "content": prompt}],
                response_format={"type": "json_object"},
            )
        except Exception as e:
            logger.error(f"LLM API error: {str(e)}")
            raise StoryGenerationError("Story generation service unavailable") from e

        generated_text = response.choices[0].message.content or ""
        logger.debug(f"LLM response usage: {response.usage}")

        try:
            parsed = json.loads(generated_text)
        except json.JSONDecodeError as e:
            logger.error(f"LLM returned non-JSON output: {generated_text[:200]!r}")
            raise StoryGenerationError("Model returned invalid JSON") from e

        if not isinstance(parsed, dict):
            raise StoryGenerationError("Model returned an unexpected JSON shape")

        if self.validate_output:
            try:
                GeneratedStory.model_validate(parsed)
            except ValidationError as e:
                logger.error(f"LLM output failed story validation: {e}")
                raise StoryGenerationError(
                    "Model output is missing a title or paragraphs"
                ) from e

        return generated_text


def get_story_generator() -> StoryGenerator:
    """FastAPI dependency; overridden in tests."""
    return StoryGenerator()
