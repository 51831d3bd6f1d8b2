from pydantic import BaseModel, Field, model_validator
from typing import List, Optional


class StoryParameters(BaseModel):
    genre: str = Field(min_length=1, max_length=50)
    character_name: str = Field(
        min_length=1, max_length=50, pattern=r"^[A-Za-z\s]+$", alias="characterName"
    )
    role: str = Field(min_length=1, max_length=50)
    setting: str = Field(min_length=1, max_length=50)
    tone: str = Field(min_length=1, max_length=50)
    plot_twist: bool = Field(False, alias="plotTwist")

    class Config:
        populate_by_name = True


class GenerateRequest(BaseModel):
    """Either a ready prompt or the story parameters to build one from."""

    prompt: Optional[str] = Field(None, max_length=4000)
    genre: Optional[str] = None
    character_name: Optional[str] = Field(None, alias="characterName")
    role: Optional[str] = None
    setting: Optional[str] = None
    tone: Optional[str] = None
    plot_twist: bool = Field(False, alias="plotTwist")

    class Config:
        populate_by_name = True

    @model_validator(mode="after")
    def require_prompt_or_parameters(self):
        if self.prompt and self.prompt.strip():
            return self
        missing = [
            name
            for name in ("genre", "character_name", "role", "setting", "tone")
            if not getattr(self, name)
        ]
        if missing:
            raise ValueError(
                "Provide a prompt or all story parameters "
                "(genre, characterName, role, setting, tone)"
            )
        return self

    def story_parameters(self) -> StoryParameters:
        return StoryParameters(
            genre=self.genre,
            character_name=self.character_name,
            role=self.role,
            setting=self.setting,
            tone=self.tone,
            plot_twist=self.plot_twist,
        )


class GeneratedStory(BaseModel):
    """Shape the model is asked to return."""

    title: str = Field(min_length=1)
    paragraphs: List[str] = Field(min_length=1)
