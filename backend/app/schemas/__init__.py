from app.schemas.user import UserRegister, UserLogin, UsernameUpdate, UserOut
from app.schemas.story import Story, StoryCreate, FavoriteUpdate, TagUsage
from app.schemas.generate import GenerateRequest, GeneratedStory, StoryParameters

__all__ = [
    "UserRegister",
    "UserLogin",
    "UsernameUpdate",
    "UserOut",
    "Story",
    "StoryCreate",
    "FavoriteUpdate",
    "TagUsage",
    "GenerateRequest",
    "GeneratedStory",
    "StoryParameters",
]
