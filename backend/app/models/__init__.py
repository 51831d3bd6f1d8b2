from .user import User
from .api_usage import ApiUsage
from .story import Story, Tag, story_tags
from .resource import Resource

__all__ = [
    "User",
    "ApiUsage",
    "Story",
    "Tag",
    "story_tags",
    "Resource",
]
