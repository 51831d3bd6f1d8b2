"""Stories and their tags."""

from typing import Iterable, List, Optional
from sqlalchemy import func, insert
from sqlalchemy.orm import Session, selectinload
import logging

from app.core.database import upsert_insert
from app.models.story import MAX_TAG_LENGTH, Story, Tag, story_tags

logger = logging.getLogger(__name__)

SORT_ORDERS = ("newest", "oldest", "alphabetical")


def escape_like(text: str) -> str:
    """Escape LIKE wildcards so user input matches literally (use with escape="\\")."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def normalize_tag_names(names: Optional[Iterable[str]]) -> List[str]:
    """
    Trim and lower-case tag names, dropping blanks and duplicates (order kept).

    Raises:
        ValueError: if a name is longer than MAX_TAG_LENGTH once normalized
    """
    normalized = []
    for name in names or []:
        name = name.strip().lower()
        if len(name) > MAX_TAG_LENGTH:
            raise ValueError(f"Tag name cannot exceed {MAX_TAG_LENGTH} characters")
        if name and name not in normalized:
            normalized.append(name)
    return normalized


def upsert_tag_ids(db: Session, names: List[str]) -> List[int]:
    """
    Return tag ids for ``names``, creating missing tags.

    Inserts use ON CONFLICT DO NOTHING, so concurrent writers of the same
    name end up sharing one row.
    """
    if not names:
        return []

    stmt = (
        upsert_insert(db, Tag)
        .values([{"name": name} for name in names])
        .on_conflict_do_nothing(index_elements=["name"])
    )
    db.execute(stmt)

    rows = db.query(Tag.id, Tag.name).filter(Tag.name.in_(names)).all()
    ids_by_name = {row.name: row.id for row in rows}
    return [ids_by_name[name] for name in names]


def create_story(
    db: Session,
    user_id: int,
    title: str,
    content: str,
    tags: Optional[Iterable[str]] = None,
) -> Story:
    """Insert a story, upsert its tags, then bulk-insert the story/tag links."""
    story = Story(user_id=user_id, title=title, content=content)
    db.add(story)
    db.flush()  # Get the ID without committing

    tag_ids = upsert_tag_ids(db, normalize_tag_names(tags))
    if tag_ids:
        db.execute(
            insert(story_tags),
            [{"story_id": story.id, "tag_id": tag_id} for tag_id in tag_ids],
        )

    db.commit()
    db.refresh(story)

    logger.info(f"User {user_id} saved story {story.id} with {len(tag_ids)} tags")
    return story


def get_story(db: Session, story_id: int, user_id: int) -> Optional[Story]:
    return (
        db.query(Story)
        .options(selectinload(Story.tags))
        .filter(Story.id == story_id, Story.user_id == user_id)
        .first()
    )


def delete_story(db: Session, story_id: int, user_id: int) -> bool:
    """
    Delete one of the user's stories.

    Its tag links are removed; the tags themselves remain for other stories.
    """
    story = get_story(db, story_id, user_id)
    if not story:
        return False

    db.delete(story)
    db.commit()

    logger.info(f"User {user_id} deleted story {story_id}")
    return True


def list_stories(
    db: Session,
    user_id: int,
    tags: Optional[Iterable[str]] = None,
    favorites_only: bool = False,
    search: Optional[str] = None,
    sort: str = "newest",
) -> List[Story]:
    """
    The user's stories with tags loaded.

    - ``tags``: story must carry ALL of the given tags
    - ``favorites_only``: only stories marked favorite
    - ``search``: case-insensitive title substring
    - ``sort``: newest, oldest or alphabetical
    """
    query = (
        db.query(Story)
        .options(selectinload(Story.tags))
        .filter(Story.user_id == user_id)
    )

    for tag_name in {name.strip().lower() for name in tags or [] if name.strip()}:
        query = query.filter(Story.tags.any(Tag.name == tag_name))

    if favorites_only:
        query = query.filter(Story.is_favorite.is_(True))

    if search and search.strip():
        query = query.filter(
            Story.title.ilike(f"%{escape_like(search.strip())}%", escape="\\")
        )

    if sort == "oldest":
        query = query.order_by(Story.created_at.asc(), Story.id.asc())
    elif sort == "alphabetical":
        query = query.order_by(func.lower(Story.title), Story.id)
    else:
        query = query.order_by(Story.created_at.desc(), Story.id.desc())

    return query.all()


def set_favorite(
    db: Session, story_id: int, user_id: int, is_favorite: bool
) -> Optional[Story]:
    story = get_story(db, story_id, user_id)
    if not story:
        return None

    story.is_favorite = is_favorite
    db.commit()
    db.refresh(story)
    return story


def toggle_favorite(db: Session, story_id: int, user_id: int) -> Optional[Story]:
    story = get_story(db, story_id, user_id)
    if not story:
        return None

    return set_favorite(db, story_id, user_id, not story.is_favorite)


def list_tags(db: Session, user_id: int, search: Optional[str] = None) -> List[dict]:
    """Tags used on the user's stories, most used first."""
    usage_count = func.count(Story.id)
    query = (
        db.query(Tag.id, Tag.name, usage_count.label("usage_count"))
        .join(story_tags, story_tags.c.tag_id == Tag.id)
        .join(Story, Story.id == story_tags.c.story_id)
        .filter(Story.user_id == user_id)
        .group_by(Tag.id, Tag.name)
    )

    if search:
        query = query.filter(
            Tag.name.like(f"{escape_like(search.strip().lower())}%", escape="\\")
        )

    query = query.order_by(usage_count.desc(), Tag.name)

    return [
        {"id": row.id, "name": row.name, "usage_count": row.usage_count}
        for row in query.all()
    ]
