"""Tests for saved stories, tags and favorites."""

import pytest
from sqlalchemy import func, select
from app.core.auth import create_user_token
from app.core.config import settings
from app.models.story import Story, Tag, story_tags
from app.services import stories as story_service


def _link_count(db) -> int:
    return db.execute(select(func.count()).select_from(story_tags)).scalar()


def _tag_counts(client) -> dict:
    return {t["name"]: t["usage_count"] for t in client.get("/api/v1/tags").json()}


@pytest.mark.unit
class TestStoryService:
    """Test the story service directly."""

    def test_normalize_tag_names(self):
        assert story_service.normalize_tag_names(
            [" Fantasy ", "fantasy", "", "  ", "Sci-Fi"]
        ) == ["fantasy", "sci-fi"]
        assert story_service.normalize_tag_names(None) == []

    def test_create_story_with_tags(self, db_session, test_user):
        story = story_service.create_story(
            db_session, test_user.id, "Title", "Body", tags=["a", "b"]
        )

        assert story.id is not None
        assert story.tag_names == ["a", "b"]
        assert story.is_favorite is False

    def test_tag_creation_is_idempotent(self, db_session, test_user, other_user):
        """Tags are shared; reusing a name never creates a second row."""
        story_service.create_story(db_session, test_user.id, "One", "x", ["a", "b"])
        story_service.create_story(db_session, other_user.id, "Two", "y", ["b", "a"])

        assert db_session.query(Tag).count() == 2

        for user in (test_user, other_user):
            stories = story_service.list_stories(db_session, user.id)
            assert set(stories[0].tag_names) == {"a", "b"}

    def test_create_story_without_tags(self, db_session, test_user):
        story = story_service.create_story(db_session, test_user.id, "Plain", "Body")

        assert story.tag_names == []
        assert _link_count(db_session) == 0

    def test_delete_story_keeps_tags(self, db_session, test_user, test_story):
        assert story_service.delete_story(db_session, test_story.id, test_user.id)

        assert db_session.query(Story).count() == 0
        assert _link_count(db_session) == 0
        assert {tag.name for tag in db_session.query(Tag).all()} == {
            "fantasy",
            "adventure",
        }

    def test_delete_story_of_other_user(self, db_session, other_user, test_story):
        assert not story_service.delete_story(db_session, test_story.id, other_user.id)
        assert db_session.query(Story).count() == 1

    def test_toggle_favorite_twice(self, db_session, test_user, test_story):
        original = test_story.is_favorite

        story_service.toggle_favorite(db_session, test_story.id, test_user.id)
        story = story_service.toggle_favorite(db_session, test_story.id, test_user.id)

        assert story.is_favorite == original

    def test_list_tags_counts_only_own_stories(
        self, db_session, test_user, other_user, test_story
    ):
        story_service.create_story(db_session, test_user.id, "Two", "x", ["fantasy"])
        story_service.create_story(db_session, other_user.id, "Three", "y", ["horror"])

        tags = story_service.list_tags(db_session, test_user.id)

        assert [(t["name"], t["usage_count"]) for t in tags] == [
            ("fantasy", 2),
            ("adventure", 1),
        ]

    def test_normalized_tag_length_checked(self):
        # "\u0130" lower-cases to two code points
        with pytest.raises(ValueError):
            story_service.normalize_tag_names(["\u0130" * 26])

        assert len(story_service.normalize_tag_names(["\u0130" * 25])[0]) == 50

    def test_escape_like(self):
        assert story_service.escape_like("50%_off\\") == "50\\%\\_off\\\\"

    def test_search_wildcards_match_literally(self, db_session, test_user):
        story_service.create_story(db_session, test_user.id, "Plain title", "x")
        discount = story_service.create_story(
            db_session, test_user.id, "100% true_story", "y", ["100%"]
        )

        for search in ("%", "_"):
            stories = story_service.list_stories(db_session, test_user.id, search=search)
            assert [s.id for s in stories] == [discount.id]

        assert story_service.list_tags(db_session, test_user.id, search="_") == []
        assert [
            t["name"] for t in story_service.list_tags(db_session, test_user.id, search="1%")
        ] == []
        assert [
            t["name"] for t in story_service.list_tags(db_session, test_user.id, search="100%")
        ] == ["100%"]


@pytest.mark.unit
class TestStoryEndpoints:
    """Test the story API."""

    def test_create_story(self, authenticated_client, test_user):
        response = authenticated_client.post(
            "/api/v1/createStory",
            json={
                "title": "The Lost Crown",
                "content": "Once upon a time.",
                "tags": ["Fantasy", " adventure ", "fantasy"],
            },
        )

        assert response.status_code == 201
        data = response.json()
        assert data["message"] == "Story created successfully."
        assert data["story"]["title"] == "The Lost Crown"
        assert data["story"]["user_id"] == test_user.id
        assert data["story"]["tags"] == ["adventure", "fantasy"]
        assert data["story"]["is_favorite"] is False

    def test_create_story_missing_title(self, authenticated_client, db_session):
        response = authenticated_client.post(
            "/api/v1/createStory", json={"title": "   ", "content": "Body"}
        )

        assert response.status_code == 400
        assert db_session.query(Story).count() == 0

    def test_create_story_tag_too_long(self, authenticated_client, db_session):
        response = authenticated_client.post(
            "/api/v1/createStory",
            json={"title": "T", "content": "Body", "tags": ["x" * 51]},
        )

        assert response.status_code == 400
        assert "50 characters" in response.json()["message"]
        assert db_session.query(Story).count() == 0

    def test_create_story_tag_too_long_after_lowercase(
        self, authenticated_client, db_session
    ):
        response = authenticated_client.post(
            "/api/v1/createStory",
            json={"title": "T", "content": "Body", "tags": ["İ" * 30]},
        )

        assert response.status_code == 400
        assert "50 characters" in response.json()["message"]
        assert db_session.query(Story).count() == 0
        assert db_session.query(Tag).count() == 0

    def test_create_story_tag_at_limit_after_lowercase(self, authenticated_client):
        response = authenticated_client.post(
            "/api/v1/createStory",
            json={"title": "T", "content": "Body", "tags": ["İ" * 25]},
        )

        assert response.status_code == 201
        assert len(response.json()["story"]["tags"][0]) == 50

    def test_get_stories(self, authenticated_client, test_story):
        response = authenticated_client.get("/api/v1/getStories")

        assert response.status_code == 200
        stories = response.json()
        assert len(stories) == 1
        assert stories[0]["id"] == test_story.id
        assert stories[0]["content"] == "Once upon a time a crown went missing."
        assert set(stories[0]["tags"]) == {"fantasy", "adventure"}

    def test_get_stories_newest_first(self, authenticated_client, db_session, test_user):
        first = story_service.create_story(db_session, test_user.id, "First", "x")
        second = story_service.create_story(db_session, test_user.id, "Second", "y")

        response = authenticated_client.get("/api/v1/getStories")

        assert [s["id"] for s in response.json()] == [second.id, first.id]

    def test_get_stories_only_own(self, authenticated_client, db_session, other_user):
        story_service.create_story(db_session, other_user.id, "Not mine", "x")

        response = authenticated_client.get("/api/v1/getStories")

        assert response.status_code == 200
        assert response.json() == []

    def test_filter_by_tags(self, authenticated_client, db_session, test_user):
        story_service.create_story(db_session, test_user.id, "A", "x", ["red"])
        both = story_service.create_story(
            db_session, test_user.id, "B", "y", ["red", "blue"]
        )

        response = authenticated_client.get(
            "/api/v1/getStories", params={"tag": ["red", "BLUE"]}
        )

        assert [s["id"] for s in response.json()] == [both.id]

    def test_filter_favorites_and_search(
        self, authenticated_client, db_session, test_user
    ):
        dragon = story_service.create_story(
            db_session, test_user.id, "The Dragon", "x"
        )
        story_service.create_story(db_session, test_user.id, "Dragonfly", "y")
        story_service.set_favorite(db_session, dragon.id, test_user.id, True)

        favorites = authenticated_client.get(
            "/api/v1/getStories", params={"favorite": "true"}
        ).json()
        found = authenticated_client.get(
            "/api/v1/getStories", params={"search": "dragon"}
        ).json()

        assert [s["id"] for s in favorites] == [dragon.id]
        assert len(found) == 2

    def test_sort_alphabetical(self, authenticated_client, db_session, test_user):
        for title in ("banana", "Apple", "cherry"):
            story_service.create_story(db_session, test_user.id, title, "x")

        response = authenticated_client.get(
            "/api/v1/getStories", params={"sort": "alphabetical"}
        )

        assert [s["title"] for s in response.json()] == ["Apple", "banana", "cherry"]

    def test_invalid_sort(self, authenticated_client):
        response = authenticated_client.get(
            "/api/v1/getStories", params={"sort": "random"}
        )

        assert response.status_code == 400

    def test_delete_story(self, authenticated_client, db_session, test_story):
        response = authenticated_client.delete(f"/api/v1/deleteStory/{test_story.id}")

        assert response.status_code == 200
        assert response.json() == {"message": "Story deleted successfully."}
        assert db_session.query(Story).count() == 0
        assert _link_count(db_session) == 0
        assert db_session.query(Tag).count() == 2

    def test_delete_missing_story(self, authenticated_client):
        response = authenticated_client.delete("/api/v1/deleteStory/9999")

        assert response.status_code == 400
        assert response.json() == {"message": "Story not found."}

    def test_delete_story_of_other_user(
        self, client, db_session, other_user, test_story
    ):
        client.cookies.set(settings.COOKIE_NAME, create_user_token(other_user))
        response = client.delete(f"/api/v1/deleteStory/{test_story.id}")

        assert response.status_code == 400
        assert db_session.query(Story).count() == 1

    def test_delete_story_invalid_id(self, authenticated_client):
        response = authenticated_client.delete("/api/v1/deleteStory/0")

        assert response.status_code == 400

    def test_toggle_favorite(self, authenticated_client, test_story):
        first = authenticated_client.put(f"/api/v1/favorite/{test_story.id}")
        second = authenticated_client.put(f"/api/v1/favorite/{test_story.id}")

        assert first.status_code == 200
        assert first.json() == {
            "message": "Favorite status updated.",
            "isFavorite": True,
        }
        assert second.json()["isFavorite"] is False

    def test_set_favorite_explicitly(self, authenticated_client, db_session, test_story):
        for _ in range(2):
            response = authenticated_client.put(
                f"/api/v1/favorite/{test_story.id}", json={"isFavorite": True}
            )
            assert response.json()["isFavorite"] is True

        db_session.refresh(test_story)
        assert test_story.is_favorite is True

    def test_favorite_non_boolean(self, authenticated_client, db_session, test_story):
        response = authenticated_client.put(
            f"/api/v1/favorite/{test_story.id}", json={"isFavorite": "yes"}
        )

        assert response.status_code == 400
        db_session.refresh(test_story)
        assert test_story.is_favorite is False

    def test_favorite_missing_story(self, authenticated_client):
        response = authenticated_client.put("/api/v1/favorite/9999")

        assert response.status_code == 400
        assert response.json() == {"message": "Story not found."}

    def test_get_tags(self, authenticated_client, test_story):
        response = authenticated_client.get("/api/v1/tags")

        assert response.status_code == 200
        names = {tag["name"]: tag["usage_count"] for tag in response.json()}
        assert names == {"fantasy": 1, "adventure": 1}

    def test_get_tags_prefix_search(self, authenticated_client, test_story):
        response = authenticated_client.get("/api/v1/tags", params={"search": "Fan"})

        assert [tag["name"] for tag in response.json()] == ["fantasy"]

    def test_search_wildcards_are_literal(
        self, authenticated_client, db_session, test_user, test_story
    ):
        discount = story_service.create_story(db_session, test_user.id, "100% true", "x")

        by_percent = authenticated_client.get(
            "/api/v1/getStories", params={"search": "%"}
        ).json()
        by_underscore = authenticated_client.get(
            "/api/v1/getStories", params={"search": "_"}
        ).json()
        tags = authenticated_client.get("/api/v1/tags", params={"search": "_"}).json()

        assert [s["id"] for s in by_percent] == [discount.id]
        assert by_underscore == []
        assert tags == []


@pytest.mark.integration
class TestStoryWorkflow:
    """Save, tag, favorite and remove stories across several requests."""

    def test_story_lifecycle(self, authenticated_client, db_session):
        created = authenticated_client.post(
            "/api/v1/createStory",
            json={"title": "Night Train", "content": "All aboard.", "tags": ["a", "b"]},
        ).json()["story"]
        authenticated_client.post(
            "/api/v1/createStory",
            json={"title": "Day Train", "content": "Tickets please.", "tags": ["b"]},
        )

        tags = _tag_counts(authenticated_client)
        assert tags == {"a": 1, "b": 2}

        authenticated_client.put(f"/api/v1/favorite/{created['id']}")
        favorites = authenticated_client.get(
            "/api/v1/getStories", params={"favorite": "true"}
        ).json()
        assert [s["title"] for s in favorites] == ["Night Train"]

        authenticated_client.delete(f"/api/v1/deleteStory/{created['id']}")
        remaining = authenticated_client.get("/api/v1/getStories").json()
        assert [s["title"] for s in remaining] == ["Day Train"]

        tags = _tag_counts(authenticated_client)
        assert tags == {"b": 1}
        assert db_session.query(Tag).count() == 2
