"""HTTP tests for the comment endpoints."""

from uuid import UUID, uuid4

import pytest
from fastapi.testclient import TestClient

from tests.conftest import bearer
from tests.fakes import InMemoryCollection, blog_document, comment_document


@pytest.fixture
def blog_id(blogs: InMemoryCollection, admin_id: UUID) -> UUID:
    return blogs.put(blog_document(admin_id))["id"]


class TestCreateAndList:
    def test_create_requires_auth(self, client: TestClient, blog_id: UUID) -> None:
        response = client.post(
            "/v1/comments", json={"blog_id": str(blog_id), "content": "Hi"}
        )
        assert response.status_code == 401
        assert response.json()["success"] is False

    def test_create_reply_and_list(
        self,
        client: TestClient,
        blogs: InMemoryCollection,
        blog_id: UUID,
        user_headers: dict[str, str],
    ) -> None:
        # Arrange
        created = client.post(
            "/v1/comments",
            json={"blog_id": str(blog_id), "content": "First!"},
            headers=user_headers,
        )
        assert created.status_code == 201
        parent_id = created.json()["id"]

        # Act
        reply = client.post(
            "/v1/comments",
            json={"blog_id": str(blog_id), "content": "Reply", "parent_id": parent_id},
            headers=user_headers,
        )
        listing = client.get(f"/v1/comments/blog/{blog_id}")

        # Assert
        assert reply.status_code == 201
        assert reply.json()["author"]["name"] == "reader"
        body = listing.json()
        assert [item["id"] for item in body["items"]] == [parent_id]
        assert body["items"][0]["replies_count"] == 1
        assert body["items"][0]["replies"][0]["id"] == reply.json()["id"]
        assert body["pagination"]["total"] == 1
        assert blogs.documents[blog_id]["comments_count"] == 2

    def test_empty_content_is_400(
        self, client: TestClient, blog_id: UUID, user_headers: dict[str, str]
    ) -> None:
        response = client.post(
            "/v1/comments",
            json={"blog_id": str(blog_id), "content": "   "},
            headers=user_headers,
        )
        assert response.status_code == 400

    def test_unknown_blog_is_404(self, client: TestClient, user_headers: dict[str, str]) -> None:
        response = client.post(
            "/v1/comments",
            json={"blog_id": str(uuid4()), "content": "Hi"},
            headers=user_headers,
        )
        assert response.status_code == 404

    def test_invalid_sort_is_422(self, client: TestClient, blog_id: UUID) -> None:
        response = client.get(f"/v1/comments/blog/{blog_id}?sort=popular")
        assert response.status_code == 422


class TestModification:
    def test_delete_by_other_user_is_403(
        self,
        client: TestClient,
        comments: InMemoryCollection,
        blog_id: UUID,
        user_headers: dict[str, str],
    ) -> None:
        doc = comments.put(comment_document(blog_id, uuid4()))

        response = client.delete(f"/v1/comments/{doc['id']}", headers=user_headers)

        assert response.status_code == 403

    def test_admin_deletes_subtree(
        self,
        client: TestClient,
        comments: InMemoryCollection,
        blog_id: UUID,
        admin_headers: dict[str, str],
    ) -> None:
        parent = comments.put(comment_document(blog_id, uuid4()))
        comments.put(comment_document(blog_id, uuid4(), parent_id=parent["id"]))

        response = client.delete(f"/v1/comments/{parent['id']}", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["deleted_count"] == 2
        assert comments.documents == {}

    def test_owner_edits(
        self,
        client: TestClient,
        comments: InMemoryCollection,
        blog_id: UUID,
        user_id: UUID,
        user_headers: dict[str, str],
    ) -> None:
        doc = comments.put(comment_document(blog_id, user_id))

        response = client.put(
            f"/v1/comments/{doc['id']}", json={"content": "Edited"}, headers=user_headers
        )

        assert response.status_code == 200
        assert response.json()["content"] == "Edited"
        assert response.json()["is_edited"] is True

    def test_like_toggle(
        self,
        client: TestClient,
        comments: InMemoryCollection,
        blog_id: UUID,
        user_headers: dict[str, str],
    ) -> None:
        doc = comments.put(comment_document(blog_id, uuid4()))

        first = client.post(f"/v1/comments/{doc['id']}/like", headers=user_headers)
        second = client.post(f"/v1/comments/{doc['id']}/like", headers=user_headers)

        assert first.json() == {"liked": True, "count": 1}
        assert second.json() == {"liked": False, "count": 0}


class TestModerationEndpoints:
    def test_flag_twice_is_409(
        self,
        client: TestClient,
        comments: InMemoryCollection,
        blog_id: UUID,
        user_headers: dict[str, str],
    ) -> None:
        doc = comments.put(comment_document(blog_id, uuid4()))
        url = f"/v1/comments/{doc['id']}/flag"

        first = client.post(url, json={"reason": "spam"}, headers=user_headers)
        second = client.post(url, json={"reason": "spam"}, headers=user_headers)

        assert first.status_code == 200
        assert first.json()["status"] == "flagged"
        assert second.status_code == 409

    def test_invalid_reason_is_400(
        self,
        client: TestClient,
        comments: InMemoryCollection,
        blog_id: UUID,
        user_headers: dict[str, str],
    ) -> None:
        doc = comments.put(comment_document(blog_id, uuid4()))

        response = client.post(
            f"/v1/comments/{doc['id']}/flag", json={"reason": "meh"}, headers=user_headers
        )

        assert response.status_code == 400

    def test_non_admin_moderation_is_403(
        self,
        client: TestClient,
        comments: InMemoryCollection,
        blog_id: UUID,
        user_headers: dict[str, str],
    ) -> None:
        doc = comments.put(comment_document(blog_id, uuid4()))

        response = client.patch(
            f"/v1/comments/{doc['id']}/moderate",
            json={"status": "hidden"},
            headers=user_headers,
        )

        assert response.status_code == 403

    def test_flagged_queue_and_moderation(
        self,
        client: TestClient,
        comments: InMemoryCollection,
        blog_id: UUID,
        user_headers: dict[str, str],
        admin_headers: dict[str, str],
    ) -> None:
        # Arrange
        doc = comments.put(comment_document(blog_id, uuid4()))
        client.post(
            f"/v1/comments/{doc['id']}/flag",
            json={"reason": "harassment"},
            headers=user_headers,
        )

        # Act
        queue = client.get("/v1/comments/moderation/flagged", headers=admin_headers)
        moderated = client.patch(
            f"/v1/comments/{doc['id']}/moderate",
            json={"status": "hidden"},
            headers=admin_headers,
        )

        # Assert
        assert queue.status_code == 200
        items = queue.json()["items"]
        assert [item["id"] for item in items] == [str(doc["id"])]
        assert items[0]["flagged_by"][0]["reason"] == "harassment"
        assert moderated.json()["status"] == "hidden"

    def test_flagged_queue_requires_admin(
        self, client: TestClient, user_id: UUID
    ) -> None:
        response = client.get(
            "/v1/comments/moderation/flagged", headers=bearer(user_id)
        )
        assert response.status_code == 403
