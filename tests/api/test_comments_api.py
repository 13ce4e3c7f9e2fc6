"""
Discussion endpoints: posting, nesting, editing, deleting and moderation.
"""

from __future__ import annotations

import pytest


@pytest.fixture
def article(make_article, author):
    return make_article(author)


@pytest.fixture
def post_comment(client, auth, article):
    def _post(user, content="Well reported.", parent_id=None):
        payload = {"content": content}
        if parent_id:
            payload["parent_comment_id"] = parent_id
        response = client.post(
            f"/api/articles/{article.id}/comments", json=payload, headers=auth(user)
        )
        return response

    return _post


class TestPost:
    def test_root_and_reply(self, client, post_comment, reader, author, article) -> None:
        root = post_comment(reader)
        assert root.status_code == 201
        root_id = root.json()["data"]["id"]

        reply = post_comment(author, "Thank you", parent_id=root_id)
        assert reply.json()["data"]["depth"] == 1
        assert reply.json()["data"]["author_display_name"] == "Ada Author"

        listing = client.get(f"/api/articles/{article.id}/comments").json()["data"]
        assert listing["total_count"] == 1
        (thread,) = listing["comments"]
        assert thread["reply_count"] == 1
        assert thread["replies"][0]["content"] == "Thank you"
        assert thread["replies"][0]["replies"] == []

    def test_depth_exceeded(self, post_comment, reader) -> None:
        parent_id = None
        for _ in range(3):
            parent_id = post_comment(reader, parent_id=parent_id).json()["data"]["id"]

        response = post_comment(reader, "Too deep", parent_id=parent_id)

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "DEPTH_EXCEEDED"

    def test_anonymous_cannot_post(self, client, article) -> None:
        response = client.post(f"/api/articles/{article.id}/comments", json={"content": "Hi"})
        assert response.status_code == 401

    def test_unknown_article(self, client, auth, reader) -> None:
        response = client.post(
            "/api/articles/00000000-0000-0000-0000-000000000000/comments",
            json={"content": "Hi"},
            headers=auth(reader),
        )
        assert response.status_code == 404


class TestEditDelete:
    def test_edit_window(self, client, auth, post_comment, reader, clock) -> None:
        comment_id = post_comment(reader).json()["data"]["id"]

        clock.advance(minutes=15)
        edited = client.put(
            f"/api/comments/{comment_id}", json={"content": "Edited"}, headers=auth(reader)
        )
        assert edited.json()["data"]["content"] == "Edited"

        clock.advance(seconds=1)
        late = client.put(
            f"/api/comments/{comment_id}", json={"content": "Too late"}, headers=auth(reader)
        )
        assert late.status_code == 400
        assert late.json()["error"]["code"] == "EDIT_WINDOW_EXPIRED"

    def test_delete_leaves_tombstone(
        self, client, auth, post_comment, reader, author, article
    ) -> None:
        root_id = post_comment(reader).json()["data"]["id"]
        post_comment(author, "Reply", parent_id=root_id)

        deleted = client.delete(f"/api/comments/{root_id}", headers=auth(reader))
        assert deleted.json()["data"]["is_deleted"] is True

        thread = client.get(f"/api/comments/{root_id}/thread").json()["data"]
        assert thread["content"] == ""
        assert thread["is_deleted"] is True
        assert thread["replies"][0]["content"] == "Reply"

    def test_stranger_cannot_delete(self, client, auth, post_comment, reader, make_user) -> None:
        comment_id = post_comment(reader).json()["data"]["id"]
        stranger = make_user("reader")
        response = client.delete(f"/api/comments/{comment_id}", headers=auth(stranger))
        assert response.status_code == 403


class TestModeration:
    def test_admin_moderates(self, client, auth, post_comment, reader, admin, article) -> None:
        comment_id = post_comment(reader, "Buy cheap watches").json()["data"]["id"]

        response = client.post(
            f"/api/admin/comments/{comment_id}/moderate",
            json={"status": "spam"},
            headers=auth(admin),
        )
        assert response.json()["data"]["status"] == "spam"

        public = client.get(f"/api/articles/{article.id}/comments").json()["data"]
        assert public["comments"][0]["is_hidden"] is True
        assert public["comments"][0]["content"] == ""

    def test_reader_cannot_moderate(self, client, auth, post_comment, reader) -> None:
        comment_id = post_comment(reader).json()["data"]["id"]
        response = client.post(
            f"/api/admin/comments/{comment_id}/moderate",
            json={"status": "spam"},
            headers=auth(reader),
        )
        assert response.status_code == 403


class TestAdminOps:
    def test_scheduler_status_and_reconcile(self, client, auth, admin) -> None:
        status = client.get("/api/admin/scheduler/status", headers=auth(admin))
        assert status.json()["data"]["running"] is False

        reconcile = client.post(
            "/api/admin/counters/reconcile", params={"dry_run": True}, headers=auth(admin)
        )
        assert reconcile.json()["data"] == {"drift": [], "repaired": 0, "dry_run": True}

    def test_reader_cannot_sweep(self, client, auth, reader) -> None:
        response = client.post("/api/admin/scheduler/sweep", headers=auth(reader))
        assert response.status_code == 403
