"""Tests for the comments and reactions routers.

Covers:
- Commenting on own and friends' cards; non-friends 403; unknown owner 404
- No bounds check against the live grid
- Private comment visibility for author, card owner and other friends
- Cell filtering and newest-first ordering
- Delete only matches the caller's own comments
- Reaction uniqueness per (comment, user, emoji)
- Reaction visibility follows the comment's visibility
- Reactions cascade with their comment
"""

from app.models.comment import Reaction

from conftest import API


def post_comment(client, author, owner, text="Nice!", row=0, col=0, is_private=False):
    return client.post(
        f"{API}/comments",
        json={
            "card_owner_id": owner["id"],
            "row": row,
            "col": col,
            "text": text,
            "is_private": is_private,
        },
        headers=author["headers"],
    )


def react(client, user, comment_id, emoji):
    return client.post(
        f"{API}/reactions",
        json={"comment_id": comment_id, "emoji": emoji},
        headers=user["headers"],
    )


class TestPostComment:
    """Tests for POST /comments."""

    def test_friend_can_comment(self, client, ann, bo, make_friends):
        make_friends(ann, bo)
        resp = post_comment(client, bo, ann, text="Go Ann")
        assert resp.status_code == 201
        body = resp.json()
        assert body["author_id"] == bo["id"]
        assert body["author_name"] == "Bo"
        assert body["card_owner_id"] == ann["id"]
        assert body["is_private"] is False
        assert body["reactions"] == []

    def test_owner_can_comment_on_own_card(self, client, ann):
        resp = post_comment(client, ann, ann)
        assert resp.status_code == 201

    def test_non_friend_forbidden(self, client, ann, cy):
        resp = post_comment(client, cy, ann)
        assert resp.status_code == 403

    def test_unknown_owner_not_found(self, client, ann):
        resp = post_comment(client, ann, {"id": 999})
        assert resp.status_code == 404

    def test_cell_outside_grid_accepted(self, client, ann, bo, make_friends):
        make_friends(ann, bo)
        resp = post_comment(client, bo, ann, row=42, col=17)
        assert resp.status_code == 201
        assert (resp.json()["row"], resp.json()["col"]) == (42, 17)

    def test_empty_text_bad_request(self, client, ann):
        resp = post_comment(client, ann, ann, text="")
        assert resp.status_code == 400


class TestListComments:
    """Tests for GET /comments/{owner} and /comments/{owner}/{row}/{col}."""

    def test_private_comment_visibility(self, client, ann, bo, cy, make_friends):
        make_friends(ann, bo)
        make_friends(bo, cy)
        post_comment(client, ann, bo, text="just between us", is_private=True)
        post_comment(client, ann, bo, text="public cheer")

        def texts(viewer):
            resp = client.get(f"{API}/comments/{bo['id']}", headers=viewer["headers"])
            assert resp.status_code == 200
            return {c["text"] for c in resp.json()}

        assert texts(ann) == {"just between us", "public cheer"}
        assert texts(bo) == {"just between us", "public cheer"}
        assert texts(cy) == {"public cheer"}

    def test_non_friend_forbidden(self, client, ann, cy):
        post_comment(client, ann, ann)
        resp = client.get(f"{API}/comments/{ann['id']}", headers=cy["headers"])
        assert resp.status_code == 403

    def test_filter_by_cell(self, client, ann, bo, make_friends):
        make_friends(ann, bo)
        post_comment(client, bo, ann, text="corner", row=0, col=0)
        post_comment(client, bo, ann, text="middle", row=1, col=1)

        resp = client.get(f"{API}/comments/{ann['id']}/1/1", headers=ann["headers"])
        assert [c["text"] for c in resp.json()] == ["middle"]

    def test_newest_first(self, client, ann):
        post_comment(client, ann, ann, text="first")
        post_comment(client, ann, ann, text="second")
        resp = client.get(f"{API}/comments/{ann['id']}", headers=ann["headers"])
        assert [c["text"] for c in resp.json()] == ["second", "first"]


class TestDeleteComment:
    """Tests for DELETE /comments/{id}."""

    def test_author_deletes(self, client, ann):
        comment_id = post_comment(client, ann, ann).json()["id"]
        resp = client.delete(f"{API}/comments/{comment_id}", headers=ann["headers"])
        assert resp.status_code == 204
        assert client.get(f"{API}/comments/{ann['id']}", headers=ann["headers"]).json() == []

    def test_card_owner_cannot_delete_friends_comment(self, client, ann, bo, make_friends):
        make_friends(ann, bo)
        comment_id = post_comment(client, bo, ann).json()["id"]

        resp = client.delete(f"{API}/comments/{comment_id}", headers=ann["headers"])
        assert resp.status_code == 404
        assert len(client.get(f"{API}/comments/{ann['id']}", headers=ann["headers"]).json()) == 1

    def test_missing_comment_not_found(self, client, ann):
        resp = client.delete(f"{API}/comments/999", headers=ann["headers"])
        assert resp.status_code == 404


class TestReactions:
    """Tests for the /reactions router."""

    def test_same_emoji_twice_conflict(self, client, ann, bo, make_friends):
        make_friends(ann, bo)
        comment_id = post_comment(client, bo, ann).json()["id"]

        assert react(client, ann, comment_id, "🎉").status_code == 201
        resp = react(client, ann, comment_id, "🎉")
        assert resp.status_code == 409

    def test_different_emoji_allowed(self, client, ann, bo, make_friends):
        make_friends(ann, bo)
        comment_id = post_comment(client, bo, ann).json()["id"]

        assert react(client, ann, comment_id, "🎉").status_code == 201
        assert react(client, ann, comment_id, "👍").status_code == 201
        assert react(client, bo, comment_id, "🎉").status_code == 201

        resp = client.get(f"{API}/reactions/{comment_id}", headers=bo["headers"])
        assert [(r["user_name"], r["emoji"]) for r in resp.json()] == [
            ("Ann", "🎉"), ("Ann", "👍"), ("Bo", "🎉"),
        ]

    def test_reactions_included_in_comment_listing(self, client, ann):
        comment_id = post_comment(client, ann, ann).json()["id"]
        react(client, ann, comment_id, "🔥")

        comments = client.get(f"{API}/comments/{ann['id']}", headers=ann["headers"]).json()
        assert [r["emoji"] for r in comments[0]["reactions"]] == ["🔥"]

    def test_remove_reaction(self, client, ann):
        comment_id = post_comment(client, ann, ann).json()["id"]
        react(client, ann, comment_id, "🎉")

        resp = client.request(
            "DELETE", f"{API}/reactions",
            json={"comment_id": comment_id, "emoji": "🎉"},
            headers=ann["headers"],
        )
        assert resp.status_code == 204
        assert client.get(f"{API}/reactions/{comment_id}", headers=ann["headers"]).json() == []

        # Can react again once removed
        assert react(client, ann, comment_id, "🎉").status_code == 201

    def test_remove_missing_reaction_not_found(self, client, ann):
        comment_id = post_comment(client, ann, ann).json()["id"]
        resp = client.request(
            "DELETE", f"{API}/reactions",
            json={"comment_id": comment_id, "emoji": "🎉"},
            headers=ann["headers"],
        )
        assert resp.status_code == 404

    def test_non_friend_cannot_react(self, client, ann, cy):
        comment_id = post_comment(client, ann, ann).json()["id"]
        resp = react(client, cy, comment_id, "🎉")
        assert resp.status_code == 403

    def test_private_comment_hidden_from_other_friends(self, client, ann, bo, cy, make_friends):
        make_friends(ann, bo)
        make_friends(bo, cy)
        comment_id = post_comment(client, ann, bo, is_private=True).json()["id"]

        assert react(client, cy, comment_id, "🎉").status_code == 404
        assert client.get(f"{API}/reactions/{comment_id}", headers=cy["headers"]).status_code == 404
        assert react(client, bo, comment_id, "🎉").status_code == 201

    def test_card_reactions_skip_private_comments(self, client, ann, bo, cy, make_friends):
        make_friends(ann, bo)
        make_friends(bo, cy)
        public_id = post_comment(client, ann, bo, row=2, col=1).json()["id"]
        private_id = post_comment(client, ann, bo, is_private=True).json()["id"]
        react(client, bo, public_id, "👍")
        react(client, bo, private_id, "🤫")

        resp = client.get(f"{API}/reactions/card/{bo['id']}", headers=cy["headers"])
        assert resp.status_code == 200
        assert [(r["emoji"], r["row"], r["col"]) for r in resp.json()] == [("👍", 2, 1)]

        owner_view = client.get(f"{API}/reactions/card/{bo['id']}", headers=bo["headers"]).json()
        assert {r["emoji"] for r in owner_view} == {"👍", "🤫"}

    def test_reactions_deleted_with_comment(self, client, ann, db_session):
        comment_id = post_comment(client, ann, ann).json()["id"]
        react(client, ann, comment_id, "🎉")
        client.delete(f"{API}/comments/{comment_id}", headers=ann["headers"])

        assert db_session.query(Reaction).count() == 0
