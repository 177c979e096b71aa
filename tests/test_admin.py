"""Tests for the admin reporting router.

Covers:
- Non-admins and anonymous callers are rejected
- Aggregate counts (admins excluded from the user total)
- User directory with card presence
- Per-user drill-down, unknown user 404
- A failing sub-lookup degrades its field instead of failing the request
- promote_admin script grants and revokes the flag
"""

import pytest

from app.api.v1 import admin as admin_routes
from app.scripts.promote_admin import main as promote_admin_main, set_admin_flag
from app.models.user import User

from conftest import API, sample_card


class TestAdminGate:
    """Every admin route checks the is_admin flag."""

    @pytest.mark.parametrize("path", ["/admin/analytics", "/admin/users", "/admin/users/1"])
    def test_regular_user_forbidden(self, client, ann, path):
        resp = client.get(f"{API}{path}", headers=ann["headers"])
        assert resp.status_code == 403

    def test_anonymous_unauthorized(self, client):
        assert client.get(f"{API}/admin/analytics").status_code == 401

    def test_revoked_admin_loses_access_immediately(self, client, make_admin, db_session):
        boss = make_admin()
        assert client.get(f"{API}/admin/analytics", headers=boss["headers"]).status_code == 200

        set_admin_flag(db_session, boss["email"], False)
        assert client.get(f"{API}/admin/analytics", headers=boss["headers"]).status_code == 403


class TestAnalytics:
    """Tests for GET /admin/analytics."""

    def test_counts(self, client, make_admin, ann, bo, cy, make_friends):
        boss = make_admin()
        make_friends(ann, bo)
        client.post(f"{API}/cards", json=sample_card(), headers=ann["headers"])
        group_id = client.post(f"{API}/groups", json={"name": "G"}, headers=cy["headers"]).json()["id"]
        client.post(
            f"{API}/comments",
            json={"card_owner_id": ann["id"], "row": 0, "col": 0, "text": "hi"},
            headers=bo["headers"],
        )
        client.post(f"{API}/groups/{group_id}/comments", json={"text": "yo"}, headers=cy["headers"])

        resp = client.get(f"{API}/admin/analytics", headers=boss["headers"])
        assert resp.status_code == 200
        assert resp.json() == {
            "total_users": 3,
            "total_cards": 1,
            "total_groups": 1,
            "total_friendships": 1,
            "total_comments": 2,
        }


class TestUserReports:
    """Tests for GET /admin/users and /admin/users/{id}."""

    def test_user_directory(self, client, make_admin, ann, bo):
        boss = make_admin()
        client.post(f"{API}/cards", json=sample_card(), headers=ann["headers"])

        resp = client.get(f"{API}/admin/users", headers=boss["headers"])
        has_card = {u["email"]: u["has_card"] for u in resp.json()}
        assert has_card == {"admin@x.com": False, "ann@x.com": True, "bo@x.com": False}

    def test_user_detail(self, client, make_admin, ann, bo, make_friends):
        boss = make_admin()
        make_friends(ann, bo)
        card = sample_card()
        client.post(f"{API}/cards", json=card, headers=ann["headers"])
        client.post(f"{API}/groups", json={"name": "Ann's club"}, headers=ann["headers"])

        resp = client.get(f"{API}/admin/users/{ann['id']}", headers=boss["headers"])
        assert resp.status_code == 200
        body = resp.json()
        assert body["user"]["email"] == "ann@x.com"
        assert body["card"]["grid"] == card["grid"]
        assert [g["name"] for g in body["groups"]] == ["Ann's club"]
        assert body["friend_count"] == 1

    def test_user_detail_defaults(self, client, make_admin, bo):
        boss = make_admin()
        body = client.get(f"{API}/admin/users/{bo['id']}", headers=boss["headers"]).json()
        assert body["card"] is None
        assert body["groups"] == []
        assert body["friend_count"] == 0

    def test_unknown_user_not_found(self, client, make_admin):
        boss = make_admin()
        assert client.get(f"{API}/admin/users/999", headers=boss["headers"]).status_code == 404

    def test_failed_lookup_degrades_field(self, client, make_admin, ann, bo, make_friends, monkeypatch):
        boss = make_admin()
        make_friends(ann, bo)
        client.post(f"{API}/cards", json=sample_card(), headers=ann["headers"])

        def broken_lookup(user_id, db):
            raise RuntimeError("groups table unavailable")

        monkeypatch.setattr(admin_routes, "lookup_groups", broken_lookup)

        resp = client.get(f"{API}/admin/users/{ann['id']}", headers=boss["headers"])
        assert resp.status_code == 200
        body = resp.json()
        assert body["groups"] == []
        assert body["card"] is not None
        assert body["friend_count"] == 1


class TestPromoteAdminScript:
    """Tests for app.scripts.promote_admin."""

    def test_set_admin_flag(self, ann, db_session):
        assert set_admin_flag(db_session, "ann@x.com", True)
        assert db_session.query(User).filter_by(email="ann@x.com").one().is_admin is True

    def test_unknown_email(self, db_session):
        assert set_admin_flag(db_session, "ghost@x.com", True) is False

    def test_main_reports_missing_user(self, session_factory, monkeypatch):
        monkeypatch.setattr("app.scripts.promote_admin.SessionLocal", session_factory)
        assert promote_admin_main(["ghost@x.com"]) == 1

    def test_main_grants_and_revokes(self, ann, session_factory, db_session, monkeypatch):
        monkeypatch.setattr("app.scripts.promote_admin.SessionLocal", session_factory)

        assert promote_admin_main(["ann@x.com"]) == 0
        assert db_session.query(User).filter_by(email="ann@x.com").one().is_admin is True

        assert promote_admin_main(["ann@x.com", "--revoke"]) == 0
        db_session.expire_all()
        assert db_session.query(User).filter_by(email="ann@x.com").one().is_admin is False
