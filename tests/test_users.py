"""Tests for the users router and the health endpoint."""

from conftest import API


class TestDirectory:
    """Tests for GET /users and GET /users/search."""

    def test_list_excludes_self(self, client, ann, bo, cy):
        resp = client.get(f"{API}/users", headers=ann["headers"])
        assert resp.status_code == 200
        emails = {u["email"] for u in resp.json()}
        assert emails == {"bo@x.com", "cy@x.com"}

    def test_directory_hides_password(self, client, ann, bo):
        user = client.get(f"{API}/users", headers=ann["headers"]).json()[0]
        assert set(user) == {"id", "name", "username", "email"}

    def test_search_by_email_substring(self, client, ann, bo, cy):
        resp = client.get(f"{API}/users/search", params={"email": "bo@"}, headers=ann["headers"])
        assert [u["email"] for u in resp.json()] == ["bo@x.com"]

    def test_search_matches_handle(self, client, ann, bo):
        resp = client.get(f"{API}/users/search", params={"email": "bo"}, headers=ann["headers"])
        assert [u["id"] for u in resp.json()] == [bo["id"]]

    def test_search_excludes_self(self, client, ann, bo):
        resp = client.get(f"{API}/users/search", params={"email": "x.com"}, headers=ann["headers"])
        assert [u["email"] for u in resp.json()] == ["bo@x.com"]

    def test_search_requires_query(self, client, ann):
        resp = client.get(f"{API}/users/search", headers=ann["headers"])
        assert resp.status_code == 400

    def test_search_is_capped(self, client, make_user, ann):
        for i in range(12):
            make_user(f"User {i}", f"user{i}@y.com")
        resp = client.get(f"{API}/users/search", params={"email": "@y.com"}, headers=ann["headers"])
        assert len(resp.json()) == 10

    def test_requires_authentication(self, client):
        assert client.get(f"{API}/users").status_code == 401


class TestHealth:

    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "healthy"}
