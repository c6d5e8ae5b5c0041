"""
tests/test_profile_routes.py -- Integration tests for developer profiles.

Coverage:
  - Create: status/skills required only on create, skills parsed from a comma list
  - Merge: omitted fields keep stored values, social links merge one by one
  - Read: /profile/me, /profile/user/{id}, the public listing with owner joined in
  - Experience and education: add (newest first), validation, remove, unknown id
  - GitHub proxy: known user 200, unknown user 404, malformed username rejected
  - Account deletion: profile and user gone, posts left in place

Each test that needs a clean slate registers its own member through
register_user so the module-scoped database never leaks state between tests.
"""

from __future__ import annotations

from fastapi.testclient import TestClient

UNKNOWN_ID = "0" * 24


def _headers(token: str) -> dict[str, str]:
    return {"x-auth-token": token}


def _create_profile(client: TestClient, token: str, **fields) -> dict:
    body = {"status": "Developer", "skills": "python, sql"}
    body.update(fields)
    resp = client.post("/api/profile", json=body, headers=_headers(token))
    assert resp.status_code == 200, resp.text
    return resp.json()


class TestCreateAndMerge:
    def test_create_profile(self, api_client, register_user) -> None:
        client, _token, _uid = api_client
        token, user_id = register_user("Ada")
        profile = _create_profile(client, token, company="Acme", youtube="yt/ada")
        assert profile["status"] == "Developer"
        assert profile["skills"] == ["python", "sql"]
        assert profile["company"] == "Acme"
        assert profile["social"]["youtube"] == "yt/ada"
        assert profile["user"]["id"] == user_id
        assert profile["user"]["name"] == "Ada"
        assert profile["experience"] == []

    def test_status_and_skills_required_on_create(self, api_client, register_user) -> None:
        client, _token, _uid = api_client
        token, _user_id = register_user()
        resp = client.post("/api/profile", json={"company": "Acme"}, headers=_headers(token))
        assert resp.status_code == 400
        assert resp.json() == {
            "errors": [
                {"msg": "Status is required", "param": "status", "location": "body"},
                {"msg": "Skills is required", "param": "skills", "location": "body"},
            ]
        }
        assert client.get("/api/profile/me", headers=_headers(token)).status_code == 404

    def test_merge_keeps_omitted_fields(self, api_client, register_user) -> None:
        client, _token, _uid = api_client
        token, _user_id = register_user()
        _create_profile(client, token, skills="a,b", company="X", youtube="y")

        resp = client.post("/api/profile", json={"company": "Y", "twitter": "t"}, headers=_headers(token))
        assert resp.status_code == 200, resp.text
        merged = resp.json()
        assert merged["status"] == "Developer"
        assert merged["skills"] == ["a", "b"]
        assert merged["company"] == "Y"
        assert merged["social"]["youtube"] == "y"
        assert merged["social"]["twitter"] == "t"

    def test_merge_replaces_skills_when_supplied(self, api_client, register_user) -> None:
        client, _token, _uid = api_client
        token, _user_id = register_user()
        _create_profile(client, token)
        resp = client.post("/api/profile", json={"skills": ["go", " rust "]}, headers=_headers(token))
        assert resp.json()["skills"] == ["go", "rust"]

    def test_profile_requires_auth(self, api_client) -> None:
        client, _token, _uid = api_client
        assert client.post("/api/profile", json={"status": "x", "skills": "y"}).status_code == 401
        assert client.get("/api/profile/me").status_code == 401


class TestRead:
    def test_my_profile(self, api_client, register_user) -> None:
        client, _token, _uid = api_client
        token, user_id = register_user("Eve")
        _create_profile(client, token)
        resp = client.get("/api/profile/me", headers=_headers(token))
        assert resp.status_code == 200
        owner = resp.json()["user"]
        assert owner["id"] == user_id
        assert owner["name"] == "Eve"
        assert owner["avatar"].startswith("https://www.gravatar.com/avatar/")

    def test_my_profile_missing(self, api_client, register_user) -> None:
        client, _token, _uid = api_client
        token, _user_id = register_user()
        resp = client.get("/api/profile/me", headers=_headers(token))
        assert resp.status_code == 404
        assert resp.json() == {"msg": "There is no profile for this user"}

    def test_profile_by_user_is_public(self, api_client, register_user) -> None:
        client, _token, _uid = api_client
        token, user_id = register_user("Frank")
        _create_profile(client, token)
        resp = client.get(f"/api/profile/user/{user_id}")
        assert resp.status_code == 200
        assert resp.json()["user"]["name"] == "Frank"

    def test_profile_by_unknown_user(self, api_client) -> None:
        client, _token, _uid = api_client
        resp = client.get(f"/api/profile/user/{UNKNOWN_ID}")
        assert resp.status_code == 404
        assert resp.json() == {"msg": "Profile not found"}

    def test_list_profiles_joins_owners(self, api_client, register_user) -> None:
        client, _token, _uid = api_client
        token, user_id = register_user("Grace")
        _create_profile(client, token)
        resp = client.get("/api/profile")
        assert resp.status_code == 200
        mine = [p for p in resp.json() if p["user"] and p["user"]["id"] == user_id]
        assert len(mine) == 1
        assert mine[0]["user"]["name"] == "Grace"


class TestExperience:
    def test_add_and_remove_experience(self, api_client, register_user) -> None:
        client, _token, _uid = api_client
        token, _user_id = register_user()
        _create_profile(client, token)

        first = {"title": "Engineer", "company": "Acme", "from": "2019-01-01", "to": "2020-01-01"}
        second = {"title": "Lead", "company": "Initech", "from": "2020-02-01", "current": True}
        client.put("/api/profile/experience", json=first, headers=_headers(token))
        resp = client.put("/api/profile/experience", json=second, headers=_headers(token))
        assert resp.status_code == 200, resp.text
        entries = resp.json()["experience"]
        assert [e["title"] for e in entries] == ["Lead", "Engineer"]
        assert entries[1]["from"] == "2019-01-01"
        assert entries[1]["to"] == "2020-01-01"
        assert entries[0]["current"] is True

        resp = client.delete(f"/api/profile/experience/{entries[1]['id']}", headers=_headers(token))
        assert resp.status_code == 200
        assert [e["title"] for e in resp.json()["experience"]] == ["Lead"]

    def test_experience_validation(self, api_client, register_user) -> None:
        client, _token, _uid = api_client
        token, _user_id = register_user()
        resp = client.put("/api/profile/experience", json={"company": "Acme"}, headers=_headers(token))
        assert resp.status_code == 400
        assert sorted(e["msg"] for e in resp.json()["errors"]) == ["From date is required", "Title is required"]
        assert {e["param"] for e in resp.json()["errors"]} == {"title", "from"}

    def test_add_experience_without_profile_creates_one(self, api_client, register_user) -> None:
        client, _token, _uid = api_client
        token, user_id = register_user()
        body = {"title": "Intern", "company": "Acme", "from": "2018-06-01"}
        resp = client.put("/api/profile/experience", json=body, headers=_headers(token))
        assert resp.status_code == 200, resp.text
        assert resp.json()["user"]["id"] == user_id
        assert resp.json()["experience"][0]["title"] == "Intern"

    def test_remove_unknown_experience(self, api_client, register_user) -> None:
        client, _token, _uid = api_client
        token, _user_id = register_user()
        _create_profile(client, token)
        resp = client.delete(f"/api/profile/experience/{UNKNOWN_ID}", headers=_headers(token))
        assert resp.status_code == 404
        assert resp.json() == {"msg": "Experience not found"}

    def test_remove_experience_without_profile(self, api_client, register_user) -> None:
        client, _token, _uid = api_client
        token, _user_id = register_user()
        resp = client.delete(f"/api/profile/experience/{UNKNOWN_ID}", headers=_headers(token))
        assert resp.status_code == 404
        assert resp.json() == {"msg": "There is no profile for this user"}

    def test_cannot_remove_another_members_experience(self, api_client, register_user) -> None:
        """Entries are looked up in the caller's own profile only."""
        client, _token, _uid = api_client
        owner_token, _owner = register_user()
        other_token, _other = register_user()
        _create_profile(client, other_token)
        body = {"title": "Eng", "company": "Acme", "from": "2019-01-01"}
        exp_id = client.put("/api/profile/experience", json=body, headers=_headers(owner_token)).json()[
            "experience"
        ][0]["id"]

        resp = client.delete(f"/api/profile/experience/{exp_id}", headers=_headers(other_token))
        assert resp.status_code == 404
        mine = client.get("/api/profile/me", headers=_headers(owner_token)).json()
        assert [e["id"] for e in mine["experience"]] == [exp_id]


class TestEducation:
    def test_add_and_remove_education(self, api_client, register_user) -> None:
        client, _token, _uid = api_client
        token, _user_id = register_user()
        _create_profile(client, token)
        body = {"school": "MIT", "degree": "BSc", "fieldofstudy": "CS", "from": "2010-09-01"}
        resp = client.put("/api/profile/education", json=body, headers=_headers(token))
        assert resp.status_code == 200, resp.text
        entry = resp.json()["education"][0]
        assert entry["school"] == "MIT"
        assert entry["from"] == "2010-09-01"

        resp = client.delete(f"/api/profile/education/{entry['id']}", headers=_headers(token))
        assert resp.status_code == 200
        assert resp.json()["education"] == []

    def test_education_validation(self, api_client, register_user) -> None:
        client, _token, _uid = api_client
        token, _user_id = register_user()
        resp = client.put("/api/profile/education", json={}, headers=_headers(token))
        assert resp.status_code == 400
        assert sorted(e["msg"] for e in resp.json()["errors"]) == [
            "Degree is required",
            "Field of study is required",
            "From date is required",
            "School is required",
        ]
        assert {e["param"] for e in resp.json()["errors"]} == {"school", "degree", "fieldofstudy", "from"}

    def test_blank_from_date_reported_under_wire_name(self, api_client, register_user) -> None:
        client, _token, _uid = api_client
        token, _user_id = register_user()
        body = {"school": "MIT", "degree": "BSc", "fieldofstudy": "CS", "from": "  "}
        resp = client.put("/api/profile/education", json=body, headers=_headers(token))
        assert resp.status_code == 400
        assert resp.json() == {"errors": [{"msg": "From date is required", "param": "from", "location": "body"}]}

    def test_remove_unknown_education(self, api_client, register_user) -> None:
        client, _token, _uid = api_client
        token, _user_id = register_user()
        _create_profile(client, token)
        resp = client.delete(f"/api/profile/education/{UNKNOWN_ID}", headers=_headers(token))
        assert resp.status_code == 404
        assert resp.json() == {"msg": "Education not found"}


class TestGitHub:
    def test_known_user(self, api_client) -> None:
        client, _token, _uid = api_client
        resp = client.get("/api/profile/github/octocat")
        assert resp.status_code == 200
        assert resp.json()[0]["name"] == "hello-world"

    def test_unknown_user(self, api_client) -> None:
        client, _token, _uid = api_client
        resp = client.get("/api/profile/github/nobody-here")
        assert resp.status_code == 404
        assert resp.json() == {"msg": "No GitHub profile found"}

    def test_malformed_username(self, api_client) -> None:
        client, _token, _uid = api_client
        resp = client.get("/api/profile/github/-bad-")
        assert resp.status_code == 400
        assert resp.json()["errors"][0]["location"] == "path"


class TestDeleteAccount:
    def test_delete_removes_profile_and_user_but_not_posts(self, api_client, register_user) -> None:
        client, token, _uid = api_client
        doomed_token, doomed_id = register_user("Doomed")
        _create_profile(client, doomed_token)
        post = client.post("/api/posts", json={"text": "last words"}, headers=_headers(doomed_token)).json()

        resp = client.delete("/api/profile", headers=_headers(doomed_token))
        assert resp.status_code == 200
        assert resp.json() == {"msg": "User deleted"}

        assert client.get(f"/api/profile/user/{doomed_id}").status_code == 404
        login = client.get("/api/auth", headers=_headers(doomed_token))
        assert login.status_code == 404
        assert client.get(f"/api/posts/{post['id']}", headers=_headers(token)).status_code == 200

    def test_delete_without_profile_still_deletes_user(self, api_client, register_user) -> None:
        client, _token, _uid = api_client
        token, _user_id = register_user()
        assert client.delete("/api/profile", headers=_headers(token)).json() == {"msg": "User deleted"}
        assert client.get("/api/auth", headers=_headers(token)).status_code == 404
