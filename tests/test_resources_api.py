import pytest

from conftest import auth_header


@pytest.fixture
def alice(signup):
    return auth_header(signup("alice")["access_token"])


@pytest.fixture
def bob(signup):
    return auth_header(signup("bob")["access_token"])


def make_project(client, headers, **fields):
    body = {"name": "Roadmap", **fields}
    resp = client.post("/api/v1/projects", json=body, headers=headers)
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()["data"]


def make_issue(client, headers, project_id, **fields):
    body = {"project_id": project_id, "title": "Fix login", **fields}
    resp = client.post("/api/v1/issues", json=body, headers=headers)
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()["data"]


class TestProjects:

    def test_create_defaults(self, client, alice):
        project = make_project(client, alice)
        assert project["status"] == "active"
        assert project["color"] == "#5E6AD2"

    def test_create_validation(self, client, alice):
        assert client.post("/api/v1/projects", json={"name": ""}, headers=alice).status_code == 422
        assert client.post("/api/v1/projects", json={"name": "x" * 101}, headers=alice).status_code == 422
        assert client.post("/api/v1/projects", json={"name": "ok", "color": "red"},
                           headers=alice).status_code == 422

    def test_listing_is_per_owner(self, client, alice, bob):
        make_project(client, alice, name="A1")
        make_project(client, alice, name="A2")
        make_project(client, bob, name="B1")

        body = client.get("/api/v1/projects?sort=name", headers=alice).get_json()
        assert [p["name"] for p in body["data"]] == ["A1", "A2"]
        assert body["meta"] == {"page": 1, "limit": 20, "total": 2}

        for project in body["data"]:
            assert client.get(f"/api/v1/projects/{project['id']}", headers=alice).status_code == 200

    def test_bad_sort(self, client, alice):
        assert client.get("/api/v1/projects?sort=owner", headers=alice).status_code == 400

    def test_page_out_of_range(self, client, alice):
        make_project(client, alice)
        assert client.get("/api/v1/projects?page=99999999999999999999", headers=alice).status_code == 400
        assert client.get("/api/v1/projects?page=abc", headers=alice).status_code == 400
        body = client.get("/api/v1/projects?page=1000000", headers=alice).get_json()
        assert body["data"] == []
        assert body["meta"]["total"] == 1

    def test_update(self, client, alice):
        project = make_project(client, alice)
        resp = client.patch(f"/api/v1/projects/{project['id']}",
                            json={"status": "paused", "name": "Renamed"}, headers=alice)
        assert resp.status_code == 200
        assert resp.get_json()["data"]["status"] == "paused"
        assert resp.get_json()["data"]["name"] == "Renamed"

        resp = client.patch(f"/api/v1/projects/{project['id']}", json={"status": "nope"}, headers=alice)
        assert resp.status_code == 422

    def test_other_users_cannot_touch(self, client, alice, bob):
        project = make_project(client, alice)
        url = f"/api/v1/projects/{project['id']}"
        assert client.get(url, headers=bob).status_code == 404
        assert client.patch(url, json={"name": "mine now"}, headers=bob).status_code == 404
        assert client.delete(url, headers=bob).status_code == 404
        assert client.get(f"{url}/issues", headers=bob).status_code == 404
        assert client.get(url, headers=alice).get_json()["data"]["name"] == "Roadmap"

    def test_delete_cascades(self, client, alice):
        project = make_project(client, alice)
        issue = make_issue(client, alice, project["id"])
        client.post(f"/api/v1/issues/{issue['id']}/comments", json={"content": "hi"}, headers=alice)

        assert client.delete(f"/api/v1/projects/{project['id']}", headers=alice).status_code == 204
        assert client.get(f"/api/v1/projects/{project['id']}", headers=alice).status_code == 404
        assert client.get(f"/api/v1/issues/{issue['id']}", headers=alice).status_code == 404
        assert client.get("/api/v1/issues", headers=alice).get_json()["data"] == []


class TestIssues:

    def test_create_and_fetch(self, client, alice):
        project = make_project(client, alice)
        issue = make_issue(client, alice, project["id"], priority=3, description="Users get 500s")
        assert issue["status"] == "todo"
        assert issue["priority"] == 3

        resp = client.get(f"/api/v1/projects/{project['id']}/issues", headers=alice)
        assert [i["id"] for i in resp.get_json()["data"]] == [issue["id"]]

    def test_cannot_create_in_someone_elses_project(self, client, alice, bob):
        project = make_project(client, alice)
        resp = client.post("/api/v1/issues", json={"project_id": project["id"], "title": "spam"}, headers=bob)
        assert resp.status_code == 404

    def test_validation(self, client, alice):
        project = make_project(client, alice)
        base = {"project_id": project["id"], "title": "t"}
        assert client.post("/api/v1/issues", json={**base, "priority": 5}, headers=alice).status_code == 422
        assert client.post("/api/v1/issues", json={**base, "title": ""}, headers=alice).status_code == 422
        assert client.post("/api/v1/issues", json={**base, "description": "abc"}, headers=alice).status_code == 422

    def test_due_date_offset_is_stored_as_utc(self, client, alice):
        project = make_project(client, alice)
        issue = make_issue(client, alice, project["id"], due_date="2030-01-01T10:00:00+05:00")
        assert issue["due_date"] == "2030-01-01T05:00:00"

        url = f"/api/v1/issues/{issue['id']}"
        assert client.get(url, headers=alice).get_json()["data"]["due_date"] == "2030-01-01T05:00:00"

        resp = client.patch(url, json={"due_date": "2030-01-02T00:00:00-02:00"}, headers=alice)
        assert resp.get_json()["data"]["due_date"] == "2030-01-02T02:00:00"
        assert client.get(url, headers=alice).get_json()["data"]["due_date"] == "2030-01-02T02:00:00"

    def test_text_filter_is_literal(self, client, alice):
        project = make_project(client, alice)
        make_issue(client, alice, project["id"], title="Fix login")
        make_issue(client, alice, project["id"], title="Reach 100% coverage")

        by_percent = client.get("/api/v1/issues?q=%25", headers=alice).get_json()["data"]
        assert [i["title"] for i in by_percent] == ["Reach 100% coverage"]
        assert client.get("/api/v1/issues?q=_", headers=alice).get_json()["data"] == []

    def test_filters(self, client, alice):
        project = make_project(client, alice)
        make_issue(client, alice, project["id"], title="Login broken")
        done = make_issue(client, alice, project["id"], title="Write docs")
        client.patch(f"/api/v1/issues/{done['id']}", json={"status": "done"}, headers=alice)

        by_status = client.get("/api/v1/issues?status=done", headers=alice).get_json()["data"]
        assert [i["title"] for i in by_status] == ["Write docs"]
        by_text = client.get("/api/v1/issues?q=LOGIN", headers=alice).get_json()["data"]
        assert [i["title"] for i in by_text] == ["Login broken"]
        assert client.get("/api/v1/issues?status=weird", headers=alice).status_code == 400

    def test_other_users_cannot_touch(self, client, alice, bob):
        project = make_project(client, alice)
        issue = make_issue(client, alice, project["id"])
        url = f"/api/v1/issues/{issue['id']}"
        assert client.get(url, headers=bob).status_code == 404
        assert client.patch(url, json={"title": "pwned"}, headers=bob).status_code == 404
        assert client.delete(url, headers=bob).status_code == 404
        assert client.get("/api/v1/issues", headers=bob).get_json()["data"] == []

    def test_delete(self, client, alice):
        project = make_project(client, alice)
        issue = make_issue(client, alice, project["id"])
        assert client.delete(f"/api/v1/issues/{issue['id']}", headers=alice).status_code == 204
        assert client.get(f"/api/v1/issues/{issue['id']}", headers=alice).status_code == 404


class TestComments:

    def test_comment_flow(self, client, alice):
        project = make_project(client, alice)
        issue = make_issue(client, alice, project["id"])
        url = f"/api/v1/issues/{issue['id']}/comments"

        resp = client.post(url, json={"content": "Looking into it"}, headers=alice)
        assert resp.status_code == 201
        comment = resp.get_json()["data"]
        assert comment["username"] == "alice"

        listed = client.get(url, headers=alice).get_json()["data"]
        assert [c["content"] for c in listed] == ["Looking into it"]

        assert client.delete(f"/api/v1/comments/{comment['id']}", headers=alice).status_code == 204
        assert client.get(url, headers=alice).get_json()["data"] == []

    def test_empty_comment(self, client, alice):
        project = make_project(client, alice)
        issue = make_issue(client, alice, project["id"])
        resp = client.post(f"/api/v1/issues/{issue['id']}/comments", json={"content": "  "}, headers=alice)
        assert resp.status_code == 422

    def test_other_users_cannot_touch(self, client, alice, bob):
        project = make_project(client, alice)
        issue = make_issue(client, alice, project["id"])
        url = f"/api/v1/issues/{issue['id']}/comments"
        comment = client.post(url, json={"content": "private"}, headers=alice).get_json()["data"]

        assert client.get(url, headers=bob).status_code == 404
        assert client.post(url, json={"content": "hello"}, headers=bob).status_code == 404
        assert client.delete(f"/api/v1/comments/{comment['id']}", headers=bob).status_code == 404


def test_search_only_sees_own_rows(client, alice, bob):
    project = make_project(client, alice, name="Billing revamp")
    make_issue(client, alice, project["id"], title="Billing totals wrong")
    make_project(client, bob, name="Billing for bob")

    hits = client.get("/api/v1/search?q=billing", headers=alice).get_json()["data"]
    assert sorted((h["type"], h["title"]) for h in hits) == [
        ("issue", "Billing totals wrong"),
        ("project", "Billing revamp"),
    ]
    assert client.get("/api/v1/search?q=", headers=alice).get_json()["data"] == []


def test_search_wildcards_match_literally(client, alice):
    make_project(client, alice, name="Roadmap")
    make_project(client, alice, name="100% uptime")

    hits = client.get("/api/v1/search?q=%25", headers=alice).get_json()["data"]
    assert [h["title"] for h in hits] == ["100% uptime"]
    assert client.get("/api/v1/search?q=_", headers=alice).get_json()["data"] == []
