"""
Tests for the queue API.

Queue CRUD, scalar attribute sub-resources, export options and bulk status.
"""

from __future__ import annotations

from fastapi.testclient import TestClient

BASE_URL = "http://localhost:8000"


def create_queue(client: TestClient, payload: dict) -> dict:
    response = client.post("/v1/queues", json=payload)
    assert response.status_code == 201
    return response.json()


class TestQueueCollection:
    def test_create_queue(self, client: TestClient, queue_payload: dict) -> None:
        """Creating a queue deploys it and points Location at the RSS feed."""
        response = client.post("/v1/queues", json=queue_payload)

        assert response.status_code == 201
        assert response.headers["Location"] == f"{BASE_URL}/feed/rss/me/testQueue"
        data = response.json()
        assert data["queueDTO"]["ident"] == "testQueue"
        assert data["queueDTO"]["lastDeployed"] == "2024-06-15T12:00:00.000+00:00"
        assert data["deployResponses"]["RSS_20"]["url"] == f"{BASE_URL}/feed/rss/me/testQueue"
        assert set(data["deployResponses"]) == {"RSS_20", "ATOM_10"}

    def test_duplicate_ident(self, client: TestClient, queue_payload: dict) -> None:
        create_queue(client, queue_payload)
        response = client.post("/v1/queues", json=queue_payload)
        assert response.status_code == 409
        assert response.json()["message"] == "Conflict"

    def test_unknown_field_rejected(self, client: TestClient, queue_payload: dict) -> None:
        response = client.post("/v1/queues", json={**queue_payload, "bogus": 1})
        assert response.status_code == 400
        assert response.json()["message"] == "Validation Failed"

    def test_list_paginates(self, client: TestClient, queue_payload: dict) -> None:
        for ident in ("q1", "q2", "q3"):
            create_queue(client, {**queue_payload, "ident": ident})

        response = client.get("/v1/queues", params={"offset": 2, "limit": 1})

        assert response.status_code == 200
        assert [q["ident"] for q in response.json()] == ["q2"]

    def test_list_conditional_get(self, client: TestClient, queue_payload: dict) -> None:
        create_queue(client, queue_payload)
        first = client.get("/v1/queues")
        etag = first.headers["ETag"]

        cached = client.get("/v1/queues", headers={"If-None-Match": etag})

        assert cached.status_code == 304
        assert cached.headers["ETag"] == etag
        assert cached.content == b""


class TestSingleQueue:
    def test_get_unknown_queue(self, client: TestClient) -> None:
        response = client.get("/v1/queues/nope")
        assert response.status_code == 404
        assert response.json()["message"] == "Entity not found."

    def test_etag_changes_after_update(self, client: TestClient, queue_payload: dict) -> None:
        create_queue(client, queue_payload)
        etag = client.get("/v1/queues/testQueue").headers["ETag"]

        client.patch("/v1/queues/testQueue", json={"ident": "testQueue", "title": "New"})
        response = client.get("/v1/queues/testQueue", headers={"If-None-Match": etag})

        assert response.status_code == 200
        assert response.json()["title"] == "New"

    def test_patch_merges(self, client: TestClient, queue_payload: dict) -> None:
        create_queue(client, queue_payload)
        response = client.patch("/v1/queues/testQueue", json={"ident": "testQueue", "title": "T2"})
        dto = response.json()["queueDTO"]
        assert (dto["title"], dto["description"]) == ("T2", "A queue for tests")

    def test_put_replaces(self, client: TestClient, queue_payload: dict) -> None:
        create_queue(client, queue_payload)
        response = client.put("/v1/queues/testQueue", json={"ident": "testQueue", "title": "T2"})
        assert "description" not in response.json()["queueDTO"]

    def test_delete_queue(self, client: TestClient, queue_payload: dict) -> None:
        create_queue(client, queue_payload)
        response = client.delete("/v1/queues/testQueue")
        assert response.status_code == 200
        assert client.get("/v1/queues/testQueue").status_code == 404


class TestQueueAttributes:
    def test_get_title_json_and_text(self, client: TestClient, queue_payload: dict) -> None:
        create_queue(client, queue_payload)
        as_json = client.get("/v1/queues/testQueue/title", headers={"Accept": "application/json"})
        as_text = client.get("/v1/queues/testQueue/title", headers={"Accept": "text/plain"})
        assert as_json.json() == "Test Queue"
        assert as_text.text == "Test Queue"

    def test_unacceptable_media_type(self, client: TestClient, queue_payload: dict) -> None:
        create_queue(client, queue_payload)
        response = client.get("/v1/queues/testQueue/title", headers={"Accept": "application/xml"})
        assert response.status_code == 406

    def test_update_title_text_body(self, client: TestClient, queue_payload: dict) -> None:
        create_queue(client, queue_payload)
        response = client.put(
            "/v1/queues/testQueue/title",
            content="Renamed",
            headers={"Content-Type": "text/plain"},
        )
        assert response.status_code == 200
        assert response.json()["queueDTO"]["title"] == "Renamed"

    def test_rename_ident(self, client: TestClient, queue_payload: dict) -> None:
        create_queue(client, queue_payload)
        response = client.put(
            "/v1/queues/testQueue/ident",
            content="renamed",
            headers={"Content-Type": "text/plain"},
        )
        assert response.status_code == 200
        assert client.get("/v1/queues/renamed").status_code == 200

    def test_blank_ident_rejected(self, client: TestClient, queue_payload: dict) -> None:
        create_queue(client, queue_payload)
        response = client.put(
            "/v1/queues/testQueue/ident", content=" ", headers={"Content-Type": "text/plain"}
        )
        assert response.status_code == 400

    def test_delete_title_is_idempotent(self, client: TestClient, queue_payload: dict) -> None:
        create_queue(client, queue_payload)
        first = client.delete("/v1/queues/testQueue/title")
        second = client.delete("/v1/queues/testQueue/title")
        assert first.status_code == second.status_code == 200
        assert "title" not in second.json()["queueDTO"]

    def test_auth_requirement(self, client: TestClient, queue_payload: dict) -> None:
        create_queue(client, queue_payload)
        client.put("/v1/queues/testQueue/auth", json={"isRequired": True})

        as_json = client.get("/v1/queues/testQueue/auth", headers={"Accept": "application/json"})
        as_text = client.get("/v1/queues/testQueue/auth", headers={"Accept": "text/plain"})

        assert as_json.json() is True
        assert as_text.text == "true"

    def test_deployed_timestamp(self, client: TestClient, queue_payload: dict) -> None:
        create_queue(client, queue_payload)
        response = client.get("/v1/queues/testQueue/deployed", headers={"Accept": "text/plain"})
        assert response.text == "2024-06-15T12:00:00.000+00:00"


class TestQueueOptions:
    def test_put_and_get_rss_block(self, client: TestClient, queue_payload: dict) -> None:
        create_queue(client, queue_payload)
        response = client.put(
            "/v1/queues/testQueue/options/rssConfig", json={"ttl": 60, "docs": "d"}
        )
        assert response.status_code == 200

        block = client.get("/v1/queues/testQueue/options/rssConfig").json()
        assert block == {"ttl": 60, "docs": "d"}

    def test_put_and_get_atom_block(self, client: TestClient, queue_payload: dict) -> None:
        create_queue(client, queue_payload)
        block = {"authorName": "Ann", "categoryTerm": "news"}

        response = client.put("/v1/queues/testQueue/options/atomConfig", json=block)

        assert response.json()["queueDTO"]["options"]["atomConfig"] == block
        assert client.get("/v1/queues/testQueue/options/atomConfig").json() == block

    def test_patch_export_config(self, client: TestClient, queue_payload: dict) -> None:
        create_queue(client, queue_payload)
        client.put("/v1/queues/testQueue/options", json={"maxPublished": 5})
        client.patch("/v1/queues/testQueue/options", json={"isAutoDeploy": True})

        options = client.get("/v1/queues/testQueue/options").json()
        assert options == {"maxPublished": 5, "isAutoDeploy": True}

    def test_delete_options(self, client: TestClient, queue_payload: dict) -> None:
        create_queue(client, queue_payload)
        client.put("/v1/queues/testQueue/options", json={"maxPublished": 5})
        client.delete("/v1/queues/testQueue/options")
        assert client.get("/v1/queues/testQueue/options").json() is None


class TestQueueStatus:
    def test_counts(self, client: TestClient, queue_payload: dict, post_payload: dict) -> None:
        create_queue(client, queue_payload)
        client.post("/v1/queues/testQueue/posts", json=[post_payload, post_payload])

        response = client.get("/v1/queues/testQueue/status")

        assert response.json() == {"publishedCt": 0, "countByStatus": {"UNPUBLISHED": 2}}

    def test_pub_all(self, client: TestClient, queue_payload: dict, post_payload: dict) -> None:
        create_queue(client, queue_payload)
        client.post("/v1/queues/testQueue/posts", json=[post_payload, post_payload])

        response = client.put(
            "/v1/queues/testQueue/status",
            content="PUB_ALL",
            headers={"Content-Type": "text/plain"},
        )

        assert response.status_code == 200
        status = client.get("/v1/queues/testQueue/status").json()
        assert status == {"publishedCt": 2, "countByStatus": {"PUBLISHED": 2}}

    def test_unknown_request(self, client: TestClient, queue_payload: dict) -> None:
        create_queue(client, queue_payload)
        response = client.put(
            "/v1/queues/testQueue/status",
            content="PUBLISH_EVERYTHING",
            headers={"Content-Type": "text/plain"},
        )
        assert response.status_code == 400
