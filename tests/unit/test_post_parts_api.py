"""Tests for the post part collections (contents, urls, authors, contributors, enclosures)."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient


@pytest.fixture
def post_id(client: TestClient, queue_payload: dict, post_payload: dict) -> int:
    assert client.post("/v1/queues", json=queue_payload).status_code == 201
    response = client.post("/v1/queues/testQueue/posts", json=[post_payload])
    return response.json()["postIds"][0]


class TestPartCollections:
    @pytest.mark.parametrize(
        ("segment", "item"),
        [
            ("contents", {"type": "text", "value": "body"}),
            ("urls", {"href": "https://example.com", "rel": "alternate"}),
            ("authors", {"name": "Ann"}),
            ("contributors", {"name": "Bob"}),
            ("enclosures", {"url": "https://example.com/a.mp3", "length": 10}),
        ],
    )
    def test_add_then_fetch(
        self, client: TestClient, post_id: int, segment: str, item: dict
    ) -> None:
        created = client.post(f"/v1/posts/{post_id}/{segment}", json=item)
        assert created.status_code == 201
        ident = created.json()["ident"]

        fetched = client.get(f"/v1/posts/{post_id}/{segment}/{ident}")
        listed = client.get(f"/v1/posts/{post_id}/{segment}")

        assert fetched.status_code == 200
        assert fetched.json()["ident"] == ident
        assert [i["ident"] for i in listed.json()] == [ident]

    def test_client_ident_is_kept(self, client: TestClient, post_id: int) -> None:
        response = client.post(
            f"/v1/posts/{post_id}/authors", json={"ident": "ann", "name": "Ann"}
        )
        assert response.json() == {
            "message": f"Added author ann to post Id {post_id}",
            "ident": "ann",
        }

    def test_put_replaces_collection(self, client: TestClient, post_id: int) -> None:
        client.post(f"/v1/posts/{post_id}/authors", json={"ident": "ann", "name": "Ann"})

        bob = {"ident": "bob", "name": "Bob"}
        response = client.put(f"/v1/posts/{post_id}/authors", json=[bob])

        assert [a["ident"] for a in response.json()["postDTO"]["authors"]] == ["bob"]

    def test_patch_merges_by_ident(self, client: TestClient, post_id: int) -> None:
        client.post(f"/v1/posts/{post_id}/authors", json={"ident": "ann", "name": "Ann"})

        client.patch(
            f"/v1/posts/{post_id}/authors",
            json=[{"ident": "ann", "email": "ann@example.com"}, {"ident": "bob", "name": "Bob"}],
        )
        authors = client.get(f"/v1/posts/{post_id}/authors").json()

        assert authors[0] == {"ident": "ann", "name": "Ann", "email": "ann@example.com"}
        assert authors[1]["ident"] == "bob"

    def test_update_single_item(self, client: TestClient, post_id: int) -> None:
        client.post(f"/v1/posts/{post_id}/urls", json={"ident": "u1", "href": "https://a"})

        response = client.patch(f"/v1/posts/{post_id}/urls/u1", json={"title": "A"})

        assert response.json() == {"ident": "u1", "title": "A", "href": "https://a"}

    def test_delete_single_item(self, client: TestClient, post_id: int) -> None:
        client.post(f"/v1/posts/{post_id}/enclosures", json={"ident": "e1", "url": "https://a"})

        response = client.delete(f"/v1/posts/{post_id}/enclosures/e1")

        assert response.json() == {"message": f"Deleted enclosure e1 from post Id {post_id}"}
        assert client.get(f"/v1/posts/{post_id}/enclosures/e1").status_code == 404

    def test_delete_collection(self, client: TestClient, post_id: int) -> None:
        client.post(f"/v1/posts/{post_id}/contents", json={"value": "x"})

        response = client.delete(f"/v1/posts/{post_id}/contents")

        assert response.json() == {"message": f"Deleted contents from post Id {post_id}"}
        assert client.get(f"/v1/posts/{post_id}/contents").json() == []

    def test_unknown_item(self, client: TestClient, post_id: int) -> None:
        assert client.get(f"/v1/posts/{post_id}/authors/nobody").status_code == 404
