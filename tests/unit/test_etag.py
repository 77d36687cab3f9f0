"""Tests for ETag computation and If-None-Match handling."""

from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from feedstage.api.etag import build_etag, check_if_none_match, compute_etag, not_modified
from feedstage.domain.entities import ContentObject


def make_app(etag: str) -> FastAPI:
    app = FastAPI()

    @app.get("/thing")
    def get_thing(request: Request) -> dict[str, bool]:
        return {"cached": check_if_none_match(request, etag)}

    return app


class TestComputeEtag:
    def test_quoted_and_truncated(self) -> None:
        assert build_etag("0123456789abcdef0123") == '"0123456789abcdef"'

    def test_stable_for_equal_entities(self) -> None:
        a = ContentObject(ident="x", type="text", value="v")
        b = ContentObject(ident="x", type="text", value="v")
        assert compute_etag(a) == compute_etag(b)

    def test_changes_with_content(self) -> None:
        a = ContentObject(ident="x", type="text", value="v")
        b = ContentObject(ident="x", type="text", value="w")
        assert compute_etag(a) != compute_etag(b)

    def test_collection_depends_on_order(self) -> None:
        a = ContentObject(ident="a")
        b = ContentObject(ident="b")
        assert compute_etag([a, b]) != compute_etag([b, a])

    def test_empty_collection(self) -> None:
        assert compute_etag([]) == compute_etag([])


class TestIfNoneMatch:
    def test_absent_header(self) -> None:
        client = TestClient(make_app('"abc"'))
        assert client.get("/thing").json() == {"cached": False}

    def test_matching_header(self) -> None:
        client = TestClient(make_app('"abc"'))
        response = client.get("/thing", headers={"If-None-Match": '"abc"'})
        assert response.json() == {"cached": True}

    def test_list_and_wildcard(self) -> None:
        client = TestClient(make_app('"abc"'))
        listed = client.get("/thing", headers={"If-None-Match": '"zzz", "abc"'})
        wildcard = client.get("/thing", headers={"If-None-Match": "*"})
        assert listed.json() == {"cached": True}
        assert wildcard.json() == {"cached": True}

    def test_stale_header(self) -> None:
        client = TestClient(make_app('"abc"'))
        response = client.get("/thing", headers={"If-None-Match": '"old"'})
        assert response.json() == {"cached": False}


def test_not_modified_carries_etag_and_no_body() -> None:
    response = not_modified('"abc"')
    assert response.status_code == 304
    assert response.headers["ETag"] == '"abc"'
    assert response.body == b""
