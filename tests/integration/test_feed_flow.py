"""
End-to-end flow through the assembled application.

Uses the real app (all routers, error handlers, bearer auth) with a fresh
in-memory store and a fixed clock.
"""

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from feedstage.adapters.clock import FixedClock
from feedstage.adapters.memory import InMemoryStore
from feedstage.api.auth_utils import create_access_token
from feedstage.api.deps import get_app_config, get_clock, get_store
from feedstage.api.main import app
from feedstage.config.models import AppConfig

BASE_URL = "http://localhost:8000"


@pytest.fixture
def client(store: InMemoryStore, clock: FixedClock, app_config: AppConfig) -> Iterator[TestClient]:
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_app_config] = lambda: app_config
    token = create_access_token("me")
    with TestClient(app, headers={"Authorization": f"Bearer {token}"}) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def test_health(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_unauthenticated_request_is_forbidden(client: TestClient) -> None:
    response = client.get("/v1/queues", headers={"Authorization": ""})
    assert response.status_code == 403


def test_queue_and_post_lifecycle(
    client: TestClient, clock: FixedClock, queue_payload: dict, post_payload: dict
) -> None:
    # create the queue
    created = client.post("/v1/queues", json=queue_payload)
    assert created.status_code == 201
    assert created.headers["Location"] == f"{BASE_URL}/feed/rss/me/testQueue"
    queue = client.get("/v1/queues/testQueue").json()
    assert queue["ident"] == "testQueue"
    assert queue["lastDeployed"] == "2024-06-15T12:00:00.000+00:00"

    # stage two posts; the manual queue publishes nothing yet
    staged = client.post("/v1/queues/testQueue/posts", json=[post_payload, post_payload])
    first, second = staged.json()["postIds"]
    assert staged.json()["deployed"] is False

    # mark one pending and deploy the queue
    client.put(f"/v1/posts/{first}/status", json={"newStatus": "PUB_PENDING"})
    deployed = client.put(
        "/v1/queues/testQueue/status",
        content="DEPLOY_PENDING",
        headers={"Content-Type": "text/plain"},
    )
    assert deployed.status_code == 200
    status = client.get("/v1/queues/testQueue/status").json()
    assert status == {"publishedCt": 1, "countByStatus": {"PUBLISHED": 1, "UNPUBLISHED": 1}}

    # editing a live post redeploys, editing a staged one does not
    live_edit = client.put(f"/v1/posts/{first}/title", json={"value": "Live"})
    staged_edit = client.put(f"/v1/posts/{second}/title", json={"value": "Staged"})
    assert live_edit.json()["deployed"] is True
    assert staged_edit.json()["deployed"] is False

    # deleting the live post takes it off the feed first
    deleted = client.delete(f"/v1/posts/{first}")
    assert "deployResponses" in deleted.json()
    assert client.get("/v1/queues/testQueue/status").json()["publishedCt"] == 0

    # dropping the queue removes the remaining post
    assert client.delete("/v1/queues/testQueue").status_code == 200
    assert client.get(f"/v1/posts/{second}").status_code == 404


def test_error_counts_on_health(client: TestClient) -> None:
    client.get("/v1/queues/missing")
    errors = client.get("/health").json()["errors"]
    assert errors.get("DataAccessError", 0) >= 1
