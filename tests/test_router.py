import pytest
from fastapi.testclient import TestClient

from coral.main import create_app
from tests.conftest import CDN, STAGING


@pytest.fixture
def client(settings, store) -> TestClient:
    with TestClient(create_app(settings, store)) as c:
        yield c


def test_health(client) -> None:
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "service": "coral"}


def test_upload_route(client, store, make_image) -> None:
    body = make_image(64, 64)
    resp = client.post(
        "/galleries/demo/images",
        content=body,
        headers={"content-type": "application/octet-stream"},
    )
    assert resp.status_code == 201, resp.text
    payload = resp.json()
    assert payload["type"] == "image/jpeg"
    assert store.buckets[STAGING][payload["path"]] == body
    assert resp.headers["X-Request-ID"]


def test_upload_route_rejects_unknown_type(client) -> None:
    resp = client.post("/galleries/demo/images", content=b"hello", headers={"X-Request-ID": "abc"})
    assert resp.status_code == 415
    assert resp.json() == {
        "error": {"code": "client_error", "message": "unable to determine file type"},
        "request_id": "abc",
    }


def test_publish_route(client, store) -> None:
    store.seed("galleries/demo/abc.jpg", b"image", STAGING)
    resp = client.put("/galleries/demo/images/abc.jpg/publish")
    assert resp.status_code == 202, resp.text
    assert resp.json() == {"id": "abc", "href": "galleries/demo/abc.jpg"}
    assert "galleries/demo/abc.jpg" in store.buckets[CDN]


def test_publish_route_not_found(client) -> None:
    resp = client.put("/galleries/demo/images/missing.jpg/publish")
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "client_error"
