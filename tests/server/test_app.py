"""Tests for the HTTP surface."""

from pathlib import Path

import pytest
from starlette.testclient import TestClient

from mimekv.core.config import MimeKVConfig
from mimekv.server.app import create_app


@pytest.fixture
def client():
    with TestClient(create_app(MimeKVConfig())) as c:
        yield c


def test_get_missing_key(client: TestClient):
    response = client.get("/nothing-here")
    assert response.status_code == 404
    assert response.headers["content-type"].startswith("text/plain")
    assert "nothing-here" in response.text


def test_post_then_get(client: TestClient):
    payload = b"\x89PNG\r\n\x1a\nfake"
    response = client.post("/logo", content=payload, headers={"Content-Type": "image/png"})
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")

    response = client.get("/logo", headers={"Accept": "image/*"})
    assert response.status_code == 200
    assert response.headers["content-type"] == "image/png"
    assert response.content == payload


def test_accept_mismatch_is_406(client: TestClient):
    client.post("/doc", content=b"%PDF-1.7", headers={"Content-Type": "application/pdf"})
    response = client.get("/doc", headers={"Accept": "text/html"})
    assert response.status_code == 406
    assert response.headers["content-type"].startswith("text/plain")
    assert "application/pdf" in response.text


def test_post_without_content_type_is_400(client: TestClient):
    response = client.post("/k", content=b"raw")
    assert response.status_code == 400
    assert response.headers["content-type"].startswith("text/plain")
    assert client.get("/k").status_code == 404


def test_post_octet_stream_is_400(client: TestClient):
    response = client.post(
        "/k", content=b"\x00", headers={"Content-Type": "application/octet-stream"}
    )
    assert response.status_code == 400
    assert "application/octet-stream" in response.text


def test_octet_stream_allowed_by_config():
    config = MimeKVConfig.load(
        overrides={"media": {"allow_octet_stream": True}},
        project_path=Path("/nonexistent/mimekv.toml"),
        user_path=Path("/nonexistent/config.toml"),
    )
    with TestClient(create_app(config)) as client:
        response = client.post(
            "/blob", content=b"\x00\x01", headers={"Content-Type": "application/octet-stream"}
        )
        assert response.status_code == 200
        assert client.get("/blob").headers["content-type"] == "application/octet-stream"


def test_keys_with_slashes(client: TestClient):
    client.post("/a/b/c.json", content=b"{}", headers={"Content-Type": "application/json"})
    response = client.get("/a/b/c.json")
    assert response.status_code == 200
    assert response.json() == {}


def test_unsupported_method(client: TestClient):
    assert client.put("/k", content=b"x").status_code == 405


def test_sqlite_backend_persists(tmp_path: Path):
    config = MimeKVConfig(store={"backend": "sqlite", "path": str(tmp_path / "kv.db")})

    with TestClient(create_app(config)) as client:
        client.post("/note", content=b"hello", headers={"Content-Type": "text/plain"})

    with TestClient(create_app(config)) as client:
        response = client.get("/note", headers={"Accept": "text/plain"})
        assert response.status_code == 200
        assert response.text == "hello"


def test_logfile_backend_persists(tmp_path: Path):
    config = MimeKVConfig(store={"backend": "logfile", "path": str(tmp_path / "kv.log")})
    payload = b"PK" * 2000

    with TestClient(create_app(config)) as client:
        client.post("/archive", content=payload, headers={"Content-Type": "application/zip"})

    with TestClient(create_app(config)) as client:
        response = client.get("/archive")
        assert response.status_code == 200
        assert response.headers["content-type"] == "application/zip"
        assert response.content == payload
