"""HTTP API tests with the store pointed at a temporary root."""

import hashlib

import pytest
from fastapi.testclient import TestClient

from agentfs.api.dependencies import get_file_store, get_tool_executor
from agentfs.api.main import app
from agentfs.config import settings
from agentfs.infrastructure.storage.file_store import create_file_store
from agentfs.kernel.tools.tool_executor import ToolExecutor


@pytest.fixture
def store(tmp_path):
    return create_file_store(tmp_path / "project")


@pytest.fixture
def client(store):
    app.dependency_overrides[get_file_store] = lambda: store
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


class TestFilesRoutes:
    """/api/v1/files/*"""

    def test_write_then_read_and_list(self, client, store):
        response = client.post("/api/v1/files/write", json={"file": "src/app.js", "contents": "let a = 1;\n"})
        assert response.status_code == 200
        body = response.json()
        assert body["ok"] is True
        assert body["wroteBytes"] == 11
        assert body["sha256"] == hashlib.sha256(b"let a = 1;\n").hexdigest()

        read = client.get("/api/v1/files/read", params={"file": "src/app.js", "max_bytes": 3})
        assert read.status_code == 200
        assert read.text == "let"

        listed = client.get("/api/v1/files/list", params={"dir": "src"})
        assert listed.json() == [{"name": "app.js", "kind": "file"}]

    def test_list_defaults_to_root(self, client, store):
        (store.root / "readme.md").write_text("x")
        assert client.get("/api/v1/files/list").json() == [{"name": "readme.md", "kind": "file"}]

    def test_patch_write(self, client, store):
        (store.root / "f.txt").write_text("a\nb\n")
        response = client.post(
            "/api/v1/files/write",
            json={"file": "f.txt", "patch": "@@ -1,2 +1,2 @@\n a\n-b\n+B\n"},
        )
        assert response.status_code == 200
        assert response.json()["patched"] is True
        assert (store.root / "f.txt").read_text() == "a\nB\n"

    def test_delete(self, client, store):
        (store.root / "d").mkdir()
        response = client.post("/api/v1/files/delete", json={"path": "d"})
        assert response.json() == {"ok": True, "path": "d", "deleted": True}
        again = client.post("/api/v1/files/delete", json={"path": "d"})
        assert again.json()["deleted"] is False


class TestErrorMapping:
    """Domain errors map onto HTTP statuses with their code tag."""

    def test_path_escape_is_403(self, client):
        response = client.get("/api/v1/files/read", params={"file": "../etc/passwd"})
        assert response.status_code == 403
        assert response.json()["code"] == "PathEscape"

    def test_not_found_is_404(self, client):
        response = client.get("/api/v1/files/read", params={"file": "missing.txt"})
        assert response.status_code == 404
        assert response.json()["code"] == "NotFound"

    def test_patch_mismatch_is_409(self, client, store):
        (store.root / "f.txt").write_text("a\nb\n")
        response = client.post(
            "/api/v1/files/write",
            json={"file": "f.txt", "patch": "@@ -1,2 +1,2 @@\n z\n-b\n+B"},
        )
        assert response.status_code == 409
        body = response.json()
        assert body["code"] == "ContextMismatch"
        assert body["details"]["line"] == 1
        assert (store.root / "f.txt").read_text() == "a\nb\n"

    def test_conflict_is_409(self, client, store):
        (store.root / "f.txt").write_text("old")
        response = client.post(
            "/api/v1/files/write",
            json={"file": "f.txt", "contents": "new", "expected_sha256": "0" * 64},
        )
        assert response.status_code == 409
        assert response.json()["code"] == "Conflict"

    def test_invalid_argument_is_400(self, client):
        response = client.post("/api/v1/files/write", json={"file": "f.txt"})
        assert response.status_code == 400
        assert response.json()["code"] == "InvalidArgument"

    def test_request_validation_is_422(self, client):
        response = client.get("/api/v1/files/read", params={"file": "f.txt", "max_bytes": -1})
        assert response.status_code == 422
        assert response.json()["detail"] == "Request validation failed"


class TestToolRoutes:
    """/api/v1/tools"""

    def test_list_tools(self, client):
        names = [item["name"] for item in client.get("/api/v1/tools", params={"category": "write"}).json()]
        assert names == ["fs_delete", "fs_write"]

    def test_call_tool(self, client, store):
        response = client.post("/api/v1/tools/write_file", json={"args": {"path": "x.txt", "content": "hi"}})
        assert response.status_code == 200
        assert response.json()["wroteBytes"] == 2
        assert (store.root / "x.txt").read_text() == "hi"

    def test_tool_failure_is_a_result(self, client):
        response = client.post("/api/v1/tools/fs_read", json={"args": {"file": "../x"}})
        assert response.status_code == 200
        assert response.json()["ok"] is False
        assert response.json()["code"] == "PathEscape"

    def test_exec_gate(self, client, store):
        app.dependency_overrides[get_tool_executor] = lambda: ToolExecutor(store, allow_exec=False)
        response = client.post("/api/v1/tools/npm_install", json={"args": {"packages": ["react"]}})
        assert response.json()["code"] == "FORBIDDEN"


def test_write_routes_respect_allow_write(client, store, monkeypatch):
    monkeypatch.setattr(settings, "allow_write", False)
    (store.root / "keep.txt").write_text("keep")

    response = client.post("/api/v1/files/write", json={"file": "new.txt", "contents": "x"})
    assert response.status_code == 403
    assert not (store.root / "new.txt").exists()

    response = client.post("/api/v1/files/delete", json={"path": "keep.txt"})
    assert response.status_code == 403
    assert (store.root / "keep.txt").read_text() == "keep"

    assert client.get("/api/v1/files/read", params={"file": "keep.txt"}).text == "keep"


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"
