from fastapi.testclient import TestClient

from main import app

client = TestClient(app)


def test_reload_requires_configured_token(monkeypatch):
    monkeypatch.delenv("ADMIN_TOKEN", raising=False)
    assert client.post("/admin/reload").status_code == 500


def test_reload_rejects_wrong_token(monkeypatch):
    monkeypatch.setenv("ADMIN_TOKEN", "secret")
    r = client.post("/admin/reload", headers={"x-admin-token": "guess"})
    assert r.status_code == 401


def test_reload_with_token(monkeypatch):
    monkeypatch.setenv("ADMIN_TOKEN", "secret")
    r = client.post("/admin/reload", headers={"x-admin-token": "secret"})
    assert r.status_code == 200
    body = r.json()
    assert body["ok"] is True
    assert body["count"] == len(body["quiz_ids"])
    assert "python-basics" in body["quiz_ids"]


def test_admin_token_also_opens_client_routes(monkeypatch):
    monkeypatch.setenv("ADMIN_TOKEN", "secret")
    monkeypatch.delenv("QUIZ_API_KEY", raising=False)
    r = client.get("/attempts/recent-list", headers={"x-admin-token": "secret"})
    assert r.status_code == 200
    assert r.json()["count"] == 0
