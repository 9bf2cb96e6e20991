from fastapi.testclient import TestClient

from timehub import __version__


def test_health(client: TestClient):
    response = client.get("/api/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["version"] == __version__


def test_root(client: TestClient):
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "timehub API"


def test_jira_config(client: TestClient, monkeypatch):
    from timehub.config import settings

    monkeypatch.setattr(settings, "jira_base_url", "https://example.atlassian.net")
    response = client.get("/api/v1/config/jira")
    assert response.status_code == 200
    assert response.json() == {"base_url": "https://example.atlassian.net", "configured": True}

    monkeypatch.setattr(settings, "jira_base_url", None)
    assert client.get("/api/v1/config/jira").json() == {"base_url": None, "configured": False}
