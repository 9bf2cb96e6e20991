from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

import httpx
import pytest
from fastapi.testclient import TestClient

from timehub.exceptions import EntryConflictError, ProviderAPIError
from timehub.models.time_entry import TimeEntry
from timehub.schemas.sync import TogglSyncResult

MANUAL = {
    "date": "2026-01-22",
    "start_time": "11:00",
    "end_time": "12:30",
    "project": "Internal",
    "description": "Planning",
    "timezone": "Asia/Seoul",
}


class TestEntries:

    def test_create_manual_entry(self, client: TestClient):
        response = client.post("/api/v1/entries", json=MANUAL)
        assert response.status_code == 201
        data = response.json()
        assert data["source"] == "MANUAL"
        assert data["duration"] == pytest.approx(1.5)
        assert data["external_id"].startswith("MANUAL_")
        assert data["start_time"] == "11:00"
        assert datetime.fromisoformat(data["date"].replace("Z", "+00:00")) == datetime(2026, 1, 22, 2, 0, tzinfo=timezone.utc)

    def test_end_before_start_is_rejected(self, client: TestClient, db):
        response = client.post("/api/v1/entries", json=dict(MANUAL, start_time="12:00", end_time="11:00"))
        assert response.status_code == 422
        errors = response.json()["detail"]
        assert errors[0]["loc"][-1] == "end_time"
        assert "End time must be after start time" in errors[0]["msg"]
        assert db.query(TimeEntry).count() == 0

    @pytest.mark.parametrize("field,value", [
        ("start_time", "9:00"),
        ("date", "2026-02-30"),
        ("timezone", "Nowhere/City"),
    ])
    def test_invalid_fields_are_rejected(self, client: TestClient, field, value):
        response = client.post("/api/v1/entries", json=dict(MANUAL, **{field: value}))
        assert response.status_code == 422

    def test_update_recomputes_manual_entry(self, client: TestClient):
        created = client.post("/api/v1/entries", json=MANUAL).json()

        response = client.put(f"/api/v1/entries/{created['id']}", json={
            "date": "2026-01-23T00:00:00",
            "duration": 0,
            "project": "Internal",
            "description": "Planning, moved",
            "source": "MANUAL",
            "start_time": "09:00",
            "end_time": "17:00",
            "timezone": "UTC",
        })
        assert response.status_code == 200
        data = response.json()
        assert data["duration"] == pytest.approx(8.0)
        assert data["description"] == "Planning, moved"
        assert data["end_time"] == "17:00"
        assert datetime.fromisoformat(data["date"].replace("Z", "+00:00")) == datetime(2026, 1, 23, 9, 0, tzinfo=timezone.utc)

    def test_update_without_times_clears_wall_clock(self, client: TestClient):
        created = client.post("/api/v1/entries", json=MANUAL).json()

        response = client.put(f"/api/v1/entries/{created['id']}", json={
            "date": "2026-01-22T11:00:00Z",
            "duration": 4.0,
            "source": "MANUAL",
        })
        assert response.status_code == 200
        data = response.json()
        assert data["duration"] == pytest.approx(4.0)
        assert data["start_time"] is None
        assert data["end_time"] is None

    def test_update_echoing_utc_instant_keeps_local_day(self, client: TestClient):
        late = dict(MANUAL, start_time="23:00", end_time="23:30", timezone="America/Los_Angeles")
        created = client.post("/api/v1/entries", json=late).json()
        assert created["date"].startswith("2026-01-23T07:00:00")

        response = client.put(f"/api/v1/entries/{created['id']}", json={
            "date": created["date"],
            "duration": created["duration"],
            "project": created["project"],
            "description": created["description"],
            "source": "MANUAL",
            "start_time": "23:00",
            "end_time": "23:30",
            "timezone": "America/Los_Angeles",
        })
        assert response.status_code == 200
        data = response.json()
        assert datetime.fromisoformat(data["date"].replace("Z", "+00:00")) == datetime(2026, 1, 23, 7, 0, tzinfo=timezone.utc)
        assert data["duration"] == pytest.approx(0.5)

    def test_update_with_lone_end_time_is_rejected(self, client: TestClient):
        created = client.post("/api/v1/entries", json=MANUAL).json()
        response = client.put(f"/api/v1/entries/{created['id']}", json={
            "date": "2026-01-22T00:00:00Z",
            "duration": 1.0,
            "source": "MANUAL",
            "end_time": "10:00",
        })
        assert response.status_code == 422

    def test_update_and_delete_missing_entry(self, client: TestClient):
        body = {"date": "2026-01-23T00:00:00Z", "duration": 1, "source": "MANUAL"}
        assert client.put("/api/v1/entries/nope", json=body).status_code == 404
        assert client.delete("/api/v1/entries/nope").status_code == 404

    def test_delete_entry(self, client: TestClient):
        created = client.post("/api/v1/entries", json=MANUAL).json()
        response = client.delete(f"/api/v1/entries/{created['id']}")
        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert client.get("/api/v1/stats").json() == []

    def test_stats_filters_and_orders(self, client: TestClient):
        client.post("/api/v1/entries", json=dict(MANUAL, date="2026-01-20", timezone="UTC"))
        client.post("/api/v1/entries", json=dict(MANUAL, date="2026-01-22", timezone="UTC"))

        entries = client.get("/api/v1/stats").json()
        assert [e["date"][:10] for e in entries] == ["2026-01-22", "2026-01-20"]

        filtered = client.get("/api/v1/stats", params={"start": "2026-01-21T00:00:00Z", "source": "MANUAL"}).json()
        assert len(filtered) == 1
        assert client.get("/api/v1/stats", params={"source": "TOGGL"}).json() == []


class TestSync:

    def test_unknown_provider(self, client: TestClient):
        response = client.post("/api/v1/sync/harvest")
        assert response.status_code == 404

    def test_malformed_range_is_rejected(self, client: TestClient):
        response = client.post("/api/v1/sync/toggl", json={"start_date": "03/01/2026", "end_date": "2026-03-31"})
        assert response.status_code == 422

    def test_missing_token_is_bad_request(self, client: TestClient, registry):
        registry.get("toggl").settings.toggl_api_token = None
        response = client.post("/api/v1/sync/toggl?force=true")
        assert response.status_code == 400
        assert "TOGGL_API_TOKEN" in response.json()["detail"]

    def test_upstream_error_is_bad_gateway(self, client: TestClient, registry):
        error = ProviderAPIError("TOGGL", "TOGGL API error: 403 - Forbidden", status_code=403, body="Forbidden")
        with patch.object(registry.get("toggl"), "sync", AsyncMock(side_effect=error)):
            response = client.post("/api/v1/sync/toggl")
        assert response.status_code == 502
        detail = response.json()["detail"]
        assert detail["upstream_status"] == 403
        assert detail["upstream_body"] == "Forbidden"

    def test_conflict_is_reported(self, client: TestClient, registry):
        error = EntryConflictError("TEMPO", "501", issue="PROJ-12")
        with patch.object(registry.get("tempo"), "sync", AsyncMock(side_effect=error)):
            response = client.post("/api/v1/sync/tempo")
        assert response.status_code == 409
        detail = response.json()["detail"]
        assert detail["source"] == "TEMPO"
        assert detail["external_id"] == "501"
        assert detail["issue"] == "PROJ-12"

    def test_provider_sync_with_custom_range(self, client: TestClient):
        entries = [{"id": 7, "start": "2026-03-02T08:00:00Z", "duration": 3600, "project_id": 5, "description": "x"}]
        response_obj = httpx.Response(200, json=entries, request=httpx.Request("GET", "https://api.track.toggl.com"))
        with patch("httpx.AsyncClient.request", new_callable=AsyncMock, return_value=response_obj):
            response = client.post("/api/v1/sync/TOGGL", json={"start_date": "2026-03-01", "end_date": "2026-03-31"})

        assert response.status_code == 200
        data = response.json()
        assert data["provider"] == "TOGGL"
        assert data["count"] == 1
        assert data["skipped"] == 0

    def test_sync_all_isolates_failures(self, client: TestClient, registry):
        toggl, tempo = registry.get("toggl"), registry.get("tempo")
        ok = TogglSyncResult(count=3, cached=False, message="Fetched fresh from Toggl API")
        with patch.object(toggl, "validate", AsyncMock(return_value=True)), \
                patch.object(toggl, "sync", AsyncMock(return_value=ok)), \
                patch.object(tempo, "validate", AsyncMock(return_value=False)):
            response = client.post("/api/v1/sync")

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is False
        assert data["total_imported"] == 3
        results = {r["provider"]: r for r in data["results"]}
        assert results["TOGGL"]["success"] is True
        assert results["TOGGL"]["result"]["count"] == 3
        assert results["TEMPO"]["error"] == "Provider not configured"


def test_providers_status(client: TestClient, registry):
    client.post("/api/v1/entries", json=MANUAL)
    with patch.object(registry.get("toggl"), "validate", AsyncMock(return_value=True)), \
            patch.object(registry.get("tempo"), "validate", AsyncMock(return_value=False)):
        response = client.get("/api/v1/providers/status")

    assert response.status_code == 200
    rows = {row["name"]: row for row in response.json()["providers"]}
    assert rows["TOGGL"]["configured"] is True
    assert rows["TEMPO"]["configured"] is False
    assert rows["MANUAL"]["configured"] is True
    assert rows["MANUAL"]["entry_count"] == 1
    assert rows["MANUAL"]["last_sync"] is not None
    assert rows["TOGGL"]["last_sync"] is None


class TestUpload:

    def test_toggl_upload(self, client: TestClient):
        csv_text = (
            "Description,Duration,Project,Start date,Start time\n"
            "Header layout,01:30:00,Website,2025-12-01,09:00:00\n"
            "Broken,never,Website,2025-12-01,10:00:00\n"
        )
        files = {"file": ("toggl_report.csv", csv_text.encode("utf-8"), "text/csv")}
        response = client.post("/api/v1/upload", files=files)

        assert response.status_code == 200
        data = response.json()
        assert data["imported"] == 1
        assert len(data["errors"]) == 1

        # Re-uploading the same file updates in place
        client.post("/api/v1/upload", files=files)
        assert len(client.get("/api/v1/stats", params={"source": "TOGGL_CSV"}).json()) == 1

    def test_unknown_format(self, client: TestClient):
        files = {"file": ("export.csv", b"a,b\n1,2\n", "text/csv")}
        response = client.post("/api/v1/upload", files=files)
        assert response.status_code == 400


class TestSummary:

    def _seed(self, db, when, hours, source="MANUAL", external_id="s-1"):
        db.add(TimeEntry(source=source, external_id=external_id, date=when, duration=hours,
                         created_at=datetime.now(timezone.utc)))
        db.commit()

    def test_today(self, client: TestClient, db):
        now = datetime.now(timezone.utc)
        self._seed(db, now, 1.234)
        self._seed(db, now, 2.0, source="TOGGL", external_id="t-1")
        self._seed(db, now - timedelta(days=3), 5.0, external_id="old")

        data = client.get("/api/v1/entries/summary/today").json()
        assert data["total_hours"] == pytest.approx(3.23)
        assert data["by_source"] == {"MANUAL": 1.23, "TOGGL": 2.0}
        assert data["entry_count"] == 2

    def test_week(self, client: TestClient, db):
        now = datetime.now(timezone.utc)
        self._seed(db, now, 2.5)

        data = client.get("/api/v1/entries/summary/week").json()
        assert len(data["daily"]) == 7
        assert data["daily"][0]["day_name"] == "Mon"
        assert data["daily"][0]["date"] == data["week_start"]
        assert data["total_hours"] == pytest.approx(2.5)
        today = next(day for day in data["daily"] if day["date"] == now.date().isoformat())
        assert today["hours"] == pytest.approx(2.5)
