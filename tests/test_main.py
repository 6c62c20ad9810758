import json
from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from playcalendar.date_keys import from_date
from playcalendar.main import create_app
from playcalendar.services.calendar_service import MonthCursor
from playcalendar.settings import Settings


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(data_dir=tmp_path)


@pytest.fixture
def client(settings: Settings) -> TestClient:
    app = create_app(settings)
    app.state.widget.cursor = MonthCursor(2024, 3)

    with TestClient(app) as test_client:
        yield test_client


def test_read_root_names_the_service(client: TestClient) -> None:
    response = client.get("/")

    assert response.status_code == 200
    assert response.json() == {
        "service": "playcalendar",
        "message": "Daily play count calendar",
    }


def test_health_live_returns_ok(client: TestClient) -> None:
    response = client.get("/health/live")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_create_app_bootstraps_account_file(client: TestClient, settings: Settings) -> None:
    assert json.loads(settings.config_path.read_text(encoding="utf-8")) == {
        "apiKey": "YOUR_LASTFM_API_KEY",
        "username": "YOUR_LASTFM_USERNAME",
    }


def test_get_calendar_returns_paint_model(settings: Settings) -> None:
    settings.counts_path.write_text(
        json.dumps({"2024-03-05": 7, "2024-04-01": 3}), encoding="utf-8"
    )
    app = create_app(settings)
    app.state.widget.cursor = MonthCursor(2024, 3)

    with TestClient(app) as test_client:
        response = test_client.get("/calendar", params={"width": 300})

    assert response.status_code == 200
    payload = response.json()
    assert payload["title"] == "March 2024"
    assert payload["day_labels"] == ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]
    assert payload["arrows"]["right"] == {"x": 270.0, "y": 5.0, "w": 20.0, "h": 20.0}
    assert len(payload["cells"]) == 42
    assert payload["total"] == 7
    fifth = next(cell for cell in payload["cells"] if cell["date"] == "2024-03-05")
    assert fifth["count"] == 7
    assert fifth["bucket"] == 2
    assert fifth["color"] == "#40c463"
    assert payload["cells"][0]["date"] is None


def test_get_month_calendar_does_not_move_cursor(client: TestClient) -> None:
    response = client.get("/calendar/2024/2")

    assert response.status_code == 200
    assert response.json()["title"] == "February 2024"
    assert sum(cell["date"] is not None for cell in response.json()["cells"]) == 29
    assert client.get("/calendar").json()["month"] == 3


def test_get_month_calendar_rejects_invalid_month(client: TestClient) -> None:
    response = client.get("/calendar/2024/13")

    assert response.status_code == 400


def test_get_cell_at_resolves_pointer(client: TestClient) -> None:
    response = client.get("/calendar/cell", params={"x": 5 * 17 + 2, "y": 47})

    assert response.status_code == 200
    assert response.json()["date"] == "2024-03-01"


def test_get_cell_at_returns_404_for_empty_slot(client: TestClient) -> None:
    response = client.get("/calendar/cell", params={"x": 1, "y": 47})

    assert response.status_code == 404
    assert response.json() == {"detail": "no day at position"}


def test_pointer_move_sets_hover_shown_in_calendar(client: TestClient) -> None:
    moved = client.post("/input/move", json={"x": 5 * 17 + 2, "y": 47})
    calendar = client.get("/calendar").json()

    assert moved.status_code == 200
    assert moved.json()["date"] == "2024-03-01"
    assert calendar["hover"]["date"] == "2024-03-01"


def test_pointer_move_outside_grid_clears_hover(client: TestClient) -> None:
    client.post("/input/move", json={"x": 5 * 17 + 2, "y": 47})
    moved = client.post("/input/move", json={"x": 5, "y": 5})

    assert moved.status_code == 200
    assert moved.json() is None
    assert client.get("/calendar").json()["hover"] is None


def test_click_arrows_navigates_months(client: TestClient) -> None:
    back = client.post("/input/click", json={"x": 15, "y": 15, "width": 300})
    forward = client.post("/input/click", json={"x": 280, "y": 15, "width": 300})
    nowhere = client.post("/input/click", json={"x": 150, "y": 15, "width": 300})

    assert back.json() == {"navigated": -1, "year": 2024, "month": 2}
    assert forward.json() == {"navigated": 1, "year": 2024, "month": 3}
    assert nowhere.json() == {"navigated": None, "year": 2024, "month": 3}


def test_record_play_counts_today(client: TestClient, settings: Settings) -> None:
    today = from_date(datetime.now().date())

    first = client.post("/plays")
    second = client.post("/plays")

    assert first.status_code == 201
    assert second.json()["date"] == today
    assert second.json()["count"] == 2
    assert client.get(f"/counts/{today}").json()["count"] == 2
    assert json.loads(settings.counts_path.read_text(encoding="utf-8"))[today] == 2


def test_get_day_count_defaults_to_zero(client: TestClient) -> None:
    response = client.get("/counts/2024-03-09")

    assert response.json() == {"date": "2024-03-09", "count": 0, "bucket": 0}


def test_get_day_count_rejects_malformed_key(client: TestClient) -> None:
    response = client.get("/counts/2024-02-30")

    assert response.status_code == 400


def test_refresh_reports_unconfigured_account(client: TestClient) -> None:
    response = client.post("/refresh")

    assert response.status_code == 202
    assert response.json() == {"status": "not_configured", "year": 2024, "month": 3}


def test_refresh_schedules_fetch_for_configured_account(
    monkeypatch: pytest.MonkeyPatch, settings: Settings
) -> None:
    settings.config_path.write_text(
        json.dumps({"apiKey": "abc123", "username": "listener"}), encoding="utf-8"
    )
    fetched: list[tuple[int, int]] = []

    async def fake_fetch_month(credentials, year, month, api_url, timeout, client=None):
        fetched.append((year, month))
        return {"2024-03-05": 2}

    monkeypatch.setattr(
        "playcalendar.services.widget_service.fetch_month", fake_fetch_month
    )
    app = create_app(settings)
    app.state.widget.cursor = MonthCursor(2024, 3)

    with TestClient(app) as test_client:
        response = test_client.post("/refresh")
        count = test_client.get("/counts/2024-03-05").json()["count"]

    assert response.json()["status"] == "scheduled"
    assert (2024, 3) in fetched
    assert count == 2 * len(fetched)
