"""HTTP and websocket tests for the FastAPI app."""

import time

import pytest
from fastapi.testclient import TestClient

import snapshots.snapshot_store as snapshot_store_module
from conftest import make_state_doc
from health import create_app
from league_config import LeagueSettings
from league_events import EventBus


# ── Helpers ──────────────────────────────────────────────────────────

@pytest.fixture
def app(tmp_path):
    settings = LeagueSettings(
        state_path=str(tmp_path / "data" / "league-state.json"),
        snapshot_dir=str(tmp_path / "data" / "snapshots"),
    )
    return create_app(settings, start_scheduler=False, bus=EventBus())


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def app_events(app):
    received = []
    app.state.bus.subscribe(lambda event, payload: received.append(payload["reason"]))
    return received


def _wait_for_clients(app, count=1, timeout=5.0):
    deadline = time.monotonic() + timeout
    while len(app.state.hub) < count and time.monotonic() < deadline:
        time.sleep(0.01)
    assert len(app.state.hub) == count


# ── Tests ────────────────────────────────────────────────────────────

class TestRoot:
    def test_health_text(self, client):
        resp = client.get("/")
        assert resp.status_code == 200
        assert resp.text == "Hundo Leago backend is running."


class TestLeague:
    def test_get_without_file_returns_empty_league(self, client):
        resp = client.get("/api/league")
        assert resp.status_code == 200
        body = resp.json()
        assert body["teams"] == []
        assert body["settings"] == {"frozen": False}
        assert body["lastAutoAuctionRolloverId"] is None

    def test_save_then_load(self, client, app_events):
        doc = make_state_doc(teams=[{"name": "TeamA", "roster": [{"name": "P", "salary": "7"}]}])

        resp = client.post("/api/league", json=doc)

        assert resp.status_code == 200
        assert resp.json() == {"ok": True}
        loaded = client.get("/api/league").json()
        assert loaded["teams"][0]["roster"][0]["salary"] == 7
        assert app_events == ["saveLeague"]

    def test_client_cannot_forge_markers(self, client, app):
        store = app.state.store
        seeded = store.load_state().model_copy(update={"last_auto_auction_rollover_id": "auto-auction-2026-10-18-1600PT"})
        store.save_state(seeded)

        client.post("/api/league", json=make_state_doc(lastAutoAuctionRolloverId="forged"))

        assert client.get("/api/league").json()["lastAutoAuctionRolloverId"] == "auto-auction-2026-10-18-1600PT"

    def test_non_object_body_saves_empty_league(self, client):
        client.post("/api/league", json=make_state_doc(teams=[{"name": "TeamA"}]))
        resp = client.post("/api/league", json=[1, 2, 3])

        assert resp.status_code == 200
        assert client.get("/api/league").json()["teams"] == []

    def test_write_failure_returns_500(self, client, app, monkeypatch):
        def boom(payload):
            raise OSError("read-only filesystem")

        monkeypatch.setattr(app.state.store, "save_from_client", boom)
        resp = client.post("/api/league", json=make_state_doc())

        assert resp.status_code == 500
        assert resp.json() == {"ok": False, "error": "Failed to save state"}

    def test_unreadable_state_file_is_left_alone(self, client, app):
        path = app.state.store.path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("{broken", encoding="utf-8")

        resp = client.post("/api/league", json=make_state_doc(teams=[{"name": "TeamC"}]))

        assert resp.status_code == 500
        assert path.read_text(encoding="utf-8") == "{broken"


class TestSnapshots:
    def test_create_and_list(self, client, app_events):
        resp = client.post("/api/snapshots", json={"name": "Pre Trade"})

        assert resp.status_code == 200
        snapshot_id = resp.json()["id"]
        assert snapshot_id.endswith("-pre-trade")
        listed = client.get("/api/snapshots").json()["snapshots"]
        assert [s["id"] for s in listed] == [snapshot_id]
        assert isinstance(listed[0]["createdAt"], int)
        assert app_events == ["snapshotCreated"]

    def test_create_without_body(self, client):
        resp = client.post("/api/snapshots")
        assert resp.status_code == 200
        assert resp.json()["ok"] is True

    def test_same_id_twice_conflicts(self, client, monkeypatch):
        monkeypatch.setattr(snapshot_store_module, "generate_snapshot_id", lambda label=None, now=None: "fixed")

        assert client.post("/api/snapshots", json={}).status_code == 200
        resp = client.post("/api/snapshots", json={})

        assert resp.status_code == 409
        assert resp.json()["ok"] is False

    def test_restore_round_trip(self, client, app_events):
        client.post("/api/league", json=make_state_doc(teams=[{"name": "Before"}]))
        snapshot_id = client.post("/api/snapshots", json={"name": "x"}).json()["id"]
        client.post("/api/league", json=make_state_doc(teams=[{"name": "After"}]))

        resp = client.post("/api/snapshots/restore", json={"id": snapshot_id})

        assert resp.status_code == 200
        assert resp.json() == {"ok": True}
        assert [t["name"] for t in client.get("/api/league").json()["teams"]] == ["Before"]
        assert app_events[-1] == "snapshotRestored"

    @pytest.mark.parametrize("body", [{}, {"id": ""}, {"id": "   "}])
    def test_restore_requires_id(self, client, body):
        resp = client.post("/api/snapshots/restore", json=body)
        assert resp.status_code == 400
        assert resp.json() == {"ok": False, "error": "Missing snapshot id in body"}

    def test_restore_rejects_path_like_id(self, client):
        resp = client.post("/api/snapshots/restore", json={"id": "../league-state"})
        assert resp.status_code == 400

    def test_restore_unknown_id(self, client):
        resp = client.post("/api/snapshots/restore", json={"id": "nope"})
        assert resp.status_code == 404
        assert resp.json() == {"ok": False, "error": "Snapshot not found"}


class TestWebsocket:
    def test_save_is_broadcast(self, client, app):
        with client.websocket_connect("/ws") as ws:
            _wait_for_clients(app)
            client.post("/api/league", json=make_state_doc())

            message = ws.receive_json()

        assert message == {"event": "league:updated", "reason": "saveLeague"}

    def test_disconnect_unregisters(self, client, app):
        with client.websocket_connect("/ws"):
            _wait_for_clients(app)
        _wait_for_clients(app, count=0)

    def test_subscriptions_follow_lifespan(self, app):
        hub, bus = app.state.hub, app.state.bus
        assert hub not in bus

        for _ in range(2):
            with TestClient(app) as c:
                assert hub in bus
                with c.websocket_connect("/ws") as ws:
                    _wait_for_clients(app)
                    c.post("/api/league", json=make_state_doc())
                    assert ws.receive_json()["reason"] == "saveLeague"
            assert hub not in bus


class TestDiscordLifespan:
    def test_notifier_subscribed_only_while_serving(self, tmp_path):
        settings = LeagueSettings(
            state_path=str(tmp_path / "data" / "league-state.json"),
            snapshot_dir=str(tmp_path / "data" / "snapshots"),
            discord_webhook_url="https://discord.test/hook",
        )
        app = create_app(settings, start_scheduler=False, bus=EventBus())
        assert app.state.notifier is None

        with TestClient(app):
            notifier = app.state.notifier
            assert notifier is not None
            assert notifier in app.state.bus

        assert notifier not in app.state.bus
        assert app.state.notifier is None
