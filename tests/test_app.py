"""Tests for the Flask HTTP surface and startup."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

import app as radiopad_app
from radiopad.errors import EmptyCatalog


@pytest.fixture
def client(player):
    flask_app = radiopad_app.create_app(player)
    flask_app.testing = True
    return flask_app.test_client()


def test_stations(client) -> None:
    resp = client.get("/stations")
    assert resp.status_code == 200
    assert resp.get_json() == [
        {"name": "A", "url": "urlA"},
        {"name": "B", "url": "urlB"},
        {"name": "C", "url": "urlC"},
    ]


def test_status(client) -> None:
    assert client.get("/status").get_json() == {"current_station": "A", "volume": 50}


def test_version(client) -> None:
    assert client.get("/version").get_json() == {"version": radiopad_app.__version__}


def test_next_and_prev(client, fake_popen) -> None:
    assert client.post("/next").get_json() == {"message": "Playing: B"}
    assert client.post("/prev").get_json() == {"message": "Playing: A"}
    assert client.post("/prev").get_json() == {"message": "Playing: C"}
    assert len(fake_popen.alive()) == 1


def test_play_and_stop(client, channel) -> None:
    assert client.post("/play").get_json() == {"message": "Playing: A"}
    assert client.post("/stop").get_json() == {"message": "Playback stopped"}
    assert json.loads(channel.messages[-1]) == {"command": ["stop"]}


def test_volume(client) -> None:
    assert client.post("/volup").get_json() == {"message": "Volume: 60"}
    assert client.post("/voldown").get_json() == {"message": "Volume: 50"}


def test_get_not_allowed_on_commands(client) -> None:
    assert client.get("/next").status_code == 405


def test_channel_error_is_500(client, channel) -> None:
    channel.fail = True
    resp = client.post("/stop")
    assert resp.status_code == 500
    assert "mpv socket" in resp.get_json()["error"]


def test_spawn_error_is_500(client, monkeypatch) -> None:
    def boom(*args, **kwargs):
        raise FileNotFoundError("mpv")

    monkeypatch.setattr("radiopad.process_mixin.subprocess.Popen", boom)
    resp = client.post("/play")
    assert resp.status_code == 500
    assert "failed to start mpv" in resp.get_json()["error"]


def test_state_and_logs(client) -> None:
    client.post("/next")
    state = client.get("/state").get_json()
    assert state["current_index"] == 1
    assert state["status"] == "playing"
    assert state["mpv_pid"] is not None
    lines = client.get("/logs?limit=1").get_json()["lines"]
    assert len(lines) == 1
    assert client.get("/logs?limit=bogus").status_code == 200


def test_empty_catalog_fails_before_serving(tmp_path: Path, monkeypatch) -> None:
    def no_stations(url):
        raise EmptyCatalog("station list is empty")

    def must_not_run(*args, **kwargs):  # pragma: no cover - fails the test if reached
        raise AssertionError("server started without stations")

    monkeypatch.setattr(radiopad_app, "load_stations", no_stations)
    monkeypatch.setattr(radiopad_app.Flask, "run", must_not_run)
    assert radiopad_app.main(["--config", str(tmp_path / "config.json")]) == 1


def test_malformed_config_fails(tmp_path: Path, monkeypatch) -> None:
    path = tmp_path / "config.json"
    path.write_text("{oops")
    monkeypatch.setattr(radiopad_app, "load_stations", lambda url: pytest.fail("fetched stations"))
    assert radiopad_app.main(["--config", str(path)]) == 1


def test_cli_overrides(tmp_path: Path) -> None:
    args = radiopad_app.parse_args([
        "--config", str(tmp_path / "c.json"),
        "--port", "9999",
        "--gamepad", "/dev/input/js3",
        "--api", "http://api",
        "--socket", "/tmp/other.sock",
    ])
    cfg = radiopad_app.build_config(args)
    assert cfg["server_port"] == 9999
    assert cfg["gamepad_device_path"] == "/dev/input/js3"
    assert cfg["stations_api_url"] == "http://api"
    assert cfg["mpv_socket"] == "/tmp/other.sock"


def test_nul_byte_url_is_json_500(client, monkeypatch) -> None:
    def reject_nul(cmd, **kwargs):
        raise ValueError("embedded null byte")

    monkeypatch.setattr("radiopad.process_mixin.subprocess.Popen", reject_nul)
    resp = client.post("/play")
    assert resp.status_code == 500
    assert resp.is_json
    assert "embedded null byte" in resp.get_json()["error"]


def test_unexpected_error_is_json_500(client, player, monkeypatch) -> None:
    def broken():
        raise RuntimeError("state exploded")

    monkeypatch.setattr(player, "get_status", broken)
    resp = client.get("/status")
    assert resp.status_code == 500
    assert resp.get_json() == {"error": "state exploded"}


def test_unknown_route_stays_404(client) -> None:
    assert client.get("/nope").status_code == 404
