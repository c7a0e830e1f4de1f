#!/usr/bin/env python3
"""
Radiopad: internet radio driven by a gamepad, with an HTTP control API (Flask).

- Config via JSON file (~/.config/radiopad/config.json, created with defaults)
  plus .env / environment (RADIOPAD_CONFIG, HOST, MPV_PATH, MPV_SOCKET_PATH)
  and command line flags, which win over both
- Station list fetched once at startup; no stations means no server
- One mpv process at a time, controlled over its JSON IPC socket
- Gamepad listener thread and HTTP handlers share one PlayerState
- Keeps an in-memory log buffer (mpv output + actions) exposed at /logs
"""
import argparse
import logging
import os
import signal
import sys
import threading

from flask import Blueprint, Flask, current_app, jsonify, request
from werkzeug.exceptions import HTTPException
from dotenv import load_dotenv

# Load .env if present
load_dotenv()

from radiopad import __version__
from radiopad.config import DEFAULT_CONFIG_PATH, VOLUME_STEP, load_config
from radiopad.errors import CatalogError, ConfigError, RadioPadError
from radiopad.gamepad import GamepadListener
from radiopad.player_state import PlayerState
from radiopad.stations import load_stations

logger = logging.getLogger("radiopad")

bp = Blueprint("radio", __name__)


def _player() -> PlayerState:
    return current_app.config["PLAYER"]


@bp.app_errorhandler(RadioPadError)
def handle_radio_error(e: RadioPadError):
    return jsonify({"error": str(e)}), 500


@bp.app_errorhandler(Exception)
def handle_unexpected_error(e: Exception):
    # 404/405 and friends keep their own status
    if isinstance(e, HTTPException):
        return e
    logger.exception("Unhandled error in %s %s", request.method, request.path)
    return jsonify({"error": str(e) or e.__class__.__name__}), 500


@bp.get("/version")
def version():
    return jsonify({"version": __version__})


@bp.get("/stations")
def list_stations():
    return jsonify([s.to_dict() for s in _player().stations])


@bp.get("/status")
def status():
    return jsonify(_player().get_status())


@bp.get("/state")
def state():
    return jsonify(_player().get_state())


@bp.get("/logs")
def get_logs():
    try:
        limit = int(request.args.get("limit", "200"))
    except ValueError:
        limit = 200
    return jsonify({"lines": _player().get_logs(limit)})


@bp.post("/play")
def play():
    station = _player().play()
    return jsonify({"message": f"Playing: {station.name}"})


@bp.post("/next")
def next_station():
    station = _player().next_station()
    return jsonify({"message": f"Playing: {station.name}"})


@bp.post("/prev")
def prev_station():
    station = _player().prev_station()
    return jsonify({"message": f"Playing: {station.name}"})


@bp.post("/stop")
def stop():
    _player().stop()
    return jsonify({"message": "Playback stopped"})


@bp.post("/volup")
def volume_up():
    volume = _player().adjust_volume(VOLUME_STEP)
    return jsonify({"message": f"Volume: {volume}"})


@bp.post("/voldown")
def volume_down():
    volume = _player().adjust_volume(-VOLUME_STEP)
    return jsonify({"message": f"Volume: {volume}"})


def create_app(player: PlayerState) -> Flask:
    app = Flask(__name__)
    app.config["PLAYER"] = player
    app.register_blueprint(bp)
    return app


def start_watcher(player: PlayerState) -> threading.Thread:
    """
    Start mpv watcher thread.
    """
    t = threading.Thread(target=player.watcher_loop, name="mpv-watcher", daemon=True)
    t.start()
    return t


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Gamepad-controlled internet radio")
    parser.add_argument("--config", default=DEFAULT_CONFIG_PATH, help="Path to config file")
    parser.add_argument("--host", default=None, help="Bind address (default $HOST or 0.0.0.0)")
    parser.add_argument("--port", default=None, help="Server port (overrides config file)")
    parser.add_argument("--gamepad", default=None, help="Gamepad device path (overrides config file)")
    parser.add_argument("--api", default=None, help="Stations API URL (overrides config file)")
    parser.add_argument("--socket", default=None, help="mpv IPC socket path (overrides config file)")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> dict:
    cfg = load_config(args.config)
    if args.port:
        try:
            cfg["server_port"] = int(args.port)
        except ValueError:
            raise ConfigError(f"--port must be a number, got {args.port!r}")
        if not 1 <= cfg["server_port"] <= 65535:
            raise ConfigError(f"--port must be in 1-65535, got {args.port}")
    if args.gamepad:
        cfg["gamepad_device_path"] = args.gamepad
    if args.api:
        cfg["stations_api_url"] = args.api
    if args.socket:
        cfg["mpv_socket"] = args.socket
    return cfg


def _raise_exit(signum, frame):
    raise SystemExit(0)


def main(argv=None) -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(levelname)-8s - %(name)s - %(message)s",
    )

    args = parse_args(argv)
    logger.info("Radiopad v%s starting...", __version__)

    try:
        cfg = build_config(args)
        stations = load_stations(cfg["stations_api_url"])
    except ConfigError as e:
        logger.critical("Error loading config: %s", e)
        return 1
    except CatalogError as e:
        logger.critical("Failed to fetch radio stations: %s", e)
        return 1

    player = PlayerState(stations, mpv_path=cfg["mpv_path"], socket_path=cfg["mpv_socket"])
    listener = GamepadListener(cfg["gamepad_device_path"], player, cfg["button_mappings"])

    # SIGTERM unwinds like Ctrl+C so mpv is killed in the finally block
    signal.signal(signal.SIGTERM, _raise_exit)

    start_watcher(player)
    listener.start()

    host = args.host or os.getenv("HOST", "0.0.0.0")
    port = cfg["server_port"]
    app = create_app(player)
    logger.info("Server starting on %s:%s", host, port)
    try:
        app.run(host=host, port=port, threaded=True)
    except KeyboardInterrupt:
        logger.info("Interrupted")
    finally:
        listener.stop()
        player.shutdown()
    return 0


if __name__ == "__main__":
    sys.exit(main())
