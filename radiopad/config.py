import copy
import json
import logging
import os
from pathlib import Path

from .errors import ConfigError

logger = logging.getLogger(__name__)

# mpv binary and IPC socket can be overridden from environment
MPV_PATH = os.getenv("MPV_PATH", "mpv")
MPV_SOCKET_PATH = os.getenv("MPV_SOCKET_PATH", "/tmp/mpv-socket")

DEFAULT_CONFIG_PATH = os.getenv(
    "RADIOPAD_CONFIG",
    os.path.join(os.path.expanduser("~"), ".config", "radiopad", "config.json"),
)

VOLUME_STEP = 10

# Order matters: when two actions share a button, the earlier one wins.
BUTTON_ACTIONS = ("play", "next", "previous", "stop", "volume_up", "volume_down")

DEFAULT_CONFIG = {
    "server_port": 8080,
    "gamepad_device_path": "/dev/input/js0",
    "stations_api_url": "https://bxmusic-stations-1111.bxmedia.workers.dev",
    "button_mappings": {
        "play": 0,
        "next": 1,
        "previous": 2,
        "stop": 3,
        "volume_down": 6,
        "volume_up": 7,
    },
    "mpv_path": MPV_PATH,
    "mpv_socket": MPV_SOCKET_PATH,
}


STRING_KEYS = ("gamepad_device_path", "stations_api_url", "mpv_path", "mpv_socket")


def default_config() -> dict:
    return copy.deepcopy(DEFAULT_CONFIG)


def _merge(cfg: dict, data: dict) -> dict:
    # Older config files used "gamepad_device"
    if "gamepad_device" in data and "gamepad_device_path" not in data:
        data = dict(data)
        data["gamepad_device_path"] = data.pop("gamepad_device")

    for key, value in data.items():
        if key == "button_mappings":
            if not isinstance(value, dict):
                raise ConfigError("button_mappings must be an object")
            cfg["button_mappings"].update(value)
        else:
            cfg[key] = value
    return cfg


def _validate(cfg: dict) -> None:
    try:
        cfg["server_port"] = int(cfg["server_port"])
    except (TypeError, ValueError):
        raise ConfigError(f"server_port must be a number, got {cfg['server_port']!r}")
    if not 1 <= cfg["server_port"] <= 65535:
        raise ConfigError(f"server_port must be in 1-65535, got {cfg['server_port']}")

    for key in STRING_KEYS:
        value = cfg.get(key)
        if not isinstance(value, str) or not value.strip():
            raise ConfigError(f"{key} must be a non-empty string, got {value!r}")

    for action in BUTTON_ACTIONS:
        value = cfg["button_mappings"].get(action)
        if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 255:
            raise ConfigError(f"button_mappings.{action} must be an integer 0-255, got {value!r}")


def load_config(path: str = DEFAULT_CONFIG_PATH) -> dict:
    """Load the JSON config file, merged over the defaults.

    A missing file is created with the defaults. A file that exists but is
    not a JSON object raises ConfigError.
    """
    cfg = default_config()
    config_path = Path(path)

    if not config_path.exists():
        save_config(cfg, path)
        logger.info("Created default config file at: %s", config_path)
        return cfg

    try:
        with config_path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"error parsing config file {config_path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"error reading config file {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"config file {config_path} must contain a JSON object")

    cfg = _merge(cfg, data)
    _validate(cfg)
    return cfg


def save_config(cfg: dict, path: str = DEFAULT_CONFIG_PATH) -> None:
    """Persist config as indented JSON, creating the parent directory."""
    config_path = Path(path)
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with config_path.open("w", encoding="utf-8") as f:
            json.dump(cfg, f, indent=4)
    except OSError as e:
        raise ConfigError(f"error writing config file {config_path}: {e}") from e
