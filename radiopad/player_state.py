"""
Composite PlayerState assembled from smaller mixins.

One PlayerState owns the station list, the playback selection and volume,
the mpv process and its IPC channel. It is created once at startup and
handed to the HTTP app and the gamepad listener.
"""

from .base_state import BaseState
from .logging_mixin import LoggingMixin
from .process_mixin import ProcessMixin
from .control_mixin import ControlMixin
from .watcher_mixin import WatcherMixin


class PlayerState(
    BaseState,
    LoggingMixin,
    ProcessMixin,
    ControlMixin,
    WatcherMixin,
):
    """Playback state and mpv control logic."""
