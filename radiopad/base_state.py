import subprocess
import threading
from typing import List, Optional, Sequence

from .config import MPV_PATH, MPV_SOCKET_PATH
from .errors import EmptyCatalog
from .ipc import MpvIpcChannel
from .stations import Station


class BaseState:
    def __init__(
        self,
        stations: Sequence[Station],
        *,
        mpv_path: str = MPV_PATH,
        socket_path: str = MPV_SOCKET_PATH,
        channel=None,
        socket_wait_timeout: float = 5.0,
        socket_poll_interval: float = 0.1,
        settle_delay: float = 0.5,
        watch_interval: float = 1.0,
    ) -> None:
        if not stations:
            raise EmptyCatalog("cannot control playback without stations")
        self.stations: tuple = tuple(stations)
        self.current_index: int = 0
        self.volume: int = 50

        # "idle" (nothing started yet), "playing", "stopped"
        self.status: str = "idle"

        # mpv process and the IPC socket it listens on
        self.mpv_path: str = mpv_path
        self.socket_path: str = socket_path
        self.mpv_proc: Optional[subprocess.Popen] = None
        self._mpv_log_thread: Optional[threading.Thread] = None

        # anything with send(message); swapped out in tests
        self.channel = channel if channel is not None else MpvIpcChannel(socket_path)

        # startup timing: mpv creates its socket asynchronously
        self.socket_wait_timeout = socket_wait_timeout
        self.socket_poll_interval = socket_poll_interval
        self.settle_delay = settle_delay
        self.watch_interval = watch_interval

        # sync primitives (RLock so operations can call start_player while locked)
        self.lock = threading.RLock()
        self.stop_flag = threading.Event()

        # log buffer has its own lock so it never waits on a process replace
        self._log_lock = threading.Lock()
        self._logs: List[str] = []
        self._log_max = 300
