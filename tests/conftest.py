"""Shared fixtures: a fake mpv process, a recording IPC channel, a PlayerState."""

from __future__ import annotations

import itertools
import threading
from pathlib import Path

import pytest

from radiopad.errors import ChannelUnavailable
from radiopad.player_state import PlayerState
from radiopad.stations import Station


class FakePopen:
    """Stands in for subprocess.Popen running mpv; creates the IPC socket file."""

    _pids = itertools.count(1000)
    instances: list[FakePopen] = []

    def __init__(self, cmd, **kwargs) -> None:
        self.cmd = list(cmd)
        self.kwargs = kwargs
        self.pid = next(self._pids)
        self.returncode = None
        self.stdout = None
        for arg in self.cmd:
            if arg.startswith("--input-ipc-server="):
                Path(arg.split("=", 1)[1]).touch()
        FakePopen.instances.append(self)

    @property
    def url(self) -> str:
        return self.cmd[-1]

    def poll(self):
        return self.returncode

    def kill(self) -> None:
        if self.returncode is None:
            self.returncode = -9

    def wait(self, timeout=None):
        return self.returncode

    @classmethod
    def alive(cls) -> list[FakePopen]:
        return [p for p in cls.instances if p.returncode is None]


class RecordingChannel:
    def __init__(self) -> None:
        self.messages: list[str] = []
        self.fail = False
        self._lock = threading.Lock()

    def send(self, message: str):
        if self.fail:
            raise ChannelUnavailable("failed to connect to mpv socket: refused")
        with self._lock:
            self.messages.append(message)
        return '{"error":"success"}\n'


@pytest.fixture
def stations() -> tuple[Station, ...]:
    return (
        Station("A", "urlA"),
        Station("B", "urlB"),
        Station("C", "urlC"),
    )


@pytest.fixture
def fake_popen(monkeypatch: pytest.MonkeyPatch) -> type[FakePopen]:
    FakePopen.instances = []
    monkeypatch.setattr("radiopad.process_mixin.subprocess.Popen", FakePopen)
    return FakePopen


@pytest.fixture
def channel() -> RecordingChannel:
    return RecordingChannel()


@pytest.fixture
def player(tmp_path: Path, stations, fake_popen, channel) -> PlayerState:
    state = PlayerState(
        stations,
        socket_path=str(tmp_path / "mpv.sock"),
        channel=channel,
        socket_wait_timeout=1.0,
        socket_poll_interval=0.01,
        settle_delay=0,
        watch_interval=0.01,
    )
    yield state
    state.shutdown()
