"""
mpv JSON IPC client.

mpv reads newline-terminated JSON objects such as
``{"command": ["set_property", "volume", 60]}`` from the socket given by
``--input-ipc-server`` and answers each with a JSON line. We only send
fire-and-forget control messages (volume, stop), so one short-lived
connection is opened per message and the reply is read on a best-effort basis.
"""
import json
import logging
import socket
from typing import Optional

from .errors import ChannelUnavailable

logger = logging.getLogger(__name__)


def build_command(*args) -> str:
    return json.dumps({"command": list(args)})


def set_volume_command(volume: int) -> str:
    return build_command("set_property", "volume", int(volume))


def stop_command() -> str:
    return build_command("stop")


class MpvIpcChannel:
    """Send control messages to mpv over its Unix domain socket."""

    def __init__(self, path: str, timeout: float = 2.0) -> None:
        self.path = path
        self.timeout = timeout

    def send(self, message: str) -> Optional[str]:
        """
        Deliver one message and return mpv's reply, if any.

        Raises ChannelUnavailable when the socket cannot be reached or the
        message cannot be written. A missing or unreadable reply is only
        logged, mpv may still have acted on the command.
        """
        if not message.endswith("\n"):
            message += "\n"

        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        sock.settimeout(self.timeout)
        try:
            try:
                sock.connect(self.path)
            except OSError as e:
                raise ChannelUnavailable(f"failed to connect to mpv socket {self.path}: {e}") from e

            try:
                sock.sendall(message.encode("utf-8"))
            except OSError as e:
                raise ChannelUnavailable(f"failed to write to mpv socket {self.path}: {e}") from e

            try:
                raw = sock.recv(1024)
            except OSError as e:
                logger.warning("couldn't read mpv response: %s", e)
                return None
            if not raw:
                logger.warning("mpv closed the connection without a response")
                return None
            return raw.decode("utf-8", errors="replace")
        finally:
            sock.close()
