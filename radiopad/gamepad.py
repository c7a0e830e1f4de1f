"""
Gamepad listener for the Linux joystick API (/dev/input/js*).

The device produces fixed 8-byte little-endian records:

    uint32 time (ms)  int16 value  uint8 type  uint8 number

Only button-press edges (type == JS_EVENT_BUTTON, value == 1) trigger a
playback command. Axis records, releases and the synthetic state records the
driver emits when the device is opened (type | JS_EVENT_INIT) are ignored.
"""
import logging
import os
import select
import struct
import threading
from typing import NamedTuple, Optional

from .config import BUTTON_ACTIONS, VOLUME_STEP
from .errors import DeviceReadFailed, RadioPadError

logger = logging.getLogger(__name__)

JS_EVENT_BUTTON = 0x01
JS_EVENT_AXIS = 0x02
JS_EVENT_INIT = 0x80

EVENT_FORMAT = "<IhBB"
EVENT_SIZE = struct.calcsize(EVENT_FORMAT)


class JoystickEvent(NamedTuple):
    time: int
    value: int
    type: int
    number: int

    @classmethod
    def unpack(cls, raw: bytes) -> "JoystickEvent":
        return cls(*struct.unpack(EVENT_FORMAT, raw))

    @property
    def is_button_press(self) -> bool:
        return self.type == JS_EVENT_BUTTON and self.value == 1


def action_for_button(buttons: dict, number: int) -> Optional[str]:
    for action in BUTTON_ACTIONS:
        if buttons.get(action) == number:
            return action
    return None


class GamepadListener:
    """Reads joystick records on a background thread and drives a PlayerState."""

    def __init__(self, device_path: str, player, buttons: dict, poll_interval: float = 0.25) -> None:
        self.device_path = device_path
        self.player = player
        self.buttons = dict(buttons)
        self.poll_interval = poll_interval
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._handlers = {
            "play": player.play,
            "next": player.next_station,
            "previous": player.prev_station,
            "stop": player.stop,
            "volume_up": lambda: player.adjust_volume(VOLUME_STEP),
            "volume_down": lambda: player.adjust_volume(-VOLUME_STEP),
        }

    def dispatch(self, event: JoystickEvent) -> Optional[str]:
        """
        Run the command bound to a button press. Returns the action name, or
        None if the record was ignored. Command errors are logged only.
        """
        if not event.is_button_press:
            return None
        action = action_for_button(self.buttons, event.number)
        if action is None:
            return None
        try:
            self._handlers[action]()
        except RadioPadError as e:
            logger.warning("Error executing %s for button %d: %s", action, event.number, e)
        except Exception:
            logger.exception("Unexpected error executing %s for button %d", action, event.number)
        return action

    def _read_event(self, fd: int, buf: bytearray) -> Optional[JoystickEvent]:
        """
        Wait up to poll_interval for one full record. Returns None if nothing
        complete arrived so the caller can check the stop flag.
        """
        ready, _, _ = select.select([fd], [], [], self.poll_interval)
        if not ready:
            return None
        try:
            chunk = os.read(fd, EVENT_SIZE - len(buf))
        except OSError as e:
            raise DeviceReadFailed(f"error reading event from {self.device_path}: {e}") from e
        if not chunk:
            raise DeviceReadFailed(f"gamepad device {self.device_path} closed")
        buf.extend(chunk)
        if len(buf) < EVENT_SIZE:
            return None
        event = JoystickEvent.unpack(bytes(buf))
        buf.clear()
        return event

    def run(self) -> None:
        """Blocking read loop. Returns when stopped, raises DeviceReadFailed."""
        try:
            fd = os.open(self.device_path, os.O_RDONLY)
        except OSError as e:
            raise DeviceReadFailed(f"error opening device {self.device_path}: {e}") from e

        logger.info("Gamepad listener started on device: %s", self.device_path)
        buf = bytearray()
        try:
            while not self._stop_event.is_set():
                event = self._read_event(fd, buf)
                if event is not None:
                    self.dispatch(event)
        finally:
            os.close(fd)
        logger.info("Gamepad listener stopped")

    def _run_logged(self) -> None:
        try:
            self.run()
        except DeviceReadFailed as e:
            logger.error("Gamepad listener error: %s", e)

    def start(self) -> threading.Thread:
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run_logged, name="gamepad", daemon=True)
        self._thread.start()
        return self._thread

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop_event.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout if timeout is not None else self.poll_interval * 4)
