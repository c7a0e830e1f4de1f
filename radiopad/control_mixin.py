from .ipc import set_volume_command
from .stations import Station


class ControlMixin:
    def _apply_volume_unlocked(self) -> None:
        """
        Send the current volume to mpv.
        Caller must hold self.lock.
        """
        self.channel.send(set_volume_command(self.volume))

    def current_station(self) -> Station:
        with self.lock:
            return self.stations[self.current_index]

    def play(self) -> Station:
        """(Re)start the selected station without moving the selection."""
        with self.lock:
            station = self.stations[self.current_index]
            self._append_log(f"Playing station: {station.name}")
            self.start_player(station.url)
            return station

    def next_station(self) -> Station:
        with self.lock:
            self.current_index = (self.current_index + 1) % len(self.stations)
            station = self.stations[self.current_index]
            self._append_log(f"Playing next station: {station.name}")
            self.start_player(station.url)
            return station

    def prev_station(self) -> Station:
        with self.lock:
            self.current_index = (self.current_index - 1 + len(self.stations)) % len(self.stations)
            station = self.stations[self.current_index]
            self._append_log(f"Playing previous station: {station.name}")
            self.start_player(station.url)
            return station

    def stop(self) -> None:
        self.stop_player()

    def adjust_volume(self, delta: int) -> int:
        """
        Change volume by delta, saturating at 0 and 100, and push it to mpv.

        The new value is kept even if mpv cannot be reached; it is applied to
        the next process that starts.
        """
        with self.lock:
            self.volume = max(0, min(100, self.volume + int(delta)))
            self._append_log(f"Volume set to {self.volume}")
            self._apply_volume_unlocked()
            return self.volume

    def get_status(self) -> dict:
        with self.lock:
            return {
                "current_station": self.stations[self.current_index].name,
                "volume": self.volume,
            }

    def get_state(self) -> dict:
        with self.lock:
            proc = self.mpv_proc
            alive = proc is not None and proc.poll() is None
            return {
                "status": self.status,
                "current_index": self.current_index,
                "current_station": self.stations[self.current_index].to_dict(),
                "volume": self.volume,
                "station_count": len(self.stations),
                "mpv_pid": proc.pid if alive else None,
                "mpv_path": self.mpv_path,
                "socket_path": self.socket_path,
            }
