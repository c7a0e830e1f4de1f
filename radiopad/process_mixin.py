import logging
import os
import subprocess
import threading
import time

from .errors import ChannelUnavailable, SpawnFailed
from .ipc import stop_command


class ProcessMixin:
    def _kill_player_unlocked(self) -> bool:
        """
        Kill the current mpv process (if any) and wait for it to exit, so a
        new instance never races the old one for the IPC socket path.
        Returns False, keeping the handle, if the process is still alive.
        Caller must hold self.lock.
        """
        proc = self.mpv_proc
        if proc is not None and proc.poll() is None:
            self._append_log(f"Killing mpv process (pid {proc.pid})")
            try:
                proc.kill()
                proc.wait(timeout=5)
            except subprocess.TimeoutExpired:
                self._append_log(f"mpv (pid {proc.pid}) did not exit after kill", logging.ERROR)
                return False
            except OSError as e:
                self._append_log(f"Error while killing mpv: {e!r}", logging.WARNING)
                if proc.poll() is None:
                    return False
        self.mpv_proc = None
        self._mpv_log_thread = None
        return True

    def _remove_socket_unlocked(self) -> None:
        try:
            os.remove(self.socket_path)
        except FileNotFoundError:
            pass
        except OSError as e:
            self._append_log(f"Could not remove stale socket {self.socket_path}: {e!r}", logging.WARNING)

    def _mpv_log_reader(self, proc: subprocess.Popen) -> None:
        """
        Read mpv stdout as bytes and push lines into our log buffer.
        """
        out = proc.stdout
        if out is None:
            return
        try:
            for raw in iter(out.readline, b""):
                line = raw.decode("utf-8", errors="replace").rstrip()
                if line:
                    self._append_log(f"[mpv] {line}", logging.DEBUG)
        except (OSError, ValueError) as e:
            # ValueError: pipe closed underneath us after kill()
            self._append_log(f"mpv log reader stopped: {e!r}", logging.DEBUG)

    def _wait_for_socket_unlocked(self, proc: subprocess.Popen) -> bool:
        """
        Poll until mpv has created its IPC socket, for at most
        socket_wait_timeout seconds. Returns False on timeout or if mpv
        exited before creating it.
        """
        deadline = time.monotonic() + self.socket_wait_timeout
        while True:
            if os.path.exists(self.socket_path):
                return True
            if proc.poll() is not None:
                self._append_log(
                    f"mpv exited with code {proc.returncode} before opening {self.socket_path}",
                    logging.WARNING,
                )
                return False
            if time.monotonic() >= deadline:
                self._append_log(
                    f"mpv socket {self.socket_path} did not appear within "
                    f"{self.socket_wait_timeout:.1f}s",
                    logging.WARNING,
                )
                return False
            time.sleep(self.socket_poll_interval)

    def start_player(self, url: str) -> None:
        """
        Replace the running mpv (if any) with a new one playing url.

        The whole kill/spawn/wait sequence runs under self.lock. The current
        volume is re-applied to the new process since mpv starts at its own
        default. Raises SpawnFailed if mpv cannot be launched.
        """
        with self.lock:
            if not self._kill_player_unlocked():
                raise SpawnFailed(
                    f"failed to start mpv: previous mpv (pid {self.mpv_proc.pid}) is still running"
                )
            self._remove_socket_unlocked()

            cmd = [
                self.mpv_path,
                "--no-video",
                "--idle=yes",
                f"--input-ipc-server={self.socket_path}",
                url,
            ]
            self._append_log("Launching mpv: " + " ".join(cmd))
            try:
                proc = subprocess.Popen(
                    cmd,
                    stdin=subprocess.DEVNULL,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.STDOUT,
                    bufsize=0,
                )
            except FileNotFoundError as e:
                self.status = "stopped"
                self._append_log(f"ERROR: mpv executable not found: {self.mpv_path}", logging.ERROR)
                raise SpawnFailed(f"failed to start mpv: executable not found: {self.mpv_path}") from e
            except (OSError, ValueError) as e:
                # ValueError: Popen rejects arguments with embedded NUL bytes
                self.status = "stopped"
                self._append_log(f"ERROR starting mpv: {e!r}", logging.ERROR)
                raise SpawnFailed(f"failed to start mpv: {e}") from e

            self.mpv_proc = proc
            if proc.stdout is not None:
                self._mpv_log_thread = threading.Thread(
                    target=self._mpv_log_reader,
                    args=(proc,),
                    daemon=True,
                )
                self._mpv_log_thread.start()

            if not self._wait_for_socket_unlocked(proc) and proc.poll() is not None:
                self.mpv_proc = None
                self._mpv_log_thread = None
                self.status = "stopped"
                raise SpawnFailed(f"mpv exited with code {proc.returncode} right after starting")
            if self.settle_delay > 0:
                time.sleep(self.settle_delay)
            self.status = "playing"

            try:
                self._apply_volume_unlocked()
            except ChannelUnavailable as e:
                self._append_log(f"Warning: couldn't set initial volume: {e}", logging.WARNING)

    def stop_player(self) -> None:
        """Tell mpv to stop playback. The process stays alive and idle."""
        with self.lock:
            self._append_log("Stopping playback")
            self.channel.send(stop_command())
            self.status = "stopped"

    def player_alive(self) -> bool:
        with self.lock:
            return self.mpv_proc is not None and self.mpv_proc.poll() is None

    def shutdown(self) -> None:
        """Kill mpv and clean up its socket. Safe to call more than once."""
        self.stop_flag.set()
        with self.lock:
            if self.mpv_proc is not None:
                self._append_log("Shutting down mpv")
            self._kill_player_unlocked()
            self._remove_socket_unlocked()
            self.status = "stopped"
