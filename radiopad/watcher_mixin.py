import logging


class WatcherMixin:
    def watcher_loop(self) -> None:
        """Background loop watching the mpv process.

        If mpv exits on its own (crash, stream error, killed externally) the
        handle is dropped and status becomes "stopped". Playback is not
        restarted; the next play/next/prev spawns a fresh process.
        """
        self._append_log("Watcher loop started", logging.DEBUG)
        while not self.stop_flag.wait(self.watch_interval):
            with self.lock:
                proc = self.mpv_proc
                if proc is None:
                    continue
                ret = proc.poll()
                if ret is None:
                    continue
                self._append_log(f"mpv exited with code {ret}", logging.WARNING)
                self.mpv_proc = None
                self._mpv_log_thread = None
                self.status = "stopped"
