from __future__ import annotations

import logging
import queue
import threading
from collections.abc import Callable
from typing import Any, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

Schedule = Callable[[int, Callable[[], None]], Any]
Runner = Callable[[Callable[[], None]], None]
DoneCallback = Callable[[Any, Optional[BaseException]], None]


def start_daemon(target: Callable[[], None]) -> None:
    thread = threading.Thread(target=target, daemon=True)
    thread.start()


class BackgroundJobs:
    """Run blocking calls off the UI thread and deliver results back on it.

    Workers only put messages on a queue; ``poll`` drains it from a scheduled
    callback, so every ``on_done`` runs on the thread that owns ``schedule``.
    """

    def __init__(
        self,
        schedule: Schedule,
        *,
        run_in_background: Runner | None = None,
        poll_ms: int = 50,
    ) -> None:
        self._schedule = schedule
        self._run = run_in_background or start_daemon
        self.poll_ms = poll_ms
        self._queue: queue.Queue = queue.Queue()
        self._pending: Dict[int, DoneCallback] = {}
        self._job_id = 0
        self._polling = False

    @property
    def pending(self) -> int:
        return len(self._pending)

    def submit(self, work: Callable[[], Any], on_done: DoneCallback) -> int:
        self._job_id += 1
        job_id = self._job_id
        self._pending[job_id] = on_done
        self._run(lambda: self._run_job(job_id, work))
        if not self._polling:
            self._polling = True
            self._schedule(self.poll_ms, self.poll)
        return job_id

    def _run_job(self, job_id: int, work: Callable[[], Any]) -> None:
        try:
            result = work()
        except Exception as exc:
            self._queue.put((job_id, None, exc))
            return
        self._queue.put((job_id, result, None))

    def poll(self) -> None:
        try:
            while True:
                try:
                    message: Tuple[int, Any, Optional[BaseException]] = self._queue.get_nowait()
                except queue.Empty:
                    break
                job_id, result, error = message
                on_done = self._pending.pop(job_id, None)
                if on_done is None:
                    continue
                try:
                    on_done(result, error)
                except Exception:
                    logger.exception("Callback of background job %d failed", job_id)
        finally:
            self._polling = bool(self._pending)
            if self._polling:
                self._schedule(self.poll_ms, self.poll)
