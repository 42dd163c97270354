"""Fixed-size worker pool feeding accepted connections to a handler."""

from __future__ import annotations

import logging
import queue
import socket
import threading
import time
from collections.abc import Callable

logger = logging.getLogger(__name__)

ClientAddress = tuple[str, int]
ConnectionJob = tuple[socket.socket, ClientAddress]
ConnectionHandler = Callable[[socket.socket, ClientAddress], None]

_POLL_INTERVAL_SECS = 0.2


class ThreadPool:
    """Worker threads pulling connections from a bounded queue.

    ``submit`` never blocks: a full queue is reported to the caller so the
    accept loop can answer 503 instead of stalling.
    """

    def __init__(self, worker_count: int, queue_size: int, handler: ConnectionHandler) -> None:
        if worker_count <= 0:
            raise ValueError("worker_count must be positive")
        if queue_size <= 0:
            raise ValueError("queue_size must be positive")

        self._handler = handler
        self._worker_count = worker_count
        self._jobs: queue.Queue[ConnectionJob | None] = queue.Queue(maxsize=queue_size)
        self._workers: list[threading.Thread] = []
        self._stopping = threading.Event()
        self._busy = 0
        self._idle = threading.Condition()
        self._shutdown_lock = threading.Lock()
        self._shut_down = False

    @property
    def worker_count(self) -> int:
        return self._worker_count

    @property
    def threads(self) -> tuple[threading.Thread, ...]:
        return tuple(self._workers)

    def start(self) -> None:
        for index in range(self._worker_count):
            worker = threading.Thread(
                target=self._run_worker,
                name=f"static-worker-{index}",
                daemon=True,
            )
            self._workers.append(worker)
            worker.start()

    def submit(self, client_socket: socket.socket, address: ClientAddress) -> bool:
        if self._stopping.is_set():
            return False
        try:
            self._jobs.put_nowait((client_socket, address))
        except queue.Full:
            logger.warning("Connection queue full; rejecting %s", address[0])
            return False
        return True

    def wait_for_drain(self, timeout: float | None = None) -> bool:
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._idle:
            while self._busy or not self._jobs.empty():
                if deadline is None:
                    self._idle.wait(timeout=_POLL_INTERVAL_SECS)
                    continue
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return False
                self._idle.wait(timeout=min(remaining, _POLL_INTERVAL_SECS))
        return True

    def shutdown(self, *, graceful: bool = False, timeout: float | None = None) -> None:
        with self._shutdown_lock:
            if self._shut_down:
                return
            self._shut_down = True

        if graceful:
            self.wait_for_drain(timeout=timeout)

        self._stopping.set()
        for _ in self._workers:
            try:
                self._jobs.put_nowait(None)
            except queue.Full:
                break

        for worker in self._workers:
            worker.join(timeout=1.0)
        self._close_pending()

    def _close_pending(self) -> None:
        """Close connections accepted but never picked up by a worker."""
        while True:
            try:
                job = self._jobs.get_nowait()
            except queue.Empty:
                return
            self._jobs.task_done()
            if job is None:
                continue
            client_socket, address = job
            logger.debug("Closing unserved connection from %s", address[0])
            client_socket.close()

    def _run_worker(self) -> None:
        while not self._stopping.is_set():
            try:
                job = self._jobs.get(timeout=_POLL_INTERVAL_SECS)
            except queue.Empty:
                continue
            if job is None:
                self._jobs.task_done()
                return

            client_socket, address = job
            with self._idle:
                self._busy += 1
            try:
                self._handler(client_socket, address)
            except Exception:
                logger.exception("Connection handler failed for %s", address[0])
            finally:
                with self._idle:
                    self._busy -= 1
                    self._idle.notify_all()
                self._jobs.task_done()
