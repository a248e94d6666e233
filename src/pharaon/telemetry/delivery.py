# src/pharaon/telemetry/delivery.py
"""Background delivery for network sinks.

DeliveryWorker makes sink calls fire-and-forget: the caller's thread only
puts a job on a bounded queue, and a single background thread runs the jobs
in order.

Design principles:
- The caller never blocks on network I/O and never sees delivery errors
- A failing job is logged and counted, never retried
- A full queue drops the new job (counted, aggregate logging every 100)
- Shutdown via sentinel so queued jobs are delivered before the thread exits

Thread Safety:
    submit() may be called from any thread. Counters written by both
    threads are protected by _counter_lock.
"""

import queue
import threading
from collections.abc import Callable
from typing import Any

import structlog

logger = structlog.get_logger(__name__)

Job = Callable[[], object]


class DeliveryWorker:
    """Single background thread running delivery jobs in submission order.

    Example:
        worker = DeliveryWorker("http")
        worker.submit(lambda: client.post(url, json=payload))
        worker.flush()
        worker.close()
    """

    _LOG_INTERVAL = 100  # Log every 100 drops

    def __init__(self, name: str, *, queue_size: int = 1000) -> None:
        if queue_size < 1:
            raise ValueError(f"queue_size must be >= 1, got {queue_size}")
        self._name = name
        self._jobs_completed = 0
        self._jobs_failed = 0
        self._jobs_dropped = 0
        self._last_logged_drop_count = 0
        self._counter_lock = threading.Lock()
        self._shutdown_event = threading.Event()
        self._ready = threading.Event()
        self._queue: queue.Queue[Job | None] = queue.Queue(maxsize=queue_size)

        # Daemon: a host that never calls close() must still be able to exit
        self._thread = threading.Thread(
            target=self._run,
            name=f"pharaon-delivery-{name}",
            daemon=True,
        )
        self._thread.start()
        # Wait for thread to be ready (prevents startup race)
        self._ready.wait(timeout=5.0)

    def _run(self) -> None:
        """Background thread: consume queue and run jobs until the sentinel arrives."""
        self._ready.set()
        while True:
            job = self._queue.get()
            try:
                if job is None:  # Shutdown sentinel
                    break
                job()
                with self._counter_lock:
                    self._jobs_completed += 1
            except Exception as e:
                # Log but don't crash - a failed delivery must not kill the worker
                with self._counter_lock:
                    self._jobs_failed += 1
                logger.warning("Delivery job failed", sink=self._name, error=str(e))
            finally:
                # ALWAYS call task_done() to prevent join() hangs
                self._queue.task_done()

    def submit(self, job: Job) -> bool:
        """Queue a job without blocking.

        Returns:
            True if queued, False if dropped (closed, dead thread or full queue).
        """
        if self._shutdown_event.is_set():
            logger.debug("Delivery worker closed, dropping job", sink=self._name)
            return False

        if not self._thread.is_alive():
            logger.error("Delivery thread died, dropping job", sink=self._name)
            self._count_drop()
            return False

        try:
            self._queue.put_nowait(job)
        except queue.Full:
            self._count_drop()
            return False
        return True

    def _count_drop(self) -> None:
        with self._counter_lock:
            self._jobs_dropped += 1
            if self._jobs_dropped - self._last_logged_drop_count >= self._LOG_INTERVAL:
                logger.warning(
                    "Delivery jobs dropped due to backpressure",
                    sink=self._name,
                    dropped_since_last_log=self._jobs_dropped - self._last_logged_drop_count,
                    dropped_total=self._jobs_dropped,
                )
                self._last_logged_drop_count = self._jobs_dropped

    @property
    def health_metrics(self) -> dict[str, Any]:
        """Snapshot of delivery health. Approximately consistent."""
        with self._counter_lock:
            return {
                "jobs_completed": self._jobs_completed,
                "jobs_failed": self._jobs_failed,
                "jobs_dropped": self._jobs_dropped,
                "queue_depth": self._queue.qsize(),
                "queue_maxsize": self._queue.maxsize,
            }

    def flush(self) -> None:
        """Block until every queued job has run."""
        if not self._shutdown_event.is_set() and self._thread.is_alive():
            self._queue.join()

    def close(self) -> None:
        """Deliver queued jobs, then stop the thread. Idempotent.

        The sentinel is sent FIRST; the thread processes everything queued
        ahead of it and exits. If the queue is full, jobs are discarded until
        the sentinel fits.
        """
        if self._shutdown_event.is_set():
            return
        self._shutdown_event.set()

        sentinel_sent = False
        for _ in range(self._queue.maxsize + 10):
            try:
                self._queue.put(None, timeout=0.1)
                sentinel_sent = True
                break
            except queue.Full:
                try:
                    self._queue.get_nowait()
                    self._queue.task_done()
                    self._count_drop()
                except queue.Empty:
                    pass

        if not sentinel_sent:
            logger.error("Failed to send shutdown sentinel - delivery thread may hang", sink=self._name)

        self._thread.join(timeout=5.0)
        if self._thread.is_alive():
            logger.error("Delivery thread did not exit cleanly within timeout", sink=self._name)

        logger.debug("Delivery worker closed", sink=self._name, **self.health_metrics)
