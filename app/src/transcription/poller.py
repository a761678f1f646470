"""
Supervised background polling.

Every outstanding provider job gets one task on a bounded thread pool.
Each task receives its own ``threading.Event`` which it must wait on
between status checks, so a task can be cancelled individually or all
at once when the application shuts down.
"""

import functools
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Dict, Tuple

logger = logging.getLogger(__name__)

PollTarget = Callable[..., object]


class PollSupervisor:
    """Registry of running poll tasks keyed by provider job id."""

    def __init__(self, max_workers: int = 32) -> None:
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="poller"
        )
        self._tasks: Dict[str, Tuple[Future, threading.Event]] = {}
        self._lock = threading.Lock()
        self._closed = False

    def schedule(self, provider_job_id: str, target: PollTarget, *args) -> bool:
        """
        Run ``target(*args, cancel_event)`` in the pool.

        Returns False if a task for ``provider_job_id`` is already running.
        """
        with self._lock:
            if self._closed:
                raise RuntimeError("PollSupervisor has been shut down")
            if provider_job_id in self._tasks:
                logger.warning(
                    "Poll task for provider job %s already running; ignoring",
                    provider_job_id,
                )
                return False
            cancel_event = threading.Event()
            future = self._executor.submit(target, *args, cancel_event)
            self._tasks[provider_job_id] = (future, cancel_event)

        future.add_done_callback(functools.partial(self._on_done, provider_job_id))
        logger.info("Poll task scheduled for provider job %s", provider_job_id)
        return True

    def cancel(self, provider_job_id: str) -> bool:
        """Signal one task to stop at its next wait. False if unknown."""
        with self._lock:
            entry = self._tasks.get(provider_job_id)
        if entry is None:
            return False
        future, cancel_event = entry
        cancel_event.set()
        future.cancel()
        logger.info("Poll task for provider job %s cancelled", provider_job_id)
        return True

    def active_count(self) -> int:
        with self._lock:
            return len(self._tasks)

    def is_active(self, provider_job_id: str) -> bool:
        with self._lock:
            return provider_job_id in self._tasks

    def shutdown(self, wait: bool = True) -> None:
        """Cancel every task and stop the pool."""
        with self._lock:
            self._closed = True
            entries = list(self._tasks.values())
        for _, cancel_event in entries:
            cancel_event.set()
        logger.info("Shutting down poll supervisor (%d active tasks)", len(entries))
        self._executor.shutdown(wait=wait, cancel_futures=True)

    # ── Internals ────────────────────────────────────────────────────────

    def _on_done(self, provider_job_id: str, future: Future) -> None:
        with self._lock:
            self._tasks.pop(provider_job_id, None)
        if future.cancelled():
            logger.debug("Poll task for provider job %s never started", provider_job_id)
            return
        exc = future.exception()
        if exc is not None:
            logger.error(
                "Poll task for provider job %s crashed: %s",
                provider_job_id, exc, exc_info=exc,
            )
