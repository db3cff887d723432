"""Bounded retry of failed batches on a background worker thread."""

import heapq
import itertools
import logging
import threading
import time
from typing import Callable, List, Optional, Sequence

from .exceptions import DeliveryError, HTTPStatusError

logger = logging.getLogger(__name__)


class RetryPolicy:
    """Exponential backoff with a fixed number of attempts.

    Attempt 1 runs ``delay`` seconds after the original failure, attempt n
    runs ``delay * backoff_factor ** (n - 1)`` seconds after attempt n - 1.
    """

    def __init__(self, max_retries: int = 3, delay: float = 15.0, backoff_factor: float = 2.0):
        self.max_retries = max_retries
        self.delay = delay
        self.backoff_factor = backoff_factor

    def allows(self, attempt: int) -> bool:
        """Whether retry number `attempt` is within the limit."""
        return 1 <= attempt <= self.max_retries

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait before retry number `attempt`."""
        return self.delay * self.backoff_factor ** (attempt - 1)


class RetryJob:
    """A batch waiting for its next delivery attempt."""

    def __init__(self, messages: Sequence[str], timestamp, attempt: int, due: float):
        self.messages = list(messages)
        self.timestamp = timestamp
        self.attempt = attempt
        self.due = due

    def __repr__(self):
        return (f"RetryJob(messages={len(self.messages)}, attempt={self.attempt}, "
                f"due={self.due:.3f})")


class RetryWorker:
    """Consumer thread that re-delivers failed batches once they are due.

    Jobs live in a heap ordered by due time. The thread is started by the
    first scheduled job and stopped by :meth:`shutdown`.
    """

    def __init__(self, deliver: Callable, policy: RetryPolicy, max_pending: int = 100,
                 monotonic: Callable[[], float] = time.monotonic):
        self._deliver = deliver
        self._policy = policy
        self._max_pending = max_pending
        self._monotonic = monotonic
        self._heap: list = []
        self._seq = itertools.count()
        self._cond = threading.Condition()
        self._thread: Optional[threading.Thread] = None
        self._closed = False
        self._drain = False
        self._delivered = 0
        self._abandoned = 0
        self._dropped = 0

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    @property
    def pending(self) -> int:
        with self._cond:
            return len(self._heap)

    @property
    def delivered(self) -> int:
        with self._cond:
            return self._delivered

    @property
    def abandoned(self) -> int:
        with self._cond:
            return self._abandoned

    @property
    def dropped(self) -> int:
        with self._cond:
            return self._dropped

    def pending_jobs(self) -> List[RetryJob]:
        """Snapshot of queued jobs, earliest first."""
        with self._cond:
            return [job for _, _, job in sorted(self._heap)]

    def schedule(self, messages: Sequence[str], timestamp, attempt: int = 1) -> bool:
        """
        Queue a batch for delivery attempt ``attempt``.

        Returns:
            True if the job was queued, False if it was dropped or the
            policy allows no further attempts
        """
        if not self._policy.allows(attempt):
            return False

        with self._cond:
            if self._closed:
                logger.warning("Retry worker is shut down, dropping batch of %d messages",
                               len(messages))
                self._dropped += 1
                return False
            if len(self._heap) >= self._max_pending:
                logger.warning("Retry queue full (%d jobs), dropping batch of %d messages",
                               self._max_pending, len(messages))
                self._dropped += 1
                return False

            delay = self._policy.delay_for(attempt)
            job = RetryJob(messages, timestamp, attempt, self._monotonic() + delay)
            heapq.heappush(self._heap, (job.due, next(self._seq), job))
            logger.debug("Scheduled retry %d/%d of %d messages in %.1fs",
                         attempt, self._policy.max_retries, len(job.messages), delay)

            if self._thread is None:
                self._thread = threading.Thread(
                    target=self._run, name="logshipper-retry", daemon=True
                )
                self._thread.start()
            self._cond.notify()
        return True

    def shutdown(self, drain: bool = False, timeout: Optional[float] = None):
        """
        Stop the worker thread.

        Args:
            drain: Attempt every pending job once before stopping
            timeout: Seconds to wait for the thread to finish
        """
        with self._cond:
            self._closed = True
            self._drain = drain
            thread = self._thread
            self._cond.notify_all()

        if thread is not None:
            thread.join(timeout)
            if thread.is_alive():
                logger.warning("Retry worker did not stop within %s seconds", timeout)

    def _next_job(self) -> Optional[RetryJob]:
        """Block until a job is due; None once shut down."""
        with self._cond:
            while not self._closed:
                if not self._heap:
                    self._cond.wait()
                    continue
                due = self._heap[0][0]
                wait = due - self._monotonic()
                if wait <= 0:
                    return heapq.heappop(self._heap)[2]
                self._cond.wait(timeout=wait)
            return None

    def _run(self):
        """Worker loop: deliver due jobs, then drain or drop leftovers."""
        while True:
            job = self._next_job()
            if job is None:
                break
            self._attempt(job, reschedule=True)

        with self._cond:
            leftovers = [job for _, _, job in sorted(self._heap)]
            self._heap.clear()
            drain = self._drain
            if not drain:
                self._dropped += len(leftovers)

        if drain:
            for job in leftovers:
                self._attempt(job, reschedule=False)
        elif leftovers:
            logger.warning("Dropped %d pending retries on shutdown", len(leftovers))

    def _attempt(self, job: RetryJob, reschedule: bool):
        """Deliver one job, rescheduling status failures while attempts remain."""
        try:
            self._deliver(job.messages, job.timestamp)
        except HTTPStatusError as e:
            if reschedule and self._policy.allows(job.attempt + 1):
                logger.warning("Retry %d failed with status %d, will retry again",
                               job.attempt, e.status_code)
                self.schedule(job.messages, job.timestamp, job.attempt + 1)
                return
            self._give_up(job, e)
        except DeliveryError as e:
            self._give_up(job, e)
        except Exception as e:
            logger.exception("Unexpected error during retry %d of %d messages",
                             job.attempt, len(job.messages))
            self._give_up(job, e)
        else:
            with self._cond:
                self._delivered += 1
            logger.info("Retry %d posted %d messages", job.attempt, len(job.messages))

    def _give_up(self, job: RetryJob, error: Exception):
        """Count and log a job that will not be attempted again."""
        with self._cond:
            self._abandoned += 1
        logger.error("Giving up on batch of %d messages after %d retries: %s",
                     len(job.messages), job.attempt, error)
