"""A pool of worker threads that keeps frames in capture order."""

import logging
import threading
import time
from collections.abc import Callable
from typing import Any, Optional

__all__ = ["Worker", "WorkersPool"]

_log = logging.getLogger(__name__)


class Worker:
    """One thread of a pool and the job object it owns."""

    def __init__(self, pool: "WorkersPool", number: int, name: str, job: Any) -> None:
        self.pool = pool
        self.number = number
        self.name = name
        self.job = job
        self.last_job_time = 0.0
        self.job_start_ts = 0.0
        self.job_timely = False
        self.job_failed = False
        self._has_job = False
        self._cond = threading.Condition()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)

    def __repr__(self) -> str:
        return f"Worker({self.name!r})"

    @property
    def has_job(self) -> bool:
        """True while a job is assigned and not yet finished."""
        return self._has_job

    def _give_job(self) -> None:
        with self._cond:
            self._has_job = True
            self._cond.notify()

    def _run(self) -> None:
        pool = self.pool
        _log.debug("Worker %s started", self.name)
        while not pool.stopped:
            with self._cond:
                self._cond.wait_for(lambda: self._has_job)

            if not pool.stopped:
                start = time.monotonic()
                try:
                    ok = bool(pool.run_job(self))
                except Exception:
                    _log.exception("Worker %s: job crashed", self.name)
                    ok = False
                self.job_failed = not ok
                if ok:
                    self.job_start_ts = start
                    self.last_job_time = time.monotonic() - start
                with self._cond:
                    self._has_job = False

            pool._release_worker()
        _log.debug("Worker %s finished", self.name)


class WorkersPool:
    """Runs jobs on ``n_workers`` threads and hands results back in order.

    ``job_init`` builds the job object of each worker, ``run_job`` does the
    work on a worker and returns whether it succeeded, ``job_destroy``
    releases a job object when the pool is closed.
    """

    def __init__(
        self,
        name: str,
        wr_prefix: str,
        n_workers: int,
        desired_interval: float,
        job_init: Callable[[], Any],
        run_job: Callable[[Worker], bool],
        job_destroy: Optional[Callable[[Any], None]] = None,
    ) -> None:
        _log.info("Creating pool %s with %d workers ...", name, n_workers)
        self.name = name
        self.desired_interval = desired_interval
        self.run_job = run_job
        self.job_destroy = job_destroy
        self.approx_job_time = 0.0
        self.stopped = False
        self._closed = False
        self._queue: list[Worker] = []
        self._free_cond = threading.Condition()
        self._free_workers = 0
        self.workers = [
            Worker(self, number, f"{wr_prefix}-{number}", job_init()) for number in range(n_workers)
        ]
        for worker in self.workers:
            worker._thread.start()
            with self._free_cond:
                self._free_workers += 1

    def __enter__(self) -> "WorkersPool":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _release_worker(self) -> None:
        with self._free_cond:
            self._free_workers += 1
            self._free_cond.notify()

    def wait(self) -> Worker:
        """Block until a worker is free and return it.

        The worker that was given a job first is preferred; its result is
        then marked timely. Otherwise the first free worker is returned with
        ``job_timely`` cleared.
        """
        with self._free_cond:
            self._free_cond.wait_for(lambda: self._free_workers > 0)

        if self._queue and not self._queue[0].has_job:
            worker = self._queue.pop(0)
            worker.job_timely = True
            return worker

        worker = next((wr for wr in self.workers if not wr.has_job), None)
        if worker is None:
            raise RuntimeError(f"Pool {self.name}: no free worker despite free count")
        worker.job_timely = False
        return worker

    def assign(self, worker: Worker) -> None:
        """Start the job of ``worker`` and put it last in the result order."""
        if worker in self._queue:
            self._queue.remove(worker)
        self._queue.append(worker)
        worker._give_job()
        with self._free_cond:
            self._free_workers -= 1

    def get_fluency_delay(self, worker: Worker) -> float:
        """Update the average job time and return the delay before the next grab."""
        approx_job_time = self.approx_job_time * 0.9 + worker.last_job_time * 0.1
        _log.debug(
            "Correcting pool's %s approx_job_time: %.3f -> %.3f (last_job_time=%.3f)",
            self.name, self.approx_job_time, approx_job_time, worker.last_job_time,
        )
        self.approx_job_time = approx_job_time

        min_delay = self.approx_job_time / len(self.workers)
        if self.desired_interval > 0 and min_delay > 0 and self.desired_interval > min_delay:
            return self.desired_interval
        return min_delay

    def close(self) -> None:
        """Stop every worker, wait for it and destroy its job."""
        if self._closed:
            return
        self._closed = True
        _log.info("Destroying workers pool %s ...", self.name)
        self.stopped = True
        for worker in self.workers:
            worker._give_job()
            worker._thread.join()
            if self.job_destroy is not None:
                self.job_destroy(worker.job)