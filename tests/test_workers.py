import threading

import pytest

from mjpegstreamer.workers import WorkersPool


def _blocking_pool(n_workers, results=None, outcome=True, desired_interval=0.0):
    def job_init():
        return {"go": threading.Event(), "done": threading.Event()}

    def run_job(worker):
        worker.job["go"].wait(5)
        if results is not None:
            results.append(worker.name)
        worker.job["done"].set()
        return outcome

    return WorkersPool("test", "wr", n_workers, desired_interval, job_init, run_job)


def test_workers_named_with_prefix():
    with _blocking_pool(3) as pool:
        assert [wr.name for wr in pool.workers] == ["wr-0", "wr-1", "wr-2"]
        assert [wr.number for wr in pool.workers] == [0, 1, 2]


def test_first_wait_is_not_timely():
    with _blocking_pool(2) as pool:
        worker = pool.wait()
        assert worker is pool.workers[0]
        assert worker.job_timely is False


def test_successful_job_records_timing():
    with _blocking_pool(1) as pool:
        worker = pool.wait()
        pool.assign(worker)
        worker.job["go"].set()
        assert pool.wait() is worker
        assert worker.job_failed is False
        assert worker.last_job_time >= 0
        assert worker.job_start_ts > 0


def test_failed_job_keeps_old_timing():
    with _blocking_pool(1, outcome=False) as pool:
        worker = pool.wait()
        pool.assign(worker)
        worker.job["go"].set()
        assert pool.wait() is worker
        assert worker.job_failed is True
        assert worker.job_start_ts == 0.0
        assert worker.last_job_time == 0.0


def test_crashing_job_counts_as_failure():
    def run_job(worker):
        raise ValueError("boom")

    with WorkersPool("crash", "c", 1, 0.0, dict, run_job) as pool:
        worker = pool.wait()
        pool.assign(worker)
        assert pool.wait() is worker
        assert worker.job_failed is True


def test_fluency_delay_spreads_over_workers():
    with _blocking_pool(2) as pool:
        worker = pool.workers[0]
        worker.last_job_time = 1.0
        delay = pool.get_fluency_delay(worker)
        assert delay == pytest.approx(pool.approx_job_time / 2)
        assert pool.approx_job_time == pytest.approx(0.1)


def test_fluency_delay_uses_desired_interval_when_longer():
    with _blocking_pool(2, desired_interval=10.0) as pool:
        worker = pool.workers[0]
        worker.last_job_time = 1.0
        assert pool.get_fluency_delay(worker) == 10.0


def test_fluency_delay_ignores_desired_interval_without_timing():
    with _blocking_pool(2, desired_interval=10.0) as pool:
        assert pool.get_fluency_delay(pool.workers[0]) == 0.0


def test_fluency_average_moves_towards_last_time():
    with _blocking_pool(1) as pool:
        worker = pool.workers[0]
        worker.last_job_time = 2.0
        previous = pool.approx_job_time
        for _ in range(5):
            pool.get_fluency_delay(worker)
            assert previous < pool.approx_job_time < worker.last_job_time
            previous = pool.approx_job_time


def test_close_destroys_every_job_and_stops_threads():
    destroyed = []
    jobs = iter(range(100))
    pool = WorkersPool("close", "x", 3, 0.0, lambda: next(jobs), lambda wr: True, destroyed.append)
    pool.close()
    assert destroyed == [0, 1, 2]
    assert not any(t.name.startswith("x-") for t in threading.enumerate())
    pool.close()
    assert destroyed == [0, 1, 2]