"""Tests for Budget and collect_samples"""

import pytest

from hostops.core.doctor.sampling import Budget, SampleFailed, collect_samples


def counter():
    state = {"n": 0}

    def fetch():
        state["n"] += 1
        return state["n"]

    return fetch


class TestBudget:
    """Test Budget"""

    def test_remaining_and_exhausted(self, clock):
        budget = Budget(5, clock)
        assert budget.remaining() == 5
        clock.advance(2)
        assert budget.elapsed() == 2
        assert budget.remaining() == 3
        clock.advance(4)
        assert budget.remaining() == 0
        assert budget.exhausted()


class TestCollectSamples:
    """Test collect_samples"""

    def test_collects_requested_count(self, clock):
        series = collect_samples(counter(), count=3, interval=1, budget=Budget(10, clock), sleep=clock.sleep)

        assert [s.value for s in series.samples] == [1, 2, 3]
        assert [s.taken_at for s in series.samples] == [1000.0, 1001.0, 1002.0]
        assert series.span_seconds() == 2.0
        assert not series.truncated
        assert clock.sleeps == [1, 1]

    def test_single_sample_never_sleeps(self, clock):
        series = collect_samples(counter(), count=1, interval=1, budget=Budget(1, clock), sleep=clock.sleep)
        assert len(series.samples) == 1
        assert clock.sleeps == []

    def test_truncates_when_interval_does_not_fit(self, clock):
        series = collect_samples(counter(), count=3, interval=2, budget=Budget(3, clock), sleep=clock.sleep)

        assert [s.value for s in series.samples] == [1, 2]
        assert series.truncated
        assert series.reason == "time budget exhausted"
        assert series.requested == 3

    def test_first_failure_propagates(self, clock):
        def fetch():
            raise SampleFailed("sys-cpu: boom")

        with pytest.raises(SampleFailed):
            collect_samples(fetch, count=2, interval=1, budget=Budget(5, clock), sleep=clock.sleep)

    def test_later_failure_keeps_earlier_samples(self, clock):
        values = iter([10])

        def fetch():
            try:
                return next(values)
            except StopIteration:
                raise SampleFailed("sys-iostat: gone")

        series = collect_samples(fetch, count=3, interval=1, budget=Budget(5, clock), sleep=clock.sleep)

        assert [s.value for s in series.samples] == [10]
        assert series.truncated
        assert series.reason == "sys-iostat: gone"

    def test_exhausted_budget_takes_nothing(self, clock):
        budget = Budget(1, clock)
        clock.advance(1)
        series = collect_samples(counter(), count=2, interval=0, budget=budget, sleep=clock.sleep)
        assert series.samples == []
        assert series.truncated
