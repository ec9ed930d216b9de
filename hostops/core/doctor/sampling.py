"""
Time budget and sequential sampling

Samples of one metric are taken strictly one after another, spaced by the
sampling interval, so consecutive samples can be differenced. The budget is
checked before every sleep and every sample; whatever was collected before
it ran out is kept.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, List, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Clock = Callable[[], float]
Sleep = Callable[[float], None]


class Budget:
    """Wall-clock budget for one diagnostic run"""

    def __init__(self, seconds: float, clock: Clock):
        self.seconds = seconds
        self.clock = clock
        self.started = clock()

    def elapsed(self) -> float:
        return self.clock() - self.started

    def remaining(self) -> float:
        return max(0.0, self.seconds - self.elapsed())

    def exhausted(self) -> bool:
        return self.remaining() <= 0


@dataclass
class Sample(Generic[T]):
    """One timestamped sample"""
    taken_at: float
    value: T


@dataclass
class SampleSeries(Generic[T]):
    """Samples collected for one metric"""
    samples: List[Sample] = field(default_factory=list)
    requested: int = 0
    truncated: bool = False
    reason: Optional[str] = None

    @property
    def first(self) -> Optional[Sample]:
        return self.samples[0] if self.samples else None

    @property
    def last(self) -> Optional[Sample]:
        return self.samples[-1] if self.samples else None

    def span_seconds(self) -> float:
        if len(self.samples) < 2:
            return 0.0
        return self.samples[-1].taken_at - self.samples[0].taken_at


class SampleFailed(Exception):
    """A sampling call failed; carries the capability error string"""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


def collect_samples(
    fetch: Callable[[], Any],
    count: int,
    interval: float,
    budget: Budget,
    sleep: Sleep,
) -> SampleSeries:
    """
    Take up to ``count`` samples spaced ``interval`` seconds apart

    Stops early (truncated=True) when the budget cannot cover the next
    interval or is exhausted before a sample. A failure on the first sample
    propagates as SampleFailed; a later failure ends the series with the
    samples gathered so far.
    """
    series: SampleSeries = SampleSeries(requested=count)
    for index in range(count):
        if index > 0:
            if budget.remaining() < interval:
                series.truncated = True
                series.reason = "time budget exhausted"
                break
            sleep(interval)
        if budget.exhausted():
            series.truncated = True
            series.reason = "time budget exhausted"
            break

        try:
            value = fetch()
        except SampleFailed as e:
            if not series.samples:
                raise
            series.truncated = True
            series.reason = e.reason
            break
        series.samples.append(Sample(taken_at=budget.clock(), value=value))

    logger.debug(
        f"Collected {len(series.samples)}/{count} samples"
        + (f" (truncated: {series.reason})" if series.truncated else "")
    )
    return series
