"""
Issue classification

Fixed per-metric threshold bands map measured values to Issue severities.
A value at or above a band's cut-off gets that band's severity; the highest
matching band wins, so each metric yields at most one Issue.

Band cut-offs (Low, Medium, High, Critical):

    cpu usage %                    60   75   90   98
    memory usage %                 70   80   90   97
    load average (1m) per core     1.0  1.5  2.0  4.0
    zombie processes               1    5    20   100
    disk busy % (busiest device)   60   75   90   98
    filesystem use % (fullest)     80   90   95   98
    established TCP connections    500  1000 5000 20000
    ping packet loss %             1    10   50   100
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from hostops.core.doctor.models import CheckGroup, Issue, PerformanceMetrics, Severity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Threshold:
    """Severity bands for one metric"""
    metric: str
    category: str
    group: CheckGroup
    bands: Tuple[float, float, float, float]  # Low, Medium, High, Critical cut-offs
    describe: Callable[[float], str]

    def severity_for(self, value: float) -> Optional[Severity]:
        severity = None
        for cut_off, band in zip(self.bands, (Severity.LOW, Severity.MEDIUM, Severity.HIGH, Severity.CRITICAL)):
            if value >= cut_off:
                severity = band
        return severity


THRESHOLDS: List[Threshold] = [
    Threshold(
        "cpu_usage_percent", "cpu", CheckGroup.BASIC_INFO, (60, 75, 90, 98),
        lambda v: f"CPU utilization is {v:.1f}%",
    ),
    Threshold(
        "memory_usage_percent", "memory", CheckGroup.BASIC_INFO, (70, 80, 90, 97),
        lambda v: f"Memory usage is {v:.1f}%",
    ),
    Threshold(
        "load_per_core", "load", CheckGroup.BASIC_INFO, (1.0, 1.5, 2.0, 4.0),
        lambda v: f"1-minute load average is {v:.2f} per CPU core",
    ),
    Threshold(
        "zombie_processes", "processes", CheckGroup.PROCESSES, (1, 5, 20, 100),
        lambda v: f"{int(v)} zombie process(es) found",
    ),
    Threshold(
        "disk_busy_percent", "io", CheckGroup.IO_PERFORMANCE, (60, 75, 90, 98),
        lambda v: f"Busiest disk was doing I/O {v:.1f}% of the sampled time",
    ),
    Threshold(
        "filesystem_max_use_percent", "disk", CheckGroup.IO_PERFORMANCE, (80, 90, 95, 98),
        lambda v: f"Fullest filesystem is {v:.0f}% used",
    ),
    Threshold(
        "established_connections", "network", CheckGroup.NETWORK, (500, 1000, 5000, 20000),
        lambda v: f"{int(v)} established TCP connections",
    ),
    Threshold(
        "ping_packet_loss_percent", "network", CheckGroup.NETWORK, (1, 10, 50, 100),
        lambda v: f"Ping packet loss is {v:.0f}%",
    ),
]

RECOMMENDATIONS: Dict[str, List[str]] = {
    "cpu": [
        "Identify CPU-heavy processes (sys-proc-top sort_by=cpu) and consider throttling or rescheduling them",
    ],
    "memory": [
        "Check the largest memory consumers (sys-proc-top sort_by=memory) for leaks",
        "Consider adding memory or swap if usage stays high",
    ],
    "load": [
        "Run queue exceeds available cores; look for processes stuck in I/O wait or runaway workers",
    ],
    "processes": [
        "Zombie processes indicate parents not reaping children; restart or fix the parent service",
    ],
    "io": [
        "Disk is saturated; find the processes generating I/O and consider faster storage",
    ],
    "disk": [
        "Free space on the fullest filesystem: clean logs, caches and old artifacts",
    ],
    "network": [
        "Inspect connection counts and network reachability; check for connection leaks or an unstable link",
    ],
}


def classify(metrics: PerformanceMetrics, executed_groups: Iterable[CheckGroup]) -> List[Issue]:
    """
    Classify metrics into issues

    Only metrics that were measured and whose group executed are
    considered. Issues are ordered by THRESHOLDS declaration.
    """
    executed = set(executed_groups)
    issues: List[Issue] = []
    for threshold in THRESHOLDS:
        if threshold.group not in executed:
            continue
        value = getattr(metrics, threshold.metric)
        if value is None:
            continue
        severity = threshold.severity_for(value)
        if severity is None:
            continue
        issues.append(Issue(
            category=threshold.category,
            severity=severity,
            description=threshold.describe(value),
            metric=threshold.metric,
            value=value,
        ))
        logger.debug(f"Classified {threshold.metric}={value} as {severity.value}")
    return issues


def recommend(issues: Iterable[Issue]) -> List[str]:
    """Recommendation strings for the issues' categories, in issue order, deduplicated"""
    seen_categories = set()
    recommendations: List[str] = []
    for issue in issues:
        if issue.category in seen_categories:
            continue
        seen_categories.add(issue.category)
        recommendations.extend(RECOMMENDATIONS.get(issue.category, []))
    return recommendations
