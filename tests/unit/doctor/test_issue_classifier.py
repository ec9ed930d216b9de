"""Tests for issue classification"""

import pytest

from hostops.core.doctor import CheckGroup, PerformanceMetrics, Severity, classify, recommend
from hostops.core.doctor.classifier import THRESHOLDS, RECOMMENDATIONS

ALL_GROUPS = [CheckGroup.BASIC_INFO, CheckGroup.PROCESSES, CheckGroup.IO_PERFORMANCE, CheckGroup.NETWORK]


class TestClassify:
    """Test classify()"""

    def test_cpu_95_is_one_high_issue(self):
        issues = classify(PerformanceMetrics(cpu_usage_percent=95.0), [CheckGroup.BASIC_INFO])

        assert len(issues) == 1
        issue = issues[0]
        assert issue.category == "cpu"
        assert issue.severity == Severity.HIGH
        assert issue.description == "CPU utilization is 95.0%"
        assert issue.metric == "cpu_usage_percent"
        assert issue.value == 95.0

    @pytest.mark.parametrize("value,expected", [
        (59.9, None),
        (60, Severity.LOW),
        (74.9, Severity.LOW),
        (75, Severity.MEDIUM),
        (90, Severity.HIGH),
        (98, Severity.CRITICAL),
        (100, Severity.CRITICAL),
    ])
    def test_cpu_bands(self, value, expected):
        issues = classify(PerformanceMetrics(cpu_usage_percent=value), [CheckGroup.BASIC_INFO])
        if expected is None:
            assert issues == []
        else:
            assert [i.severity for i in issues] == [expected]

    def test_metrics_of_groups_that_did_not_run_are_ignored(self):
        metrics = PerformanceMetrics(zombie_processes=50, filesystem_max_use_percent=99)
        assert classify(metrics, [CheckGroup.BASIC_INFO]) == []

    def test_missing_metrics_are_ignored(self):
        assert classify(PerformanceMetrics(), ALL_GROUPS) == []

    def test_healthy_values_produce_no_issues(self):
        metrics = PerformanceMetrics(
            cpu_usage_percent=12.0,
            memory_usage_percent=40.0,
            load_per_core=0.3,
            zombie_processes=0,
            disk_busy_percent=5.0,
            filesystem_max_use_percent=50.0,
            established_connections=20,
            ping_packet_loss_percent=0.0,
        )
        assert classify(metrics, ALL_GROUPS) == []

    def test_one_issue_per_metric_in_declaration_order(self):
        metrics = PerformanceMetrics(
            ping_packet_loss_percent=100.0,
            memory_usage_percent=91.0,
            zombie_processes=3,
        )
        issues = classify(metrics, ALL_GROUPS)
        assert [(i.category, i.severity) for i in issues] == [
            ("memory", Severity.HIGH),
            ("processes", Severity.LOW),
            ("network", Severity.CRITICAL),
        ]

    def test_every_threshold_has_recommendations(self):
        for threshold in THRESHOLDS:
            assert RECOMMENDATIONS[threshold.category]

    def test_bands_are_ascending(self):
        for threshold in THRESHOLDS:
            assert list(threshold.bands) == sorted(threshold.bands)


class TestRecommend:
    """Test recommend()"""

    def test_deduplicates_by_category(self):
        metrics = PerformanceMetrics(established_connections=6000, ping_packet_loss_percent=20.0)
        issues = classify(metrics, [CheckGroup.NETWORK])
        assert len(issues) == 2
        assert recommend(issues) == RECOMMENDATIONS["network"]

    def test_no_issues_no_recommendations(self):
        assert recommend([]) == []
