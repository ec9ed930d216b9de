"""Tests for DiagnosticOrchestrator against a scripted Linux host"""

import pytest

from hostops.core.capabilities import ExecutorDispatch
from hostops.core.capabilities.runner_base.simulated import ScriptedResponse
from hostops.core.config import HostOpsConfig
from hostops.core.doctor import (
    BudgetPolicy,
    CheckGroup,
    DiagnosticBudgetExceeded,
    DiagnosticConfig,
    DiagnosticDepth,
    DiagnosticOrchestrator,
    FatalConfiguration,
    GroupStatus,
    Severity,
)
from hostops.core.doctor.orchestrator import cpu_usage_from_samples, io_rates_from_samples
from hostops.core.doctor.sampling import Sample, SampleSeries

BUSY_CPU_SAMPLES = [
    "cpu  1000 0 1000 8000 0 0 0 0 0 0\ncpu0 500 0 500 4000 0 0 0 0\ncpu1 500 0 500 4000 0 0 0 0\n",
    "cpu  1950 0 1000 8050 0 0 0 0 0 0\ncpu0 975 0 500 4025 0 0 0 0\ncpu1 975 0 500 4025 0 0 0 0\n",
]


def sequence(outputs, on_call=None):
    """Responder returning ``outputs`` in turn (last one repeated)"""
    calls = []

    def responder(program, args):
        calls.append(args)
        if on_call:
            on_call()
        return ScriptedResponse(stdout=outputs[min(len(calls), len(outputs)) - 1])

    return responder


def outcome(report, group):
    return next(o for o in report.execution_summary.groups if o.group == group)


class TestProgressiveDiagnosis:
    """Depth presets on a healthy host"""

    def test_quick(self, linux_host, dispatch, clock):
        orchestrator = DiagnosticOrchestrator(dispatch, clock=clock, sleep=clock.sleep)

        report = orchestrator.run(DiagnosticDepth.QUICK)

        summary = report.execution_summary
        assert summary.depth == "quick"
        assert summary.partial_data is False
        assert outcome(report, CheckGroup.BASIC_INFO).status == GroupStatus.RAN
        assert summary.groups_with(GroupStatus.SKIPPED) == ["processes", "io_performance", "network"]
        assert outcome(report, CheckGroup.PROCESSES).reason == "not enabled"
        # A single counter sample gives the average since boot
        assert report.performance_metrics.cpu_usage_percent == 20.0
        assert report.performance_metrics.memory_usage_percent == 50.0
        assert report.system_info.cpu_cores == 2
        assert report.system_info.load_average == [0.52, 0.58, 0.59]
        assert report.performance_metrics.load_per_core == 0.26
        assert report.issues == []
        assert clock.sleeps == []
        assert "ps" not in linux_host.programs_run()

    def test_standard_samples_sequentially(self, linux_host, dispatch, clock):
        orchestrator = DiagnosticOrchestrator(dispatch, clock=clock, sleep=clock.sleep)

        report = orchestrator.run("standard")

        assert clock.sleeps == [1]
        assert outcome(report, CheckGroup.BASIC_INFO).samples == 2
        assert outcome(report, CheckGroup.PROCESSES).status == GroupStatus.RAN
        assert report.performance_metrics.process_total == 5
        assert [p["pid"] for p in report.performance_metrics.top_cpu_processes][:1] == [2211]
        assert report.execution_summary.executed_capabilities == 7
        assert report.execution_summary.failed_capabilities == 0

    def test_advanced_runs_every_group(self, linux_host, dispatch, clock):
        orchestrator = DiagnosticOrchestrator(dispatch, clock=clock, sleep=clock.sleep, ping_host="example.com")

        report = orchestrator.run(DiagnosticDepth.ADVANCED)

        summary = report.execution_summary
        assert summary.groups_with(GroupStatus.RAN) == [
            "basic_info", "processes", "io_performance", "network",
        ]
        assert summary.partial_data is False
        metrics = report.performance_metrics
        assert metrics.disk_busy_percent == 0.0
        assert metrics.filesystem_max_use_percent == 75.0
        assert metrics.filesystem_max_use_mount == "/var/lib/data"
        assert metrics.established_connections == 2
        assert metrics.ping_packet_loss_percent == 0.0
        assert report.issues == []

        ping_args = [args for program, args, _ in linux_host.calls if program == "ping"]
        assert ping_args[0][:2] == ["-c", "3"]

    def test_network_without_ping_host(self, linux_host, dispatch, clock):
        report = DiagnosticOrchestrator(dispatch, clock=clock, sleep=clock.sleep).run("advanced")

        assert outcome(report, CheckGroup.NETWORK).status == GroupStatus.RAN
        assert "ping" not in linux_host.programs_run()
        assert report.performance_metrics.ping_packet_loss_percent is None

    def test_groups_run_cheapest_first(self, linux_host, dispatch, clock):
        report = DiagnosticOrchestrator(dispatch, clock=clock, sleep=clock.sleep).run("advanced")

        assert [o.group for o in report.execution_summary.groups] == [
            CheckGroup.BASIC_INFO, CheckGroup.PROCESSES, CheckGroup.IO_PERFORMANCE, CheckGroup.NETWORK,
        ]
        programs = linux_host.programs_run()
        assert programs.index("uptime") < programs.index("ps") < programs.index("df") < programs.index("netstat")


class TestClassification:
    """Issues derived from sampled metrics"""

    def test_busy_cpu_is_one_high_issue(self, linux_host, dispatch, clock):
        linux_host.script_with("cat", sequence(BUSY_CPU_SAMPLES), args=["/proc/stat"])

        report = DiagnosticOrchestrator(dispatch, clock=clock, sleep=clock.sleep).run("standard")

        assert report.performance_metrics.cpu_usage_percent == 95.0
        assert len(report.issues) == 1
        assert report.issues[0].category == "cpu"
        assert report.issues[0].severity == Severity.HIGH
        assert report.recommendations
        assert report.highest_severity() == Severity.HIGH
        assert not report.has_critical_issues()

    def test_zombies_reported_only_when_processes_ran(self, linux_host, dispatch, clock):
        linux_host.script("ps", args=["axo", "pid,stat,comm"], stdout=(
            "  PID STAT COMMAND\n    1 Ss init\n  700 Z  defunct\n"
        ))
        orchestrator = DiagnosticOrchestrator(dispatch, clock=clock, sleep=clock.sleep)

        assert orchestrator.run("quick").issues == []

        issues = orchestrator.run("standard").issues
        assert [(i.category, i.severity) for i in issues] == [("processes", Severity.LOW)]


class TestFailures:
    """Capability failures and configuration errors"""

    def test_failed_group_does_not_stop_the_run(self, linux_host, dispatch, clock):
        linux_host.script("ps", missing=True)
        linux_host.script("ps", missing=True, args=["axo", "pid,stat,comm"])

        report = DiagnosticOrchestrator(dispatch, clock=clock, sleep=clock.sleep).run("advanced")

        processes = outcome(report, CheckGroup.PROCESSES)
        assert processes.status == GroupStatus.FAILED
        assert len(processes.failures) == 3
        assert "unavailable on this host" in processes.reason
        assert outcome(report, CheckGroup.IO_PERFORMANCE).status == GroupStatus.RAN
        assert outcome(report, CheckGroup.NETWORK).status == GroupStatus.RAN
        assert report.execution_summary.failed_capabilities == 3
        assert report.performance_metrics.process_total is None

    def test_partial_failure_keeps_group_running(self, linux_host, dispatch, clock):
        linux_host.script("free", exit_code=1, stderr="free: error\n", args=["-b"])

        report = DiagnosticOrchestrator(dispatch, clock=clock, sleep=clock.sleep).run("quick")

        basic = outcome(report, CheckGroup.BASIC_INFO)
        assert basic.status == GroupStatus.RAN
        assert basic.failures == ["sys-meminfo: Command exited with code 1: free: error"]
        assert report.performance_metrics.memory_usage_percent is None
        assert report.performance_metrics.cpu_usage_percent == 20.0

    def test_unregistered_capability_is_a_group_failure(self, linux_host, registry, clock):
        names = [d.name for d in registry.list() if d.name != "sys-uptime"]
        dispatch = ExecutorDispatch(registry.filtered(names))

        report = DiagnosticOrchestrator(dispatch, clock=clock, sleep=clock.sleep).run("quick")

        basic = outcome(report, CheckGroup.BASIC_INFO)
        assert basic.status == GroupStatus.RAN
        assert basic.failures == ["sys-uptime: Unknown capability: sys-uptime"]
        assert report.system_info.uptime is None

    @pytest.mark.parametrize("config", [
        DiagnosticConfig(timeout_seconds=0),
        DiagnosticConfig(sampling_count=0),
    ])
    def test_fatal_configuration_before_any_command(self, linux_host, dispatch, clock, config):
        orchestrator = DiagnosticOrchestrator(dispatch, clock=clock, sleep=clock.sleep)

        with pytest.raises(FatalConfiguration):
            orchestrator.run(config)

        assert linux_host.calls == []

    def test_unknown_depth_is_fatal(self, linux_host, dispatch, clock):
        with pytest.raises(FatalConfiguration):
            DiagnosticOrchestrator(dispatch, clock=clock, sleep=clock.sleep).run("deep")
        assert linux_host.calls == []


class TestBudget:
    """Time budget handling"""

    def test_slow_sampling_truncates_group(self, linux_host, dispatch, clock):
        linux_host.script_with("cat", sequence(BUSY_CPU_SAMPLES, on_call=lambda: clock.advance(4.5)),
                               args=["/proc/stat"])

        report = DiagnosticOrchestrator(dispatch, clock=clock, sleep=clock.sleep).run("standard")

        basic = outcome(report, CheckGroup.BASIC_INFO)
        assert basic.status == GroupStatus.TRUNCATED
        assert basic.reason == "time budget exhausted"
        assert basic.samples == 1
        assert report.execution_summary.partial_data is True
        # The one sample taken still yields a reading
        assert report.performance_metrics.cpu_usage_percent == 20.0
        assert clock.sleeps == []

    def test_budget_spent_inside_a_call_skips_later_groups(self, linux_host, dispatch, clock):
        linux_host.script_with("cat", sequence(BUSY_CPU_SAMPLES, on_call=lambda: clock.advance(5.5)),
                               args=["/proc/stat"])

        report = DiagnosticOrchestrator(dispatch, clock=clock, sleep=clock.sleep).run("standard")

        assert outcome(report, CheckGroup.BASIC_INFO).status == GroupStatus.TRUNCATED
        processes = outcome(report, CheckGroup.PROCESSES)
        assert processes.status == GroupStatus.SKIPPED
        assert processes.reason == "time budget exhausted"
        assert "ps" not in linux_host.programs_run()

    def test_slow_group_skips_the_rest(self, linux_host, dispatch, clock):
        linux_host.script_with("cat", sequence(BUSY_CPU_SAMPLES, on_call=lambda: clock.advance(3)),
                               args=["/proc/stat"])

        report = DiagnosticOrchestrator(dispatch, clock=clock, sleep=clock.sleep).run("standard")

        assert outcome(report, CheckGroup.BASIC_INFO).status == GroupStatus.RAN
        assert outcome(report, CheckGroup.PROCESSES).status == GroupStatus.SKIPPED
        assert report.execution_summary.partial_data is True

    def test_fail_policy_raises(self, linux_host, registry, clock):
        linux_host.script_with("cat", sequence(BUSY_CPU_SAMPLES, on_call=lambda: clock.advance(4.5)),
                               args=["/proc/stat"])
        dispatch = ExecutorDispatch(registry, HostOpsConfig(budget_policy="fail"))

        with pytest.raises(DiagnosticBudgetExceeded) as exc_info:
            DiagnosticOrchestrator(dispatch, clock=clock, sleep=clock.sleep).run("standard")

        assert exc_info.value.group == "basic_info"

    def test_custom_config_fail_policy(self, linux_host, dispatch, clock):
        linux_host.script_with("cat", sequence(BUSY_CPU_SAMPLES, on_call=lambda: clock.advance(4.5)),
                               args=["/proc/stat"])
        config = DiagnosticConfig(timeout_seconds=5, sampling_count=2, budget_policy=BudgetPolicy.FAIL)

        with pytest.raises(DiagnosticBudgetExceeded):
            DiagnosticOrchestrator(dispatch, clock=clock, sleep=clock.sleep).run(config)

    def test_call_timing_out_at_budget_end_raises_under_fail_policy(self, linux_host, dispatch, clock):
        calls = []

        def slow_second_sample(program, args):
            calls.append(args)
            if len(calls) == 2:
                clock.advance(10)
                return ScriptedResponse(timeout=True)
            return ScriptedResponse(stdout=BUSY_CPU_SAMPLES[0])

        linux_host.script_with("cat", slow_second_sample, args=["/proc/stat"])
        config = DiagnosticConfig(timeout_seconds=5, sampling_count=3, budget_policy=BudgetPolicy.FAIL)

        with pytest.raises(DiagnosticBudgetExceeded) as exc_info:
            DiagnosticOrchestrator(dispatch, clock=clock, sleep=clock.sleep).run(config)

        assert exc_info.value.group == "basic_info"

    def test_call_timing_out_at_budget_end_is_budget_truncation(self, linux_host, dispatch, clock):
        calls = []

        def slow_second_sample(program, args):
            calls.append(args)
            if len(calls) == 2:
                clock.advance(10)
                return ScriptedResponse(timeout=True)
            return ScriptedResponse(stdout=BUSY_CPU_SAMPLES[0])

        linux_host.script_with("cat", slow_second_sample, args=["/proc/stat"])
        config = DiagnosticConfig(timeout_seconds=5, sampling_count=3, check_processes=True)

        report = DiagnosticOrchestrator(dispatch, clock=clock, sleep=clock.sleep).run(config)

        basic = outcome(report, CheckGroup.BASIC_INFO)
        assert basic.status == GroupStatus.TRUNCATED
        assert basic.reason == "time budget exhausted"
        assert basic.samples == 1
        assert outcome(report, CheckGroup.PROCESSES).status == GroupStatus.SKIPPED
        assert report.execution_summary.partial_data is True

    def test_capability_timeout_capped_by_remaining_budget(self, linux_host, dispatch, clock):
        DiagnosticOrchestrator(dispatch, clock=clock, sleep=clock.sleep).run("quick")
        assert all(timeout <= 1 for _, _, timeout in linux_host.calls)


class TestCustomConfig:
    """Hand-built configurations"""

    def test_only_io_group(self, linux_host, dispatch, clock):
        config = DiagnosticConfig(check_basic_info=False, check_io_performance=True,
                                  timeout_seconds=5, sampling_count=2)

        report = DiagnosticOrchestrator(dispatch, clock=clock, sleep=clock.sleep).run(config)

        assert report.execution_summary.depth is None
        assert report.execution_summary.groups_with(GroupStatus.RAN) == ["io_performance"]
        assert outcome(report, CheckGroup.BASIC_INFO).reason == "not enabled"
        assert set(linux_host.programs_run()) == {"cat", "df"}
        assert report.config is config


class TestMetricDerivation:
    """Sample-series helpers"""

    def test_cpu_from_counter_delta(self):
        series = SampleSeries(samples=[
            Sample(0.0, {"busy": 100, "total": 1000}),
            Sample(1.0, {"busy": 150, "total": 1100}),
        ])
        assert cpu_usage_from_samples(series) == 50.0

    def test_cpu_from_direct_readings(self):
        series = SampleSeries(samples=[
            Sample(0.0, {"busy": None, "total": None, "usage_percent": 10.0}),
            Sample(1.0, {"busy": None, "total": None, "usage_percent": 30.0}),
        ])
        assert cpu_usage_from_samples(series) == 20.0

    def test_cpu_without_samples(self):
        assert cpu_usage_from_samples(SampleSeries()) is None

    def test_io_rates(self):
        series = SampleSeries(samples=[
            Sample(10.0, {"devices": {"sda": {"read_bytes": 0, "write_bytes": 0, "io_ms": 0}}}),
            Sample(12.0, {"devices": {"sda": {"read_bytes": 4096, "write_bytes": 2048, "io_ms": 1000}}}),
        ])
        assert io_rates_from_samples(series) == (50.0, 2048.0, 1024.0)

    def test_io_rates_need_elapsed_time(self):
        series = SampleSeries(samples=[Sample(1.0, {"devices": {}})])
        assert io_rates_from_samples(series) == (None, None, None)
