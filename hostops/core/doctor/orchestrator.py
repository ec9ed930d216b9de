"""
Diagnostic Orchestrator - progressive diagnosis

Runs the enabled check groups cheapest first (basic info, processes, I/O,
network) under one time budget, samples time-varying metrics sequentially,
classifies the measurements and assembles a DiagnosticReport.

Failure model:
    - Misconfiguration (zero budget / sample count): FatalConfiguration,
      raised before any capability runs
    - A failing capability: recorded on its group, the run continues
    - Budget exhausted: remaining work is truncated/skipped and the report
      is flagged partial (or DiagnosticBudgetExceeded under the fail policy)

Example:
    >>> orchestrator = DiagnosticOrchestrator(ExecutorDispatch(create_registry()))
    >>> report = orchestrator.run(DiagnosticDepth.STANDARD)
    >>> report.execution_summary.partial_data
    False
"""

import logging
import socket
import time
import uuid
from typing import Any, Callable, Dict, List, Optional, Union

from hostops.core.capabilities.dispatch import ExecutorDispatch
from hostops.core.capabilities.exceptions import UnknownCapability
from hostops.core.capabilities.models import CapabilityCall, CapabilityResult
from hostops.core.doctor.classifier import classify, recommend
from hostops.core.doctor.exceptions import DiagnosticBudgetExceeded, FatalConfiguration
from hostops.core.doctor.models import (
    BudgetPolicy,
    CheckGroup,
    DiagnosticConfig,
    DiagnosticDepth,
    DiagnosticReport,
    ExecutionSummary,
    GROUP_ORDER,
    GroupOutcome,
    GroupStatus,
    PerformanceMetrics,
    SystemInfo,
)
from hostops.core.doctor.sampling import Budget, Clock, SampleFailed, SampleSeries, Sleep, collect_samples

logger = logging.getLogger(__name__)

BUDGET_EXHAUSTED = "time budget exhausted"
TOP_PROCESS_LIMIT = 5


class _BudgetSpent(Exception):
    """Internal: the budget ran out before a capability call"""
    pass


class _Run:
    """Mutable state of one orchestration run"""

    def __init__(self, config: DiagnosticConfig, budget: Budget):
        self.config = config
        self.budget = budget
        self.system_info = SystemInfo(hostname=socket.gethostname())
        self.metrics = PerformanceMetrics()
        self.outcomes: List[GroupOutcome] = []
        self.partial = False
        self.executed = 0
        self.failed = 0


class _GroupRecorder:
    """Collects capability failures and truncation for one group"""

    def __init__(self):
        self.failures: List[str] = []
        self.successes = 0
        self.truncated = False
        self.truncation_reason: Optional[str] = None
        self.samples = 0

    def truncate(self, reason: str) -> None:
        self.truncated = True
        self.truncation_reason = self.truncation_reason or reason


class DiagnosticOrchestrator:
    """
    Runs graded diagnostics through an ExecutorDispatch

    The clock and sleep functions are injectable so budget and sampling
    behavior can be tested without waiting.
    """

    def __init__(
        self,
        dispatch: ExecutorDispatch,
        clock: Clock = time.monotonic,
        sleep: Sleep = time.sleep,
        ping_host: Optional[str] = None,
    ):
        """
        Args:
            dispatch: Capability dispatcher
            clock: Monotonic clock in seconds
            sleep: Sleep function used between samples
            ping_host: Host probed by the network group (default from config)
        """
        self.dispatch = dispatch
        self.clock = clock
        self.sleep = sleep
        self.ping_host = ping_host if ping_host is not None else dispatch.config.ping_host

        self._stages: Dict[CheckGroup, Callable[[_Run, _GroupRecorder], None]] = {
            CheckGroup.BASIC_INFO: self._check_basic_info,
            CheckGroup.PROCESSES: self._check_processes,
            CheckGroup.IO_PERFORMANCE: self._check_io_performance,
            CheckGroup.NETWORK: self._check_network,
        }

    def run(self, depth_or_config: Union[DiagnosticDepth, DiagnosticConfig, str]) -> DiagnosticReport:
        """
        Run a diagnosis

        Args:
            depth_or_config: A DiagnosticDepth (or its name) or a custom config

        Returns:
            DiagnosticReport

        Raises:
            FatalConfiguration: If the configuration is unusable
            DiagnosticBudgetExceeded: If the budget runs out under the fail policy
        """
        depth, config = self._resolve(depth_or_config)
        config.validate()

        budget = Budget(config.timeout_seconds, self.clock)
        state = _Run(config, budget)
        enabled = config.enabled_groups()

        logger.info(
            f"Starting diagnosis (depth={depth.value if depth else 'custom'}, groups={[g.value for g in enabled]}, "
            f"budget={config.timeout_seconds}s)"
        )

        for group in GROUP_ORDER:
            if group not in enabled:
                state.outcomes.append(GroupOutcome(group, GroupStatus.SKIPPED, reason="not enabled"))
                continue

            if budget.exhausted():
                self._on_budget_exhausted(state, group)
                state.outcomes.append(GroupOutcome(group, GroupStatus.SKIPPED, reason=BUDGET_EXHAUSTED))
                continue

            started = self.clock()
            recorder = _GroupRecorder()
            try:
                self._stages[group](state, recorder)
            except _BudgetSpent:
                recorder.truncate(BUDGET_EXHAUSTED)

            outcome = self._outcome(group, recorder)
            outcome.duration_ms = int((self.clock() - started) * 1000)
            state.outcomes.append(outcome)
            if outcome.status == GroupStatus.TRUNCATED:
                self._on_budget_exhausted(state, group, outcome.reason)
            logger.info(f"Check group {group.value}: {outcome.status.value}"
                        + (f" ({outcome.reason})" if outcome.reason else ""))

        executed_groups = [
            o.group for o in state.outcomes if o.status in (GroupStatus.RAN, GroupStatus.TRUNCATED)
        ]
        issues = classify(state.metrics, executed_groups)

        summary = ExecutionSummary(
            elapsed_seconds=budget.elapsed(),
            depth=depth.value if depth else None,
            groups=state.outcomes,
            partial_data=state.partial,
            executed_capabilities=state.executed,
            failed_capabilities=state.failed,
        )
        report = DiagnosticReport(
            timestamp=DiagnosticReport.now(),
            system_info=state.system_info,
            performance_metrics=state.metrics,
            issues=issues,
            recommendations=recommend(issues),
            execution_summary=summary,
            config=config,
        )
        logger.info(
            f"Diagnosis finished in {summary.elapsed_seconds:.2f}s with {len(issues)} issue(s)"
            + (" (partial data)" if summary.partial_data else "")
        )
        return report

    # ============================================
    # Configuration
    # ============================================

    def _resolve(self, depth_or_config):
        if isinstance(depth_or_config, DiagnosticConfig):
            return None, depth_or_config
        if isinstance(depth_or_config, str) and not isinstance(depth_or_config, DiagnosticDepth):
            try:
                depth_or_config = DiagnosticDepth(depth_or_config.lower())
            except ValueError:
                raise FatalConfiguration(f"unknown diagnostic depth: {depth_or_config}")
        if not isinstance(depth_or_config, DiagnosticDepth):
            raise FatalConfiguration(f"expected a depth or DiagnosticConfig, got {type(depth_or_config).__name__}")

        config = depth_or_config.to_config()
        config.budget_policy = BudgetPolicy(self.dispatch.config.budget_policy)
        return depth_or_config, config

    def _on_budget_exhausted(self, state: _Run, group: CheckGroup, reason: str = BUDGET_EXHAUSTED) -> None:
        if reason == BUDGET_EXHAUSTED and state.config.budget_policy == BudgetPolicy.FAIL:
            raise DiagnosticBudgetExceeded(state.config.timeout_seconds, group.value)
        state.partial = True

    def _outcome(self, group: CheckGroup, recorder: _GroupRecorder) -> GroupOutcome:
        if recorder.successes == 0 and recorder.failures and not recorder.truncated:
            status, reason = GroupStatus.FAILED, recorder.failures[0]
        elif recorder.truncated:
            status, reason = GroupStatus.TRUNCATED, recorder.truncation_reason
        else:
            status, reason = GroupStatus.RAN, None
        return GroupOutcome(
            group=group,
            status=status,
            reason=reason,
            samples=recorder.samples,
            failures=list(recorder.failures),
        )

    # ============================================
    # Capability calls
    # ============================================

    def _call(self, state: _Run, recorder: _GroupRecorder, name: str,
              arguments: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
        """Execute one capability within the budget; None on failure"""
        remaining = state.budget.remaining()
        if remaining <= 0:
            raise _BudgetSpent()

        call = CapabilityCall(id=uuid.uuid4().hex[:12], name=name, arguments=arguments or {})
        try:
            result: CapabilityResult = self.dispatch.execute(call, timeout=remaining)
        except UnknownCapability as e:
            result = CapabilityResult.failed(name, str(e))

        state.executed += 1
        if not result.success:
            state.failed += 1
            recorder.failures.append(f"{name}: {result.error}")
            logger.warning(f"Diagnostic capability {name} failed: {result.error}")
            # The call was capped at the remaining budget; a timeout here is the budget running out
            if state.budget.exhausted():
                raise _BudgetSpent()
            return None
        recorder.successes += 1
        return result.result

    def _sample(self, state: _Run, recorder: _GroupRecorder, name: str) -> SampleSeries:
        def fetch():
            try:
                payload = self._call(state, recorder, name)
            except _BudgetSpent:
                raise SampleFailed(BUDGET_EXHAUSTED)
            if payload is None:
                raise SampleFailed(recorder.failures[-1])
            return payload

        requested = state.config.sampling_count
        try:
            series = collect_samples(
                fetch,
                count=requested,
                interval=state.config.sampling_interval,
                budget=state.budget,
                sleep=self.sleep,
            )
        except SampleFailed as e:
            # First sample failed: nothing to keep
            if e.reason != BUDGET_EXHAUSTED:
                return SampleSeries(requested=requested)
            series = SampleSeries(requested=requested, truncated=True, reason=BUDGET_EXHAUSTED)

        recorder.samples += len(series.samples)
        if series.truncated:
            recorder.truncate(series.reason or BUDGET_EXHAUSTED)
        return series

    # ============================================
    # Check groups
    # ============================================

    def _check_basic_info(self, state: _Run, recorder: _GroupRecorder) -> None:
        uptime = self._call(state, recorder, "sys-uptime")
        if uptime:
            state.system_info.uptime = uptime.get("uptime")
            state.system_info.platform = uptime.get("platform")
            state.system_info.load_average = list(uptime.get("load_average") or [])

        memory = self._call(state, recorder, "sys-meminfo")
        if memory:
            data = memory.get("memory_data") or {}
            state.metrics.memory_usage_percent = data.get("usage_percent")
            state.metrics.memory_total_bytes = data.get("total")

        series = self._sample(state, recorder, "sys-cpu")
        if series.samples:
            state.metrics.cpu_usage_percent = cpu_usage_from_samples(series)
            cores = series.last.value.get("cores")
            state.system_info.cpu_cores = cores

        cores = state.system_info.cpu_cores
        if cores and state.system_info.load_average:
            state.metrics.load_per_core = round(state.system_info.load_average[0] / cores, 2)

    def _check_processes(self, state: _Run, recorder: _GroupRecorder) -> None:
        top_cpu = self._call(state, recorder, "sys-proc-top", {"sort_by": "cpu", "limit": TOP_PROCESS_LIMIT})
        if top_cpu:
            state.metrics.top_cpu_processes = top_cpu.get("processes", [])

        top_mem = self._call(state, recorder, "sys-proc-top", {"sort_by": "memory", "limit": TOP_PROCESS_LIMIT})
        if top_mem:
            state.metrics.top_memory_processes = top_mem.get("processes", [])

        stats = self._call(state, recorder, "sys-proc-stats")
        if stats:
            state.metrics.process_total = stats.get("total_processes")
            state.metrics.zombie_processes = stats.get("zombie_processes")

    def _check_io_performance(self, state: _Run, recorder: _GroupRecorder) -> None:
        series = self._sample(state, recorder, "sys-iostat")
        if len(series.samples) >= 2:
            busy, read_rate, write_rate = io_rates_from_samples(series)
            state.metrics.disk_busy_percent = busy
            state.metrics.disk_read_bytes_per_sec = read_rate
            state.metrics.disk_write_bytes_per_sec = write_rate

        df = self._call(state, recorder, "sys-df", {"human_readable": False})
        if df:
            filesystems = df.get("filesystems") or []
            if filesystems:
                fullest = max(filesystems, key=lambda f: f["use_percent"])
                state.metrics.filesystem_max_use_percent = fullest["use_percent"]
                state.metrics.filesystem_max_use_mount = fullest.get("mounted_on")

    def _check_network(self, state: _Run, recorder: _GroupRecorder) -> None:
        netstat = self._call(state, recorder, "sys-netstat", {"show_tcp": True, "show_udp": False})
        if netstat:
            stats = netstat.get("connection_stats") or {}
            state.metrics.established_connections = stats.get("established")
            state.metrics.listening_sockets = stats.get("listen")

        if not self.ping_host:
            return
        ping_timeout = int(min(state.budget.remaining(), 30))
        if ping_timeout < 1:
            raise _BudgetSpent()
        ping = self._call(state, recorder, "net-ping", {
            "host": self.ping_host,
            "count": max(1, min(state.config.sampling_count, 10)),
            "timeout": ping_timeout,
        })
        if ping:
            state.metrics.ping_packet_loss_percent = ping.get("packet_loss_percent")
            state.metrics.ping_rtt_avg_ms = ping.get("rtt_avg_ms")


# ============================================
# Metric derivation
# ============================================

def cpu_usage_from_samples(series: SampleSeries) -> Optional[float]:
    """
    CPU utilization from a sample series

    With cumulative counters and two or more samples, utilization is the
    busy share of the counter delta between first and last sample. A single
    counter sample gives the average since boot. Direct readings are
    averaged.
    """
    values = [s.value for s in series.samples]
    if not values:
        return None

    if values[0].get("total") is not None:
        first, last = values[0], values[-1]
        delta_total = last["total"] - first["total"]
        if len(values) >= 2 and delta_total > 0:
            return round((last["busy"] - first["busy"]) * 100.0 / delta_total, 2)
        if last["total"] > 0:
            return round(last["busy"] * 100.0 / last["total"], 2)
        return None

    readings = [v["usage_percent"] for v in values if v.get("usage_percent") is not None]
    if not readings:
        return None
    return round(sum(readings) / len(readings), 2)


def io_rates_from_samples(series: SampleSeries):
    """
    (busiest-device busy %, read B/s, write B/s) between first and last sample

    Busy % needs io_ms counters and is None when the host lacks them.
    """
    span = series.span_seconds()
    if span <= 0:
        return None, None, None
    first, last = series.first.value["devices"], series.last.value["devices"]

    busy: Optional[float] = None
    read_total = 0.0
    write_total = 0.0
    for name, after in last.items():
        before = first.get(name)
        if before is None:
            continue
        if "io_ms" in after:
            device_busy = min(100.0, (after["io_ms"] - before["io_ms"]) / (span * 1000.0) * 100.0)
            busy = device_busy if busy is None else max(busy, device_busy)
        if "read_bytes" in after:
            read_total += after["read_bytes"] - before["read_bytes"]
            write_total += after["write_bytes"] - before["write_bytes"]
        elif "total_bytes" in after:
            read_total += after["total_bytes"] - before["total_bytes"]

    return (
        round(busy, 2) if busy is not None else None,
        round(read_total / span, 1),
        round(write_total / span, 1),
    )
