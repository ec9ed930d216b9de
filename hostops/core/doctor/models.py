"""
Diagnostic data models

- DiagnosticDepth: Quick / Standard / Advanced presets
- DiagnosticConfig: Which check groups run and the time budget
- Issue, SystemInfo, PerformanceMetrics, ExecutionSummary
- DiagnosticReport: Result of one orchestration run
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from hostops.core.doctor.exceptions import FatalConfiguration


class BudgetPolicy(str, Enum):
    """What happens when the time budget runs out mid-sampling"""
    PARTIAL = "partial"  # keep samples so far, flag partial data
    FAIL = "fail"        # abort the run with DiagnosticBudgetExceeded


class CheckGroup(str, Enum):
    """Check groups in increasing cost order"""
    BASIC_INFO = "basic_info"
    PROCESSES = "processes"
    IO_PERFORMANCE = "io_performance"
    NETWORK = "network"


# Execution order of check groups (cheapest first)
GROUP_ORDER = [
    CheckGroup.BASIC_INFO,
    CheckGroup.PROCESSES,
    CheckGroup.IO_PERFORMANCE,
    CheckGroup.NETWORK,
]


@dataclass
class DiagnosticConfig:
    """Diagnostic run configuration"""
    check_basic_info: bool = True
    check_processes: bool = False
    check_io_performance: bool = False
    check_network: bool = False
    timeout_seconds: int = 5
    sampling_interval: int = 1
    sampling_count: int = 1
    budget_policy: BudgetPolicy = BudgetPolicy.PARTIAL

    def validate(self) -> None:
        """
        Raises:
            FatalConfiguration: On a zero/negative budget or sample count
        """
        if self.timeout_seconds <= 0:
            raise FatalConfiguration(f"timeout_seconds must be > 0, got {self.timeout_seconds}")
        if self.sampling_count <= 0:
            raise FatalConfiguration(f"sampling_count must be >= 1, got {self.sampling_count}")
        if self.sampling_interval < 0:
            raise FatalConfiguration(f"sampling_interval must be >= 0, got {self.sampling_interval}")

    def enabled_groups(self) -> List[CheckGroup]:
        """Enabled check groups in execution order"""
        flags = {
            CheckGroup.BASIC_INFO: self.check_basic_info,
            CheckGroup.PROCESSES: self.check_processes,
            CheckGroup.IO_PERFORMANCE: self.check_io_performance,
            CheckGroup.NETWORK: self.check_network,
        }
        return [group for group in GROUP_ORDER if flags[group]]

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["budget_policy"] = self.budget_policy.value
        return data


class DiagnosticDepth(str, Enum):
    """Preset diagnostic levels"""
    QUICK = "quick"
    STANDARD = "standard"
    ADVANCED = "advanced"

    def to_config(self) -> DiagnosticConfig:
        """Canned configuration for this depth"""
        if self == DiagnosticDepth.QUICK:
            return DiagnosticConfig(
                check_basic_info=True,
                timeout_seconds=1,
                sampling_interval=1,
                sampling_count=1,
            )
        if self == DiagnosticDepth.STANDARD:
            return DiagnosticConfig(
                check_basic_info=True,
                check_processes=True,
                timeout_seconds=5,
                sampling_interval=1,
                sampling_count=2,
            )
        return DiagnosticConfig(
            check_basic_info=True,
            check_processes=True,
            check_io_performance=True,
            check_network=True,
            timeout_seconds=10,
            sampling_interval=1,
            sampling_count=3,
        )


class Severity(str, Enum):
    """Issue severity, ordered"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return SEVERITY_ORDER.index(self)


SEVERITY_ORDER = [Severity.LOW, Severity.MEDIUM, Severity.HIGH, Severity.CRITICAL]


class GroupStatus(str, Enum):
    """Outcome of one check group"""
    RAN = "ran"
    FAILED = "failed"
    SKIPPED = "skipped"
    TRUNCATED = "truncated"


@dataclass
class GroupOutcome:
    """Per-group execution record"""
    group: CheckGroup
    status: GroupStatus
    reason: Optional[str] = None
    duration_ms: int = 0
    samples: int = 0
    failures: List[str] = field(default_factory=list)  # failed capabilities within the group

    def to_dict(self) -> Dict[str, Any]:
        return {
            "group": self.group.value,
            "status": self.status.value,
            "reason": self.reason,
            "duration_ms": self.duration_ms,
            "samples": self.samples,
            "failures": list(self.failures),
        }


@dataclass
class Issue:
    """Classified anomaly"""
    category: str
    severity: Severity
    description: str
    metric: Optional[str] = None
    value: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "severity": self.severity.value,
            "description": self.description,
            "metric": self.metric,
            "value": self.value,
        }


@dataclass
class SystemInfo:
    """Host snapshot"""
    hostname: Optional[str] = None
    platform: Optional[str] = None
    uptime: Optional[str] = None
    load_average: List[float] = field(default_factory=list)
    cpu_cores: Optional[int] = None


@dataclass
class PerformanceMetrics:
    """
    Measured metrics

    Fields stay None when the group that measures them did not run or
    failed; classification only looks at values that are present.
    """
    cpu_usage_percent: Optional[float] = None
    memory_usage_percent: Optional[float] = None
    memory_total_bytes: Optional[int] = None
    load_per_core: Optional[float] = None
    process_total: Optional[int] = None
    zombie_processes: Optional[int] = None
    top_cpu_processes: List[Dict[str, Any]] = field(default_factory=list)
    top_memory_processes: List[Dict[str, Any]] = field(default_factory=list)
    disk_busy_percent: Optional[float] = None
    disk_read_bytes_per_sec: Optional[float] = None
    disk_write_bytes_per_sec: Optional[float] = None
    filesystem_max_use_percent: Optional[float] = None
    filesystem_max_use_mount: Optional[str] = None
    established_connections: Optional[int] = None
    listening_sockets: Optional[int] = None
    ping_packet_loss_percent: Optional[float] = None
    ping_rtt_avg_ms: Optional[float] = None


@dataclass
class ExecutionSummary:
    """How the run went"""
    elapsed_seconds: float
    depth: Optional[str]
    groups: List[GroupOutcome] = field(default_factory=list)
    partial_data: bool = False
    executed_capabilities: int = 0
    failed_capabilities: int = 0

    def groups_with(self, status: GroupStatus) -> List[str]:
        return [g.group.value for g in self.groups if g.status == status]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "elapsed_seconds": round(self.elapsed_seconds, 3),
            "depth": self.depth,
            "groups": [g.to_dict() for g in self.groups],
            "ran": self.groups_with(GroupStatus.RAN),
            "failed": self.groups_with(GroupStatus.FAILED),
            "skipped": self.groups_with(GroupStatus.SKIPPED),
            "truncated": self.groups_with(GroupStatus.TRUNCATED),
            "partial_data": self.partial_data,
            "executed_capabilities": self.executed_capabilities,
            "failed_capabilities": self.failed_capabilities,
        }


@dataclass
class DiagnosticReport:
    """Result of one diagnostic run"""
    timestamp: datetime
    system_info: SystemInfo
    performance_metrics: PerformanceMetrics
    issues: List[Issue]
    recommendations: List[str]
    execution_summary: ExecutionSummary
    config: Optional[DiagnosticConfig] = None

    @staticmethod
    def now() -> datetime:
        return datetime.now(timezone.utc)

    def severity_counts(self) -> Dict[str, int]:
        counts = {s.value: 0 for s in SEVERITY_ORDER}
        for issue in self.issues:
            counts[issue.severity.value] += 1
        return counts

    def has_critical_issues(self) -> bool:
        return any(issue.severity == Severity.CRITICAL for issue in self.issues)

    def highest_severity(self) -> Optional[Severity]:
        if not self.issues:
            return None
        return max((issue.severity for issue in self.issues), key=lambda s: s.rank)

    def to_dict(self) -> Dict[str, Any]:
        """Machine-readable form"""
        return {
            "timestamp": self.timestamp.isoformat(),
            "system_info": asdict(self.system_info),
            "performance_metrics": asdict(self.performance_metrics),
            "issues": [issue.to_dict() for issue in self.issues],
            "recommendations": list(self.recommendations),
            "execution_summary": self.execution_summary.to_dict(),
            "config": self.config.to_dict() if self.config else None,
        }
