"""
Doctor - graded host diagnostics

Quick / Standard / Advanced depths compose capability calls into a
DiagnosticReport with classified issues and recommendations.
"""

from hostops.core.doctor.classifier import classify, recommend
from hostops.core.doctor.exceptions import DiagnosisError, DiagnosticBudgetExceeded, FatalConfiguration
from hostops.core.doctor.models import (
    BudgetPolicy,
    CheckGroup,
    DiagnosticConfig,
    DiagnosticDepth,
    DiagnosticReport,
    ExecutionSummary,
    GroupOutcome,
    GroupStatus,
    Issue,
    PerformanceMetrics,
    Severity,
    SystemInfo,
)
from hostops.core.doctor.orchestrator import DiagnosticOrchestrator
from hostops.core.doctor.report import ReportFormatter, print_report

__all__ = [
    "DiagnosticOrchestrator",
    "ReportFormatter",
    "print_report",
    "classify",
    "recommend",
    "BudgetPolicy",
    "CheckGroup",
    "DiagnosticConfig",
    "DiagnosticDepth",
    "DiagnosticReport",
    "ExecutionSummary",
    "GroupOutcome",
    "GroupStatus",
    "Issue",
    "PerformanceMetrics",
    "Severity",
    "SystemInfo",
    "DiagnosisError",
    "DiagnosticBudgetExceeded",
    "FatalConfiguration",
]
