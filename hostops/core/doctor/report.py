"""
Diagnostic report formatting

Provides:
- Human-readable localized summary (rich tables, severity labels per locale)
- Machine-readable dict / JSON form

Formatting never mutates the report or the process-wide language.
"""

import io
import json
from typing import Any, Dict, List, Optional

from rich.console import Console, Group, RenderableType
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from hostops.core.doctor.models import DiagnosticReport, GroupStatus, Severity
from hostops.i18n import t

SEVERITY_STYLES = {
    Severity.LOW: ("🔵", "cyan"),
    Severity.MEDIUM: ("⚠️", "yellow"),
    Severity.HIGH: ("❗", "red"),
    Severity.CRITICAL: ("❌", "bold red"),
}

STATUS_STYLES = {
    GroupStatus.RAN: ("✅", "green"),
    GroupStatus.FAILED: ("❌", "red"),
    GroupStatus.SKIPPED: ("⏭", "dim"),
    GroupStatus.TRUNCATED: ("⚠️", "yellow"),
}

# (metric field, locale key, format)
METRIC_ROWS = [
    ("cpu_usage_percent", "report.metric.cpu", "{:.1f}%"),
    ("memory_usage_percent", "report.metric.memory", "{:.1f}%"),
    ("load_per_core", "report.metric.load_per_core", "{:.2f}"),
    ("process_total", "report.metric.processes", "{}"),
    ("zombie_processes", "report.metric.zombies", "{}"),
    ("disk_busy_percent", "report.metric.disk_busy", "{:.1f}%"),
    ("disk_read_bytes_per_sec", "report.metric.disk_read", "{:,.0f} B/s"),
    ("disk_write_bytes_per_sec", "report.metric.disk_write", "{:,.0f} B/s"),
    ("filesystem_max_use_percent", "report.metric.filesystem", "{:.0f}%"),
    ("established_connections", "report.metric.established", "{}"),
    ("listening_sockets", "report.metric.listening", "{}"),
    ("ping_packet_loss_percent", "report.metric.ping_loss", "{:.0f}%"),
    ("ping_rtt_avg_ms", "report.metric.ping_rtt", "{:.1f} ms"),
]


class ReportFormatter:
    """
    Formats DiagnosticReport values

    Example:
        >>> formatter = ReportFormatter()
        >>> text = formatter.to_text(report, language="zh_CN")
        >>> data = formatter.to_dict(report)
    """

    def __init__(self, width: int = 100):
        self.width = width

    # ============================================
    # Machine-readable
    # ============================================

    def to_dict(self, report: DiagnosticReport) -> Dict[str, Any]:
        return report.to_dict()

    def to_json(self, report: DiagnosticReport, indent: Optional[int] = 2) -> str:
        return json.dumps(self.to_dict(report), indent=indent, ensure_ascii=False)

    # ============================================
    # Human-readable
    # ============================================

    def to_text(self, report: DiagnosticReport, language: str = "en") -> str:
        """Plain-text localized summary"""
        buffer = io.StringIO()
        console = Console(file=buffer, width=self.width, color_system=None, force_terminal=False)
        console.print(self.render(report, language))
        return buffer.getvalue()

    def summary_line(self, report: DiagnosticReport, language: str = "en") -> str:
        """One-line summary, e.g. for logs or notifications"""
        highest = report.highest_severity()
        if highest is None:
            line = t("report.summary.healthy", lang=language)
        else:
            line = t(
                "report.summary.issues",
                lang=language,
                count=len(report.issues),
                severity=severity_label(highest, language),
            )
        if report.execution_summary.partial_data:
            line += " " + t("report.summary.partial_suffix", lang=language)
        return line

    def render(self, report: DiagnosticReport, language: str = "en") -> RenderableType:
        """Rich renderable for the full report"""
        parts: List[RenderableType] = [
            Text(t("report.title", lang=language), style="bold cyan"),
            Text(t("report.generated_at", lang=language, timestamp=report.timestamp.isoformat()), style="dim"),
            self._system_table(report, language),
            self._metrics_table(report, language),
            self._issues_section(report, language),
        ]
        if report.recommendations:
            lines = "\n".join(f"  • {escape(r)}" for r in report.recommendations)
            parts.append(Panel(lines, title=t("report.recommendations", lang=language), expand=False))
        parts.append(self._execution_table(report, language))
        parts.append(Text(self.summary_line(report, language), style="bold"))
        return Group(*parts)

    def _system_table(self, report: DiagnosticReport, language: str) -> Table:
        info = report.system_info
        table = Table(title=t("report.system_info", lang=language), show_header=False, title_justify="left")
        table.add_column(width=20)
        table.add_column()
        rows = [
            ("report.field.hostname", info.hostname),
            ("report.field.platform", info.platform),
            ("report.field.uptime", info.uptime),
            ("report.field.load_average",
             ", ".join(f"{v:.2f}" for v in info.load_average) if info.load_average else None),
            ("report.field.cpu_cores", info.cpu_cores),
        ]
        for key, value in rows:
            if value is not None:
                table.add_row(t(key, lang=language), escape(str(value)))
        return table

    def _metrics_table(self, report: DiagnosticReport, language: str) -> Table:
        metrics = report.performance_metrics
        table = Table(title=t("report.metrics", lang=language), show_header=False, title_justify="left")
        table.add_column(width=28)
        table.add_column()
        for field_name, key, fmt in METRIC_ROWS:
            value = getattr(metrics, field_name)
            if value is not None:
                table.add_row(t(key, lang=language), fmt.format(value))
        if metrics.filesystem_max_use_mount:
            table.add_row(t("report.metric.filesystem_mount", lang=language), escape(metrics.filesystem_max_use_mount))
        return table

    def _issues_section(self, report: DiagnosticReport, language: str) -> RenderableType:
        if not report.issues:
            return Text(t("report.no_issues", lang=language), style="green")

        table = Table(title=t("report.issues", lang=language), show_header=True,
                      header_style="bold magenta", title_justify="left")
        table.add_column(t("report.column.severity", lang=language), width=12)
        table.add_column(t("report.column.category", lang=language), width=12)
        table.add_column(t("report.column.description", lang=language))
        for issue in report.issues:
            icon, style = SEVERITY_STYLES[issue.severity]
            table.add_row(
                f"[{style}]{icon} {severity_label(issue.severity, language)}[/{style}]",
                t(f"report.category.{issue.category}", lang=language),
                escape(issue.description),
            )
        return table

    def _execution_table(self, report: DiagnosticReport, language: str) -> Table:
        summary = report.execution_summary
        title = t("report.execution", lang=language, seconds=f"{summary.elapsed_seconds:.2f}")
        table = Table(title=title, show_header=True, header_style="bold magenta", title_justify="left")
        table.add_column(t("report.column.group", lang=language), width=18)
        table.add_column(t("report.column.status", lang=language), width=14)
        table.add_column(t("report.column.details", lang=language))
        for outcome in summary.groups:
            icon, style = STATUS_STYLES[outcome.status]
            details = escape(outcome.reason or "")
            if outcome.samples:
                details = (details + " " if details else "") + t(
                    "report.samples", lang=language, count=outcome.samples
                )
            table.add_row(
                t(f"report.group.{outcome.group.value}", lang=language),
                f"[{style}]{icon} {t(f'report.status.{outcome.status.value}', lang=language)}[/{style}]",
                details,
            )
        return table


def severity_label(severity: Severity, language: str = "en") -> str:
    """Localized severity label"""
    return t(f"report.severity.{severity.value}", lang=language)


def print_report(report: DiagnosticReport, console: Optional[Console] = None, language: str = "en"):
    """Print a report to the terminal"""
    console = console or Console()
    console.print()
    console.print(ReportFormatter().render(report, language))
    console.print()
