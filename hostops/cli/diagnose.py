"""
hostops diagnose - graded system diagnosis

Usage:
    hostops diagnose                   # standard depth
    hostops diagnose --depth quick     # basic info only, 1s budget
    hostops diagnose --depth advanced --ping-host example.com
    hostops diagnose --json            # machine-readable report
"""

import sys

import click
from rich.console import Console

from hostops.core.capabilities import ExecutorDispatch, create_registry
from hostops.core.doctor import (
    DiagnosticBudgetExceeded,
    DiagnosticDepth,
    DiagnosticOrchestrator,
    FatalConfiguration,
    ReportFormatter,
    print_report,
)
from hostops.i18n import t

console = Console()


@click.command()
@click.option(
    "--depth",
    type=click.Choice([d.value for d in DiagnosticDepth]),
    default=DiagnosticDepth.STANDARD.value,
    show_default=True,
    help="Diagnostic depth",
)
@click.option("--json", "as_json", is_flag=True, default=False, help="Print the report as JSON")
@click.option("--ping-host", default=None, help="Host probed by the network check group")
@click.pass_context
def diagnose(ctx, depth, as_json, ping_host):
    """Run a system diagnosis and print the report"""
    language = (ctx.obj or {}).get("language", "en")
    orchestrator = DiagnosticOrchestrator(ExecutorDispatch(create_registry()), ping_host=ping_host)

    try:
        report = orchestrator.run(DiagnosticDepth(depth))
    except FatalConfiguration as e:
        console.print(f"[red]{t('cli.error.fatal_config', lang=language, reason=e.reason)}[/red]")
        sys.exit(2)
    except DiagnosticBudgetExceeded as e:
        console.print(f"[red]{t('cli.error.budget', lang=language, error=str(e))}[/red]")
        sys.exit(3)

    if as_json:
        click.echo(ReportFormatter().to_json(report))
    else:
        print_report(report, console=console, language=language)

    # Exit non-zero when something critical was found
    sys.exit(1 if report.has_critical_issues() else 0)
