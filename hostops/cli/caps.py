"""hostops caps - list registered capabilities"""

import click
from rich.console import Console
from rich.table import Table

from hostops.core.capabilities import create_registry
from hostops.core.capabilities.schema import describe_parameters
from hostops.i18n import t

console = Console()


@click.command()
@click.argument("names", nargs=-1)
@click.pass_context
def caps(ctx, names):
    """List capabilities (optionally only NAMES)"""
    language = (ctx.obj or {}).get("language", "en")
    registry = create_registry()
    definitions = registry.list(names or None)

    table = Table(title=t("cli.caps.title", lang=language), show_header=True, header_style="bold magenta")
    table.add_column(t("cli.caps.column.name", lang=language), style="cyan", no_wrap=True)
    table.add_column(t("cli.caps.column.description", lang=language))
    table.add_column(t("cli.caps.column.parameters", lang=language))
    table.add_column(t("cli.caps.column.mode", lang=language))

    for definition in definitions:
        mode = "cli.caps.read_only" if definition.read_only else "cli.caps.mutating"
        style = "green" if definition.read_only else "yellow"
        table.add_row(
            definition.name,
            definition.description,
            "\n".join(describe_parameters(definition)) or "-",
            f"[{style}]{t(mode, lang=language)}[/{style}]",
        )

    console.print(table)
