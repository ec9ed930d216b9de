"""CLI main entry point"""

import logging

import click

from hostops import __version__
from hostops.cli.call import call
from hostops.cli.caps import caps
from hostops.cli.diagnose import diagnose
from hostops.core.config import get_config
from hostops.i18n import get_available_languages, set_language


@click.group()
@click.version_option(version=__version__, prog_name="hostops")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Log level (default: HOSTOPS_LOG_LEVEL or WARNING)",
)
@click.option(
    "--lang",
    type=click.Choice(sorted(get_available_languages())),
    default=None,
    help="Output language (default: HOSTOPS_LANGUAGE or en)",
)
@click.pass_context
def cli(ctx, log_level, lang):
    """HostOps - safe host capabilities and system diagnosis"""
    config = get_config()

    logging.basicConfig(
        level=getattr(logging, (log_level or config.log_level).upper()),
        format="%(levelname)s: %(name)s: %(message)s",
    )

    language = lang or config.language
    if not set_language(language):
        set_language("en")

    ctx.ensure_object(dict)
    ctx.obj["language"] = language if language in get_available_languages() else "en"


cli.add_command(caps)
cli.add_command(call)
cli.add_command(diagnose)


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
