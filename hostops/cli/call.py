"""hostops call - invoke one capability and print the result envelope"""

import json
import sys
import uuid

import click

from hostops.core.capabilities import CapabilityCall, ExecutorDispatch, UnknownCapability, create_registry
from hostops.i18n import t


@click.command()
@click.argument("name")
@click.option("--args", "args_json", default="{}", help='Arguments as a JSON object, e.g. \'{"path": "."}\'')
@click.option("--timeout", type=float, default=None, help="Upper bound in seconds for this call")
@click.pass_context
def call(ctx, name, args_json, timeout):
    """
    Invoke capability NAME

    Prints {"name", "result", "error"} as JSON. Exits 1 if error is set.

    Examples:

        hostops call fs-ls --args '{"path": "/tmp"}'
        hostops call net-ping --args '{"host": "example.com", "count": 2}'
    """
    language = (ctx.obj or {}).get("language", "en")
    try:
        arguments = json.loads(args_json)
    except json.JSONDecodeError as e:
        raise click.BadParameter(t("cli.call.invalid_json", lang=language, error=e.msg), param_hint="--args")
    if not isinstance(arguments, dict):
        raise click.BadParameter(t("cli.call.invalid_json", lang=language, error=type(arguments).__name__),
                                 param_hint="--args")

    dispatch = ExecutorDispatch(create_registry())
    capability_call = CapabilityCall(id=uuid.uuid4().hex[:12], name=name, arguments=arguments)
    try:
        result = dispatch.execute(capability_call, timeout=timeout)
    except UnknownCapability:
        click.echo(t("cli.error.unknown_capability", lang=language, name=name), err=True)
        sys.exit(2)

    click.echo(json.dumps(result.to_wire(), indent=2, ensure_ascii=False))
    sys.exit(0 if result.success else 1)
