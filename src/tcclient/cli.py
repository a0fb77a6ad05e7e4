# cli.py
from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
from pydantic import ValidationError

from tcclient import settings
from tcclient.codec import step_from_json, step_properties, step_to_json
from tcclient.dsl import StepBuilder
from tcclient.errors import StepError
from tcclient.model import StepCommandLine, StepExecuteMode
from tcclient.ui.console import Console, set_console, get_console

PLATFORM_CHOICES = ["any", "linux", "windows"]
MODE_CHOICES = [m.value for m in StepExecuteMode]


def read_envelope(source: str) -> bytes:
    """
    Read raw envelope bytes from a file path, or stdin when `source` is "-".

    Raises:
        SystemExit: If the file does not exist or cannot be read
    """
    console = get_console()

    if source == "-":
        return sys.stdin.buffer.read()

    path = Path(source)
    if not path.exists():
        console.print_error(
            "Step file not found",
            f"Could not find step file: {source}",
            suggestion="Pass a JSON file written by `tcstep new`, or - to read stdin.",
        )
        sys.exit(1)

    try:
        return path.read_bytes()
    except OSError as e:
        console.print_error(
            "Could not read step file",
            str(e),
            suggestion="Pass a readable JSON file, or - to read stdin.",
        )
        if console.debug:
            console.print_exception(e)
        sys.exit(1)


def decode_or_exit(ctx, source: str, restore_container: bool | None = None) -> StepCommandLine:
    """Decode an envelope, turning library errors into CLI errors."""
    console = get_console()
    data = read_envelope(source)

    try:
        step = step_from_json(data, restore_container=restore_container)
    except StepError as e:
        console.print_error(
            "Invalid step",
            e.message,
            details=[f"kind={e.kind}"] + [f"{k}={v}" for k, v in e.details.items()],
        )
        sys.exit(1)
    except ValidationError as e:
        console.print_error(
            "Malformed step JSON",
            f"Could not parse step envelope from {source}",
            details=[str(err["msg"]) for err in e.errors()],
        )
        if ctx.obj.get("debug", False):
            console.print_exception(e)
        sys.exit(1)

    console.print_debug(f"Decoded step {step.name!r} from {source}")
    return step


@click.group()
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug mode (show stack traces and detailed output)",
)
@click.pass_context
def cli(ctx, debug):
    """tcstep: build and inspect command line build steps."""
    console = Console(debug=debug)
    set_console(console)

    level = logging.DEBUG if debug else logging.getLevelName(settings.LOG_LEVEL)
    # getLevelName() maps unknown names to a "Level X" string, not an int
    if not isinstance(level, int):
        console.print_error(
            "Invalid log level",
            f"TCCLIENT_LOG_LEVEL={settings.LOG_LEVEL} is not a known logging level.",
            suggestion="Use one of DEBUG, INFO, WARNING, ERROR, CRITICAL.",
        )
        sys.exit(1)

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug


@cli.command()
@click.option("--name", required=True, help="Step name")
@click.option("--id", "step_id", default="", help="Server-assigned step ID (for already persisted steps)")
@click.option("--script", default=None, help="Inline script to run")
@click.option("--executable", default=None, help="Executable to run")
@click.option("--args", default="", help="Arguments passed to --executable")
@click.option("--mode", type=click.Choice(MODE_CHOICES), default=StepExecuteMode.DEFAULT.value, show_default=True, help="Execute mode")
@click.option("--image", default="", help="Container image reference (empty: no container)")
@click.option("--platform", type=click.Choice(PLATFORM_CHOICES), default="any", show_default=True, help="Container platform")
@click.option("--pull/--no-pull", default=False, show_default=True, help="Explicitly pull the image on every run")
@click.option("--run-args", default="", help="Additional container run arguments")
@click.option("--output", "-o", type=click.Path(dir_okay=False), default=None, help="Write JSON here instead of stdout")
@click.pass_context
def new(ctx, name, step_id, script, executable, args, mode, image, platform, pull, run_args, output):
    """Create a command line step and print its JSON envelope."""
    console = get_console()

    if (script is None) == (executable is None):
        console.print_error(
            "Invalid step content",
            "Exactly one of --script or --executable is required.",
            suggestion="Examples:\n  tcstep new --name build --script 'make all'\n  tcstep new --name test --executable pytest --args -q",
        )
        sys.exit(1)

    builder = StepBuilder(name).with_id(step_id).execute_mode(mode)
    if script is not None:
        builder.run_script(script)
    else:
        builder.run_executable(executable, args)
    if image:
        builder.in_container(image, platform=platform, pull=pull, run_args=run_args)

    try:
        step = builder.build()
    except StepError as e:
        console.print_error("Invalid step", e.message, details=[f"kind={e.kind}"])
        sys.exit(1)

    data = step_to_json(step)
    if output:
        Path(output).write_bytes(data + b"\n")
        console.print_info(f"Wrote step {name!r} to {output}")
    else:
        click.echo(data.decode("utf-8"))


@cli.command()
@click.argument("source")
@click.option(
    "--restore-container/--no-restore-container",
    default=None,
    help="Also read back container platform, pull flag and run arguments (default from TCCLIENT_RESTORE_CONTAINER)",
)
@click.pass_context
def inspect(ctx, source, restore_container):
    """Decode a step envelope and print its typed fields."""
    step = decode_or_exit(ctx, source, restore_container)
    get_console().print_step(step)


@cli.command()
@click.argument("source")
@click.pass_context
def properties(ctx, source):
    """Decode a step envelope and print the property bag it encodes to."""
    step = decode_or_exit(ctx, source, restore_container=True)
    get_console().print_properties(step_properties(step))


if __name__ == "__main__":
    cli()
