"""Command-line front end for inspecting and running parsed invocations."""

from __future__ import annotations

import json
import logging
import os
import sys
from pathlib import Path

import click
from pydantic import ValidationError

from xspawn import __version__
from xspawn.command_lex import render_invocation, split_line
from xspawn.command_utils import get_path_key
from xspawn.config import ShimConfig, load_config
from xspawn.escape import escape_argument, escape_command
from xspawn.parse import CommandParser
from xspawn.process import CommandNotFoundError, run as run_command
from xspawn.which import ExecutableNotFoundError, which as find_executable

PLATFORM_CHOICES = ("auto", "windows", "posix")


def _platform_flag(value: str) -> bool | None:
    if value == "auto":
        return None
    return value == "windows"


def _build_parser(
    ctx: click.Context,
    platform_name: str,
    *,
    search_path: str | None = None,
    pathext: str | None = None,
) -> CommandParser:
    config: ShimConfig = ctx.obj["config"]
    windows = _platform_flag(platform_name)
    environ: dict[str, str] | None = None
    if search_path is not None or pathext is not None:
        environ = dict(os.environ)
        if search_path is not None:
            environ[get_path_key(environ, windows=windows)] = search_path
        if pathext is not None:
            environ["PATHEXT"] = pathext
    return CommandParser(windows=windows, environ=environ, config=config)


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(__version__, prog_name="xspawn")
@click.option("-v", "--verbose", is_flag=True, help="Log resolution details to stderr")
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="TOML file with cache sizes and shell override",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, config_path: Path | None) -> None:
    """Resolve, escape and launch commands the same way on every platform."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")
    try:
        config = load_config(config_path)
    except (ValidationError, ValueError) as exc:
        raise click.ClickException(f"Invalid configuration: {exc}") from exc
    ctx.ensure_object(dict)
    ctx.obj["config"] = config


@cli.command(context_settings={"ignore_unknown_options": True})
@click.argument("command", required=False)
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.option(
    "-p",
    "--platform",
    "platform_name",
    type=click.Choice(PLATFORM_CHOICES),
    default="auto",
    help="Platform rules to apply",
)
@click.option("--cwd", type=click.Path(file_okay=False), default=None, help="Working directory")
@click.option("--shell", "use_shell", is_flag=True, help="Pass the call through a shell as-is")
@click.option("--force-shell", is_flag=True, help="Always rewrite into a cmd.exe command line")
@click.option("--line", default=None, help="Whole command line to split instead of COMMAND ARGS")
@click.option(
    "--path",
    "search_path",
    default=None,
    help="Search path in the target platform's syntax (';'-separated for windows)",
)
@click.option("--pathext", default=None, help="Executable extensions tried on windows")
@click.option("--json/--text", "as_json", default=True, help="Output format")
@click.pass_context
def parse(
    ctx: click.Context,
    command: str | None,
    args: tuple[str, ...],
    platform_name: str,
    cwd: str | None,
    use_shell: bool,
    force_shell: bool,
    line: str | None,
    search_path: str | None,
    pathext: str | None,
    as_json: bool,
) -> None:
    """Show the executable, arguments and options a spawn would receive.

    \b
    Examples:
        xspawn parse --platform windows npm install "left pad"
        xspawn parse --line 'git commit -m "wip"'
        xspawn parse --platform windows --path 'C:\\tools;C:\\bin' tool

    --path and --pathext replace the process values for this lookup, so a
    windows search can be inspected from a POSIX host.
    """
    parser = _build_parser(ctx, platform_name, search_path=search_path, pathext=pathext)
    if line is not None:
        try:
            command, arg_list = split_line(line, windows=parser.windows)
        except ValueError as exc:
            raise click.UsageError("--line is empty") from exc
        args = tuple(arg_list)
    elif command is None:
        raise click.UsageError("Either provide COMMAND or use --line")

    options = {"cwd": cwd, "shell": use_shell, "force_shell": force_shell}
    parsed = parser.parse(command, list(args), options)
    if as_json:
        click.echo(json.dumps(parsed.to_dict(), indent=2))
        return
    click.echo(render_invocation(parsed, windows=parser.windows))


@cli.command()
@click.argument("value")
@click.option("--command", "as_command", is_flag=True, help="Escape as a command name")
@click.option("--double", is_flag=True, help="Escape metacharacters twice (cmd-shims)")
def escape(value: str, as_command: bool, double: bool) -> None:
    """Print VALUE escaped for cmd.exe."""
    if as_command:
        click.echo(escape_command(value))
    else:
        click.echo(escape_argument(value, double))


@cli.command()
@click.argument("name")
@click.option("--path", "search_path", default=None, help="Search path (defaults to PATH)")
def which(name: str, search_path: str | None) -> None:
    """Print the executable NAME resolves to."""
    try:
        click.echo(find_executable(name, path=search_path))
    except ExecutableNotFoundError as exc:
        raise click.ClickException(str(exc)) from exc


@cli.command(context_settings={"ignore_unknown_options": True})
@click.argument("command")
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.option("--cwd", type=click.Path(file_okay=False), default=None, help="Working directory")
@click.pass_context
def run(ctx: click.Context, command: str, args: tuple[str, ...], cwd: str | None) -> None:
    """Run COMMAND ARGS and exit with its status."""
    parser = _build_parser(ctx, "auto")
    try:
        completed = run_command(command, list(args), {"cwd": cwd}, parser=parser)
    except CommandNotFoundError as exc:
        raise click.ClickException(str(exc)) from exc
    except OSError as exc:
        raise click.ClickException(f"{command}: {exc}") from exc
    sys.exit(completed.returncode)


__all__ = ["cli"]
