"""Process creation on top of parsed invocations."""

from __future__ import annotations

import errno
import subprocess
from typing import TYPE_CHECKING, Any

from xspawn.command_utils import is_windows
from xspawn.parse import get_default_parser

if TYPE_CHECKING:
    from pathlib import Path

    from xspawn.models import ParsedInvocation
    from xspawn.parse import ArgsLike, CommandParser, OptionsLike


class CommandNotFoundError(FileNotFoundError):
    """The command could not be found; mirrors the ENOENT a POSIX spawn raises."""

    def __init__(self, command: str, args: tuple[str, ...] | None, syscall: str) -> None:
        super().__init__(errno.ENOENT, f"{syscall} {command} ENOENT", command)
        self.syscall = f"{syscall} {command}"
        self.spawnargs = list(args) if args is not None else []


def _normalize_cwd(cwd: str | Path | None) -> str | None:
    if cwd is None:
        return None
    return str(cwd)


def to_popen_call(parsed: ParsedInvocation) -> tuple[str | list[str], dict[str, Any]]:
    """Map a parsed invocation onto ``subprocess.Popen`` positional and keyword arguments."""
    options = parsed.options
    kwargs: dict[str, Any] = dict(options.model_extra or {})
    kwargs["cwd"] = _normalize_cwd(options.cwd)
    kwargs["env"] = dict(options.env) if options.env is not None else None

    if options.shell:
        kwargs["shell"] = True
        if isinstance(options.shell, str):
            kwargs["executable"] = options.shell
        return " ".join([parsed.command, *parsed.args]), kwargs

    if options.windows_verbatim_arguments:
        # Popen passes a string through as the literal Windows command line.
        program = subprocess.list2cmdline([parsed.command])
        return " ".join([program, *parsed.args]), kwargs

    return [parsed.command, *parsed.args], kwargs


def verify_enoent(
    returncode: int | None,
    parsed: ParsedInvocation,
    *,
    syscall: str = "spawn",
    windows: bool | None = None,
) -> CommandNotFoundError | None:
    """Detect a missing command hidden behind cmd.exe's exit status 1.

    cmd.exe reports an unknown command as a normal exit with status 1, so an
    unresolved command with that status is reported as ENOENT.
    """
    if windows is None:
        windows = is_windows()
    if windows and returncode == 1 and parsed.file is None:
        return CommandNotFoundError(parsed.original.command, parsed.original.args, syscall)
    return None


def spawn(
    command: str,
    args: ArgsLike | None = None,
    options: OptionsLike | None = None,
    *,
    parser: CommandParser | None = None,
) -> subprocess.Popen[Any]:
    """Start *command* the way the current platform needs it started."""
    parsed = (parser or get_default_parser()).parse(command, args, options)
    popen_args, kwargs = to_popen_call(parsed)
    return subprocess.Popen(popen_args, **kwargs)


def run(
    command: str,
    args: ArgsLike | None = None,
    options: OptionsLike | None = None,
    *,
    parser: CommandParser | None = None,
) -> subprocess.CompletedProcess[Any]:
    """Run *command* to completion.

    Raises:
        CommandNotFoundError: the command does not exist (on Windows, where
            cmd.exe would otherwise report it as exit status 1).
        subprocess.CalledProcessError: ``check`` was set and the exit status
            is non-zero.
    """
    active = parser or get_default_parser()
    parsed = active.parse(command, args, options)
    popen_args, kwargs = to_popen_call(parsed)
    check = bool(kwargs.pop("check", False))
    completed = subprocess.run(popen_args, check=False, **kwargs)
    error = verify_enoent(
        completed.returncode, parsed, syscall="spawnSync", windows=active.windows
    )
    if error is not None:
        raise error
    if check:
        completed.check_returncode()
    return completed


__all__ = ["CommandNotFoundError", "run", "spawn", "to_popen_call", "verify_enoent"]
