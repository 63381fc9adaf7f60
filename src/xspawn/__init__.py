"""xspawn: cross-platform command resolution and cmd.exe escaping for process launches."""

from xspawn.escape import escape_argument, escape_command
from xspawn.models import ParsedInvocation, SpawnOptions
from xspawn.parse import CommandParser, parse
from xspawn.process import CommandNotFoundError, run, spawn

__version__ = "0.1.0"

__all__ = [
    "CommandNotFoundError",
    "CommandParser",
    "ParsedInvocation",
    "SpawnOptions",
    "escape_argument",
    "escape_command",
    "parse",
    "run",
    "spawn",
]
