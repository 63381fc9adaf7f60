"""Read and print whole command lines for ``xspawn parse``.

``--line`` input is tokenized the way the target platform would: ``mslex``
for Windows targets, ``shlex`` for POSIX ones. Text output goes the other
way and renders a :class:`ParsedInvocation` back into a single line.
"""

from __future__ import annotations

import shlex
from typing import TYPE_CHECKING

import mslex

if TYPE_CHECKING:
    from xspawn.models import ParsedInvocation


def split_line(line: str, *, windows: bool) -> tuple[str, list[str]]:
    """Split *line* into (command, args); raise ValueError when it holds no words."""
    words = mslex.split(line) if windows else shlex.split(line)
    if not words:
        raise ValueError("command line is empty")
    return words[0], words[1:]


def render_invocation(parsed: ParsedInvocation, *, windows: bool) -> str:
    words = [parsed.command, *parsed.args]
    # A cmd.exe rewrite is already escaped; quoting it again would corrupt it.
    if parsed.options.windows_verbatim_arguments:
        return " ".join(words)
    if windows:
        return mslex.join(words)
    return shlex.join(words)


__all__ = ["render_invocation", "split_line"]
