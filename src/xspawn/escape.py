"""Escaping of commands and arguments for re-parsing by cmd.exe.

The argument algorithm follows https://qntm.org/cmd: quote the argument so
``CommandLineToArgvW`` rebuilds it verbatim, then caret-escape every cmd
metacharacter so cmd itself passes the quotes through untouched.

Both transforms are single left-to-right scans, so their cost is linear in
the input length whatever the mix of backslashes and quotes.
"""

from __future__ import annotations

from xspawn.cache import BoundedCache
from xspawn.limits import ESCAPE_CACHE_SIZE

# See http://www.robvanderwoude.com/escapechars.php
META_CHARS = frozenset('()[]%!^"`<>&|;, *?')
_META_TABLE = str.maketrans({char: f"^{char}" for char in META_CHARS})


def escape_meta_chars(value: str) -> str:
    """Prefix every cmd metacharacter in *value* with ``^``."""
    return value.translate(_META_TABLE)


def escape_command(raw: str) -> str:
    """Escape a command name so cmd treats every metacharacter literally."""
    return escape_meta_chars(raw)


def _quote_argument(raw: str) -> str:
    parts: list[str] = ['"']
    backslashes = 0
    for char in raw:
        if char == "\\":
            backslashes += 1
            continue
        if char == '"':
            # The run now precedes an escaped quote: double it, then escape the quote.
            parts.append("\\" * (backslashes * 2))
            parts.append('\\"')
        else:
            parts.append("\\" * backslashes)
            parts.append(char)
        backslashes = 0
    # A trailing run sits right before the closing quote.
    parts.append("\\" * (backslashes * 2))
    parts.append('"')
    return "".join(parts)


def escape_argument(raw: object, double_escape: bool = False) -> str:
    """Quote and caret-escape *raw* so cmd.exe hands it over as one argument.

    ``double_escape`` applies the caret pass twice, for invocations that go
    through cmd twice (npm cmd-shims re-invoke their interpreter via cmd).
    """
    escaped = escape_meta_chars(_quote_argument(str(raw)))
    if double_escape:
        escaped = escape_meta_chars(escaped)
    return escaped


class Escaper:
    """Cache-backed front for :func:`escape_command` and :func:`escape_argument`.

    Escaping is not idempotent; callers escape once per layer of cmd parsing.
    """

    def __init__(self, cache: BoundedCache[tuple[str, str], str] | None = None) -> None:
        self.cache = cache if cache is not None else BoundedCache(ESCAPE_CACHE_SIZE)

    def command(self, raw: str) -> str:
        key = (raw, "command")
        escaped = self.cache.get(key)
        if escaped is None:
            escaped = escape_command(raw)
            self.cache.put(key, escaped)
        return escaped

    def argument(self, raw: object, double_escape: bool = False) -> str:
        value = str(raw)
        key = (value, "argument-double" if double_escape else "argument")
        escaped = self.cache.get(key)
        if escaped is None:
            escaped = escape_argument(value, double_escape)
            self.cache.put(key, escaped)
        return escaped


__all__ = [
    "META_CHARS",
    "Escaper",
    "escape_argument",
    "escape_command",
    "escape_meta_chars",
]
