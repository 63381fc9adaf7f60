"""Interpreter directive (``#!``) detection for resolved command files."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from xspawn.limits import SHEBANG_READ_BYTES

if TYPE_CHECKING:
    from collections.abc import Callable

    from xspawn.models import ParsedInvocation
    from xspawn.resolve import CommandResolver

log = logging.getLogger(__name__)

type ReadPrefix = Callable[[str, int], bytes]


def read_prefix(path: str, size: int) -> bytes:
    """Read at most *size* bytes from the start of *path*."""
    with open(path, "rb") as handle:
        return handle.read(size)


def parse_shebang(text: str) -> tuple[str, str | None] | None:
    """Extract ``(interpreter, argument)`` from the first line of *text*.

    ``#!/usr/bin/env node`` yields ``("node", None)``; ``#!/bin/sh -e`` yields
    ``("sh", "-e")``.  Returns None when there is no usable directive.
    """
    if not text.startswith("#!"):
        return None
    line = text.splitlines()[0][2:]
    if line.startswith(" "):
        line = line[1:]
    parts = line.split(" ")
    binary = parts[0].rsplit("/", 1)[-1]
    argument = parts[1] if len(parts) > 1 and parts[1] else None
    if binary == "env":
        return (argument, None) if argument else None
    if not binary:
        return None
    return binary, argument


def read_shebang(
    path: str, reader: ReadPrefix = read_prefix, size: int = SHEBANG_READ_BYTES
) -> tuple[str, str | None] | None:
    """Return the directive at the head of *path*; unreadable files have none."""
    try:
        head = reader(path, size)
    except OSError as exc:
        log.debug("Could not read %s for a shebang: %s", path, exc)
        return None
    return parse_shebang(head.decode("utf-8", errors="replace"))


class ShebangDetector:
    """Rewrites a parsed invocation to run through its script's interpreter."""

    def __init__(
        self,
        resolver: CommandResolver,
        *,
        reader: ReadPrefix = read_prefix,
        size: int = SHEBANG_READ_BYTES,
    ) -> None:
        self._resolver = resolver
        self._reader = reader
        self._size = size

    def detect(self, parsed: ParsedInvocation) -> str | None:
        """Resolve ``parsed.file`` and return the path that will actually execute.

        With a directive, the script path is moved into the arguments, the
        interpreter becomes the command, and the interpreter's path is returned.
        """
        parsed.file = self._resolver.resolve(parsed)
        if parsed.file is None:
            return None

        shebang = read_shebang(parsed.file, self._reader, self._size)
        if shebang is None:
            return parsed.file

        interpreter, argument = shebang
        prefix = [parsed.file] if argument is None else [argument, parsed.file]
        parsed.args[:0] = prefix
        parsed.command = interpreter
        log.debug("Running %s through interpreter %r", parsed.file, interpreter)
        return self._resolver.resolve(parsed)


__all__ = ["ShebangDetector", "parse_shebang", "read_prefix", "read_shebang"]
