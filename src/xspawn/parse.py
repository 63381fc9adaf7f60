"""Turn a (command, args, options) request into the call the OS should receive."""

from __future__ import annotations

import logging
import ntpath
import os
import re
from collections.abc import Mapping
from typing import TYPE_CHECKING

from xspawn.cache import BoundedCache
from xspawn.command_utils import default_shell, is_windows
from xspawn.config import ShimConfig
from xspawn.escape import Escaper
from xspawn.models import OriginalCommand, ParsedInvocation, SpawnOptions
from xspawn.resolve import CommandResolver
from xspawn.shebang import ShebangDetector, read_prefix

if TYPE_CHECKING:
    from collections.abc import Sequence

    from xspawn.resolve import PathSearch
    from xspawn.shebang import ReadPrefix

log = logging.getLogger(__name__)

EXECUTABLE_RE = re.compile(r"\.(?:com|exe)$", re.IGNORECASE)
CMD_SHIM_RE = re.compile(r"node_modules[\\/]\.bin[\\/][^\\/]+\.cmd$", re.IGNORECASE)

type OptionsLike = SpawnOptions | Mapping[str, object]
type ArgsLike = Sequence[str] | OptionsLike
type ParseKey = tuple[str, tuple[str, ...], str]


def _is_arg_sequence(value: object) -> bool:
    return isinstance(value, (list, tuple))


def _coerce_options(options: OptionsLike | None) -> SpawnOptions:
    """Return an owned copy of *options*; the caller's object is never touched."""
    if options is None:
        return SpawnOptions()
    if isinstance(options, SpawnOptions):
        return options.model_copy()
    if not isinstance(options, Mapping):
        log.debug("Ignoring unusable options of type %s", type(options).__name__)
        return SpawnOptions()
    return SpawnOptions.model_validate(options)


class CommandParser:
    """Owns the parse, resolve and escape caches for one process.

    Every collaborator can be injected, which lets Windows rewriting be
    exercised on any host with ``CommandParser(windows=True, environ=...)``.
    """

    def __init__(
        self,
        *,
        windows: bool | None = None,
        environ: Mapping[str, str] | None = None,
        search: PathSearch | None = None,
        reader: ReadPrefix = read_prefix,
        config: ShimConfig | None = None,
    ) -> None:
        self.config = config or ShimConfig()
        self.windows = is_windows() if windows is None else windows
        self._environ = os.environ if environ is None else environ
        self.parse_cache: BoundedCache[ParseKey, tuple[str, str | None]] = BoundedCache(
            self.config.parse_cache_size
        )
        self.escaper = Escaper(BoundedCache(self.config.escape_cache_size))
        self.resolver = CommandResolver(
            windows=self.windows,
            environ=self._environ,
            search=search,
            cache=BoundedCache(self.config.resolve_cache_size),
        )
        self.shebang = ShebangDetector(
            self.resolver, reader=reader, size=self.config.shebang_read_bytes
        )

    def parse(
        self,
        command: str,
        args: ArgsLike | None = None,
        options: OptionsLike | None = None,
    ) -> ParsedInvocation:
        # Node-style overload: parse(command, options)
        if args is not None and not _is_arg_sequence(args):
            options = args  # type: ignore[assignment]
            args = None
        arg_list = list(args) if args is not None else None  # type: ignore[arg-type]
        owned = _coerce_options(options)

        if not self.windows and not owned.shell:
            return self._parse_posix(command, arg_list, owned)

        parsed = ParsedInvocation(
            command=command,
            args=list(arg_list) if arg_list is not None else [],
            options=owned,
            original=OriginalCommand(
                command, tuple(arg_list) if arg_list is not None else None
            ),
        )
        if owned.shell:
            # The caller's shell setting is trusted verbatim.
            return parsed
        return self._parse_non_shell(parsed)

    def _parse_posix(
        self, command: str, args: list[str] | None, options: SpawnOptions
    ) -> ParsedInvocation:
        original = OriginalCommand(command, tuple(args) if args is not None else None)
        key = (command, original.args or (), options.cache_key())

        cached = self.parse_cache.get(key)
        if cached is not None:
            cached_command, cached_file = cached
            return ParsedInvocation(
                command=cached_command,
                args=list(args) if args is not None else [],
                options=options,
                original=original,
                file=cached_file,
            )

        parsed = ParsedInvocation(
            command=command,
            args=list(args) if args is not None else [],
            options=options,
            original=original,
        )
        self.parse_cache.put(key, (parsed.command, parsed.file))
        return parsed

    def _parse_non_shell(self, parsed: ParsedInvocation) -> ParsedInvocation:
        if not self.windows:
            return parsed

        command_file = self.shebang.detect(parsed)
        needs_shell = command_file is None or not EXECUTABLE_RE.search(command_file)
        if not (parsed.options.force_shell or needs_shell):
            return parsed

        # cmd-shims run their target through cmd a second time, so carets must
        # survive two rounds of parsing.
        double_escape = command_file is not None and bool(CMD_SHIM_RE.search(command_file))

        # foo/bar fails with ENOENT under cmd.exe; it needs foo\bar.
        command = self.escaper.command(ntpath.normpath(parsed.command))
        args = [self.escaper.argument(arg, double_escape) for arg in parsed.args]
        shell_command = " ".join([command, *args])

        parsed.args = ["/d", "/s", "/c", f'"{shell_command}"']
        parsed.command = default_shell(self._environ, override=self.config.shell_path)
        parsed.options.windows_verbatim_arguments = True
        log.debug("Rewrote %r as a cmd.exe command line", parsed.original.command)
        return parsed


_default_parser: CommandParser | None = None


def get_default_parser() -> CommandParser:
    """Return the process-wide parser, creating it on first use."""
    global _default_parser
    if _default_parser is None:
        _default_parser = CommandParser()
    return _default_parser


def reset_default_parser(parser: CommandParser | None = None) -> None:
    """Replace (or drop) the process-wide parser. Intended for testing."""
    global _default_parser
    _default_parser = parser


def parse(
    command: str,
    args: ArgsLike | None = None,
    options: OptionsLike | None = None,
) -> ParsedInvocation:
    """Parse a spawn request with the process-wide :class:`CommandParser`."""
    return get_default_parser().parse(command, args, options)


__all__ = [
    "CMD_SHIM_RE",
    "EXECUTABLE_RE",
    "CommandParser",
    "get_default_parser",
    "parse",
    "reset_default_parser",
]
