"""Command name to executable path resolution."""

from __future__ import annotations

import contextlib
import logging
import os
import threading
from typing import TYPE_CHECKING, Protocol

from xspawn.cache import BoundedCache
from xspawn.command_utils import get_env_value, get_path_key, is_windows
from xspawn.limits import RESOLVE_CACHE_SIZE
from xspawn.which import WIN_PATH_DELIMITER, ExecutableNotFoundError, which

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping
    from pathlib import Path

    from xspawn.models import ParsedInvocation

log = logging.getLogger(__name__)

# The working directory is process-wide: every resolution, redirected or not, holds this.
_CWD_LOCK = threading.RLock()
_UNRESOLVED = object()


class PathSearch(Protocol):
    def __call__(
        self,
        name: str,
        *,
        path: str | None = ...,
        pathext: str | None = ...,
        windows: bool | None = ...,
    ) -> str: ...


@contextlib.contextmanager
def working_directory(cwd: str | Path | None) -> Iterator[None]:
    """Temporarily chdir into *cwd*, carrying on in place if that fails."""
    if cwd is None:
        yield
        return
    with _CWD_LOCK:
        previous = os.getcwd()
        try:
            os.chdir(cwd)
        except OSError as exc:
            log.debug("Could not switch to %s for command lookup: %s", cwd, exc)
            switched = False
        else:
            switched = True
        try:
            yield
        finally:
            if switched:
                os.chdir(previous)


class CommandResolver:
    """Resolves ``parsed.command`` to an absolute executable path.

    Results, including misses, are cached per (command, cwd, search path).
    """

    def __init__(
        self,
        *,
        windows: bool | None = None,
        environ: Mapping[str, str] | None = None,
        search: PathSearch | None = None,
        cache: BoundedCache[tuple[str, str, str | None], str | None] | None = None,
    ) -> None:
        self.windows = is_windows() if windows is None else windows
        self._environ = os.environ if environ is None else environ
        self._search: PathSearch = search or which
        self.cache = cache if cache is not None else BoundedCache(RESOLVE_CACHE_SIZE)

    def _effective_env(self, parsed: ParsedInvocation) -> Mapping[str, str]:
        env = parsed.options.env
        return self._environ if env is None else env

    def _search_path(self, env: Mapping[str, str]) -> str | None:
        value = env.get(get_path_key(env, windows=self.windows))
        if value is None and env is not self._environ:
            # A custom env without a search path still searches the process one.
            value = self._environ.get(get_path_key(self._environ, windows=self.windows))
        return value

    def _attempt(self, parsed: ParsedInvocation, *, without_pathext: bool = False) -> str | None:
        env = self._effective_env(parsed)
        cwd = parsed.options.cwd or None
        if without_pathext:
            pathext: str | None = WIN_PATH_DELIMITER
        else:
            pathext = get_env_value(env, "PATHEXT", windows=True) if self.windows else None

        resolved: str | None
        with working_directory(cwd):
            try:
                resolved = self._search(
                    parsed.command,
                    path=self._search_path(env),
                    pathext=pathext,
                    windows=self.windows,
                )
            except ExecutableNotFoundError:
                resolved = None

        if not resolved:
            return None
        if cwd is not None:
            return os.path.abspath(os.path.join(cwd, resolved))
        return os.path.abspath(resolved)

    def resolve(self, parsed: ParsedInvocation) -> str | None:
        env = self._effective_env(parsed)
        with _CWD_LOCK:
            cwd = str(parsed.options.cwd or os.getcwd())
            key = (parsed.command, cwd, self._search_path(env))

            cached = self.cache.get(key, _UNRESOLVED)
            if cached is not _UNRESOLVED:
                return cached

            resolved = self._attempt(parsed)
            if resolved is None and self.windows:
                # Extensionless scripts are still runnable through cmd.exe.
                resolved = self._attempt(parsed, without_pathext=True)
            log.debug("Resolved %r in %s to %s", parsed.command, cwd, resolved)
            self.cache.put(key, resolved)
            return resolved


__all__ = ["CommandResolver", "PathSearch", "working_directory"]
