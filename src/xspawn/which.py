"""Executable lookup on the search path, with Windows extension rules."""

from __future__ import annotations

import os
import shutil
from typing import TYPE_CHECKING

from xspawn.command_utils import WIN_DEFAULT_PATHEXT, is_windows

if TYPE_CHECKING:
    from collections.abc import Iterator

WIN_PATH_DELIMITER = ";"
POSIX_PATH_DELIMITER = ":"


class ExecutableNotFoundError(LookupError):
    """Raised when no executable matches a name on the search path."""

    def __init__(self, name: str) -> None:
        super().__init__(f"not found: {name}")
        self.name = name


def _has_separator(name: str, windows: bool) -> bool:
    return "/" in name or (windows and "\\" in name)


def _windows_extensions(name: str, pathext: str | None) -> list[str]:
    if pathext is None:
        pathext = os.environ.get("PATHEXT") or WIN_DEFAULT_PATHEXT
    extensions = pathext.split(WIN_PATH_DELIMITER)
    # A name that already carries an extension is also tried as-is.
    if "." in name and extensions[0] != "":
        extensions.insert(0, "")
    return extensions


def _windows_candidates(name: str, path: str | None, pathext: str | None) -> Iterator[str]:
    extensions = _windows_extensions(name, pathext)
    if _has_separator(name, windows=True):
        directories = [""]
    else:
        # cmd.exe looks in the current directory before the search path.
        directories = [".", *(path or "").split(WIN_PATH_DELIMITER)]
    for directory in directories:
        directory = directory.strip('"')
        if directory == "" and not _has_separator(name, windows=True):
            continue
        base = os.path.join(directory, name) if directory else name
        for extension in extensions:
            yield base + extension


def which(
    name: str,
    *,
    path: str | None = None,
    pathext: str | None = None,
    windows: bool | None = None,
) -> str:
    """Return the first executable called *name* on *path*.

    On Windows, ``pathext`` lists the accepted suffixes (``PATHEXT`` when
    omitted); an empty string accepts the bare name only.  Elsewhere the
    lookup is :func:`shutil.which` and ``pathext`` is ignored.

    Raises:
        ExecutableNotFoundError: nothing on the search path matched.
    """
    if windows is None:
        windows = is_windows()
    if not name:
        raise ExecutableNotFoundError(name)

    if not windows:
        found = shutil.which(name, path=path)
        if found is None:
            raise ExecutableNotFoundError(name)
        return found

    if pathext == WIN_PATH_DELIMITER:
        pathext = ""
    for candidate in _windows_candidates(name, path, pathext):
        if os.path.isfile(candidate):
            return candidate
    raise ExecutableNotFoundError(name)


__all__ = ["ExecutableNotFoundError", "which"]
