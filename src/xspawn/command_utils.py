"""Helpers for platform detection and environment lookups used during resolution."""

from __future__ import annotations

import platform
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping

WIN_DEFAULT_PATHEXT = ".COM;.EXE;.BAT;.CMD;.VBS;.JS;.WS;.MSC"
WIN_DEFAULT_SHELL = "cmd.exe"


def is_windows() -> bool:
    """Return True when running on Windows."""
    return platform.system() == "Windows"


def get_path_key(env: Mapping[str, str], *, windows: bool | None = None) -> str:
    """Return the name of the variable holding the executable search path.

    Windows environment names are case-insensitive and a copied environment may
    carry ``Path`` or ``PATH``; the last matching key wins, ``Path`` otherwise.
    """
    if windows is None:
        windows = is_windows()
    if not windows:
        return "PATH"
    for key in reversed(list(env)):
        if key.upper() == "PATH":
            return key
    return "Path"


def get_env_value(
    env: Mapping[str, str], name: str, *, windows: bool | None = None
) -> str | None:
    """Look up *name* in *env*, ignoring case on Windows."""
    if windows is None:
        windows = is_windows()
    if name in env:
        return env[name]
    if not windows:
        return None
    upper = name.upper()
    for key in reversed(list(env)):
        if key.upper() == upper:
            return env[key]
    return None


def default_shell(environ: Mapping[str, str], *, override: str | None = None) -> str:
    """Return the command interpreter used for shell re-expression on Windows."""
    if override:
        return override
    return get_env_value(environ, "COMSPEC", windows=True) or WIN_DEFAULT_SHELL
