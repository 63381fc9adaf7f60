"""Configuration loader for xspawn."""

from __future__ import annotations

import os
import tomllib
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

from xspawn.limits import (
    ESCAPE_CACHE_SIZE,
    PARSE_CACHE_SIZE,
    RESOLVE_CACHE_SIZE,
    SHEBANG_READ_BYTES,
)

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

ENV_PREFIX = "XSPAWN_"


class ShimConfig(BaseModel):
    """Tunables for a :class:`~xspawn.parse.CommandParser`."""

    parse_cache_size: int = Field(default=PARSE_CACHE_SIZE, ge=1)
    resolve_cache_size: int = Field(default=RESOLVE_CACHE_SIZE, ge=1)
    escape_cache_size: int = Field(default=ESCAPE_CACHE_SIZE, ge=1)
    shebang_read_bytes: int = Field(
        default=SHEBANG_READ_BYTES, ge=1, description="Bytes read when sniffing for #!"
    )
    shell_path: str | None = Field(
        default=None, description="Command interpreter for rewrites (None = COMSPEC or cmd.exe)"
    )


def _env_overrides(environ: Mapping[str, str]) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for name in ShimConfig.model_fields:
        value = environ.get(f"{ENV_PREFIX}{name.upper()}")
        if value is not None and value != "":
            overrides[name] = value
    return overrides


def load_config(
    path: Path | None = None, environ: Mapping[str, str] | None = None
) -> ShimConfig:
    """Build a config from an optional TOML file, then ``XSPAWN_*`` variables.

    The file may hold the settings at top level or under an ``[xspawn]`` table.
    """
    data: dict[str, Any] = {}
    if path is not None:
        with path.open("rb") as handle:
            document = tomllib.load(handle)
        table = document.get("xspawn", document)
        data.update({key: value for key, value in table.items() if key in ShimConfig.model_fields})
    data.update(_env_overrides(os.environ if environ is None else environ))
    return ShimConfig.model_validate(data)
