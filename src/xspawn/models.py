"""Data models for spawn requests and parsed invocations."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SpawnOptions(BaseModel):
    """Options bag for a spawn request.

    Unknown keys (``stdout``, ``text``, ...) are kept and handed to
    :mod:`subprocess` untouched.
    """

    model_config = ConfigDict(extra="allow", arbitrary_types_allowed=True)

    shell: bool | str = Field(
        default=False, description="Run through a shell; a string names the shell binary"
    )
    cwd: str | Path | None = Field(default=None, description="Working directory for the child")
    env: dict[str, str] | None = Field(
        default=None, description="Environment for the child and for command resolution"
    )
    force_shell: bool = Field(
        default=False, description="Always re-express the call as a cmd.exe command line"
    )
    windows_verbatim_arguments: bool = Field(
        default=False, description="Arguments are already quoted for cmd.exe"
    )

    def cache_key(self) -> str:
        """Stable serialization used to key the parse cache."""
        return json.dumps(self.model_dump(), sort_keys=True, default=repr)


@dataclass(frozen=True, slots=True)
class OriginalCommand:
    """The caller's command and arguments, exactly as passed in."""

    command: str
    args: tuple[str, ...] | None


@dataclass(slots=True)
class ParsedInvocation:
    """What the process-creation call receives, plus resolution details."""

    command: str
    args: list[str]
    options: SpawnOptions
    original: OriginalCommand
    file: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "command": self.command,
            "args": list(self.args),
            "options": self.options.model_dump(mode="json", exclude_defaults=True),
            "file": self.file,
            "original": {
                "command": self.original.command,
                "args": list(self.original.args) if self.original.args is not None else None,
            },
        }


__all__ = ["OriginalCommand", "ParsedInvocation", "SpawnOptions"]
