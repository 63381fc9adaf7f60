"""Pytest fixtures for xspawn tests."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from hypothesis import Phase, Verbosity, settings

from xspawn.parse import CommandParser, reset_default_parser

if TYPE_CHECKING:
    from collections.abc import Callable, Generator
    from pathlib import Path


settings.register_profile(
    "ci",
    max_examples=100,
    deadline=None,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
)
settings.register_profile(
    "dev",
    max_examples=20,
    deadline=500,
)
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    deadline=None,
)
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "dev"))

WIN_TEST_PATHEXT = ".com;.exe;.bat;.cmd"
WIN_TEST_COMSPEC = "C:\\Windows\\System32\\cmd.exe"


@pytest.fixture(autouse=True)
def _mock_platform_system(monkeypatch: pytest.MonkeyPatch, request: pytest.FixtureRequest) -> None:
    """Handle @pytest.mark.mock_platform_system("Windows") marker."""
    marker = request.node.get_closest_marker("mock_platform_system")
    if marker:
        target_platform = marker.args[0]
        monkeypatch.setattr("platform.system", lambda: target_platform)
        monkeypatch.setattr(
            "xspawn.command_utils.is_windows", lambda: target_platform == "Windows"
        )


@pytest.fixture(autouse=True)
def _fresh_default_parser() -> Generator[None, None, None]:
    """Keep the process-wide parser caches from leaking between tests."""
    reset_default_parser()
    yield
    reset_default_parser()


@pytest.fixture
def make_file(tmp_path: Path) -> Callable[..., Path]:
    """Create a file under tmp_path, optionally executable."""

    def _make(relative: str, content: str = "", *, executable: bool = True) -> Path:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        if executable:
            path.chmod(0o755)
        return path

    return _make


@pytest.fixture
def windows_parser(tmp_path: Path) -> Callable[..., CommandParser]:
    """Build a parser applying Windows rules against directories under tmp_path."""

    def _make(*path_dirs: str, **kwargs: object) -> CommandParser:
        search_path = ";".join(str(tmp_path / entry) for entry in path_dirs)
        environ = {
            "Path": search_path,
            "PATHEXT": WIN_TEST_PATHEXT,
            "COMSPEC": WIN_TEST_COMSPEC,
        }
        return CommandParser(windows=True, environ=environ, **kwargs)  # type: ignore[arg-type]

    return _make
