"""Unit tests for command resolution."""

from __future__ import annotations

import os
import sys
import threading

import pytest

from xspawn.models import OriginalCommand, ParsedInvocation, SpawnOptions
from xspawn.resolve import CommandResolver, working_directory
from xspawn.which import ExecutableNotFoundError

pytestmark = pytest.mark.unit

WIN_ENV = {"Path": "", "PATHEXT": ".com;.exe;.bat;.cmd"}


def make_parsed(command: str, **options: object) -> ParsedInvocation:
    return ParsedInvocation(
        command=command,
        args=[],
        options=SpawnOptions.model_validate(options),
        original=OriginalCommand(command, None),
    )


class RecordingSearch:
    """Path search double that records calls and answers from a table."""

    def __init__(self, answers: dict[tuple[str, str | None], str] | None = None) -> None:
        self.answers = answers or {}
        self.calls: list[tuple[str, str | None, str | None]] = []
        self.cwds: list[str] = []

    def __call__(
        self,
        name: str,
        *,
        path: str | None = None,
        pathext: str | None = None,
        windows: bool | None = None,
    ) -> str:
        self.calls.append((name, path, pathext))
        self.cwds.append(os.getcwd())
        try:
            return self.answers[(name, pathext)]
        except KeyError:
            raise ExecutableNotFoundError(name) from None


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX permission bits")
def test_when_command_on_env_path_then_absolute_path_is_returned(make_file, tmp_path) -> None:
    tool = make_file("bin/tool", "#!/bin/sh\n")
    resolver = CommandResolver(windows=False, environ={})

    resolved = resolver.resolve(make_parsed("tool", env={"PATH": str(tmp_path / "bin")}))

    assert resolved == str(tool)


def test_when_command_missing_then_none_is_cached() -> None:
    search = RecordingSearch()
    resolver = CommandResolver(windows=False, environ={"PATH": "/nowhere"}, search=search)

    assert resolver.resolve(make_parsed("ghost")) is None
    assert resolver.resolve(make_parsed("ghost")) is None
    assert len(search.calls) == 1
    assert len(resolver.cache) == 1


def test_when_resolved_then_second_lookup_hits_cache() -> None:
    search = RecordingSearch({("tool", None): "/bin/tool"})
    resolver = CommandResolver(windows=False, environ={"PATH": "/bin"}, search=search)

    first = resolver.resolve(make_parsed("tool"))
    second = resolver.resolve(make_parsed("tool"))

    assert first == second == "/bin/tool"
    assert len(search.calls) == 1


def test_when_search_path_differs_then_cache_entries_are_separate() -> None:
    search = RecordingSearch({("tool", None): "/bin/tool"})
    resolver = CommandResolver(windows=False, environ={"PATH": "/bin"}, search=search)

    resolver.resolve(make_parsed("tool"))
    resolver.resolve(make_parsed("tool", env={"PATH": "/other"}))

    assert len(search.calls) == 2
    assert [call[1] for call in search.calls] == ["/bin", "/other"]


def test_when_posix_lookup_fails_then_no_extensionless_retry() -> None:
    search = RecordingSearch()
    resolver = CommandResolver(windows=False, environ={}, search=search)

    resolver.resolve(make_parsed("ghost"))

    assert len(search.calls) == 1


def test_when_windows_lookup_fails_then_retry_ignores_pathext() -> None:
    search = RecordingSearch({("script", ";"): "C:\\bin\\script"})
    resolver = CommandResolver(windows=True, environ=WIN_ENV, search=search)

    resolved = resolver.resolve(make_parsed("script"))

    assert [call[2] for call in search.calls] == [".com;.exe;.bat;.cmd", ";"]
    assert resolved is not None
    assert resolved.endswith("script")


def test_when_windows_env_uses_mixed_case_path_key_then_it_is_searched() -> None:
    search = RecordingSearch()
    resolver = CommandResolver(windows=True, environ={"PaTh": "C:\\tools"}, search=search)

    resolver.resolve(make_parsed("tool"))

    assert search.calls[0][1] == "C:\\tools"


def test_when_custom_env_has_no_path_then_process_path_is_searched() -> None:
    search = RecordingSearch()
    resolver = CommandResolver(windows=True, environ={"Path": "C:\\tools"}, search=search)

    resolver.resolve(make_parsed("tool", env={"FOO": "1"}))

    assert search.calls[0][1] == "C:\\tools"


def test_when_custom_env_has_its_own_path_then_process_path_is_ignored() -> None:
    search = RecordingSearch()
    resolver = CommandResolver(windows=False, environ={"PATH": "/usr/bin"}, search=search)

    resolver.resolve(make_parsed("tool", env={"PATH": "/opt/bin"}))

    assert search.calls[0][1] == "/opt/bin"


class TestCustomCwd:
    """Lookups honour options.cwd without leaking the directory change."""

    def test_search_runs_inside_cwd_and_restores(self, tmp_path) -> None:
        before = os.getcwd()
        search = RecordingSearch({("tool", ".com;.exe;.bat;.cmd"): ".\\tool.cmd"})
        resolver = CommandResolver(windows=True, environ=WIN_ENV, search=search)

        resolver.resolve(make_parsed("tool", cwd=str(tmp_path)))

        assert search.cwds == [os.path.realpath(tmp_path)]
        assert os.getcwd() == before

    def test_relative_result_is_made_absolute_against_cwd(self, make_file, tmp_path) -> None:
        tool = make_file("project/tool.cmd")
        resolver = CommandResolver(windows=True, environ=WIN_ENV)

        resolved = resolver.resolve(make_parsed("tool", cwd=str(tmp_path / "project")))

        assert resolved == str(tool)

    def test_cwd_is_part_of_cache_key(self, make_file, tmp_path) -> None:
        make_file("one/tool.cmd")
        resolver = CommandResolver(windows=True, environ=WIN_ENV)

        found = resolver.resolve(make_parsed("tool", cwd=str(tmp_path / "one")))
        missing = resolver.resolve(make_parsed("tool", cwd=str(tmp_path)))

        assert found is not None
        assert missing is None

    def test_unreachable_cwd_falls_back_to_process_cwd(self, tmp_path) -> None:
        before = os.getcwd()
        search = RecordingSearch()
        resolver = CommandResolver(windows=False, environ={}, search=search)

        result = resolver.resolve(make_parsed("tool", cwd=str(tmp_path / "missing")))

        assert result is None
        assert search.cwds == [before]
        assert os.getcwd() == before

    def test_cwd_restored_when_search_raises(self, tmp_path) -> None:
        before = os.getcwd()

        def exploding_search(name: str, **kwargs: object) -> str:
            raise RuntimeError("boom")

        resolver = CommandResolver(windows=False, environ={}, search=exploding_search)

        with pytest.raises(RuntimeError, match="boom"):
            resolver.resolve(make_parsed("tool", cwd=str(tmp_path)))
        assert os.getcwd() == before

    def test_concurrent_lookup_without_cwd_never_sees_redirect(self, tmp_path) -> None:
        before = os.getcwd()
        entered = threading.Event()
        release = threading.Event()
        seen: dict[str, str] = {}

        def search(name: str, **kwargs: object) -> str:
            seen[name] = os.getcwd()
            if name == "slow":
                entered.set()
                release.wait(timeout=5)
            raise ExecutableNotFoundError(name)

        resolver = CommandResolver(windows=False, environ={}, search=search)
        redirected = threading.Thread(
            target=resolver.resolve, args=(make_parsed("slow", cwd=str(tmp_path)),)
        )
        plain = threading.Thread(target=resolver.resolve, args=(make_parsed("fast"),))

        redirected.start()
        try:
            assert entered.wait(timeout=5)
            plain.start()
            plain.join(timeout=0.2)
            assert "fast" not in seen
        finally:
            release.set()
            redirected.join(timeout=5)
            plain.join(timeout=5)

        assert seen["slow"] == os.path.realpath(tmp_path)
        assert seen["fast"] == before
        assert ("fast", before, None) in resolver.cache
        assert os.getcwd() == before


def test_working_directory_without_cwd_is_a_no_op() -> None:
    before = os.getcwd()
    with working_directory(None):
        assert os.getcwd() == before
