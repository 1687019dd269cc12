import io

import pytest

from seashell.completion import Autocomplete
from seashell.context import ShellContext
from seashell.executor import Executor
from seashell.path_resolver import PathResolver
from seashell.shell import ShellCompleter, build_autocomplete, build_context, run_line
from tests.conftest import make_executable, posix_only


@pytest.fixture
def shell_executor(registry):
    context = ShellContext(
        registry=registry,
        resolver=PathResolver(""),
        stdin=io.StringIO(""),
        stdout=io.StringIO(),
        stderr=io.StringIO(),
    )
    return Executor(context)


class TestRunLine:
    def test_runs_and_records_history(self, shell_executor):
        assert run_line(shell_executor, "echo hello | upper")
        context = shell_executor.context
        assert context.stdout.getvalue() == "HELLO\n"
        assert context.history.entries() == [(1, "echo hello | upper")]

    def test_blank_line_is_not_recorded(self, shell_executor):
        assert run_line(shell_executor, "   ")
        assert len(shell_executor.context.history) == 0

    def test_unknown_command_is_reported_and_shell_continues(self, shell_executor):
        assert run_line(shell_executor, "nonexistent_cmd_xyz")
        assert shell_executor.context.stderr.getvalue() == "nonexistent_cmd_xyz: command not found\n"
        assert len(shell_executor.context.history) == 1

    def test_exit_stops(self, shell_executor):
        assert run_line(shell_executor, "exit") is False


class TestCompleter:
    @pytest.fixture
    def completer(self):
        autocomplete = Autocomplete()
        autocomplete.register_many(["echo", "exit", "xyz_foo", "xyz_foo_bar"])
        return ShellCompleter(autocomplete)

    def test_single_match_gets_separator(self, completer):
        assert completer.command_matches("ec") == ["echo "]

    def test_partial_match_has_no_separator(self, completer):
        assert completer.command_matches("xy") == ["xyz_foo"]

    def test_ambiguous_lists_matches(self, completer):
        assert completer.command_matches("e") == ["echo", "exit"]

    def test_no_match(self, completer):
        assert completer.command_matches("zz") == []

    def test_file_matches(self, completer, tmp_path):
        (tmp_path / "notes.txt").write_text("")
        (tmp_path / "nested").mkdir()
        prefix = str(tmp_path) + "/n"
        assert completer.file_matches(prefix) == [
            str(tmp_path / "nested") + "/",
            str(tmp_path / "notes.txt") + " ",
        ]


def test_build_context_uses_settings(monkeypatch):
    monkeypatch.setenv("SEASHELL_HISTORY_LIMIT", "2")
    context = build_context()
    assert context.registry.is_builtin("echo")
    assert context.history.limit == 2


@posix_only
def test_build_autocomplete_knows_builtins_and_path(tmp_path, monkeypatch):
    make_executable(tmp_path / "zz_custom_tool")
    monkeypatch.setenv("PATH", str(tmp_path))
    autocomplete = build_autocomplete(build_context())
    assert autocomplete.suggest("zz_cus").matches == ["zz_custom_tool"]
    assert autocomplete.suggest("hist").matches == ["history"]
