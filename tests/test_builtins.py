import io
import os

import pytest

from seashell.builtins import BUILTINS, create_registry
from seashell.history import PipelineHistory
from seashell.models import Command, Pipeline
from seashell.registry import CommandRegistry
from tests.conftest import make_executable, posix_only


class TestRegistry:
    def test_contains_default_builtins(self):
        names = create_registry().names()
        for name in ("echo", "pwd", "cd", "exit", "type", "history"):
            assert name in names

    def test_lookup_is_case_insensitive(self):
        registry = create_registry()
        assert registry.is_builtin("echo")
        assert registry.is_builtin("ECHO")
        assert registry.resolve("Echo") is BUILTINS["echo"]

    def test_unknown_names(self):
        registry = create_registry()
        assert not registry.is_builtin("nonexistent")
        assert not registry.is_builtin("")
        with pytest.raises(KeyError):
            registry.resolve("nonexistent")

    def test_register_rejects_empty_name(self):
        with pytest.raises(ValueError):
            CommandRegistry().register(" ", lambda ctx, args: True)

    def test_mapping_constructor(self):
        registry = CommandRegistry({"hi": lambda ctx, args: True})
        assert "hi" in registry
        assert len(registry) == 1


def run(context, name, *args):
    return context.registry.resolve(name)(context, list(args))


def test_echo(context):
    assert run(context, "echo", "hello", "world")
    assert context.stdout.getvalue() == "hello world\n"


def test_exit_stops_the_shell(context):
    assert run(context, "exit") is False
    assert run(context, "exit", "3") is False


def test_pwd(context):
    run(context, "pwd")
    assert context.stdout.getvalue() == os.getcwd() + "\n"


def test_cd_changes_directory(context, tmp_path, monkeypatch):
    monkeypatch.chdir(os.getcwd())
    run(context, "cd", str(tmp_path))
    assert os.path.samefile(os.getcwd(), tmp_path)


def test_cd_home(context, tmp_path, monkeypatch):
    monkeypatch.chdir(os.getcwd())
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("USERPROFILE", str(tmp_path))
    run(context, "cd")
    assert os.path.samefile(os.getcwd(), tmp_path)


def test_cd_missing_directory(context, tmp_path):
    missing = tmp_path / "missing"
    assert run(context, "cd", str(missing))
    assert context.stderr.getvalue() == f"cd: {missing}: No such file or directory\n"


def test_type_builtin(context):
    run(context, "type", "echo")
    assert context.stdout.getvalue() == "echo is a shell builtin\n"


def test_type_not_found(context):
    run(context, "type", "nonexistent_cmd_xyz")
    assert context.stderr.getvalue() == "nonexistent_cmd_xyz: not found\n"


@posix_only
def test_type_external(context, bin_dir, monkeypatch):
    tool = make_executable(bin_dir / "mytool")
    monkeypatch.setenv("PATH", str(bin_dir))
    run(context, "type", "mytool")
    assert context.stdout.getvalue() == f"mytool is {tool}\n"


@posix_only
def test_which(context, bin_dir, monkeypatch):
    tool = make_executable(bin_dir / "mytool")
    monkeypatch.setenv("PATH", str(bin_dir))
    run(context, "which", "mytool", "echo", "missing")
    assert context.stdout.getvalue() == f"{tool}\necho: shell builtin\n"
    assert context.stderr.getvalue() == "which: no missing in PATH\n"


class TestHistory:
    @pytest.fixture
    def context(self, context):
        for line in ("echo one", "echo two", "pwd"):
            name, *args = line.split()
            context.history.add(Pipeline([Command(name, args)]))
        return context

    def test_lists_all(self, context):
        run(context, "history")
        assert context.stdout.getvalue() == "    1  echo one\n    2  echo two\n    3  pwd\n"

    def test_limit(self, context):
        run(context, "history", "2")
        assert context.stdout.getvalue() == "    2  echo two\n    3  pwd\n"

    def test_bad_limit_lists_all(self, context):
        run(context, "history", "abc")
        assert context.stdout.getvalue().count("\n") == 3

    def test_history_limit_trims_oldest(self):
        history = PipelineHistory(limit=2)
        for name in ("echo", "pwd", "ls"):
            history.add(Pipeline([Command(name)]))
        assert history.entries() == [(2, "pwd"), (3, "ls")]


def test_cat_reads_stdin(context):
    context.stdin = io.StringIO("piped text\n")
    run(context, "cat")
    assert context.stdout.getvalue() == "piped text\n"


def test_cat_files(context, tmp_path):
    (tmp_path / "a.txt").write_text("alpha\n")
    missing = tmp_path / "b.txt"
    run(context, "cat", str(tmp_path / "a.txt"), str(missing))
    assert context.stdout.getvalue() == "alpha\n"
    assert context.stderr.getvalue() == f"cat: {missing}: No such file or directory\n"


@pytest.mark.parametrize("name", ["true", "false"])
def test_true_and_false_keep_running(context, name):
    assert run(context, name) is True


def test_env_filters_case_insensitively(context, monkeypatch):
    monkeypatch.setenv("SEASHELL_TEST_VAR", "value")
    run(context, "env", "seashell_test_var")
    assert context.stdout.getvalue() == "SEASHELL_TEST_VAR=value\n"


def test_env_lists_everything(context, monkeypatch):
    monkeypatch.setenv("SEASHELL_TEST_VAR", "value")
    run(context, "env")
    assert "SEASHELL_TEST_VAR=value\n" in context.stdout.getvalue()


def test_whoami(context, monkeypatch):
    monkeypatch.delenv("USERNAME", raising=False)
    monkeypatch.setenv("USER", "alice")
    run(context, "whoami")
    assert context.stdout.getvalue() == "alice\n"


def test_whoami_unknown_user(context, monkeypatch):
    monkeypatch.delenv("USERNAME", raising=False)
    monkeypatch.delenv("USER", raising=False)
    run(context, "whoami")
    assert context.stderr.getvalue() == "whoami: cannot find name for user\n"


def test_date_with_format(context):
    run(context, "date", "+%Y|%%")
    year, percent = context.stdout.getvalue().strip().split("|")
    assert len(year) == 4 and year.isdigit()
    assert percent == "%"


def test_date_default_format(context):
    run(context, "date")
    assert len(context.stdout.getvalue().split()) == 5


@pytest.mark.parametrize("arg", ["abc", "-1", "3601"])
def test_sleep_rejects_bad_intervals(context, arg):
    assert run(context, "sleep", arg)
    assert context.stderr.getvalue() == f"sleep: invalid time interval '{arg}'\n"


def test_sleep_missing_operand(context):
    run(context, "sleep")
    assert context.stderr.getvalue() == "sleep: missing operand\n"


def test_sleep_zero(context):
    assert run(context, "sleep", "0")
    assert context.stderr.getvalue() == ""


@pytest.mark.parametrize("name", ["clear", "cls"])
def test_clear_writes_terminal_reset(context, name):
    run(context, name)
    assert context.stdout.getvalue() == "\033[H\033[2J"
