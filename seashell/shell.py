import os
import sys

try:
    import readline
except ImportError:  # Windows without pyreadline
    readline = None

from seashell.builtins import create_registry
from seashell.completion import Autocomplete
from seashell.config import get_settings
from seashell.context import ShellContext
from seashell.errors import ShellError
from seashell.executor import Executor
from seashell.history import PipelineHistory
from seashell.log import configure_logging, get_logger
from seashell.parser import parse_pipeline
from seashell.path_resolver import PathResolver

logger = get_logger(__name__)


class ShellCompleter:
    """readline completer: commands from the trie, then file names."""

    def __init__(self, autocomplete):
        self.autocomplete = autocomplete
        self.matches = []

    def command_matches(self, text):
        result = self.autocomplete.suggest(text)
        if result.is_complete:
            return [result.matches[0] + " "]
        return list(result.matches)

    def file_matches(self, text):
        dirname, partial = os.path.split(text)
        search_dir = dirname if dirname else "."
        matches = []
        if os.path.isdir(search_dir):
            try:
                for filename in os.listdir(search_dir):
                    if filename.startswith(partial):
                        full_path = os.path.join(search_dir, filename)
                        display_name = os.path.join(dirname, filename) if dirname else filename
                        display_name += "/" if os.path.isdir(full_path) else " "
                        matches.append(display_name)
            except OSError:
                return []
        return sorted(matches)

    def complete(self, text, state):
        if state == 0:
            if readline.get_begidx() == 0:
                self.matches = self.command_matches(text)
            else:
                self.matches = self.file_matches(text)
        try:
            return self.matches[state]
        except IndexError:
            return None


def display_matches(_, matches, _longest_match_length):
    print()
    print("  ".join(m.strip() for m in matches))
    sys.stdout.write(get_settings().prompt + readline.get_line_buffer())
    sys.stdout.flush()


def build_context(settings=None):
    settings = settings or get_settings()
    return ShellContext(
        registry=create_registry(),
        resolver=PathResolver(),
        history=PipelineHistory(limit=settings.history_limit),
    )


def build_autocomplete(context, settings=None):
    settings = settings or get_settings()
    autocomplete = Autocomplete(max_results=settings.max_suggestions)
    autocomplete.register_many(context.registry.names())
    autocomplete.register_path_executables(context.resolver)
    return autocomplete


def install_completer(autocomplete):
    if readline is None:
        return
    completer = ShellCompleter(autocomplete)
    readline.set_completer(completer.complete)

    if "libedit" in (readline.__doc__ or ""):
        readline.parse_and_bind("bind ^I rl_complete")
    else:
        readline.parse_and_bind("tab: complete")
    readline.parse_and_bind("set show-all-if-ambiguous off")
    readline.set_completer_delims(" \t\n")

    try:
        readline.set_completion_display_matches_hook(display_matches)
    except AttributeError:
        pass


def run_line(executor, line) -> bool:
    """Parse and execute one line; returns False once the shell should stop."""
    context = executor.context
    pipeline = parse_pipeline(line)
    if pipeline.is_single and pipeline.stages[0].is_empty:
        return True
    context.history.add(pipeline)
    try:
        outcome = executor.execute(pipeline)
    except ShellError as e:
        logger.info("command.failed", error=str(e), line=line)
        print(e, file=context.stderr)
        return True
    return outcome.continue_shell


def main():
    configure_logging()
    settings = get_settings()
    context = build_context(settings)
    executor = Executor(context, chunk_size=settings.chunk_size)
    install_completer(build_autocomplete(context, settings))

    while True:
        try:
            line = input(settings.prompt)
        except (EOFError, KeyboardInterrupt):
            print()
            break
        if not run_line(executor, line):
            break
    return 0


if __name__ == "__main__":
    sys.exit(main())
