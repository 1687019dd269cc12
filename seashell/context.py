import sys
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TextIO

from seashell.history import PipelineHistory
from seashell.path_resolver import PathResolver
from seashell.registry import CommandRegistry


@dataclass
class ShellContext:
    """Everything a builtin or the executor may touch.

    ``stdin``, ``stdout`` and ``stderr`` are the current sinks. They are only
    ever swapped through :meth:`bound`, which puts the previous ones back.
    """

    registry: CommandRegistry
    resolver: PathResolver = field(default_factory=PathResolver)
    history: PipelineHistory = field(default_factory=PipelineHistory)
    stdin: TextIO = field(default_factory=lambda: sys.stdin)
    stdout: TextIO = field(default_factory=lambda: sys.stdout)
    stderr: TextIO = field(default_factory=lambda: sys.stderr)

    @contextmanager
    def bound(self, stdin=None, stdout=None, stderr=None):
        saved = (self.stdin, self.stdout, self.stderr)
        if stdin is not None:
            self.stdin = stdin
        if stdout is not None:
            self.stdout = stdout
        if stderr is not None:
            self.stderr = stderr
        try:
            yield self
        finally:
            self.stdin, self.stdout, self.stderr = saved
