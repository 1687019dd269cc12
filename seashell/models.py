import shlex
from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass(frozen=True)
class RedirectionInfo:
    stdout_target: Optional[str] = None
    stdout_append: bool = False
    stderr_target: Optional[str] = None
    stderr_append: bool = False

    @property
    def has_stdout_redirection(self) -> bool:
        return self.stdout_target is not None

    @property
    def has_stderr_redirection(self) -> bool:
        return self.stderr_target is not None

    def tokens(self):
        """Operators and quoted targets, ready to append to a command line."""
        parts = []
        if self.has_stdout_redirection:
            parts += [">>" if self.stdout_append else ">", shlex.quote(self.stdout_target)]
        if self.has_stderr_redirection:
            parts += ["2>>" if self.stderr_append else "2>", shlex.quote(self.stderr_target)]
        return parts


@dataclass(frozen=True)
class Command:
    name: str
    args: Tuple[str, ...] = ()
    redirection: RedirectionInfo = field(default_factory=RedirectionInfo)

    def __post_init__(self):
        # callers may hand in a list
        object.__setattr__(self, "args", tuple(self.args))

    @property
    def is_empty(self) -> bool:
        return not self.name

    def __str__(self):
        if self.is_empty:
            return " ".join(self.redirection.tokens())
        words = [shlex.quote(w) for w in (self.name, *self.args)]
        return " ".join(words + self.redirection.tokens())


@dataclass(frozen=True)
class Pipeline:
    stages: Tuple[Command, ...]

    def __post_init__(self):
        object.__setattr__(self, "stages", tuple(self.stages))
        if not self.stages:
            raise ValueError("a pipeline needs at least one command")

    @property
    def is_single(self) -> bool:
        return len(self.stages) == 1

    def __len__(self):
        return len(self.stages)

    def __iter__(self):
        return iter(self.stages)

    def __str__(self):
        return " | ".join(str(stage) for stage in self.stages)


@dataclass(frozen=True)
class ExecutionOutcome:
    continue_shell: bool = True
