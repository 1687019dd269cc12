from seashell.completion import Autocomplete, CompletionResult, Trie
from seashell.context import ShellContext
from seashell.errors import CommandNotFound, ExternalSpawnFailure, RedirectionIOFailure, ShellError
from seashell.executor import Executor
from seashell.models import Command, ExecutionOutcome, Pipeline, RedirectionInfo
from seashell.parser import parse_pipeline
from seashell.path_resolver import PathResolver
from seashell.registry import CommandRegistry

__version__ = "0.1.0"
