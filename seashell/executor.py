"""Runs parsed pipelines.

Stages are launched left to right. Builtins run synchronously in this thread
with their output captured; external processes are started with pipes and the
bytes between stages are moved by small daemon threads, so every process of a
pipeline is running before the executor waits on any of them.
"""

import errno
import io
import os
import subprocess
import threading
from contextlib import ExitStack, contextmanager

from seashell.config import get_settings
from seashell.errors import CommandNotFound, ExternalSpawnFailure, RedirectionIOFailure, ShellError
from seashell.log import get_logger
from seashell.models import ExecutionOutcome

logger = get_logger(__name__)

# EINVAL is what Windows reports for a write into a closed pipe
BROKEN_PIPE_ERRNOS = {errno.EPIPE, errno.EINVAL}


def is_broken_pipe(exc) -> bool:
    if isinstance(exc, BrokenPipeError):
        return True
    return isinstance(exc, OSError) and exc.errno in BROKEN_PIPE_ERRNOS


def close_quietly(stream):
    if stream is None:
        return
    try:
        stream.close()
    except OSError as e:
        if not is_broken_pipe(e):
            raise


def sink_fileno(stream):
    """File descriptor behind a text sink, or None for in-memory sinks."""
    try:
        fd = stream.fileno()
    except (AttributeError, OSError, ValueError):
        return None
    stream.flush()
    return fd


def open_target(path, append, binary=False):
    mode = ("a" if append else "w") + ("b" if binary else "")
    try:
        parent = os.path.dirname(path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        if binary:
            return open(path, mode)
        return open(path, mode, encoding="utf-8")
    except OSError as e:
        raise RedirectionIOFailure(path, e) from e


@contextmanager
def redirected(ctx, redirection):
    """Point the context's stdout/stderr at redirection files for one call."""
    with ExitStack() as stack:
        sinks = {}
        if redirection.has_stdout_redirection:
            sinks["stdout"] = stack.enter_context(
                open_target(redirection.stdout_target, redirection.stdout_append)
            )
        if redirection.has_stderr_redirection:
            sinks["stderr"] = stack.enter_context(
                open_target(redirection.stderr_target, redirection.stderr_append)
            )
        with ctx.bound(**sinks):
            yield ctx


class _Text:
    """Upstream output that is already complete (a builtin's captured buffer)."""

    def __init__(self, text):
        self.text = text


class _Stream:
    """Upstream output still being produced by a running process."""

    def __init__(self, pipe):
        self.pipe = pipe


class _Run:
    """Processes, helper threads and files owned by one pipeline execution."""

    def __init__(self):
        self.processes = []
        self.threads = []
        self.files = ExitStack()

    def start(self, name, target, *args):
        thread = threading.Thread(target=_guarded, args=(name, target, *args), daemon=True)
        thread.start()
        self.threads.append(thread)

    def finish(self):
        try:
            for proc in self.processes:
                proc.wait()
            for thread in self.threads:
                thread.join()
            for proc in self.processes:
                for stream in (proc.stdin, proc.stdout, proc.stderr):
                    close_quietly(stream)
        finally:
            self.files.close()


def _guarded(name, target, *args):
    try:
        target(*args)
    except Exception as e:
        if is_broken_pipe(e):
            logger.debug("pipe.broken", task=name)
        else:
            logger.exception("pipe.task_failed", task=name)


class Executor:
    def __init__(self, context, chunk_size=None):
        self.context = context
        self.chunk_size = chunk_size or get_settings().chunk_size

    def execute(self, pipeline) -> ExecutionOutcome:
        if pipeline.is_single and pipeline.stages[0].is_empty:
            return ExecutionOutcome(continue_shell=True)

        run = _Run()
        pending = None
        keep_going = True
        try:
            last = len(pipeline.stages) - 1
            for index, command in enumerate(pipeline.stages):
                if command.is_empty:
                    # nothing to run, upstream output flows on
                    pending = self._run_empty(run, command.redirection, pending)
                    continue
                is_last = index == last
                if self.context.registry.is_builtin(command.name):
                    pending, keep_going_here = self._run_builtin(command, pending, is_last)
                    keep_going = keep_going and keep_going_here
                else:
                    pending = self._run_external(run, command, pending, is_last)

            if pending is not None:
                self._emit(run, pending)
                pending = None
        finally:
            if isinstance(pending, _Stream):
                close_quietly(pending.pipe)
            run.finish()

        return ExecutionOutcome(continue_shell=keep_going)

    def _run_empty(self, run, redirection, pending):
        """Apply an empty stage's redirection to the output passing through it."""
        if redirection.has_stderr_redirection:
            run.files.enter_context(
                open_target(redirection.stderr_target, redirection.stderr_append, binary=True)
            )
        if not redirection.has_stdout_redirection:
            return pending

        target = run.files.enter_context(
            open_target(redirection.stdout_target, redirection.stdout_append, binary=True)
        )
        if isinstance(pending, _Stream):
            run.start("redirect", self._relay, pending.pipe, target)
        elif pending is not None:
            target.write(pending.text.encode("utf-8"))
        return _Text("")

    def _run_builtin(self, command, pending, is_last):
        stdin = None
        if pending is not None:
            stdin = io.StringIO(self._drain(pending))
        captured = None if is_last else io.StringIO()

        keep_going = self.invoke_builtin(command, stdin=stdin, stdout=captured)
        if is_last:
            return None, keep_going
        return _Text(captured.getvalue()), keep_going

    def invoke_builtin(self, command, stdin=None, stdout=None) -> bool:
        ctx = self.context
        handler = ctx.registry.resolve(command.name)
        with ctx.bound(stdin=stdin, stdout=stdout):
            with redirected(ctx, command.redirection):
                try:
                    return bool(handler(ctx, list(command.args)))
                except ShellError:
                    raise
                except Exception as e:
                    logger.exception("builtin.failed", command=command.name)
                    print(f"{command.name}: {e}", file=ctx.stderr)
                    return True
                finally:
                    ctx.stdout.flush()

    def _run_external(self, run, command, pending, is_last):
        ctx = self.context
        path = ctx.resolver.find(command.name)
        if path is None:
            raise CommandNotFound(command.name)

        redirection = command.redirection
        feed = None
        if isinstance(pending, _Stream):
            stdin = subprocess.PIPE
        elif isinstance(pending, _Text):
            stdin, feed = subprocess.PIPE, pending.text
        else:
            stdin = sink_fileno(ctx.stdin)
            if stdin is None:
                stdin, feed = subprocess.PIPE, ctx.stdin

        stdout_sink = None
        if redirection.has_stdout_redirection:
            stdout = run.files.enter_context(
                open_target(redirection.stdout_target, redirection.stdout_append, binary=True)
            )
        elif is_last:
            stdout = sink_fileno(ctx.stdout)
            if stdout is None:
                stdout, stdout_sink = subprocess.PIPE, ctx.stdout
        else:
            stdout = subprocess.PIPE

        stderr_sink = None
        if redirection.has_stderr_redirection:
            stderr = run.files.enter_context(
                open_target(redirection.stderr_target, redirection.stderr_append, binary=True)
            )
        else:
            stderr = sink_fileno(ctx.stderr)
            if stderr is None:
                stderr, stderr_sink = subprocess.PIPE, ctx.stderr

        argv = [command.name, *command.args]
        try:
            proc = subprocess.Popen(argv, executable=path, stdin=stdin, stdout=stdout, stderr=stderr)
        except OSError as e:
            raise ExternalSpawnFailure(command.name, e) from e
        run.processes.append(proc)
        logger.debug("stage.spawned", command=command.name, path=path, pid=proc.pid)

        if isinstance(pending, _Stream):
            run.start("relay", self._relay, pending.pipe, proc.stdin)
        elif feed is not None:
            run.start("feed", self._feed, feed, proc.stdin)
        if stdout_sink is not None:
            run.start("stdout", self._pump, proc.stdout, stdout_sink)
        if stderr_sink is not None:
            run.start("stderr", self._pump, proc.stderr, stderr_sink)

        if is_last:
            return None
        if redirection.has_stdout_redirection:
            return _Text("")
        return _Stream(proc.stdout)

    def _emit(self, run, pending):
        if isinstance(pending, _Text):
            self.context.stdout.write(pending.text)
            self.context.stdout.flush()
        else:
            run.start("stdout", self._pump, pending.pipe, self.context.stdout)

    def _drain(self, pending):
        if isinstance(pending, _Text):
            return pending.text
        try:
            data = pending.pipe.read()
        finally:
            pending.pipe.close()
        return data.decode("utf-8", errors="replace")

    def _relay(self, src, dst):
        try:
            while True:
                chunk = src.read1(self.chunk_size)
                if not chunk:
                    break
                dst.write(chunk)
                dst.flush()
        finally:
            close_quietly(dst)
            src.close()

    def _feed(self, source, dst):
        try:
            text = source if isinstance(source, str) else source.read()
            dst.write(text.encode("utf-8"))
        finally:
            close_quietly(dst)

    def _pump(self, src, sink):
        # newline="" keeps \r and \r\n as the process wrote them
        reader = io.TextIOWrapper(src, encoding="utf-8", errors="replace", newline="")
        try:
            for line in reader:
                sink.write(line)
                sink.flush()
        finally:
            reader.close()
