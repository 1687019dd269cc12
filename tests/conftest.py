"""Pytest configuration and fixtures."""

import io
import logging
import os
import shutil
import stat

import pytest
import structlog

from seashell.builtins import create_registry
from seashell.config import reset_settings
from seashell.context import ShellContext
from seashell.executor import Executor
from seashell.log import configure_default_logging
from seashell.path_resolver import PathResolver

posix_only = pytest.mark.skipif(os.name == "nt", reason="needs POSIX tools")


def requires(*tools):
    missing = [tool for tool in tools if shutil.which(tool) is None]
    return pytest.mark.skipif(bool(missing), reason=f"missing {', '.join(missing)}")


def upper(ctx, args):
    ctx.stdout.write(ctx.stdin.read().upper())
    return True


def make_executable(path, body="#!/bin/sh\nexit 0\n"):
    path.write_text(body)
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture(autouse=True)
def clean_settings():
    reset_settings()
    yield
    reset_settings()


@pytest.fixture(autouse=True, scope="session")
def quiet_logging():
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(logging.CRITICAL))
    yield
    structlog.reset_defaults()


@pytest.fixture
def default_logging():
    """structlog as a process sees it before the shell configures logging."""
    structlog.reset_defaults()
    configure_default_logging()
    yield
    structlog.reset_defaults()
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(logging.CRITICAL))


@pytest.fixture
def registry():
    registry = create_registry()
    registry.register("upper", upper)
    return registry


@pytest.fixture
def context(registry):
    return ShellContext(
        registry=registry,
        resolver=PathResolver(),
        stdin=io.StringIO(""),
        stdout=io.StringIO(),
        stderr=io.StringIO(),
    )


@pytest.fixture
def executor(context):
    return Executor(context, chunk_size=4096)


@pytest.fixture
def bin_dir(tmp_path):
    directory = tmp_path / "bin"
    directory.mkdir()
    return directory
