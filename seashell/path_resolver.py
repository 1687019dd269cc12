import os

from seashell.log import get_logger

logger = get_logger(__name__)

IS_WINDOWS = os.name == "nt"


def is_executable(path) -> bool:
    """True for an existing regular file we may execute (existence on Windows)."""
    if not os.path.isfile(path):
        return False
    if IS_WINDOWS:
        return True
    return os.access(path, os.X_OK)


class PathResolver:
    """Finds executables on PATH.

    ``path`` pins the search list; when left as None the PATH environment
    variable is read again on every lookup.
    """

    def __init__(self, path=None):
        self._path = path

    @property
    def path(self):
        if self._path is not None:
            return self._path
        return os.environ.get("PATH", "")

    def directories(self):
        seen = set()
        for directory in self.path.split(os.pathsep):
            if not directory or directory in seen:
                continue
            seen.add(directory)
            yield directory

    def _candidates(self, directory, name):
        candidate = os.path.join(directory, name)
        yield candidate
        if IS_WINDOWS:
            for ext in os.environ.get("PATHEXT", ".EXE;.BAT;.CMD;.COM").split(";"):
                if ext:
                    yield candidate + ext

    def find(self, name):
        """Return the full path of ``name`` or None."""
        if not name:
            return None
        if os.sep in name or (os.altsep and os.altsep in name):
            return name if is_executable(name) else None

        for directory in self.directories():
            for candidate in self._candidates(directory, name):
                if is_executable(candidate):
                    return candidate
        return None

    def executables(self):
        """Yield the names of executables on PATH, first occurrence only."""
        seen_files = set()
        for directory in self.directories():
            if not os.path.isdir(directory):
                continue
            try:
                with os.scandir(directory) as entries:
                    for entry in entries:
                        if entry.name in seen_files:
                            continue
                        if entry.is_file() and is_executable(entry.path):
                            seen_files.add(entry.name)
                            yield entry.name
            except OSError as e:
                logger.debug("path.scan_failed", directory=directory, error=str(e))
                continue
