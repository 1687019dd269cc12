class ShellError(Exception):
    """Base class for errors the shell reports and then keeps running."""


class CommandNotFound(ShellError):
    def __init__(self, name):
        super().__init__(f"{name}: command not found")
        self.name = name


class ExternalSpawnFailure(ShellError):
    def __init__(self, name, cause):
        super().__init__(f"{name}: cannot execute: {_reason(cause)}")
        self.name = name
        self.cause = cause


class RedirectionIOFailure(ShellError):
    def __init__(self, path, cause):
        super().__init__(f"{path}: cannot open for redirection: {_reason(cause)}")
        self.path = path
        self.cause = cause


def _reason(cause):
    return getattr(cause, "strerror", None) or str(cause)
