class CommandRegistry:
    """Case-insensitive name -> builtin handler table.

    A handler is called as ``handler(context, args)`` and returns False only
    when the shell should terminate.
    """

    def __init__(self, handlers=None):
        self._handlers = {}
        for name, handler in (handlers or {}).items():
            self.register(name, handler)

    def register(self, name, handler):
        if not name or not name.strip():
            raise ValueError("builtin name cannot be empty")
        self._handlers[name.casefold()] = handler

    def is_builtin(self, name) -> bool:
        return bool(name) and name.casefold() in self._handlers

    def resolve(self, name):
        try:
            return self._handlers[name.casefold()]
        except KeyError:
            raise KeyError(f"{name} is not a builtin") from None

    def names(self):
        return sorted(self._handlers)

    def __contains__(self, name):
        return self.is_builtin(name)

    def __len__(self):
        return len(self._handlers)
