class PipelineHistory:
    """In-memory list of executed pipelines, numbered from 1."""

    def __init__(self, limit=1000):
        self.limit = limit
        self._entries = []
        self._next_position = 1

    def add(self, pipeline):
        if pipeline is None:
            return
        self._entries.append((self._next_position, pipeline))
        self._next_position += 1
        if self.limit and len(self._entries) > self.limit:
            del self._entries[: len(self._entries) - self.limit]

    def entries(self, limit=0):
        """``(position, text)`` pairs, the last ``limit`` of them when limit > 0."""
        selected = self._entries[-limit:] if limit > 0 else self._entries
        return [(position, str(pipeline)) for position, pipeline in selected]

    def clear(self):
        self._entries.clear()

    def __len__(self):
        return len(self._entries)
