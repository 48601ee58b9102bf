"""In-memory command history.

The history lives only as long as the object that owns it; the shell creates
one per session unless the caller passes its own.
"""

from typing import List, Optional

MAX_HISTORY_SIZE = 100


class QueryHistory:
    """Most-recent-first list of executed commands with cursor navigation."""

    def __init__(self, max_size: int = MAX_HISTORY_SIZE):
        self.max_size = max_size
        self._entries: List[str] = []
        self._index = -1

    def __len__(self) -> int:
        return len(self._entries)

    def add(self, command: Optional[str]) -> None:
        """Record a command, moving an existing copy to the front."""
        if command is None or not command.strip():
            return
        trimmed = command.strip()
        if trimmed in self._entries:
            self._entries.remove(trimmed)
        self._entries.insert(0, trimmed)
        del self._entries[self.max_size:]
        self._index = -1

    def previous(self) -> Optional[str]:
        """Step back to an older command."""
        if not self._entries:
            return None
        if self._index < len(self._entries) - 1:
            self._index += 1
        return self._entries[self._index]

    def next(self) -> Optional[str]:
        """Step forward to a newer command; "" once past the newest."""
        if not self._entries or self._index < 0:
            return None
        if self._index > 0:
            self._index -= 1
            return self._entries[self._index]
        self._index = -1
        return ""

    def recent(self, count: int = 0) -> List[str]:
        """The ``count`` newest commands; all of them when count is out of range."""
        if count <= 0 or count > len(self._entries):
            count = len(self._entries)
        return list(self._entries[:count])

    def clear(self) -> None:
        self._entries.clear()
        self._index = -1
