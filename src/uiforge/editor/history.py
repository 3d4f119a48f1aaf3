"""History Manager - linear undo/redo over whole-tree snapshots."""

from ..core import get_logger
from ..monitoring import metrics_collector
from ..tree.models import Node

logger = get_logger(__name__)


class History:
    """
    Snapshot stack with a cursor.

    Pushing after an undo discards the redo branch. Stored snapshots are
    private clones, so nothing a caller does to a pushed tree leaks in.
    """

    def __init__(self, max_entries: int = 0) -> None:
        """
        Initialize history.

        Args:
            max_entries: Oldest snapshots are dropped beyond this (0 = unbounded)
        """
        if max_entries < 0:
            raise ValueError("max_entries must be non-negative")

        self.max_entries = max_entries
        self._entries: list[Node] = []
        self._cursor = -1

    @property
    def cursor(self) -> int:
        return self._cursor

    def __len__(self) -> int:
        return len(self._entries)

    def reset(self, initial: Node) -> None:
        """Replace all state with a single snapshot."""
        self._entries = [initial.clone()]
        self._cursor = 0
        self._publish()

    def push(self, snapshot: Node) -> None:
        """Append a snapshot after the cursor, discarding any redo branch."""
        if not self._entries:
            self.reset(snapshot)
            return

        del self._entries[self._cursor + 1 :]
        self._entries.append(snapshot.clone())
        self._cursor = len(self._entries) - 1

        if self.max_entries and len(self._entries) > self.max_entries:
            dropped = len(self._entries) - self.max_entries
            del self._entries[:dropped]
            self._cursor -= dropped

        self._publish()

    def undo(self) -> Node | None:
        """Step back one snapshot (no-op at the oldest)."""
        if self._cursor > 0:
            self._cursor -= 1
        return self.current()

    def redo(self) -> Node | None:
        """Step forward one snapshot (no-op at the newest)."""
        if self._cursor < len(self._entries) - 1:
            self._cursor += 1
        return self.current()

    def current(self) -> Node | None:
        """Snapshot at the cursor, or None before any settled tree."""
        if self._cursor < 0:
            return None
        return self._entries[self._cursor]

    def can_undo(self) -> bool:
        return self._cursor > 0

    def can_redo(self) -> bool:
        return 0 <= self._cursor < len(self._entries) - 1

    def clear(self) -> None:
        """Back to the uninitialized state."""
        self._entries = []
        self._cursor = -1
        self._publish()

    def _publish(self) -> None:
        metrics_collector.set_history_depth(len(self._entries))
        logger.debug("history_updated", size=len(self._entries), cursor=self._cursor)
