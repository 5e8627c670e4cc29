"""
Undo history for the live page of the markup editor.
"""
from typing import List, Optional


class UndoHistory:
    """
    Ordered full-scene snapshots for the current page only.

    The first entry is the page's state when it became live; the last
    entry always mirrors what is on screen.
    """

    def __init__(self, max_size: int = 50):
        """
        Initialize the history.

        Args:
            max_size: Maximum number of snapshots to keep, base included
        """
        self._entries: List[str] = []
        self.max_size = max(2, max_size)

    def __len__(self) -> int:
        return len(self._entries)

    def reset(self, base_snapshot: Optional[str] = None) -> None:
        """Drop all entries, optionally seeding the base state."""
        self._entries.clear()
        if base_snapshot is not None:
            self._entries.append(base_snapshot)

    def push(self, snapshot: str) -> None:
        """Append the post-change state of the scene."""
        self._entries.append(snapshot)

        # Keep the base, trim the oldest step after it
        if len(self._entries) > self.max_size:
            del self._entries[1]

    def can_undo(self) -> bool:
        return len(self._entries) > 1

    @property
    def current(self) -> Optional[str]:
        return self._entries[-1] if self._entries else None

    def undo(self) -> Optional[str]:
        """
        Pop the latest step and return the snapshot to redisplay.

        Returns:
            The new last snapshot, or None if the history is empty (the
            caller shows an empty scene)
        """
        if self.can_undo():
            self._entries.pop()
        return self.current
