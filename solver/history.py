# solver/history.py — board checkpoints for backtracking
from typing import List, Optional, Tuple

from models import Grid, SearchSpaceExhausted


class Memento:
    """Owned copy of a board layout, handed back exactly once."""

    __slots__ = ("_backup",)

    def __init__(self, backup: Grid):
        self._backup: Optional[Grid] = backup.copy()

    @property
    def consumed(self) -> bool:
        return self._backup is None

    def get_state(self) -> Grid:
        if self._backup is None:
            raise RuntimeError("Memento has already been restored")
        state, self._backup = self._backup, None
        return state


class BoardHistory:
    """LIFO stack of (piece index, checkpoint taken before placing it)."""

    def __init__(self):
        self._entries: List[Tuple[int, Memento]] = []

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)

    def push(self, piece_index: int, memento: Memento) -> None:
        self._entries.append((int(piece_index), memento))

    def pop(self) -> Tuple[int, Memento]:
        if not self._entries:
            raise SearchSpaceExhausted("history is empty")
        return self._entries.pop()

    def piece_indices(self) -> List[int]:
        return [idx for idx, _ in self._entries]

    def clear(self) -> None:
        self._entries.clear()


__all__ = ["Memento", "BoardHistory"]
