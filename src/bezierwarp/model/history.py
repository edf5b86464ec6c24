from __future__ import annotations

import copy
import logging
from typing import Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class History(Generic[T]):
    """
    Linear undo/redo stack. Inserting after an undo discards the redo tail.
    Entries are deep-copied on the way in, so later edits to the caller's data
    never leak into the stored snapshots.
    """
    def __init__(self) -> None:
        self.index = -1
        self.data: list[T] = []

    def __len__(self) -> int:
        return len(self.data)

    def current(self) -> Optional[T]:
        if self.index < 0:
            return None
        return self.data[self.index]

    def insert(self, entry: T) -> None:
        self.index += 1
        del self.data[self.index:]
        self.data.append(copy.deepcopy(entry))
        logger.debug(f"History entry {self.index} recorded ({len(self.data)} total).")

    def back(self) -> None:
        self.index = max(0, self.index - 1)

    def forward(self) -> None:
        self.index = min(len(self.data) - 1, self.index + 1)

    @property
    def can_undo(self) -> bool:
        return self.index > 0

    @property
    def can_redo(self) -> bool:
        return self.index < len(self.data) - 1
