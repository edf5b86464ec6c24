from __future__ import annotations

from typing import Callable, Generic, Iterator, Optional, TypeVar

T = TypeVar("T")


class Grid(Generic[T]):
    """
    A 2D matrix of cells stored as one flat row-major list.

    Row 0 is the bottom row of the patch mosaic and column 0 the left column.
    Cells hold None while the grid is being filled.
    """
    def __init__(self, rows: int = 1, cols: int = 1) -> None:
        if rows < 0 or cols < 0:
            raise ValueError(f"Grid size must be non-negative, got {rows}x{cols}.")
        self.row_count = rows
        self.col_count = cols
        self.cells: list[Optional[T]] = [None] * (rows * cols)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(rows={self.row_count}, cols={self.col_count})"

    def __iter__(self) -> Iterator[Optional[T]]:
        return iter(self.cells)

    def __len__(self) -> int:
        return len(self.cells)

    def for_each(self, func: Callable[[Optional[T]], None]) -> None:
        for cell in self.cells:
            func(cell)

    def _index(self, i: int, j: int) -> int:
        return i * self.col_count + j

    def in_bounds(self, i: int, j: int) -> bool:
        return 0 <= i < self.row_count and 0 <= j < self.col_count

    def get(self, i: int, j: int) -> Optional[T]:
        """The cell at row `i`, column `j`, or None if out of bounds."""
        if not self.in_bounds(i, j):
            return None
        return self.cells[self._index(i, j)]

    def set(self, i: int, j: int, value: Optional[T]) -> None:
        if not self.in_bounds(i, j):
            raise IndexError(f"Cell ({i}, {j}) is outside a {self.row_count}x{self.col_count} grid.")
        self.cells[self._index(i, j)] = value

    def insert_row(self, index: int) -> None:
        """Insert an empty row so that it becomes row `index`."""
        if not 0 <= index <= self.row_count:
            raise IndexError(f"Cannot insert row at {index} in a grid with {self.row_count} rows.")
        start = index * self.col_count
        self.cells[start:start] = [None] * self.col_count
        self.row_count += 1

    def insert_column(self, index: int) -> None:
        """Insert an empty column so that it becomes column `index`."""
        if not 0 <= index <= self.col_count:
            raise IndexError(f"Cannot insert column at {index} in a grid with {self.col_count} columns.")
        new_cols = self.col_count + 1
        for i in range(self.row_count):
            self.cells.insert(i * new_cols + index, None)
        self.col_count = new_cols

    def delete_row(self, index: int) -> None:
        if not 0 <= index < self.row_count:
            raise IndexError(f"Row {index} does not exist in a grid with {self.row_count} rows.")
        start = index * self.col_count
        del self.cells[start:start + self.col_count]
        self.row_count -= 1

    def delete_column(self, index: int) -> None:
        if not 0 <= index < self.col_count:
            raise IndexError(f"Column {index} does not exist in a grid with {self.col_count} columns.")
        # walk backwards so earlier indices stay valid
        for i in range(self.row_count - 1, -1, -1):
            del self.cells[i * self.col_count + index]
        self.col_count -= 1

    def rows(self) -> list[list[Optional[T]]]:
        return [
            self.cells[i * self.col_count:(i + 1) * self.col_count]
            for i in range(self.row_count)
        ]

    def columns(self) -> list[list[Optional[T]]]:
        return [
            [self.cells[i * self.col_count + j] for i in range(self.row_count)]
            for j in range(self.col_count)
        ]
