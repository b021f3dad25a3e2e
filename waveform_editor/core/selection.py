import logging
from typing import Dict, Iterable, List, Optional, Set, Tuple

from waveform_editor.core.errors import PreconditionError
from waveform_editor.core.grid import Grid
from waveform_editor.core.models import COPY_FROM_LEFT, ValueMode

logger = logging.getLogger(__name__)


class Selection:
    """Set of (signal, column) cells of one Grid plus bulk operations over them."""

    def __init__(self, grid: Grid):
        self.grid = grid
        self._cells: Set[Tuple[int, int]] = set()

    def __contains__(self, key):
        return key in self._cells

    def __len__(self):
        return len(self._cells)

    def __iter__(self):
        return iter(sorted(self._cells))

    def clear(self):
        self._cells.clear()

    def set(self, sig_index: int, col_index: int):
        self._check(sig_index, col_index)
        self._cells.add((sig_index, col_index))

    def unset(self, sig_index: int, col_index: int):
        self._cells.discard((sig_index, col_index))

    def toggle(self, sig_index: int, col_index: int):
        if (sig_index, col_index) in self._cells:
            self.unset(sig_index, col_index)
        else:
            self.set(sig_index, col_index)

    def select_all(self):
        for sig_index in range(self.grid.signal_count):
            self.select_row(sig_index)

    def select_row(self, sig_index: int):
        for col_index in range(1, self.grid.cols):
            self.set(sig_index, col_index)

    def select_column(self, col_index: int):
        for sig_index in range(self.grid.signal_count):
            self.set(sig_index, col_index)

    # --- Queries ---------------------------------------------------------

    def columns_with_selection(self) -> List[int]:
        return sorted({c for _, c in self._cells})

    def rows_with_selection(self) -> List[int]:
        return sorted({s for s, _ in self._cells})

    def cells_grouped_by_column(self) -> Dict[int, List[int]]:
        groups: Dict[int, List[int]] = {}
        for sig_index, col_index in sorted(self._cells):
            groups.setdefault(col_index, []).append(sig_index)
        return groups

    # --- Bulk edits ------------------------------------------------------

    def apply_value_mode(self, mode):
        for sig_index, col_index in sorted(self._cells):
            self.grid.set_cell_value(sig_index, col_index, mode)

    def apply_question_flag(self, is_question: bool):
        for sig_index, col_index in sorted(self._cells):
            self.grid.set_cell_question(sig_index, col_index, is_question)

    def shift_left(self):
        """
        Copy every selected cell one column to the left and move its selection
        marker along. Cells in column 1 have nowhere to go and stay put.
        """
        groups = self.cells_grouped_by_column()
        for col_index in sorted(groups):
            if col_index < 2:
                continue
            self._move(groups[col_index], col_index, col_index - 1)

    def shift_right(self):
        """Mirror of shift_left; cells in the last column stay put."""
        groups = self.cells_grouped_by_column()
        for col_index in sorted(groups, reverse=True):
            if col_index > self.grid.cols - 2:
                continue
            self._move(groups[col_index], col_index, col_index + 1)

    def _move(self, rows: Iterable[int], src_col: int, dst_col: int):
        for sig_index in rows:
            self.grid.copy_cell(sig_index, src_col, dst_col)
            self._cells.discard((sig_index, src_col))
            self._cells.add((sig_index, dst_col))

    def subdivide_columns(self):
        """Duplicate every column that has a selected cell, right after itself."""
        columns = self.columns_with_selection()
        self.clear()
        # Descending so earlier insertions do not shift the later indices.
        for col_index in reversed(columns):
            self.grid.insert_column(col_index + 1, COPY_FROM_LEFT)
        return columns

    def generate_clock(self, period: int, start_high: bool, rows: Optional[Iterable[int]] = None):
        """
        Overwrite whole rows with a clock of `period` columns (half high, half
        low), starting at column 1. Defaults to the rows holding a selection.
        """
        if isinstance(period, bool) or not isinstance(period, int) or period <= 0 or period % 2:
            raise PreconditionError(f"Clock period must be a positive even integer: {period!r}")

        if rows is None:
            rows = self.rows_with_selection()
        rows = list(rows)
        half = period // 2
        for sig_index in rows:
            for col_index in range(1, self.grid.cols):
                high = (((col_index - 1) // half) % 2 == 0) == bool(start_high)
                mode = ValueMode.SET if high else ValueMode.CLEAR
                self.grid.set_cell_value(sig_index, col_index, mode)
        logger.debug("Generated clock (period %d) on rows %s", period, rows)
        return rows

    def _check(self, sig_index: int, col_index: int):
        if not 0 <= sig_index < self.grid.signal_count:
            raise PreconditionError(f"sigIndex out of range: {sig_index}")
        if not 1 <= col_index < self.grid.cols:
            raise PreconditionError(f"colIndex out of range: {col_index}")

