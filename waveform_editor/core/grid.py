import logging
from typing import List, Sequence

from waveform_editor.core.errors import PreconditionError
from waveform_editor.core.models import (
    Cell, CopyFromLeft, Signal, Value, ValueMode,
    parse_fill_mode, parse_value_mode,
)

logger = logging.getLogger(__name__)

DONTCARE_CELL = Cell(Value.X, False)


class Grid:
    """
    Signals x columns store. Column 0 is a hidden lane that is
    never shown or exported; it only serves as the copy source for column 1.
    It is X except in signals inserted with a literal 0 or 1 fill.

    Every signal always holds exactly `cols` cells. Structural operations
    build their new rows first and swap them in with a single assignment.
    """

    def __init__(self):
        self.signals: List[Signal] = []
        self.cols = 1

    @property
    def signal_count(self) -> int:
        return len(self.signals)

    def cell(self, sig_index: int, col_index: int) -> Cell:
        self._check_signal(sig_index)
        if not 0 <= col_index < self.cols:
            raise PreconditionError(f"colIndex out of range: {col_index}")
        return self.signals[sig_index].cells[col_index]

    def column(self, col_index: int) -> List[Cell]:
        if not 0 <= col_index < self.cols:
            raise PreconditionError(f"colIndex out of range: {col_index}")
        return [s.cells[col_index] for s in self.signals]

    def names(self) -> List[str]:
        return [s.name for s in self.signals]

    # --- Structure -------------------------------------------------------

    def insert_signal(self, index: int, fill="x") -> int:
        """
        Add a signal at `index` (<0 means after the last one).
        Every cell, column 0 included, takes the fill value. Copy fill modes
        are rejected since there is no source row.
        """
        if index < 0:
            index = self.signal_count
        if index > self.signal_count:
            raise PreconditionError(f"sigIndex too high: {index}")

        mode = parse_fill_mode(fill)
        if isinstance(mode, CopyFromLeft):
            raise PreconditionError("Invalid value: a new signal has no row to copy from")

        cells = [Cell(mode.value, False)] * self.cols
        self.signals.insert(index, Signal(name="SIG", cells=cells))
        logger.debug("Inserted signal %d (%s)", index, mode.value.value)
        return index

    def delete_signal(self, index: int) -> int:
        if self.signal_count < 1:
            raise PreconditionError("No signals to delete")
        if index < 0:
            index = self.signal_count - 1
        if index >= self.signal_count:
            raise PreconditionError(f"sigIndex too high: {index}")

        self.signals.pop(index)
        logger.debug("Deleted signal %d", index)
        return index

    def insert_column(self, index: int, fill="x") -> int:
        """Add a column at `index` (<0 means after the last one) for all signals."""
        if index < 0:
            index = self.cols
        if index < 1:
            raise PreconditionError(f"colIndex too low: {index}")
        if index > self.cols:
            raise PreconditionError(f"colIndex too high: {index}")

        mode = parse_fill_mode(fill)
        new_rows = []
        for signal in self.signals:
            if isinstance(mode, CopyFromLeft):
                new_cell = signal.cells[index - 1]
            else:
                new_cell = Cell(mode.value, False)
            new_rows.append(signal.cells[:index] + [new_cell] + signal.cells[index:])

        for signal, cells in zip(self.signals, new_rows):
            signal.cells = cells
        self.cols += 1
        logger.debug("Inserted column %d (%r)", index, mode)
        return index

    def delete_column(self, index: int):
        """Remove column `index` (<0 means the last one). No-op when only column 0 is left."""
        if self.cols <= 1:
            return None
        if index < 0:
            index = self.cols - 1
        if index < 1:
            raise PreconditionError(f"colIndex too low: {index}")
        if index >= self.cols:
            raise PreconditionError(f"colIndex too high: {index}")

        new_rows = [s.cells[:index] + s.cells[index + 1:] for s in self.signals]
        for signal, cells in zip(self.signals, new_rows):
            signal.cells = cells
        self.cols -= 1
        logger.debug("Deleted column %d", index)
        return index

    def load(self, names: Sequence[str], rows: Sequence[Sequence[Cell]]):
        """Replace the whole grid with already-validated rows (column 0 excluded)."""
        width = len(rows[0]) if rows else 0
        if len(names) != len(rows) or any(len(r) != width for r in rows):
            raise PreconditionError("Rows must be named and of equal length")

        signals = [Signal(name=name, cells=[DONTCARE_CELL] + list(cells))
                   for name, cells in zip(names, rows)]
        self.signals, self.cols = signals, width + 1

    # --- Values ----------------------------------------------------------

    def set_cell_value(self, sig_index: int, col_index: int, mode):
        mode = parse_value_mode(mode)
        self._check_cell(sig_index, col_index)

        signal = self.signals[sig_index]
        cell = signal.cells[col_index]
        if mode is ValueMode.SET:
            value = Value.ONE
        elif mode is ValueMode.CLEAR:
            value = Value.ZERO
        elif mode is ValueMode.TOGGLE:
            value = {Value.ZERO: Value.ONE, Value.ONE: Value.ZERO}.get(cell.value, cell.value)
        else:
            value = Value.X
        signal.cells[col_index] = cell.with_value(value)

    def set_cell_question(self, sig_index: int, col_index: int, is_question: bool):
        self._check_cell(sig_index, col_index)
        signal = self.signals[sig_index]
        signal.cells[col_index] = signal.cells[col_index].with_question(bool(is_question))

    def copy_cell(self, sig_index: int, src_col: int, dst_col: int):
        self._check_cell(sig_index, src_col)
        self._check_cell(sig_index, dst_col)
        cells = self.signals[sig_index].cells
        cells[dst_col] = cells[src_col]

    def rename_signal(self, sig_index: int, name: str):
        self._check_signal(sig_index)
        self.signals[sig_index].name = name

    def _check_signal(self, sig_index: int):
        if sig_index < 0:
            raise PreconditionError(f"sigIndex too low: {sig_index}")
        if sig_index >= self.signal_count:
            raise PreconditionError(f"sigIndex too high: {sig_index}")

    def _check_cell(self, sig_index: int, col_index: int):
        self._check_signal(sig_index)
        if col_index < 1:
            raise PreconditionError(f"colIndex too low: {col_index}")
        if col_index >= self.cols:
            raise PreconditionError(f"colIndex too high: {col_index}")
