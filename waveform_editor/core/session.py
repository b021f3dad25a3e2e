import functools
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from waveform_editor.core.codec import WaveformCodec
from waveform_editor.core.errors import ExportValidationError, PreconditionError, WaveformError
from waveform_editor.core.grid import Grid
from waveform_editor.core.models import COPY_FROM_LEFT, parse_value_mode
from waveform_editor.core.port import PresentationPort
from waveform_editor.core.selection import Selection
from waveform_editor.core.settings import Settings

logger = logging.getLogger(__name__)

START_SIGNALS = 4
START_COLS = 8


class EditState(Enum):
    MAIN = "MAIN"
    ADDCOL = "ADDCOL"
    DELCOL = "DELCOL"
    ADDSIG = "ADDSIG"
    DELSIG = "DELSIG"
    RENAME = "RENAME"
    GENCLOCK = "GENCLOCK"


@dataclass(frozen=True)
class CellRef:
    """
    Coordinates of a clicked table cell. `signal` is None for the header row,
    `column` is None for the signal-name column.
    """
    signal: Optional[int] = None
    column: Optional[int] = None

    @property
    def is_corner(self):
        return self.signal is None and self.column is None

    @property
    def is_name(self):
        return self.signal is not None and self.column is None

    @property
    def is_header(self):
        return self.signal is None and self.column is not None


def reports_errors(default=None):
    """Turn a WaveformError raised by an event handler into a user message."""
    def decorator(func):
        @functools.wraps(func)
        def wrapper(self, *args, **kwargs):
            try:
                return func(self, *args, **kwargs)
            except WaveformError as e:
                logger.warning("%s failed: %s", func.__name__, e)
                self.port.report_message(f"ERROR: {e}")
                return default
        return wrapper
    return decorator


class EditorSession:
    """
    One editing session: the grid, its selection, the export settings and the
    modal edit state. UI events come in through the click/request/import
    methods; every change goes back out through the presentation port.
    """

    def __init__(self, port: Optional[PresentationPort] = None, settings: Optional[Settings] = None):
        self.port = port or PresentationPort()
        self.grid = Grid()
        self.selection = Selection(self.grid)
        self.settings = settings or Settings()
        self.state = EditState.MAIN

        self.rename_target: Optional[int] = None
        self.clock_rows = []

        self._click_handlers = {
            EditState.MAIN: self._click_main,
            EditState.ADDCOL: self._click_column_edit,
            EditState.DELCOL: self._click_column_edit,
            EditState.ADDSIG: self._click_signal_edit,
            EditState.DELSIG: self._click_signal_edit,
            EditState.RENAME: self._click_inert,
            EditState.GENCLOCK: self._click_inert,
        }
        missing = set(EditState) - set(self._click_handlers)
        if missing:
            raise TypeError(f"No click handler for {sorted(s.name for s in missing)}")

    def populate_default(self):
        for _ in range(START_COLS):
            self.insert_column(-1)
        for _ in range(START_SIGNALS):
            self.insert_signal(-1)

    # --- Structure (raise on bad input) ----------------------------------

    def insert_signal(self, index: int, fill="x") -> int:
        self.clear_selection()
        index = self.grid.insert_signal(index, fill)
        self.port.notify_structure_changed()
        return index

    def delete_signal(self, index: int) -> int:
        self.clear_selection()
        index = self.grid.delete_signal(index)
        self.port.notify_structure_changed()
        return index

    def insert_column(self, index: int, fill="x") -> int:
        self.clear_selection()
        index = self.grid.insert_column(index, fill)
        self.port.notify_structure_changed()
        return index

    def delete_column(self, index: int):
        self.clear_selection()
        index = self.grid.delete_column(index)
        if index is not None:
            self.port.notify_structure_changed()
        return index

    # --- Selection edits (button actions) --------------------------------

    def clear_selection(self):
        if len(self.selection):
            self.selection.clear()
            self.port.notify_selection_changed()

    @reports_errors(default=False)
    def set_selected_values(self, mode) -> bool:
        mode = parse_value_mode(mode)
        self.selection.apply_value_mode(mode)
        self._notify_selected_cells()
        return True

    @reports_errors(default=False)
    def set_selected_question(self, is_question: bool) -> bool:
        self.selection.apply_question_flag(is_question)
        self._notify_selected_cells()
        return True

    @reports_errors(default=False)
    def shift_selection_left(self) -> bool:
        self.selection.shift_left()
        self.port.notify_cells_changed(range(self.grid.signal_count), range(1, self.grid.cols))
        self.port.notify_selection_changed()
        return True

    @reports_errors(default=False)
    def shift_selection_right(self) -> bool:
        self.selection.shift_right()
        self.port.notify_cells_changed(range(self.grid.signal_count), range(1, self.grid.cols))
        self.port.notify_selection_changed()
        return True

    @reports_errors(default=False)
    def subdivide_selection(self) -> bool:
        if not len(self.selection):
            return False
        self.selection.subdivide_columns()
        self.port.notify_selection_changed()
        self.port.notify_structure_changed()
        return True

    def _notify_selected_cells(self):
        rows = self.selection.rows_with_selection()
        cols = self.selection.columns_with_selection()
        if rows:
            self.port.notify_cells_changed(range(rows[0], rows[-1] + 1), range(cols[0], cols[-1] + 1))

    # --- Modal state machine ---------------------------------------------

    def _set_state(self, state: EditState):
        self.clear_selection()
        if state is not self.state:
            logger.debug("State %s -> %s", self.state.name, state.name)
            self.state = state
            self.port.notify_state_changed(state)

    def _request_toggle(self, target: EditState, message: str):
        if self.state in (EditState.RENAME, EditState.GENCLOCK):
            self.port.report_message(f"Finish {self.state.name.lower()} first")
            return self.state

        if self.state is target:
            # Finished with operation
            self._set_state(EditState.MAIN)
            self.port.report_message("")
        else:
            self._set_state(target)
            self.port.report_message(message)
        return self.state

    def request_add_column(self):
        return self._request_toggle(EditState.ADDCOL, "Add a column after which column?")

    def request_delete_column(self):
        return self._request_toggle(EditState.DELCOL, "Delete which column?")

    def request_add_signal(self):
        return self._request_toggle(EditState.ADDSIG, "Add a signal after which signal?")

    def request_delete_signal(self):
        return self._request_toggle(EditState.DELSIG, "Delete which signal?")

    @reports_errors()
    def click(self, ref: CellRef, modifier: bool = False):
        handler = self._click_handlers.get(self.state)
        if handler is None:
            self.port.report_message(f"ERROR: Unknown state: {self.state}")
            return
        handler(ref, modifier)

    def _click_main(self, ref: CellRef, modifier: bool):
        # A rejected click leaves the selection untouched
        if ref.signal is not None and not 0 <= ref.signal < self.grid.signal_count:
            raise PreconditionError(f"sigIndex out of range: {ref.signal}")
        if ref.column is not None and not 1 <= ref.column < self.grid.cols:
            raise PreconditionError(f"colIndex out of range: {ref.column}")

        if not modifier:
            self.selection.clear()

        if ref.is_corner:
            self.selection.select_all()
        elif ref.is_name:
            self.selection.select_row(ref.signal)
        elif ref.is_header:
            self.selection.select_column(ref.column)
        else:
            self.selection.toggle(ref.signal, ref.column)
        self.port.notify_selection_changed()

    def _click_column_edit(self, ref: CellRef, modifier: bool):
        col_index = ref.column or 0
        if self.state is EditState.ADDCOL:
            self.insert_column(col_index + 1, COPY_FROM_LEFT)
        elif col_index > 0:
            self.delete_column(col_index)

    def _click_signal_edit(self, ref: CellRef, modifier: bool):
        if self.state is EditState.ADDSIG:
            index = 0 if ref.signal is None else ref.signal + 1
            self.insert_signal(index, "x")
        elif ref.signal is not None:
            self.delete_signal(ref.signal)

    def _click_inert(self, ref: CellRef, modifier: bool):
        logger.debug("Click %s ignored in %s", ref, self.state.name)

    # --- Rename ----------------------------------------------------------

    @reports_errors()
    def double_click(self, ref: CellRef):
        """Start renaming from MAIN or any structure mode; the mode is dropped."""
        if self.state in (EditState.RENAME, EditState.GENCLOCK) or not ref.is_name:
            return
        if not 0 <= ref.signal < self.grid.signal_count:
            raise PreconditionError(f"sigIndex out of range: {ref.signal}")
        if self.state is not EditState.MAIN:
            self.port.report_message("")
        self._set_state(EditState.RENAME)
        self.rename_target = ref.signal

    def rename_text(self) -> str:
        """Current name of the signal being renamed, unescaped for editing."""
        if self.rename_target is None:
            return ""
        return WaveformCodec.display_name(self.grid.signals[self.rename_target].name)

    @reports_errors(default=False)
    def finish_rename(self, text: str) -> bool:
        if self.state is not EditState.RENAME:
            return False
        sig_index = self.rename_target
        self.grid.rename_signal(sig_index, WaveformCodec.escape_name(text))
        self.rename_target = None
        self._set_state(EditState.MAIN)
        self.port.notify_cells_changed(range(sig_index, sig_index + 1), range(0, 1))
        return True

    # --- Clock generator -------------------------------------------------

    def request_clock(self) -> bool:
        if self.state is not EditState.MAIN:
            self.port.report_message(f"Finish {self.state.name.lower()} first")
            return False
        rows = self.selection.rows_with_selection()
        if not rows:
            self.port.report_message("Select a cell in each signal to turn into a clock")
            return False
        self.clock_rows = rows
        self._set_state(EditState.GENCLOCK)
        self.port.report_message("Clock period (columns) and starting level?")
        return True

    @reports_errors(default=False)
    def confirm_clock(self, period, start_high: bool) -> bool:
        if self.state is not EditState.GENCLOCK:
            return False
        try:
            period = int(str(period).strip())
        except ValueError:
            raise PreconditionError(f"Clock period must be a positive even integer: {period!r}") from None
        if period <= 0 or period % 2:
            raise PreconditionError(f"Clock period must be a positive even integer: {period}")

        rows = self.selection.generate_clock(period, bool(start_high), self.clock_rows)
        self.clock_rows = []
        self._set_state(EditState.MAIN)
        self.port.notify_cells_changed(range(rows[0], rows[-1] + 1), range(1, self.grid.cols))
        self.port.report_message("")
        return True

    def cancel_clock(self):
        if self.state is EditState.GENCLOCK:
            self.clock_rows = []
            self._set_state(EditState.MAIN)
            self.port.report_message("")

    # --- Text import / export --------------------------------------------

    @reports_errors(default=False)
    def import_text(self, text: str) -> bool:
        """
        Replace grid and settings from pasted text. Everything is parsed
        before anything is applied, so a bad paste leaves the session as is.
        """
        parsed = WaveformCodec.parse_data(text)
        values = WaveformCodec.parse_settings(text)
        settings = Settings.from_dict(values) if values is not None else None

        if self.state is not EditState.MAIN:
            self.rename_target = None
            self.clock_rows = []
            self._set_state(EditState.MAIN)
        self.clear_selection()
        self.grid.load(parsed.names, parsed.rows)
        if settings is not None:
            self.settings = settings

        logger.info("Imported %d signals x %d columns", len(parsed.rows), parsed.cols - 1)
        self.port.notify_structure_changed()
        self.port.report_message(f"Imported {len(parsed.rows)} signals.")
        return True

    def export_data(self) -> str:
        return WaveformCodec.emit_data(self.grid) + WaveformCodec.emit_settings(self.settings)

    def export_visual_table(self) -> Optional[str]:
        self.clear_selection()
        try:
            return WaveformCodec.export_visual_table(self.grid, self.settings)
        except ExportValidationError as e:
            logger.warning("Export aborted: %s", e)
            self.selection.set(e.signal_index, e.col_index)
            self.port.notify_selection_changed()
            self.port.report_message(f"ERROR: {e}")
            return None

    @reports_errors(default=False)
    def update_setting(self, key: str, raw) -> bool:
        self.settings.update(key, raw)
        return True
