from PyQt6.QtCore import QObject, pyqtSignal

from waveform_editor.core.port import PresentationPort


class QtPresentationPort(QObject, PresentationPort):
    # Emitted when cell values change (sig_min, sig_max, col_min, col_max), inclusive
    cells_changed = pyqtSignal(int, int, int, int)
    # Emitted when signals or columns are inserted/deleted or the grid is replaced
    structure_changed = pyqtSignal()
    selection_changed = pyqtSignal()
    # Emitted with the EditState name
    state_changed = pyqtSignal(str)
    message = pyqtSignal(str)

    def notify_cells_changed(self, rows, cols):
        if len(rows) and len(cols):
            self.cells_changed.emit(rows.start, rows.stop - 1, cols.start, cols.stop - 1)

    def notify_structure_changed(self):
        self.structure_changed.emit()

    def notify_selection_changed(self):
        self.selection_changed.emit()

    def notify_state_changed(self, state):
        self.state_changed.emit(state.name)

    def report_message(self, text):
        self.message.emit(text)
