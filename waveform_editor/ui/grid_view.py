from PyQt6.QtWidgets import (QTableWidget, QTableWidgetItem, QStyledItemDelegate,
                             QAbstractItemView, QLineEdit, QApplication)
from PyQt6.QtGui import QPainter, QPen, QColor
from PyQt6.QtCore import Qt, pyqtSignal

from waveform_editor.core.codec import WaveformCodec
from waveform_editor.core.edges import Border, border_for, left_edge
from waveform_editor.core.session import CellRef, EditorSession, EditState

COLOR_SELECT = QColor("cyan")
COLOR_SIGNAL = QColor("blue")
COLOR_GRID = QColor("#808080")
COLOR_GROUP = QColor("#000000")
MINWIDTH_SIGNAME = 100
MINWIDTH_DATACOL = 20
ROW_HEIGHT = 26
SPACER_HEIGHT = 8

MODIFIER_MASK = (Qt.KeyboardModifier.ShiftModifier
                 | Qt.KeyboardModifier.ControlModifier
                 | Qt.KeyboardModifier.AltModifier)


def row_to_signal(row):
    """Table row -> (signal index, is spacer). Row 0 is the header, then 2 rows per signal."""
    if row == 0:
        return None, False
    return (row - 1) // 2, (row - 1) % 2 == 0


def signal_to_row(sig_index):
    return 2 + sig_index * 2


class WaveformDelegate(QStyledItemDelegate):
    """Draws the waveform lines of each data cell from its value and its left neighbor."""

    def __init__(self, session: EditorSession, parent=None):
        super().__init__(parent)
        self.session = session

    def paint(self, painter: QPainter, option, index):
        grid = self.session.grid
        sig_index, is_spacer = row_to_signal(index.row())
        col_index = index.column()
        rect = option.rect

        painter.save()
        is_data = (sig_index is not None and not is_spacer and col_index > 0
                   and sig_index < grid.signal_count and col_index < grid.cols)

        if is_data and (sig_index, col_index) in self.session.selection:
            painter.fillRect(rect, COLOR_SELECT)

        # Column separators, emphasized at group boundaries
        group = self.session.settings.col_group_size
        emphasized = col_index not in (0, 1, grid.cols - 1) and col_index % group == 0
        pen = QPen(COLOR_GROUP if emphasized else COLOR_GRID, 1,
                   Qt.PenStyle.SolidLine if emphasized else Qt.PenStyle.DotLine)
        painter.setPen(pen)
        painter.drawLine(rect.topRight(), rect.bottomRight())
        painter.restore()

        if not is_data:
            super().paint(painter, option, index)
            return

        prev = grid.signals[sig_index].cells[col_index - 1]
        cur = grid.signals[sig_index].cells[col_index]

        painter.save()
        painter.setPen(QPen(COLOR_SIGNAL, 3))
        border = border_for(prev.value, cur.value)
        if border is Border.TOP:
            painter.drawLine(rect.left(), rect.top() + 1, rect.right(), rect.top() + 1)
        elif border is Border.BOTTOM:
            painter.drawLine(rect.left(), rect.bottom() - 1, rect.right(), rect.bottom() - 1)
        if col_index > 1 and left_edge(prev.value, cur.value):
            painter.drawLine(rect.left() + 1, rect.top(), rect.left() + 1, rect.bottom())

        if cur.is_question:
            painter.setPen(QColor("#ff5555"))
            painter.drawText(rect, Qt.AlignmentFlag.AlignCenter, "?")
        painter.restore()


class RenameLineEdit(QLineEdit):
    committed = pyqtSignal(str)

    def __init__(self, text, parent=None):
        super().__init__(text, parent)
        self.editingFinished.connect(lambda: self.committed.emit(self.text()))


class WaveformGridView(QTableWidget):
    """
    Table rendering of the session grid. Turns clicks into CellRef events and
    re-reads the session whenever the presentation port reports a change.
    """

    def __init__(self, session: EditorSession, parent=None):
        super().__init__(parent)
        self.session = session
        self.rename_editor = None

        self.horizontalHeader().setVisible(False)
        self.verticalHeader().setVisible(False)
        self.setShowGrid(False)
        self.setSelectionMode(QAbstractItemView.SelectionMode.NoSelection)
        self.setEditTriggers(QAbstractItemView.EditTrigger.NoEditTriggers)
        self.setItemDelegate(WaveformDelegate(session, self))

        self.cellClicked.connect(self.on_cell_clicked)
        self.cellDoubleClicked.connect(self.on_cell_double_clicked)

        self.rebuild()

    def to_cell_ref(self, row, column):
        sig_index, is_spacer = row_to_signal(row)
        if is_spacer:
            return None
        return CellRef(sig_index, column if column > 0 else None)

    def on_cell_clicked(self, row, column):
        ref = self.to_cell_ref(row, column)
        if ref is None:
            # Spacer row
            self.session.clear_selection()
            return
        modifier = bool(QApplication.keyboardModifiers() & MODIFIER_MASK)
        self.session.click(ref, modifier)

    def on_cell_double_clicked(self, row, column):
        ref = self.to_cell_ref(row, column)
        if ref is None:
            return
        self.session.double_click(ref)
        if self.session.state is EditState.RENAME:
            self.start_rename(signal_to_row(ref.signal))

    def start_rename(self, row):
        self.rename_editor = RenameLineEdit(self.session.rename_text())
        self.rename_editor.committed.connect(self.finish_rename)
        self.setCellWidget(row, 0, self.rename_editor)
        self.rename_editor.setFocus()
        self.rename_editor.selectAll()

    def finish_rename(self, text):
        # editingFinished fires on Return and again on focus loss
        if self.rename_editor is None:
            return
        sig_index = self.session.rename_target
        self.rename_editor = None
        self.session.finish_rename(text)
        if sig_index is not None:
            self.removeCellWidget(signal_to_row(sig_index), 0)
        self.refresh_names()

    # --- Redraw ----------------------------------------------------------

    def rebuild(self):
        grid = self.session.grid
        self.clear()
        self.setRowCount(1 + 2 * grid.signal_count)
        self.setColumnCount(grid.cols)

        self.setRowHeight(0, ROW_HEIGHT)
        self.setColumnWidth(0, MINWIDTH_SIGNAME)
        for c in range(1, grid.cols):
            self.setColumnWidth(c, MINWIDTH_DATACOL)
            item = QTableWidgetItem(str(c))
            item.setTextAlignment(Qt.AlignmentFlag.AlignCenter)
            self.setItem(0, c, item)

        for s in range(grid.signal_count):
            self.setRowHeight(signal_to_row(s) - 1, SPACER_HEIGHT)
            self.setRowHeight(signal_to_row(s), ROW_HEIGHT)
        self.refresh_names()

    def refresh_names(self):
        for s, name in enumerate(self.session.grid.names()):
            item = QTableWidgetItem(WaveformCodec.display_name(name))
            item.setTextAlignment(Qt.AlignmentFlag.AlignRight | Qt.AlignmentFlag.AlignVCenter)
            self.setItem(signal_to_row(s), 0, item)

    def refresh_cells(self, sig_min, sig_max, col_min, col_max):
        if col_min <= 0:
            self.refresh_names()
        # Edges depend on the left neighbor, so the column after the range changes too
        top = self.visualRect(self.model().index(signal_to_row(sig_min), max(col_min, 0)))
        bottom = self.visualRect(self.model().index(signal_to_row(sig_max),
                                                    min(col_max + 1, self.columnCount() - 1)))
        self.viewport().update(top.united(bottom))

    def refresh_all(self):
        self.viewport().update()
