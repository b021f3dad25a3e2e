from PyQt6.QtWidgets import (QMainWindow, QWidget, QVBoxLayout, QHBoxLayout, QPushButton,
                             QLabel, QSplitter, QFrame, QPlainTextEdit, QCheckBox,
                             QLineEdit, QSpinBox, QFormLayout, QDialog)
from PyQt6.QtGui import QKeySequence
from PyQt6.QtCore import Qt

from waveform_editor import PROJ_NAME, __version__
from waveform_editor.core.session import EditorSession, EditState
from waveform_editor.core.models import ValueMode
from waveform_editor.ui.clock_dialog import ClockDialog
from waveform_editor.ui.grid_view import WaveformGridView
from waveform_editor.ui.qt_port import QtPresentationPort


class MainWindow(QMainWindow):
    def __init__(self):
        super().__init__()
        self.setWindowTitle(f"{PROJ_NAME} v{__version__}")
        self.resize(1100, 700)

        # Data
        self.port = QtPresentationPort()
        self.session = EditorSession(self.port)
        self.session.populate_default()

        self.init_ui()

        self.port.structure_changed.connect(self.grid_view.rebuild)
        self.port.cells_changed.connect(self.grid_view.refresh_cells)
        self.port.selection_changed.connect(self.on_selection_changed)
        self.port.state_changed.connect(self.on_state_changed)
        self.port.message.connect(self.msg_label.setText)

        self.on_selection_changed()

    def init_ui(self):
        menubar = self.menuBar()

        file_menu = menubar.addMenu("File")
        import_action = file_menu.addAction("Import Text")
        import_action.setShortcut(QKeySequence("Ctrl+I"))
        import_action.triggered.connect(self.import_text)

        export_data_action = file_menu.addAction("Export Data")
        export_data_action.setShortcut(QKeySequence("Ctrl+E"))
        export_data_action.triggered.connect(self.export_data)

        export_table_action = file_menu.addAction("Export Table")
        export_table_action.triggered.connect(self.export_table)

        file_menu.addSeparator()
        exit_action = file_menu.addAction("Exit")
        exit_action.triggered.connect(self.close)

        edit_menu = menubar.addMenu("Edit")
        for label, mode, shortcut in (("Set 0", ValueMode.CLEAR, "0"),
                                      ("Set 1", ValueMode.SET, "1"),
                                      ("Invert", ValueMode.TOGGLE, "I"),
                                      ("Set X", ValueMode.DONTCARE, "X")):
            action = edit_menu.addAction(label)
            action.setShortcut(QKeySequence(shortcut))
            action.triggered.connect(lambda _=False, m=mode: self.session.set_selected_values(m))

        main_widget = QWidget()
        self.setCentralWidget(main_widget)
        layout = QVBoxLayout(main_widget)

        # --- Signal editing buttons (only useful with a selection) ---
        self.sig_edit = QFrame()
        sig_layout = QHBoxLayout(self.sig_edit)
        sig_layout.setContentsMargins(0, 0, 0, 0)
        for label, slot in (("0", lambda: self.session.set_selected_values(ValueMode.CLEAR)),
                            ("1", lambda: self.session.set_selected_values(ValueMode.SET)),
                            ("Inv", lambda: self.session.set_selected_values(ValueMode.TOGGLE)),
                            ("X", lambda: self.session.set_selected_values(ValueMode.DONTCARE)),
                            ("Question", lambda: self.session.set_selected_question(True)),
                            ("Fixed", lambda: self.session.set_selected_question(False)),
                            ("<<", self.session.shift_selection_left),
                            (">>", self.session.shift_selection_right),
                            ("Subdivide", self.session.subdivide_selection),
                            ("Clock...", self.generate_clock)):
            btn = QPushButton(label)
            btn.clicked.connect(lambda _=False, f=slot: f())
            sig_layout.addWidget(btn)
        sig_layout.addStretch()
        layout.addWidget(self.sig_edit)

        # --- Structure mode toggles ---
        struct_layout = QHBoxLayout()
        self.mode_buttons = {}
        for label, state, request in (("Add Column", EditState.ADDCOL, self.session.request_add_column),
                                      ("Del Column", EditState.DELCOL, self.session.request_delete_column),
                                      ("Add Signal", EditState.ADDSIG, self.session.request_add_signal),
                                      ("Del Signal", EditState.DELSIG, self.session.request_delete_signal)):
            btn = QPushButton(label)
            btn.setCheckable(True)
            btn.clicked.connect(lambda _=False, f=request: self.on_mode_requested(f))
            struct_layout.addWidget(btn)
            self.mode_buttons[state] = btn
        struct_layout.addStretch()
        layout.addLayout(struct_layout)

        self.msg_label = QLabel("")
        self.msg_label.setStyleSheet("color: #ff5555; font-weight: bold;")
        layout.addWidget(self.msg_label)

        splitter = QSplitter(Qt.Orientation.Vertical)
        layout.addWidget(splitter)

        self.grid_view = WaveformGridView(self.session)
        splitter.addWidget(self.grid_view)

        # --- Settings + I/O ---
        bottom = QFrame()
        bottom_layout = QHBoxLayout(bottom)

        form = QFormLayout()
        self.col_nums_check = QCheckBox()
        self.col_nums_check.toggled.connect(
            lambda checked: self.session.update_setting('includeColNums', checked))
        form.addRow("Column Numbers:", self.col_nums_check)

        self.answers_edit = QLineEdit()
        self.answers_edit.editingFinished.connect(
            lambda: self.session.update_setting('clozeAnswers', self.answers_edit.text()))
        form.addRow("Cloze Answers:", self.answers_edit)

        self.group_spin = QSpinBox()
        self.group_spin.setRange(1, 999)
        self.group_spin.valueChanged.connect(self.on_group_size_changed)
        form.addRow("Column Group:", self.group_spin)
        bottom_layout.addLayout(form, 1)

        io_layout = QVBoxLayout()
        self.io_edit = QPlainTextEdit()
        self.io_edit.setPlaceholderText("Paste exported data here and press Import")
        io_layout.addWidget(self.io_edit)

        io_btns = QHBoxLayout()
        for label, slot in (("Import", self.import_text),
                            ("Export Data", self.export_data),
                            ("Export Table", self.export_table)):
            btn = QPushButton(label)
            btn.clicked.connect(slot)
            io_btns.addWidget(btn)
        io_btns.addStretch()
        io_layout.addLayout(io_btns)
        bottom_layout.addLayout(io_layout, 3)

        splitter.addWidget(bottom)
        splitter.setSizes([450, 250])

        self.refresh_settings_panel()

    # --- Port slots ------------------------------------------------------

    def on_selection_changed(self):
        enable = len(self.session.selection) > 0
        for btn in self.sig_edit.findChildren(QPushButton):
            btn.setEnabled(enable)
        self.grid_view.refresh_all()

    def on_state_changed(self, state_name):
        for state, btn in self.mode_buttons.items():
            btn.blockSignals(True)
            btn.setChecked(state.name == state_name)
            btn.blockSignals(False)

    def on_mode_requested(self, request):
        request()
        # Keep the check state in sync when the request was refused
        self.on_state_changed(self.session.state.name)

    def on_group_size_changed(self, value):
        self.session.update_setting('colGroupSize', value)
        self.grid_view.refresh_all()

    def refresh_settings_panel(self):
        settings = self.session.settings
        for widget in (self.col_nums_check, self.answers_edit, self.group_spin):
            widget.blockSignals(True)
        self.col_nums_check.setChecked(settings.include_col_nums)
        self.answers_edit.setText(settings.cloze_answers)
        self.group_spin.setValue(settings.col_group_size)
        for widget in (self.col_nums_check, self.answers_edit, self.group_spin):
            widget.blockSignals(False)

    # --- Actions ---------------------------------------------------------

    def generate_clock(self):
        if not self.session.request_clock():
            return
        dialog = ClockDialog(max(2, self.session.grid.cols - 1), self)
        if dialog.exec() == QDialog.DialogCode.Accepted:
            self.session.confirm_clock(dialog.get_period(), dialog.get_start_high())
        # A refused confirm leaves GENCLOCK active; closing the dialog ends it
        self.session.cancel_clock()

    def import_text(self):
        if self.session.import_text(self.io_edit.toPlainText()):
            self.refresh_settings_panel()

    def export_data(self):
        self.io_edit.setPlainText(self.session.export_data())

    def export_table(self):
        text = self.session.export_visual_table()
        if text is not None:
            self.io_edit.setPlainText(text)
