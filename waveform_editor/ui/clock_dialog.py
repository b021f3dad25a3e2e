from PyQt6.QtWidgets import QDialog, QVBoxLayout, QLabel, QDialogButtonBox, QSpinBox, QComboBox


class ClockDialog(QDialog):
    """Asks for the clock period (in columns, even) and the starting level."""

    def __init__(self, max_period, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Generate Clock")

        layout = QVBoxLayout(self)

        layout.addWidget(QLabel("Period (Columns):"))
        self.period_spin = QSpinBox()
        self.period_spin.setRange(2, max(2, max_period - max_period % 2))
        self.period_spin.setSingleStep(2)
        self.period_spin.setValue(2)
        layout.addWidget(self.period_spin)

        layout.addWidget(QLabel("Start Level:"))
        self.level_combo = QComboBox()
        self.level_combo.addItem("High (1)", True)
        self.level_combo.addItem("Low (0)", False)
        layout.addWidget(self.level_combo)

        buttons = QDialogButtonBox(QDialogButtonBox.StandardButton.Ok | QDialogButtonBox.StandardButton.Cancel)
        buttons.accepted.connect(self.accept)
        buttons.rejected.connect(self.reject)
        layout.addWidget(buttons)

    def get_period(self):
        return self.period_spin.value()

    def get_start_high(self):
        return bool(self.level_combo.currentData())
