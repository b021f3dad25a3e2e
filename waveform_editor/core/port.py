class PresentationPort:
    """
    Everything the editor session tells the outside world. The default
    implementation ignores all notifications; a UI overrides what it draws.

    Ranges are inclusive-exclusive Python ranges of signal / column indices.
    """

    def notify_cells_changed(self, rows: range, cols: range):
        pass

    def notify_structure_changed(self):
        pass

    def notify_selection_changed(self):
        pass

    def notify_state_changed(self, state):
        pass

    def report_message(self, text: str):
        pass


class RecordingPort(PresentationPort):
    """Keeps every notification in a list; handy for tests and scripting."""

    def __init__(self):
        self.events = []
        self.messages = []

    def notify_cells_changed(self, rows, cols):
        self.events.append(('cells', rows, cols))

    def notify_structure_changed(self):
        self.events.append(('structure',))

    def notify_selection_changed(self):
        self.events.append(('selection',))

    def notify_state_changed(self, state):
        self.events.append(('state', state))

    def report_message(self, text):
        self.messages.append(text)

    @property
    def last_message(self):
        return self.messages[-1] if self.messages else None
