class WaveformError(Exception):
    """Base class for every failure the editor reports to the user."""


class PreconditionError(WaveformError, ValueError):
    """Bad index, bad mode token or bad setting. Nothing was mutated."""


class ImportFormatError(WaveformError):
    """Pasted text does not follow the DATA/SETTINGS grammar."""


class ExportValidationError(WaveformError):
    def __init__(self, message, signal_index, col_index):
        super().__init__(message)
        self.signal_index = signal_index
        self.col_index = col_index
