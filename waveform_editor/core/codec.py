import html
import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple, Union
from urllib.parse import quote, unquote

from waveform_editor.core.edges import Border, derive_row
from waveform_editor.core.errors import ExportValidationError, ImportFormatError, PreconditionError
from waveform_editor.core.grid import Grid
from waveform_editor.core.models import Cell, Value
from waveform_editor.core.settings import Settings

logger = logging.getLogger(__name__)

DATA_START = "---BEGIN WAVEFORM DATA---"
DATA_STOP = "---END WAVEFORM DATA---"
SETTINGS_START = "---BEGIN WAVEFORM SETTINGS---"
SETTINGS_STOP = "---END WAVEFORM SETTINGS---"

SIGNAL_TERMINATOR = ";"
NAME_DELIM = ":"
VALUE_DELIM = ","

CLOZE_POINTS = 1
CLOZE_TYPE = "MULTICHOICE"

BORDER_SIGNAL = "thick solid blue"
BORDER_COL = "thin dotted black"
BORDER_COL_GROUP = "thin solid black"

# Characters a signal name keeps unescaped. "-" is always escaped so no name
# can spell a block marker.
NAME_SAFE = "@*_+./ "
# Settings keys and values: whitelisted characters or %XX escapes
SETTING_TEXT_RE = re.compile(r"^(?:[A-Za-z0-9_, \-]|%[0-9A-Fa-f]{2})*$")
SETTING_PLAIN = set("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789_, ")


@dataclass(frozen=True)
class ParsedData:
    """Result of a successful DATA parse. Rows exclude the hidden column 0."""
    names: Tuple[str, ...]
    rows: Tuple[Tuple[Cell, ...], ...]

    @property
    def cols(self) -> int:
        return 1 + (len(self.rows[0]) if self.rows else 0)


def _between(text: str, start: str, stop: str, what: str) -> Optional[str]:
    begin = text.find(start)
    if begin < 0:
        return None
    begin += len(start)
    end = text.find(stop, begin)
    if end < 0:
        raise ImportFormatError(f"Missing end of {what} marker: {stop}")
    return text[begin:end]


def _encode_setting(text: str) -> str:
    encoded = "".join(c if c in SETTING_PLAIN else quote(c, safe="") for c in text)
    # Keep surrounding spaces through the strip() done while parsing
    if encoded.startswith(" "):
        encoded = "%20" + encoded[1:]
    if encoded.endswith(" "):
        encoded = encoded[:-1] + "%20"
    return encoded


def _decode_setting(raw: str, what: str) -> str:
    if not SETTING_TEXT_RE.match(raw):
        raise ImportFormatError(f"Invalid characters in setting {what}: {raw!r}")
    return unquote(raw)


class WaveformCodec:
    @staticmethod
    def escape_name(text: str) -> str:
        """Make a signal name safe for the DATA grammar (no ':', ';', ',' or newlines)."""
        return quote(text.strip(), safe=NAME_SAFE)

    @staticmethod
    def display_name(name: str) -> str:
        return unquote(name)

    # --- DATA block ------------------------------------------------------

    @staticmethod
    def parse_data(text: str) -> ParsedData:
        """
        Parse the DATA block out of `text` without touching any live grid.
        Raises ImportFormatError on the first grammar violation.
        """
        if DATA_START not in text:
            raise ImportFormatError(f"Missing start of data marker: {DATA_START}")
        body = _between(text, DATA_START, DATA_STOP, "data")

        names: List[str] = []
        data_rows: List[str] = []
        for chunk in body.split(SIGNAL_TERMINATOR):
            chunk = chunk.strip()
            if not chunk:
                continue
            name, sep, data = chunk.partition(NAME_DELIM)
            if sep:
                names.append(name.strip())
                data_rows.append(data)
            else:
                data_rows.append(name)

        if len(names) != len(data_rows):
            raise ImportFormatError(
                f"Number of signal names ({len(names)}) does not match "
                f"number of data rows ({len(data_rows)})")

        rows = []
        for sig_index, data in enumerate(data_rows):
            entries = data.strip()
            cells = []
            if entries:
                for entry in entries.split(VALUE_DELIM):
                    cells.append(WaveformCodec._parse_entry(entry.strip(), sig_index))
            rows.append(tuple(cells))

        for sig_index, row in enumerate(rows):
            if len(row) != len(rows[0]):
                raise ImportFormatError(
                    f"Signal {sig_index + 1} has {len(row)} entries, "
                    f"expected {len(rows[0])}")

        logger.debug("Parsed %d signals x %d columns", len(rows), len(rows[0]) if rows else 0)
        return ParsedData(tuple(names), tuple(rows))

    @staticmethod
    def _parse_entry(entry: str, sig_index: int) -> Cell:
        if len(entry) != 2 or entry[0] not in "dq" or entry[1] not in "01x":
            raise ImportFormatError(f"Signal {sig_index + 1}: invalid entry {entry!r}")
        return Cell(Value(entry[1]), entry[0] == "q")

    @staticmethod
    def emit_data(grid: Grid) -> str:
        lines = [DATA_START + "\n"]
        for signal in grid.signals:
            entries = VALUE_DELIM.join(("q" if c.is_question else "d") + c.value.value
                                       for c in signal.cells[1:])
            lines.append(f"{signal.name}{NAME_DELIM} {entries}{SIGNAL_TERMINATOR}\n")
        lines.append(DATA_STOP + "\n")
        return "".join(lines)

    # --- SETTINGS block --------------------------------------------------

    @staticmethod
    def parse_settings(text: str) -> Optional[Dict[str, object]]:
        """
        Parse the optional SETTINGS block. Returns None when there is no
        block, else the typed values of the keys it names.
        """
        body = _between(text, SETTINGS_START, SETTINGS_STOP, "settings")
        if body is None:
            return None

        known = Settings.keys()
        values: Dict[str, object] = {}
        for chunk in body.split(SIGNAL_TERMINATOR):
            chunk = chunk.strip()
            if not chunk:
                continue
            raw_key, sep, raw_value = chunk.partition(NAME_DELIM)
            if not sep:
                raise ImportFormatError(f"Invalid setting line: {chunk!r}")

            key = _decode_setting(raw_key.strip(), "key")
            value = _decode_setting(raw_value.strip(), "value")
            if key not in known:
                raise ImportFormatError(f"Unknown setting: {key!r}")
            try:
                values[key] = Settings.coerce(key, value)
            except PreconditionError as e:
                raise ImportFormatError(f"Invalid setting: {e}") from e
        return values

    @staticmethod
    def emit_settings(settings: Settings) -> str:
        lines = [SETTINGS_START + "\n"]
        for key, value in settings.items():
            if isinstance(value, bool):
                value = "true" if value else "false"
            lines.append(f"{_encode_setting(key)}{NAME_DELIM} "
                         f"{_encode_setting(str(value))}{SIGNAL_TERMINATOR}\n")
        lines.append(SETTINGS_STOP + "\n")
        return "".join(lines)

    # --- Quiz / visual table ---------------------------------------------

    @staticmethod
    def generate_cloze_text(points: int, type_: str,
                            answer_options: Union[str, Sequence[str]],
                            correct_answer: str) -> str:
        """
        Build a Moodle cloze item such as {1:MULTICHOICE:=0~1}: options are
        separated by '~' and the correct one is prefixed with '='.
        """
        if isinstance(answer_options, str):
            answer_options = [a.strip() for a in answer_options.split(",") if a.strip()]
        correct = str(correct_answer).casefold()
        if not any(opt.casefold() == correct for opt in answer_options):
            raise PreconditionError(
                f"Correct answer {correct_answer!r} is not one of {list(answer_options)}")

        options = "~".join(("=" + opt) if opt.casefold() == correct else opt
                           for opt in answer_options)
        return f"{{{points}:{type_}:{options}}}"

    @staticmethod
    def validate(grid: Grid, settings: Settings):
        """Every question cell must hold a value from the configured answer set."""
        answers = {a.casefold() for a in settings.answer_options()}
        for sig_index, signal in enumerate(grid.signals):
            for col_index in range(1, grid.cols):
                cell = signal.cells[col_index]
                if cell.is_question and cell.value.value.casefold() not in answers:
                    raise ExportValidationError(
                        f"Signal {WaveformCodec.display_name(signal.name)!r}, column {col_index}: "
                        f"answer {cell.value.value!r} is not in the answer set "
                        f"{settings.cloze_answers!r}",
                        sig_index, col_index)

    @staticmethod
    def export_visual_table(grid: Grid, settings: Settings) -> str:
        WaveformCodec.validate(grid, settings)

        def column_border(col_index):
            group = settings.col_group_size
            if col_index not in (1, grid.cols - 1) and col_index % group == 0:
                return BORDER_COL_GROUP
            return BORDER_COL

        rows = []
        if settings.include_col_nums:
            cells = [_td("&nbsp;", [f"border-right: {BORDER_COL}"])]
            for c in range(1, grid.cols):
                cells.append(_td(str(c), [f"border-right: {column_border(c)}", "text-align: center"]))
            rows.append(_tr(cells))

        options = settings.answer_options()
        for signal in grid.signals:
            spacer = [_td("&nbsp;", [f"border-right: {BORDER_COL}"])]
            spacer += [_td("&nbsp;", [f"border-right: {column_border(c)}"])
                       for c in range(1, grid.cols)]
            rows.append(_tr(spacer))

            name = html.escape(WaveformCodec.display_name(signal.name))
            cells = [_td(name, [f"border-right: {BORDER_COL}", "text-align: right",
                                "font-size: medium"])]
            edges = derive_row(signal.values())
            for c in range(1, grid.cols):
                cur = signal.cells[c]
                border, edge = edges[c - 1]
                styles = [f"border-right: {column_border(c)}"]
                if border is Border.TOP:
                    styles.append(f"border-top: {BORDER_SIGNAL}")
                elif border is Border.BOTTOM:
                    styles.append(f"border-bottom: {BORDER_SIGNAL}")
                if edge:
                    styles.append(f"border-left: {BORDER_SIGNAL}")

                if cur.is_question:
                    content = WaveformCodec.generate_cloze_text(
                        CLOZE_POINTS, CLOZE_TYPE, options, cur.value.value)
                else:
                    content = "&nbsp;"
                cells.append(_td(content, styles))
            rows.append(_tr(cells))

        logger.info("Exported visual table: %d signals x %d columns", grid.signal_count, grid.cols - 1)
        return ('<div style="overflow: auto">\n'
                '<table cellspacing="0" style="border: none; border-collapse: collapse;">\n'
                + "\n".join(rows)
                + "\n</table>\n</div>")


def _td(content: str, styles: List[str]) -> str:
    return f'<td style="{"; ".join(styles)};">{content}</td>'


def _tr(cells: List[str]) -> str:
    return "<tr>" + "".join(cells) + "</tr>"
