import unittest

from waveform_editor.core.codec import (
    DATA_START, DATA_STOP, SETTINGS_START, SETTINGS_STOP, WaveformCodec,
)
from waveform_editor.core.errors import ExportValidationError, ImportFormatError, PreconditionError
from waveform_editor.core.grid import Grid
from waveform_editor.core.models import Cell, Value
from waveform_editor.core.settings import Settings


def make_grid(names, rows):
    grid = Grid()
    grid.load(names, [[Cell(Value(ch[-1]), ch[0] == 'q') for ch in row.split()] for row in rows])
    return grid


def wrap(body):
    return f"{DATA_START}\n{body}{DATA_STOP}\n"


class TestDataBlock(unittest.TestCase):
    def test_emit_scenario(self):
        grid = make_grid(["A", "B"], ["d1 d0", "dx dx"])
        self.assertEqual(grid.cols, 3)
        self.assertEqual(WaveformCodec.emit_data(grid), wrap("A: d1,d0;\nB: dx,dx;\n"))

    def test_parse_scenario(self):
        parsed = WaveformCodec.parse_data(wrap("A: d1,d0;\nB: dx,dx;\n"))
        self.assertEqual(parsed.names, ("A", "B"))
        self.assertEqual(parsed.cols, 3)
        self.assertEqual(parsed.rows, (
            (Cell(Value.ONE), Cell(Value.ZERO)),
            (Cell(Value.X), Cell(Value.X)),
        ))

    def test_round_trip(self):
        grid = make_grid(["clk", "data%20in", "q"],
                         ["d0 d1 d0 d1", "q1 dx qx d0", "d1 d1 q0 dx"])
        parsed = WaveformCodec.parse_data(WaveformCodec.emit_data(grid))
        other = Grid()
        other.load(parsed.names, parsed.rows)
        self.assertEqual(other.cols, grid.cols)
        self.assertEqual(other.signals, grid.signals)

    def test_round_trip_without_columns(self):
        grid = make_grid(["A"], [""])
        text = WaveformCodec.emit_data(grid)
        self.assertEqual(text, wrap("A: ;\n"))
        parsed = WaveformCodec.parse_data(text)
        self.assertEqual(parsed.cols, 1)
        self.assertEqual(parsed.names, ("A",))

    def test_empty_block_is_bare_grid(self):
        parsed = WaveformCodec.parse_data(wrap(""))
        self.assertEqual(parsed.names, ())
        self.assertEqual(parsed.cols, 1)

    def test_surrounding_text_and_whitespace_ignored(self):
        text = "Paste:\n" + wrap("  A :  d1 , q0 ;\n\n") + "trailer"
        parsed = WaveformCodec.parse_data(text)
        self.assertEqual(parsed.names, ("A",))
        self.assertEqual(parsed.rows, ((Cell(Value.ONE), Cell(Value.ZERO, True)),))

    def test_missing_sentinels(self):
        with self.assertRaises(ImportFormatError):
            WaveformCodec.parse_data("A: d1;\n" + DATA_STOP)
        with self.assertRaises(ImportFormatError):
            WaveformCodec.parse_data(DATA_START + "\nA: d1;\n")

    def test_grammar_errors(self):
        bad_bodies = [
            "A: d1,d0;\nd1,d0;\n",      # Row without a name
            "A: d1,d0;\nB: d1;\n",      # Ragged rows
            "A: d2;\n",                 # Bad value
            "A: D1;\n",                 # Entries are lower case
            "A: dd1;\n",
            "A: d1,;\n",
            "A: d1: d0;\n",
        ]
        for body in bad_bodies:
            with self.assertRaises(ImportFormatError, msg=body):
                WaveformCodec.parse_data(wrap(body))


class TestSettingsBlock(unittest.TestCase):
    def test_absent_block(self):
        self.assertIsNone(WaveformCodec.parse_settings(wrap("A: d1;\n")))

    def test_round_trip_defaults_and_custom(self):
        for settings in (Settings(),
                         Settings(include_col_nums=False, cloze_answers=" 0, 1,X:Y ",
                                  col_group_size=8)):
            text = WaveformCodec.emit_settings(settings)
            self.assertEqual(Settings.from_dict(WaveformCodec.parse_settings(text)), settings)

    def test_emit_defaults(self):
        self.assertEqual(WaveformCodec.emit_settings(Settings()),
                         f"{SETTINGS_START}\n"
                         "includeColNums: true;\n"
                         "clozeAnswers: 0,1;\n"
                         "colGroupSize: 4;\n"
                         f"{SETTINGS_STOP}\n")

    def test_partial_block_and_coercion(self):
        text = f"{SETTINGS_START}\nincludeColNums: FALSE;\ncolGroupSize: 2;\n{SETTINGS_STOP}"
        self.assertEqual(WaveformCodec.parse_settings(text),
                         {'includeColNums': False, 'colGroupSize': 2})

    def test_rejects_bad_settings(self):
        bad_bodies = [
            "unknownKey: 1;\n",
            "includeColNums: yes;\n",
            "colGroupSize: four;\n",
            "colGroupSize: 0;\n",
            "colGroupSize: 4_0;\n",
            "clozeAnswers: 0.1;\n",     # '.' must be escaped
            "clozeAnswers 0;\n",
        ]
        for body in bad_bodies:
            with self.assertRaises(ImportFormatError, msg=body):
                WaveformCodec.parse_settings(f"{SETTINGS_START}\n{body}{SETTINGS_STOP}\n")

    def test_missing_stop_sentinel(self):
        with self.assertRaises(ImportFormatError):
            WaveformCodec.parse_settings(f"{SETTINGS_START}\ncolGroupSize: 2;\n")


class TestNames(unittest.TestCase):
    def test_escape_name_is_grammar_safe(self):
        name = WaveformCodec.escape_name("  a:b;c,d\ne  ")
        for ch in ":;,\n":
            self.assertNotIn(ch, name)
        self.assertEqual(WaveformCodec.display_name(name), "a:b;c,d\ne")

    def test_marker_text_survives_round_trip(self):
        name = WaveformCodec.escape_name(DATA_STOP)
        self.assertNotIn("-", name)
        grid = make_grid([name, "B"], ["d1", "d0"])
        settings = Settings(cloze_answers=f"0,1,{SETTINGS_STOP}")

        text = WaveformCodec.emit_data(grid) + WaveformCodec.emit_settings(settings)
        self.assertEqual(text.count(DATA_STOP), 1)
        self.assertEqual(text.count(SETTINGS_STOP), 1)

        parsed = WaveformCodec.parse_data(text)
        self.assertEqual(parsed.names, (name, "B"))
        self.assertEqual(WaveformCodec.display_name(parsed.names[0]), DATA_STOP)
        self.assertEqual(Settings.from_dict(WaveformCodec.parse_settings(text)), settings)

    def test_escape_keeps_spaces(self):
        self.assertEqual(WaveformCodec.escape_name("data in"), "data in")


class TestClozeAndExport(unittest.TestCase):
    def test_cloze_text(self):
        self.assertEqual(WaveformCodec.generate_cloze_text(1, "MULTICHOICE", "0,1,X", "x"),
                         "{1:MULTICHOICE:0~1~=X}")
        self.assertEqual(WaveformCodec.generate_cloze_text(2, "MC", ["0", "1"], "0"),
                         "{2:MC:=0~1}")

    def test_cloze_rejects_unknown_answer(self):
        with self.assertRaises(PreconditionError):
            WaveformCodec.generate_cloze_text(1, "MULTICHOICE", "0,1", "x")

    def test_validate_rejects_question_outside_answer_set(self):
        grid = make_grid(["A"], ["d1 qx"])
        settings = Settings(cloze_answers="0,1")
        before = [list(s.cells) for s in grid.signals]

        with self.assertRaises(ExportValidationError) as ctx:
            WaveformCodec.export_visual_table(grid, settings)
        self.assertEqual((ctx.exception.signal_index, ctx.exception.col_index), (0, 2))
        self.assertEqual([s.cells for s in grid.signals], before)

    def test_validate_is_case_insensitive(self):
        grid = make_grid(["A"], ["qx"])
        WaveformCodec.validate(grid, Settings(cloze_answers="0,1,X"))

    def test_visual_table(self):
        grid = make_grid(["a%20b"], ["d0 d1 q1 dx"])
        html = WaveformCodec.export_visual_table(grid, Settings(col_group_size=2))

        self.assertTrue(html.startswith('<div style="overflow: auto">'))
        self.assertEqual(html.count("<tr>"), 3)  # Header, spacer, signal
        self.assertIn(">a b</td>", html)
        self.assertIn("{1:MULTICHOICE:0~=1}", html)
        # Column 2 rises from 0 to 1 and closes the first group
        self.assertIn('<td style="border-right: thin solid black; border-top: thick solid blue;'
                      ' border-left: thick solid blue;">&nbsp;</td>', html)
        self.assertIn('<td style="border-right: thin dotted black; border-bottom: thick solid blue;">'
                      '&nbsp;</td>', html)
        # Group border after column 2, but not on the last column
        self.assertIn('<td style="border-right: thin solid black; text-align: center;">2</td>', html)
        self.assertIn('<td style="border-right: thin dotted black; text-align: center;">4</td>', html)

    def test_visual_table_without_header(self):
        grid = make_grid(["A", "B"], ["d0", "d1"])
        html = WaveformCodec.export_visual_table(grid, Settings(include_col_nums=False))
        self.assertEqual(html.count("<tr>"), 4)


if __name__ == '__main__':
    unittest.main()
