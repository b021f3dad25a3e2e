import unittest

from waveform_editor.core.errors import PreconditionError
from waveform_editor.core.grid import Grid
from waveform_editor.core.models import Cell, Value
from waveform_editor.core.selection import Selection


def make_selection(rows):
    grid = Grid()
    grid.load([f"S{i}" for i in range(len(rows))],
              [[Cell(Value(ch)) for ch in row] for row in rows])
    return Selection(grid)


def row_text(grid, sig_index):
    return "".join(c.value.value for c in grid.signals[sig_index].cells[1:])


class TestSelectionBasics(unittest.TestCase):
    def setUp(self):
        self.sel = make_selection(["0000", "1111", "xxxx"])

    def test_set_unset_toggle(self):
        self.sel.set(0, 1)
        self.sel.set(0, 1)
        self.assertEqual(len(self.sel), 1)
        self.sel.toggle(0, 1)
        self.assertNotIn((0, 1), self.sel)
        self.sel.toggle(2, 4)
        self.assertIn((2, 4), self.sel)
        self.sel.unset(2, 4)
        self.sel.unset(2, 4)
        self.assertEqual(len(self.sel), 0)

    def test_rejects_column_zero_and_out_of_range(self):
        with self.assertRaises(PreconditionError):
            self.sel.set(0, 0)
        with self.assertRaises(PreconditionError):
            self.sel.set(3, 1)
        with self.assertRaises(PreconditionError):
            self.sel.set(0, 5)

    def test_queries(self):
        self.sel.set(2, 3)
        self.sel.set(0, 3)
        self.sel.set(0, 1)
        self.assertEqual(self.sel.columns_with_selection(), [1, 3])
        self.assertEqual(self.sel.rows_with_selection(), [0, 2])
        self.assertEqual(self.sel.cells_grouped_by_column(), {1: [0], 3: [0, 2]})

    def test_select_all_row_column(self):
        self.sel.select_all()
        self.assertEqual(len(self.sel), 12)
        self.sel.clear()
        self.sel.select_row(1)
        self.assertEqual(self.sel.columns_with_selection(), [1, 2, 3, 4])
        self.sel.clear()
        self.sel.select_column(2)
        self.assertEqual(self.sel.rows_with_selection(), [0, 1, 2])

    def test_apply_value_mode_and_question(self):
        self.sel.set(0, 2)
        self.sel.set(1, 2)
        self.sel.set(2, 2)
        self.sel.apply_value_mode('toggle')
        self.assertEqual(row_text(self.sel.grid, 0), "0100")
        self.assertEqual(row_text(self.sel.grid, 1), "1011")
        self.assertEqual(row_text(self.sel.grid, 2), "xxxx")

        self.sel.apply_question_flag(True)
        self.assertTrue(all(self.sel.grid.cell(s, 2).is_question for s in range(3)))
        self.assertFalse(self.sel.grid.cell(0, 1).is_question)


class TestShift(unittest.TestCase):
    def test_shift_left_moves_content_and_selection(self):
        sel = make_selection(["0110"])
        sel.set(0, 2)
        sel.set(0, 3)
        sel.shift_left()
        # Copy semantics: the right-most source keeps its value
        self.assertEqual(row_text(sel.grid, 0), "1110")
        self.assertEqual(list(sel), [(0, 1), (0, 2)])

    def test_shift_right_moves_content_and_selection(self):
        sel = make_selection(["0110"])
        sel.set(0, 2)
        sel.set(0, 3)
        sel.grid.set_cell_question(0, 3, True)
        sel.shift_right()
        self.assertEqual(row_text(sel.grid, 0), "0111")
        self.assertTrue(sel.grid.cell(0, 4).is_question)
        self.assertEqual(list(sel), [(0, 3), (0, 4)])

    def test_boundary_columns_stay_put(self):
        sel = make_selection(["10"])
        sel.set(0, 1)
        sel.shift_left()
        self.assertEqual(row_text(sel.grid, 0), "10")
        self.assertEqual(list(sel), [(0, 1)])

        sel.clear()
        sel.set(0, 2)
        sel.shift_right()
        self.assertEqual(row_text(sel.grid, 0), "10")
        self.assertEqual(list(sel), [(0, 2)])


class TestSubdivideAndClock(unittest.TestCase):
    def test_subdivide_duplicates_selected_columns(self):
        sel = make_selection(["01x", "10x"])
        sel.set(0, 1)
        sel.set(1, 3)
        self.assertEqual(sel.subdivide_columns(), [1, 3])
        self.assertEqual(len(sel), 0)
        self.assertEqual(sel.grid.cols, 6)
        self.assertEqual(row_text(sel.grid, 0), "001xx")
        self.assertEqual(row_text(sel.grid, 1), "110xx")

    def test_generate_clock(self):
        sel = make_selection(["xxxxxx", "xxxxxx"])
        sel.set(1, 4)
        sel.generate_clock(4, True)
        self.assertEqual(row_text(sel.grid, 0), "xxxxxx")
        self.assertEqual(row_text(sel.grid, 1), "110011")

        sel.generate_clock(2, False, rows=[0])
        self.assertEqual(row_text(sel.grid, 0), "010101")

    def test_generate_clock_rejects_bad_period(self):
        sel = make_selection(["xx"])
        sel.set(0, 1)
        for period in (0, -2, 3, 2.0, True):
            with self.assertRaises(PreconditionError):
                sel.generate_clock(period, True)
        self.assertEqual(row_text(sel.grid, 0), "xx")


if __name__ == '__main__':
    unittest.main()
