"""
Border placement for the visual table.

A cell at 1 draws its top border, a cell at 0 its bottom border and a
don't-care cell neither. A left border marks a 0->1 or 1->0 transition from
the previous column; anything involving X is never an edge.
"""
from enum import Enum
from typing import List, Sequence, Tuple

from waveform_editor.core.models import Value


class Border(Enum):
    TOP = "top"
    BOTTOM = "bottom"
    NONE = "none"


def border_for(prev: Value, cur: Value) -> Border:
    if cur is Value.ONE:
        return Border.TOP
    elif cur is Value.ZERO:
        return Border.BOTTOM
    return Border.NONE


def left_edge(prev: Value, cur: Value) -> bool:
    return (prev, cur) in ((Value.ZERO, Value.ONE), (Value.ONE, Value.ZERO))


def derive_row(values: Sequence[Value]) -> List[Tuple[Border, bool]]:
    """
    (border, left edge) for every column from 1 on; `values` includes column 0.
    Column 1 never has an entering edge.
    """
    return [(border_for(values[i - 1], values[i]), i > 1 and left_edge(values[i - 1], values[i]))
            for i in range(1, len(values))]
