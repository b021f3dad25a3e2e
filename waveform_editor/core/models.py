from dataclasses import dataclass, field
from enum import Enum
from typing import List, Union

from waveform_editor.core.errors import PreconditionError


class Value(Enum):
    ZERO = "0"
    ONE = "1"
    X = "x"  # Don't-care

    @classmethod
    def from_token(cls, token: str) -> "Value":
        for v in cls:
            if v.value == token.lower():
                return v
        raise PreconditionError(f"Invalid value: {token!r}")


class ValueMode(Enum):
    SET = "set"
    CLEAR = "clear"
    TOGGLE = "toggle"
    DONTCARE = "dontcare"


@dataclass(frozen=True)
class Cell:
    value: Value = Value.X
    is_question: bool = False

    def with_value(self, value: Value) -> "Cell":
        return Cell(value, self.is_question)

    def with_question(self, is_question: bool) -> "Cell":
        return Cell(self.value, is_question)


@dataclass
class Signal:
    name: str = "SIG"
    cells: List[Cell] = field(default_factory=list)

    def values(self) -> List[Value]:
        return [c.value for c in self.cells]


@dataclass(frozen=True)
class LiteralFill:
    value: Value


class CopyFromLeft:
    """Fill a new column with a copy of the column immediately to its left."""

    def __repr__(self):
        return "COPY_FROM_LEFT"


COPY_FROM_LEFT = CopyFromLeft()

FillMode = Union[LiteralFill, CopyFromLeft]


def parse_fill_mode(token) -> FillMode:
    """
    Accept the loose token form used by the editor buttons:
    '0', '1', 'x' for a literal fill, 'c' or 'p' (copy / previous) to copy
    from the left. Only the first character of the trimmed token counts.
    """
    if isinstance(token, (LiteralFill, CopyFromLeft)):
        return token
    if isinstance(token, Value):
        return LiteralFill(token)

    mode = str(token).strip()[:1].lower()
    if mode in ("0", "1", "x"):
        return LiteralFill(Value(mode))
    if mode in ("c", "p"):
        return COPY_FROM_LEFT
    raise PreconditionError(f"Invalid fill mode: {token!r}")


def parse_value_mode(token) -> ValueMode:
    if isinstance(token, ValueMode):
        return token

    mode = str(token).strip()[:1].lower()
    if mode == "s":
        return ValueMode.SET
    elif mode == "c":
        return ValueMode.CLEAR
    elif mode == "t":
        return ValueMode.TOGGLE
    elif mode in ("d", "x"):
        return ValueMode.DONTCARE
    raise PreconditionError(f"Invalid mode: {token!r}")


def value_to_mode(value) -> ValueMode:
    """Map a stored value to the mode that reproduces it through set_cell_value."""
    if isinstance(value, str):
        value = Value.from_token(value)
    if value is Value.ZERO:
        return ValueMode.CLEAR
    elif value is Value.ONE:
        return ValueMode.SET
    elif value is Value.X:
        return ValueMode.DONTCARE
    raise PreconditionError(f"Invalid data: {value!r}")
