import re
from dataclasses import dataclass, field, fields
from typing import Dict, List, Tuple

from waveform_editor.core.errors import PreconditionError

INT_RE = re.compile(r"-?[0-9]+")


@dataclass
class Settings:
    # Show the column-number header row in the exported table
    include_col_nums: bool = field(default=True, metadata={'key': 'includeColNums'})
    # Answer set offered by every question cell
    cloze_answers: str = field(default="0,1", metadata={'key': 'clozeAnswers'})
    # Emphasize a column boundary every N columns
    col_group_size: int = field(default=4, metadata={'key': 'colGroupSize'})

    @classmethod
    def keys(cls) -> List[str]:
        return [f.metadata['key'] for f in fields(cls)]

    @classmethod
    def _field_for(cls, key: str):
        for f in fields(cls):
            if f.metadata['key'] == key:
                return f
        raise PreconditionError(f"Unknown setting: {key!r}")

    @classmethod
    def coerce(cls, key: str, raw):
        """
        Convert raw text (or an already typed value) to the schema type of
        `key`. Booleans accept exactly 'true'/'false' in any case.
        """
        f = cls._field_for(key)
        if f.type in (bool, 'bool'):
            if isinstance(raw, bool):
                return raw
            text = str(raw).strip().lower()
            if text not in ('true', 'false'):
                raise PreconditionError(f"{key} must be true or false, got {raw!r}")
            return text == 'true'

        if f.type in (int, 'int'):
            if isinstance(raw, bool):
                raise PreconditionError(f"{key} must be an integer, got {raw!r}")
            text = str(raw).strip()
            if not INT_RE.fullmatch(text):
                raise PreconditionError(f"{key} must be an integer, got {raw!r}")
            value = int(text)
            if value < 1:
                raise PreconditionError(f"{key} must be positive, got {value}")
            return value

        return str(raw)

    def update(self, key: str, raw):
        """Settings-panel write callback."""
        f = self._field_for(key)
        setattr(self, f.name, self.coerce(key, raw))

    def get(self, key: str):
        return getattr(self, self._field_for(key).name)

    def items(self) -> List[Tuple[str, object]]:
        return [(f.metadata['key'], getattr(self, f.name)) for f in fields(self)]

    def to_dict(self) -> Dict[str, object]:
        return dict(self.items())

    @classmethod
    def from_dict(cls, data: Dict[str, object]) -> "Settings":
        s = cls()
        for key, raw in data.items():
            s.update(key, raw)
        return s

    def answer_options(self) -> List[str]:
        return [a.strip() for a in self.cloze_answers.split(',') if a.strip()]
