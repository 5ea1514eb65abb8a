"""Focus and pair-cursor selection for a single view session."""
from __future__ import annotations

from typing import List, Optional, Tuple

PAIR_SIZE = 2


class SelectionState:
    """Most recently clicked person plus an ordered pair for mutual queries.

    Selecting a paired id removes it from the pair; selecting a new id when
    the pair is full evicts the oldest entry. Focus always follows the last
    click, independent of the pair.
    """

    def __init__(self):
        self._pair: List[str] = []
        self.focused: Optional[str] = None

    @property
    def pair(self) -> Tuple[str, ...]:
        return tuple(self._pair)

    @property
    def is_idle(self) -> bool:
        return self.focused is None and not self._pair

    @property
    def first(self) -> Optional[str]:
        return self._pair[0] if self._pair else None

    @property
    def second(self) -> Optional[str]:
        return self._pair[1] if len(self._pair) > 1 else None

    def select(self, person_id: str) -> "SelectionState":
        if person_id in self._pair:
            self._pair.remove(person_id)
        elif len(self._pair) < PAIR_SIZE:
            self._pair.append(person_id)
        else:
            self._pair.pop(0)
            self._pair.append(person_id)
        self.focused = person_id
        return self

    def clear(self) -> "SelectionState":
        self._pair.clear()
        self.focused = None
        return self

    def forget(self, valid_ids) -> "SelectionState":
        """Drop ids that are no longer in the dataset."""
        valid = set(valid_ids)
        self._pair = [pid for pid in self._pair if pid in valid]
        if self.focused not in valid:
            self.focused = None
        return self

    def to_dict(self) -> dict:
        return {"focused": self.focused, "pair": list(self._pair)}

    def __repr__(self) -> str:
        return f"SelectionState(focused={self.focused!r}, pair={self._pair!r})"
