"""Question cursor and review flags."""
from typing import Sequence


class Navigator:
    """Current-question cursor plus the set of flagged question ids."""

    def __init__(self, question_ids: Sequence[str]):
        if not question_ids:
            raise ValueError("Navigator needs at least one question")
        self._ids = tuple(question_ids)
        self._index = 0
        self._flagged: set[str] = set()

    @property
    def index(self) -> int:
        return self._index

    @property
    def current_id(self) -> str:
        return self._ids[self._index]

    @property
    def is_first(self) -> bool:
        return self._index == 0

    @property
    def is_last(self) -> bool:
        return self._index == len(self._ids) - 1

    @property
    def flagged(self) -> frozenset[str]:
        return frozenset(self._flagged)

    def go_to_next(self) -> bool:
        """Advance by one. Returns False (and stays put) on the last question."""
        if self.is_last:
            return False
        self._index += 1
        return True

    def go_to_previous(self) -> bool:
        """Retreat by one. Returns False (and stays put) on the first question."""
        if self.is_first:
            return False
        self._index -= 1
        return True

    def go_to(self, index: int) -> None:
        if not 0 <= index < len(self._ids):
            raise IndexError(f"Question index {index} is out of range")
        self._index = index

    def toggle_flag(self, question_id: str) -> bool:
        """Flag the question if unflagged, unflag it otherwise. Returns the new state."""
        if question_id in self._flagged:
            self._flagged.discard(question_id)
            return False
        self._flagged.add(question_id)
        return True

    def is_flagged(self, question_id: str) -> bool:
        return question_id in self._flagged

    def reset(self) -> None:
        self._index = 0
        self._flagged.clear()
