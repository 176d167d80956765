"""Answer store and answer-shape normalisation."""
from typing import Any, Iterator, Optional

from quiz_helper.engine.exceptions import AnswerStoreFrozenError, InvalidAnswerError
from quiz_helper.engine.models import (
    CODE_ANSWER,
    MATCHING,
    MULTI_CHOICE,
    SHORT_ANSWER,
    SINGLE_CHOICE,
    Answer,
    MatchPair,
    Question,
)


class AnswerStore:
    """Maps question id to the stored answer. Absence means "not answered"."""

    def __init__(self):
        self._answers: dict[str, Answer] = {}
        self._frozen = False

    def set(self, question_id: str, value: Answer) -> None:
        """Insert or replace an answer. Shape is not checked here."""
        if self._frozen:
            raise AnswerStoreFrozenError("Answers are read-only after submission")
        self._answers[question_id] = value

    def get(self, question_id: str) -> Optional[Answer]:
        return self._answers.get(question_id)

    def discard(self, question_id: str) -> None:
        if self._frozen:
            raise AnswerStoreFrozenError("Answers are read-only after submission")
        self._answers.pop(question_id, None)

    def clear(self) -> None:
        if self._frozen:
            raise AnswerStoreFrozenError("Answers are read-only after submission")
        self._answers.clear()

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def snapshot(self) -> dict[str, Answer]:
        return dict(self._answers)

    def __contains__(self, question_id: object) -> bool:
        return question_id in self._answers

    def __len__(self) -> int:
        return len(self._answers)

    def __iter__(self) -> Iterator[str]:
        return iter(self._answers)


def normalize_answer(question: Question, value: Any) -> Answer:
    """
    Convert user input into the stored shape for the question kind.

    single-choice -> choice id, multi-choice -> frozenset of choice ids,
    matching -> frozenset of MatchPair, short/code answer -> text.

    Raises:
        InvalidAnswerError: wrong shape or ids that the question does not have
    """
    q_type = question.type

    if q_type == SINGLE_CHOICE:
        if not isinstance(value, str):
            raise InvalidAnswerError(f"Question {question.id!r} expects a single choice id")
        if question.choice(value) is None:
            raise InvalidAnswerError(f"Question {question.id!r} has no choice {value!r}")
        return value

    elif q_type == MULTI_CHOICE:
        ids = _to_id_set(question.id, value)
        unknown = ids - {c.id for c in question.choices}
        if unknown:
            raise InvalidAnswerError(f"Question {question.id!r} has no choices {sorted(unknown)}")
        return ids

    elif q_type == MATCHING:
        return _to_pairs(question, value)

    elif q_type in (SHORT_ANSWER, CODE_ANSWER):
        if not isinstance(value, str):
            raise InvalidAnswerError(f"Question {question.id!r} expects text")
        return value

    raise InvalidAnswerError(f"Unsupported question type {q_type!r}")


def _to_id_set(question_id: str, value: Any) -> frozenset[str]:
    # A bare string is iterable too, but is never a valid set of ids
    if isinstance(value, (str, bytes, dict)):
        raise InvalidAnswerError(f"Question {question_id!r} expects a set of choice ids")
    try:
        ids = list(value)
    except TypeError:
        raise InvalidAnswerError(f"Question {question_id!r} expects a set of choice ids")
    if not all(isinstance(i, str) for i in ids):
        raise InvalidAnswerError(f"Question {question_id!r} expects choice ids as strings")
    return frozenset(ids)


def _to_pairs(question, value: Any) -> frozenset[MatchPair]:
    if isinstance(value, (str, bytes, dict)):
        raise InvalidAnswerError(f"Question {question.id!r} expects a list of pairs")
    try:
        raw_pairs = list(value)
    except TypeError:
        raise InvalidAnswerError(f"Question {question.id!r} expects a list of pairs")

    pairs = []
    for raw in raw_pairs:
        if isinstance(raw, MatchPair):
            pair = raw
        elif isinstance(raw, (tuple, list)) and len(raw) == 2:
            pair = MatchPair(raw[0], raw[1])
        elif isinstance(raw, dict) and {"leftId", "rightId"} <= raw.keys():
            pair = MatchPair(raw["leftId"], raw["rightId"])
        else:
            raise InvalidAnswerError(f"Question {question.id!r}: malformed pair {raw!r}")

        if question.left_item(pair.left_id) is None:
            raise InvalidAnswerError(f"Question {question.id!r} has no left item {pair.left_id!r}")
        if question.right_item(pair.right_id) is None:
            raise InvalidAnswerError(f"Question {question.id!r} has no right item {pair.right_id!r}")
        pairs.append(pair)

    lefts = [p.left_id for p in pairs]
    rights = [p.right_id for p in pairs]
    if len(set(lefts)) != len(lefts) or len(set(rights)) != len(rights):
        raise InvalidAnswerError(f"Question {question.id!r}: each item can be matched only once")
    return frozenset(pairs)
