"""Data models for quizzes, questions and scores."""
from dataclasses import dataclass
from typing import ClassVar, Optional, Union

SINGLE_CHOICE = "single-choice"
MULTI_CHOICE = "multi-choice"
SHORT_ANSWER = "short-answer"
MATCHING = "matching"
CODE_ANSWER = "code-answer"

QUESTION_TYPES = (SINGLE_CHOICE, MULTI_CHOICE, SHORT_ANSWER, MATCHING, CODE_ANSWER)


@dataclass(frozen=True)
class Choice:
    """Selectable option of a choice question."""
    id: str
    text: str


@dataclass(frozen=True)
class MatchItem:
    """Item on either side of a matching question."""
    id: str
    text: str


@dataclass(frozen=True)
class MatchPair:
    """Left item paired with a right item."""
    left_id: str
    right_id: str


@dataclass(frozen=True)
class SingleChoiceQuestion:
    """Exactly one choice is correct."""
    type: ClassVar[str] = SINGLE_CHOICE
    is_auto_graded: ClassVar[bool] = True

    id: str
    text: str
    points: int
    choices: tuple[Choice, ...]
    correct_choice_id: str

    def choice(self, choice_id: str) -> Optional[Choice]:
        return next((c for c in self.choices if c.id == choice_id), None)


@dataclass(frozen=True)
class MultiChoiceQuestion:
    """Any subset of the choices can be the correct answer."""
    type: ClassVar[str] = MULTI_CHOICE
    is_auto_graded: ClassVar[bool] = True

    id: str
    text: str
    points: int
    choices: tuple[Choice, ...]
    correct_choice_ids: frozenset[str]

    def choice(self, choice_id: str) -> Optional[Choice]:
        return next((c for c in self.choices if c.id == choice_id), None)


@dataclass(frozen=True)
class ShortAnswerQuestion:
    """Free text answer, graded by an instructor."""
    type: ClassVar[str] = SHORT_ANSWER
    is_auto_graded: ClassVar[bool] = False

    id: str
    text: str
    points: int


@dataclass(frozen=True)
class MatchingQuestion:
    """Pair every left item with a right item; right side may hold distractors."""
    type: ClassVar[str] = MATCHING
    is_auto_graded: ClassVar[bool] = True

    id: str
    text: str
    points: int
    left_items: tuple[MatchItem, ...]
    right_items: tuple[MatchItem, ...]
    correct_pairs: frozenset[MatchPair]

    def left_item(self, item_id: str) -> Optional[MatchItem]:
        return next((i for i in self.left_items if i.id == item_id), None)

    def right_item(self, item_id: str) -> Optional[MatchItem]:
        return next((i for i in self.right_items if i.id == item_id), None)


@dataclass(frozen=True)
class CodeAnswerQuestion:
    """Source code answer, graded by an instructor."""
    type: ClassVar[str] = CODE_ANSWER
    is_auto_graded: ClassVar[bool] = False

    id: str
    text: str
    points: int


Question = Union[
    SingleChoiceQuestion,
    MultiChoiceQuestion,
    ShortAnswerQuestion,
    MatchingQuestion,
    CodeAnswerQuestion,
]

# Stored answer shapes: choice id / free text, set of choice ids, set of pairs
Answer = Union[str, frozenset[str], frozenset[MatchPair]]


@dataclass(frozen=True)
class Quiz:
    """Quiz definition. Immutable once loaded."""
    id: str
    title: str
    description: str
    time_limit_seconds: int
    questions: tuple[Question, ...]

    @property
    def total_points(self) -> int:
        return sum(q.points for q in self.questions)

    def question(self, question_id: str) -> Optional[Question]:
        return next((q for q in self.questions if q.id == question_id), None)


@dataclass(frozen=True)
class Score:
    """Score breakdown produced on submission."""
    achieved: int
    possible_auto_graded: int
    pending_manual_grade_points: int
    total_possible: int

    @property
    def auto_graded_percent(self) -> int:
        if self.possible_auto_graded <= 0:
            return 0
        return round(self.achieved / self.possible_auto_graded * 100)

    @property
    def overall_percent(self) -> int:
        if self.total_possible <= 0:
            return 0
        return round(self.achieved / self.total_possible * 100)
