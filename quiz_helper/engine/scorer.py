"""Scoring rules for every question kind.

Functions:
- is_correct: all-or-nothing correctness of one stored answer.
- score: aggregate a Score over the whole quiz.
- review: per-question outcome report for the results screen.
"""
from dataclasses import dataclass
from typing import Any, Optional, Protocol

from quiz_helper.engine.models import (
    CODE_ANSWER,
    MATCHING,
    MULTI_CHOICE,
    SHORT_ANSWER,
    SINGLE_CHOICE,
    Answer,
    MatchPair,
    Question,
    Quiz,
    Score,
)

CORRECT = "correct"
INCORRECT = "incorrect"
UNANSWERED = "unanswered"
PENDING = "pending"


class AnswerLookup(Protocol):
    def get(self, question_id: str) -> Optional[Answer]: ...


@dataclass(frozen=True)
class QuestionReview:
    """How a single question was graded."""
    question: Question
    answer: Optional[Answer]
    outcome: str
    points_awarded: int


def is_correct(question: Question, answer: Any) -> bool:
    """Return True if `answer` earns the full points of an auto-graded question."""
    q_type = question.type

    if q_type == SINGLE_CHOICE:
        return answer is not None and answer == question.correct_choice_id

    elif q_type == MULTI_CHOICE:
        if answer is None:
            return not question.correct_choice_ids
        selected = _as_collection(answer)
        if selected is None or not all(isinstance(i, str) for i in selected):
            return False
        # Same cardinality and mutual containment
        return (
            len(selected) == len(question.correct_choice_ids)
            and all(choice_id in question.correct_choice_ids for choice_id in selected)
            and all(choice_id in selected for choice_id in question.correct_choice_ids)
        )

    elif q_type == MATCHING:
        pairs = _as_collection(answer)
        if pairs is None:
            return False
        if len(pairs) != len(question.correct_pairs):
            return False
        # Set equality, so a repeated correct pair cannot stand in for a missing one
        return {_as_pair(p) for p in pairs} == question.correct_pairs

    elif q_type in (SHORT_ANSWER, CODE_ANSWER):
        # Never decided automatically
        return False

    raise ValueError(f"No grading rule for question type {q_type!r}")


def score(quiz: Quiz, answers: AnswerLookup) -> Score:
    """Compute the score breakdown. Pure: neither argument is modified."""
    achieved = 0
    possible_auto_graded = 0
    pending_manual = 0
    total = 0

    for question in quiz.questions:
        total += question.points
        if not question.is_auto_graded:
            pending_manual += question.points
            continue

        possible_auto_graded += question.points
        if is_correct(question, answers.get(question.id)):
            achieved += question.points

    return Score(
        achieved=achieved,
        possible_auto_graded=possible_auto_graded,
        pending_manual_grade_points=pending_manual,
        total_possible=total,
    )


def review(quiz: Quiz, answers: AnswerLookup) -> list[QuestionReview]:
    """Outcome of every question, in quiz order."""
    report = []
    for question in quiz.questions:
        answer = answers.get(question.id)

        if not question.is_auto_graded:
            outcome = PENDING
        elif is_correct(question, answer):
            outcome = CORRECT
        elif answer is None:
            outcome = UNANSWERED
        else:
            outcome = INCORRECT

        report.append(QuestionReview(
            question=question,
            answer=answer,
            outcome=outcome,
            points_awarded=question.points if outcome == CORRECT else 0,
        ))
    return report


def _as_collection(value: Any) -> Optional[list]:
    if isinstance(value, (str, bytes, dict)) or value is None:
        return None
    try:
        return list(value)
    except TypeError:
        return None


def _as_pair(value: Any) -> Optional[MatchPair]:
    if isinstance(value, MatchPair):
        return value
    if isinstance(value, (tuple, list)) and len(value) == 2 and all(isinstance(v, str) for v in value):
        return MatchPair(value[0], value[1])
    return None
