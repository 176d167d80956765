"""Build validated Quiz objects from JSON-like data."""
import json
import logging
from pathlib import Path
from typing import Any, Union

from quiz_helper.engine.exceptions import InvalidQuizError
from quiz_helper.engine.models import (
    CODE_ANSWER,
    MATCHING,
    MULTI_CHOICE,
    SHORT_ANSWER,
    SINGLE_CHOICE,
    Choice,
    CodeAnswerQuestion,
    MatchingQuestion,
    MatchItem,
    MatchPair,
    MultiChoiceQuestion,
    Question,
    Quiz,
    ShortAnswerQuestion,
    SingleChoiceQuestion,
)

logger = logging.getLogger(__name__)

# Tag names used by the web front-end
TYPE_ALIASES = {
    "multiple-choice-single": SINGLE_CHOICE,
    "multiple-choice-multi": MULTI_CHOICE,
}

REQUIRED_FIELDS = {
    SINGLE_CHOICE: {"choices", "correctChoiceId"},
    MULTI_CHOICE: {"choices", "correctChoiceIds"},
    SHORT_ANSWER: set(),
    MATCHING: {"leftItems", "rightItems", "correctPairs"},
    CODE_ANSWER: set(),
}

FIELD_ALIASES = {
    "correctAnswerId": "correctChoiceId",
    "correctAnswerIds": "correctChoiceIds",
}


def load_quiz_file(path: Union[str, Path]) -> Quiz:
    """Read a quiz definition from a JSON file."""
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise InvalidQuizError(f"Quiz file not found: {path}")
    except json.JSONDecodeError as e:
        raise InvalidQuizError(f"Quiz file {path} is not valid JSON: {e}")

    quiz = load_quiz(data)
    logger.info("Loaded quiz %r from %s (%d questions)", quiz.id, path, len(quiz.questions))
    return quiz


def load_quiz(data: dict[str, Any]) -> Quiz:
    """
    Validate a quiz mapping and convert it to a Quiz.

    Raises:
        InvalidQuizError: on dangling answer-key references, negative points,
            duplicate ids, unknown question types or a bad time limit.
    """
    if not isinstance(data, dict):
        raise InvalidQuizError("Quiz definition must be a JSON object")

    quiz_id = data.get("id")
    if not isinstance(quiz_id, str) or not quiz_id:
        raise InvalidQuizError("Quiz id is missing")

    raw_questions = data.get("questions")
    if not isinstance(raw_questions, list) or not raw_questions:
        raise InvalidQuizError(f"Quiz {quiz_id!r} has no questions")

    questions = []
    seen_ids = set()
    for raw in raw_questions:
        question = _parse_question(raw)
        if question.id in seen_ids:
            raise InvalidQuizError(f"Duplicate question id {question.id!r}")
        seen_ids.add(question.id)
        questions.append(question)

    return Quiz(
        id=quiz_id,
        title=str(data.get("title", "")),
        description=str(data.get("description", "")),
        time_limit_seconds=_parse_time_limit(data),
        questions=tuple(questions),
    )


def _parse_time_limit(data: dict) -> int:
    if "timeLimitSeconds" in data:
        seconds = data["timeLimitSeconds"]
    elif "estimatedTimeMinutes" in data:
        minutes = data["estimatedTimeMinutes"]
        seconds = minutes * 60 if _is_int(minutes) else minutes
    else:
        raise InvalidQuizError("Quiz time limit is missing")

    if not _is_int(seconds) or seconds <= 0:
        raise InvalidQuizError(f"Time limit must be a positive number of seconds, got {seconds!r}")
    return seconds


def _parse_question(raw: Any) -> Question:
    if not isinstance(raw, dict):
        raise InvalidQuizError(f"Question must be an object, got {raw!r}")

    raw = {FIELD_ALIASES.get(key, key): value for key, value in raw.items()}

    q_id = raw.get("id")
    if not isinstance(q_id, str) or not q_id:
        raise InvalidQuizError(f"Question id is missing: {raw!r}")

    q_type = TYPE_ALIASES.get(raw.get("type"), raw.get("type"))
    if q_type not in REQUIRED_FIELDS:
        raise InvalidQuizError(f"Question {q_id!r} has unknown type {raw.get('type')!r}")

    missing = REQUIRED_FIELDS[q_type] - raw.keys()
    if missing:
        raise InvalidQuizError(f"Question {q_id!r} is missing fields: {', '.join(sorted(missing))}")

    points = raw.get("points", 0)
    if not _is_int(points) or points < 0:
        raise InvalidQuizError(f"Question {q_id!r} has invalid points {points!r}")

    text = str(raw.get("text", ""))

    if q_type == SINGLE_CHOICE:
        choices = _parse_items(q_id, raw["choices"], Choice)
        correct = raw["correctChoiceId"]
        if not isinstance(correct, str):
            raise InvalidQuizError(f"Question {q_id!r}: correct choice must be an id, got {correct!r}")
        if correct not in {c.id for c in choices}:
            raise InvalidQuizError(f"Question {q_id!r}: correct choice {correct!r} does not exist")
        question = SingleChoiceQuestion(q_id, text, points, choices, correct)

    elif q_type == MULTI_CHOICE:
        choices = _parse_items(q_id, raw["choices"], Choice)
        correct_ids = raw["correctChoiceIds"]
        if not isinstance(correct_ids, list) or not all(isinstance(i, str) for i in correct_ids):
            raise InvalidQuizError(f"Question {q_id!r}: correct choices must be a list of ids")
        dangling = set(correct_ids) - {c.id for c in choices}
        if dangling:
            raise InvalidQuizError(
                f"Question {q_id!r}: correct choices {sorted(dangling)} do not exist"
            )
        question = MultiChoiceQuestion(q_id, text, points, choices, frozenset(correct_ids))

    elif q_type == MATCHING:
        left = _parse_items(q_id, raw["leftItems"], MatchItem)
        right = _parse_items(q_id, raw["rightItems"], MatchItem)
        pairs = _parse_pairs(q_id, raw["correctPairs"], left, right)
        question = MatchingQuestion(q_id, text, points, left, right, pairs)

    elif q_type == SHORT_ANSWER:
        question = ShortAnswerQuestion(q_id, text, points)

    else:
        question = CodeAnswerQuestion(q_id, text, points)

    flag = raw.get("isAutoGraded")
    if flag is not None and flag != question.is_auto_graded:
        raise InvalidQuizError(
            f"Question {q_id!r}: isAutoGraded={flag} contradicts type {q_type!r}"
        )

    return question


def _parse_items(q_id: str, raw_items: Any, cls):
    if not isinstance(raw_items, list):
        raise InvalidQuizError(f"Question {q_id!r}: items must be a list")

    items = []
    seen = set()
    for raw in raw_items:
        if not isinstance(raw, dict) or not isinstance(raw.get("id"), str):
            raise InvalidQuizError(f"Question {q_id!r}: malformed item {raw!r}")
        if raw["id"] in seen:
            raise InvalidQuizError(f"Question {q_id!r}: duplicate item id {raw['id']!r}")
        seen.add(raw["id"])
        items.append(cls(id=raw["id"], text=str(raw.get("text", ""))))
    return tuple(items)


def _parse_pairs(q_id: str, raw_pairs: Any, left: tuple, right: tuple) -> frozenset:
    if not isinstance(raw_pairs, list):
        raise InvalidQuizError(f"Question {q_id!r}: correct pairs must be a list")

    left_ids = {i.id for i in left}
    right_ids = {i.id for i in right}
    pairs = set()
    used_left = set()
    used_right = set()
    for raw in raw_pairs:
        if isinstance(raw, dict):
            pair = MatchPair(raw.get("leftId"), raw.get("rightId"))
        elif isinstance(raw, (list, tuple)) and len(raw) == 2:
            pair = MatchPair(raw[0], raw[1])
        else:
            raise InvalidQuizError(f"Question {q_id!r}: malformed pair {raw!r}")
        if not isinstance(pair.left_id, str) or not isinstance(pair.right_id, str):
            raise InvalidQuizError(f"Question {q_id!r}: malformed pair {raw!r}")

        if pair.left_id not in left_ids:
            raise InvalidQuizError(f"Question {q_id!r}: left item {pair.left_id!r} does not exist")
        if pair.right_id not in right_ids:
            raise InvalidQuizError(f"Question {q_id!r}: right item {pair.right_id!r} does not exist")
        if pair.left_id in used_left:
            raise InvalidQuizError(f"Question {q_id!r}: left item {pair.left_id!r} is paired twice")
        if pair.right_id in used_right:
            raise InvalidQuizError(f"Question {q_id!r}: right item {pair.right_id!r} is paired twice")
        used_left.add(pair.left_id)
        used_right.add(pair.right_id)
        pairs.add(pair)
    return frozenset(pairs)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)
