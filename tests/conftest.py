"""Shared fixtures for quiz engine and bot tests."""
import pytest

from quiz_helper.config import SAMPLE_QUIZ_PATH
from quiz_helper.engine.loader import load_quiz, load_quiz_file


@pytest.fixture
def make_quiz():
    """Factory: build a validated Quiz from raw question dicts."""
    def _make(*questions, time_limit=60, quiz_id="quiz-1"):
        return load_quiz({
            "id": quiz_id,
            "title": "Test quiz",
            "description": "Quiz used in tests",
            "timeLimitSeconds": time_limit,
            "questions": list(questions),
        })
    return _make


@pytest.fixture
def single_choice_data():
    """Single-choice question worth 5 points, correct id c2."""
    return {
        "id": "q1",
        "type": "single-choice",
        "text": "Which option is right?",
        "points": 5,
        "choices": [
            {"id": "c1", "text": "First"},
            {"id": "c2", "text": "Second"},
            {"id": "c3", "text": "Third"},
        ],
        "correctChoiceId": "c2",
    }


@pytest.fixture
def multi_choice_data():
    """Multi-choice question worth 10 points, correct ids {a, b}."""
    return {
        "id": "q2",
        "type": "multi-choice",
        "text": "Select all vowels",
        "points": 10,
        "choices": [
            {"id": "a", "text": "A"},
            {"id": "b", "text": "E"},
            {"id": "c", "text": "K"},
            {"id": "d", "text": "T"},
        ],
        "correctChoiceIds": ["a", "b"],
    }


@pytest.fixture
def matching_data():
    """Matching question worth 15 points: four pairs and one distractor."""
    return {
        "id": "q3",
        "type": "matching",
        "text": "Match the type to its description",
        "points": 15,
        "leftItems": [
            {"id": "l1", "text": "string"},
            {"id": "l2", "text": "boolean"},
            {"id": "l3", "text": "number"},
            {"id": "l4", "text": "any"},
        ],
        "rightItems": [
            {"id": "r1", "text": "Textual data"},
            {"id": "r2", "text": "True or false"},
            {"id": "r3", "text": "Numerical values"},
            {"id": "r4", "text": "Disables type checking"},
            {"id": "r5", "text": "Array of items"},
        ],
        "correctPairs": [
            {"leftId": "l1", "rightId": "r1"},
            {"leftId": "l2", "rightId": "r2"},
            {"leftId": "l3", "rightId": "r3"},
            {"leftId": "l4", "rightId": "r4"},
        ],
    }


@pytest.fixture
def short_answer_data():
    """Short-answer question worth 10 points."""
    return {"id": "q4", "type": "short-answer", "text": "Explain props", "points": 10}


@pytest.fixture
def code_answer_data():
    """Code-answer question worth 10 points."""
    return {"id": "q5", "type": "code-answer", "text": "Write a component", "points": 10}


@pytest.fixture
def mixed_quiz(
    make_quiz,
    single_choice_data,
    multi_choice_data,
    matching_data,
    short_answer_data,
    code_answer_data,
):
    """All five kinds, 50 points in total, 30 of them auto-graded."""
    return make_quiz(
        single_choice_data,
        multi_choice_data,
        matching_data,
        short_answer_data,
        code_answer_data,
    )


@pytest.fixture
def correct_pairs():
    return [("l1", "r1"), ("l2", "r2"), ("l3", "r3"), ("l4", "r4")]


@pytest.fixture
def sample_quiz():
    """The quiz shipped with the package."""
    return load_quiz_file(SAMPLE_QUIZ_PATH)
