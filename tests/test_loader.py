"""Tests for quiz definition loading and validation."""
import json

import pytest

from quiz_helper.engine.exceptions import InvalidQuizError
from quiz_helper.engine.loader import load_quiz, load_quiz_file
from quiz_helper.engine.models import (
    CodeAnswerQuestion,
    MatchingQuestion,
    MatchPair,
    MultiChoiceQuestion,
    ShortAnswerQuestion,
    SingleChoiceQuestion,
)


def _quiz_dict(*questions, **overrides) -> dict:
    data = {
        "id": "quiz-1",
        "title": "Quiz",
        "description": "",
        "timeLimitSeconds": 60,
        "questions": list(questions),
    }
    data.update(overrides)
    return data


class TestSampleQuiz:
    """The packaged sample quiz."""

    def test_sample_quiz_loads(self, sample_quiz):
        assert sample_quiz.id == "quiz-react-ts-1"
        assert sample_quiz.time_limit_seconds == 900
        assert sample_quiz.total_points == 50
        assert [type(q) for q in sample_quiz.questions] == [
            SingleChoiceQuestion,
            MultiChoiceQuestion,
            ShortAnswerQuestion,
            MatchingQuestion,
            CodeAnswerQuestion,
        ]

    def test_matching_answer_key(self, sample_quiz):
        matching = sample_quiz.question("q4")

        assert MatchPair("q4l1", "q4r3") in matching.correct_pairs
        assert len(matching.right_items) == 5
        assert matching.is_auto_graded is True


class TestLoadQuiz:
    """Successful conversions."""

    def test_question_types_and_grading_flags(self, mixed_quiz):
        flags = {q.id: q.is_auto_graded for q in mixed_quiz.questions}

        assert flags == {"q1": True, "q2": True, "q3": True, "q4": False, "q5": False}

    def test_front_end_aliases(self):
        """Tag and field names of the web front-end are understood."""
        data = _quiz_dict(
            {
                "id": "q1",
                "type": "multiple-choice-single",
                "text": "?",
                "points": 5,
                "choices": [{"id": "c1", "text": "x"}],
                "correctAnswerId": "c1",
            },
            {
                "id": "q2",
                "type": "multiple-choice-multi",
                "text": "?",
                "points": 5,
                "choices": [{"id": "c1", "text": "x"}, {"id": "c2", "text": "y"}],
                "correctAnswerIds": ["c1", "c2"],
            },
            estimatedTimeMinutes=15,
        )
        del data["timeLimitSeconds"]

        quiz = load_quiz(data)

        assert quiz.time_limit_seconds == 900
        assert quiz.questions[0].correct_choice_id == "c1"
        assert quiz.questions[1].correct_choice_ids == frozenset({"c1", "c2"})

    def test_pairs_as_lists(self, matching_data):
        matching_data["correctPairs"] = [["l1", "r1"], ["l2", "r2"]]

        quiz = load_quiz(_quiz_dict(matching_data))

        assert quiz.questions[0].correct_pairs == frozenset({MatchPair("l1", "r1"), MatchPair("l2", "r2")})

    def test_zero_points_allowed(self, short_answer_data):
        short_answer_data["points"] = 0

        assert load_quiz(_quiz_dict(short_answer_data)).total_points == 0


class TestInvalidQuiz:
    """Definitions rejected at load time."""

    def test_dangling_single_choice(self, single_choice_data):
        single_choice_data["correctChoiceId"] = "c9"

        with pytest.raises(InvalidQuizError, match="c9"):
            load_quiz(_quiz_dict(single_choice_data))

    def test_dangling_multi_choice(self, multi_choice_data):
        multi_choice_data["correctChoiceIds"] = ["a", "z"]

        with pytest.raises(InvalidQuizError, match="z"):
            load_quiz(_quiz_dict(multi_choice_data))

    def test_dangling_left_item(self, matching_data):
        matching_data["correctPairs"].append({"leftId": "l9", "rightId": "r5"})

        with pytest.raises(InvalidQuizError, match="l9"):
            load_quiz(_quiz_dict(matching_data))

    def test_dangling_right_item(self, matching_data):
        matching_data["correctPairs"][0]["rightId"] = "r9"

        with pytest.raises(InvalidQuizError, match="r9"):
            load_quiz(_quiz_dict(matching_data))

    def test_left_item_paired_twice(self, matching_data):
        matching_data["correctPairs"].append({"leftId": "l1", "rightId": "r5"})

        with pytest.raises(InvalidQuizError, match="paired twice"):
            load_quiz(_quiz_dict(matching_data))

    def test_right_item_paired_twice(self, matching_data):
        """A key reusing a right item could never be answered correctly."""
        matching_data["correctPairs"][1]["rightId"] = "r1"

        with pytest.raises(InvalidQuizError, match="right item 'r1' is paired twice"):
            load_quiz(_quiz_dict(matching_data))

    @pytest.mark.parametrize("correct", [["c2"], {"id": "c2"}, 2, None])
    def test_single_choice_key_not_an_id(self, single_choice_data, correct):
        single_choice_data["correctChoiceId"] = correct

        with pytest.raises(InvalidQuizError, match="correct choice"):
            load_quiz(_quiz_dict(single_choice_data))

    @pytest.mark.parametrize("correct", [[{"x": 1}], [["a"]], ["a", 2], "ab"])
    def test_multi_choice_key_not_ids(self, multi_choice_data, correct):
        multi_choice_data["correctChoiceIds"] = correct

        with pytest.raises(InvalidQuizError, match="list of ids"):
            load_quiz(_quiz_dict(multi_choice_data))

    @pytest.mark.parametrize("pair", [
        [["l1"], "r1"],
        ["l1", {"id": "r1"}],
        {"leftId": ["l1"], "rightId": "r1"},
    ])
    def test_pair_sides_not_ids(self, matching_data, pair):
        matching_data["correctPairs"] = [pair]

        with pytest.raises(InvalidQuizError, match="malformed pair"):
            load_quiz(_quiz_dict(matching_data))

    @pytest.mark.parametrize("points", [-1, 2.5, "5", True])
    def test_invalid_points(self, single_choice_data, points):
        single_choice_data["points"] = points

        with pytest.raises(InvalidQuizError, match="points"):
            load_quiz(_quiz_dict(single_choice_data))

    def test_duplicate_question_ids(self, single_choice_data):
        with pytest.raises(InvalidQuizError, match="Duplicate question id"):
            load_quiz(_quiz_dict(single_choice_data, dict(single_choice_data)))

    def test_duplicate_choice_ids(self, single_choice_data):
        single_choice_data["choices"].append({"id": "c1", "text": "Again"})

        with pytest.raises(InvalidQuizError, match="duplicate item id"):
            load_quiz(_quiz_dict(single_choice_data))

    def test_unknown_type(self):
        with pytest.raises(InvalidQuizError, match="unknown type"):
            load_quiz(_quiz_dict({"id": "q1", "type": "essay", "points": 1}))

    def test_missing_answer_key(self, single_choice_data):
        del single_choice_data["correctChoiceId"]

        with pytest.raises(InvalidQuizError, match="missing fields"):
            load_quiz(_quiz_dict(single_choice_data))

    def test_contradicting_auto_graded_flag(self, short_answer_data):
        short_answer_data["isAutoGraded"] = True

        with pytest.raises(InvalidQuizError, match="isAutoGraded"):
            load_quiz(_quiz_dict(short_answer_data))

    def test_no_questions(self):
        with pytest.raises(InvalidQuizError, match="no questions"):
            load_quiz(_quiz_dict())

    @pytest.mark.parametrize("limit", [0, -30, "60"])
    def test_bad_time_limit(self, single_choice_data, limit):
        with pytest.raises(InvalidQuizError, match="Time limit"):
            load_quiz(_quiz_dict(single_choice_data, timeLimitSeconds=limit))

    def test_missing_time_limit(self, single_choice_data):
        data = _quiz_dict(single_choice_data)
        del data["timeLimitSeconds"]

        with pytest.raises(InvalidQuizError, match="time limit is missing"):
            load_quiz(data)

    def test_not_an_object(self):
        with pytest.raises(InvalidQuizError):
            load_quiz(["not", "a", "quiz"])


class TestLoadQuizFile:
    """Reading definitions from disk."""

    def test_round_trip_from_file(self, tmp_path, single_choice_data):
        path = tmp_path / "quiz.json"
        path.write_text(json.dumps(_quiz_dict(single_choice_data)), encoding="utf-8")

        quiz = load_quiz_file(path)

        assert quiz.questions[0].id == "q1"

    def test_missing_file(self, tmp_path):
        with pytest.raises(InvalidQuizError, match="not found"):
            load_quiz_file(tmp_path / "nope.json")

    def test_broken_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(InvalidQuizError, match="not valid JSON"):
            load_quiz_file(path)
