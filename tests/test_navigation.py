"""Tests for the question cursor and review flags."""
import pytest

from quiz_helper.engine.navigation import Navigator


class TestCursor:
    """Movement clamps at both ends."""

    def test_starts_at_first(self):
        nav = Navigator(["q1", "q2", "q3"])

        assert nav.index == 0
        assert nav.current_id == "q1"
        assert nav.is_first and not nav.is_last

    def test_next_stops_at_last(self):
        nav = Navigator(["q1", "q2"])

        assert nav.go_to_next() is True
        assert nav.go_to_next() is False
        assert nav.index == 1
        assert nav.is_last

    def test_previous_stops_at_first(self):
        nav = Navigator(["q1", "q2"])

        assert nav.go_to_previous() is False
        assert nav.index == 0

    def test_single_question_is_first_and_last(self):
        nav = Navigator(["only"])

        assert nav.is_first and nav.is_last
        assert nav.go_to_next() is False

    def test_go_to(self):
        nav = Navigator(["q1", "q2", "q3"])

        nav.go_to(2)

        assert nav.current_id == "q3"

    @pytest.mark.parametrize("index", [-1, 3])
    def test_go_to_out_of_range(self, index):
        nav = Navigator(["q1", "q2", "q3"])

        with pytest.raises(IndexError):
            nav.go_to(index)
        assert nav.index == 0

    def test_empty_quiz_rejected(self):
        with pytest.raises(ValueError):
            Navigator([])


class TestFlags:
    """Idempotent toggle."""

    def test_toggle_twice_unflags(self):
        nav = Navigator(["q1", "q2"])

        assert nav.toggle_flag("q1") is True
        assert nav.is_flagged("q1")
        assert nav.toggle_flag("q1") is False
        assert not nav.is_flagged("q1")
        assert nav.flagged == frozenset()

    def test_flagged_view_is_immutable_copy(self):
        nav = Navigator(["q1", "q2"])
        nav.toggle_flag("q2")

        assert nav.flagged == frozenset({"q2"})

    def test_reset_clears_cursor_and_flags(self):
        nav = Navigator(["q1", "q2"])
        nav.go_to_next()
        nav.toggle_flag("q1")

        nav.reset()

        assert nav.index == 0
        assert nav.flagged == frozenset()
