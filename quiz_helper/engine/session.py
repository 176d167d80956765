"""Quiz session lifecycle: not-started -> in-progress -> submitted."""
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional

from quiz_helper.engine import scorer
from quiz_helper.engine.answers import AnswerStore, normalize_answer
from quiz_helper.engine.exceptions import InvalidTransitionError, UnknownQuestionError
from quiz_helper.engine.models import Answer, Question, Quiz, Score
from quiz_helper.engine.navigation import Navigator
from quiz_helper.engine.timer import Countdown

logger = logging.getLogger(__name__)

NOT_STARTED = "not-started"
IN_PROGRESS = "in-progress"
SUBMITTED = "submitted"

# Event kinds
STARTED = "started"
TICK = "tick"
SUBMITTED_EVENT = "submitted"

# Submit reasons
MANUAL = "manual"
EXPIRED = "expired"


@dataclass(frozen=True)
class SessionEvent:
    """Notification for the rendering layer."""
    kind: str
    session: "QuizSession"
    remaining_seconds: Optional[int] = None
    score: Optional[Score] = None
    reason: Optional[str] = None


Listener = Callable[[SessionEvent], Any]


class QuizSession:
    """
    One attempt at a quiz.

    Owns the answer store, the navigation cursor and the countdown. The
    countdown is scheduled on the running asyncio loop, so `start()` has to
    be called from inside it. All operations are synchronous; the timer
    callback and user actions therefore never interleave, and the scorer
    runs at most once per session.
    """

    def __init__(self, quiz: Quiz, tick_interval: float = 1.0):
        self.quiz = quiz
        self.tick_interval = tick_interval
        self._state = NOT_STARTED
        self._answers = AnswerStore()
        self._navigator = Navigator([q.id for q in quiz.questions])
        self._timer: Optional[Countdown] = None
        self._remaining: Optional[int] = quiz.time_limit_seconds
        self._score: Optional[Score] = None
        self._submit_reason: Optional[str] = None
        self._listeners: list[Listener] = []
        self._closed = False

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def state(self) -> str:
        return self._state

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def current_index(self) -> int:
        return self._navigator.index

    @property
    def current_question(self) -> Question:
        return self.quiz.questions[self._navigator.index]

    @property
    def is_first(self) -> bool:
        return self._navigator.is_first

    @property
    def is_last(self) -> bool:
        return self._navigator.is_last

    @property
    def remaining_seconds(self) -> Optional[int]:
        return self._remaining

    @property
    def flagged(self) -> frozenset[str]:
        return self._navigator.flagged

    @property
    def score(self) -> Optional[Score]:
        return self._score

    @property
    def submit_reason(self) -> Optional[str]:
        return self._submit_reason

    @property
    def answers(self) -> Mapping[str, Answer]:
        return MappingProxyType(self._answers.snapshot())

    @property
    def answered_count(self) -> int:
        return len(self._answers)

    @property
    def timer(self) -> Optional[Countdown]:
        return self._timer

    def get_answer(self, question_id: str) -> Optional[Answer]:
        return self._answers.get(question_id)

    def is_answered(self, question_id: str) -> bool:
        return question_id in self._answers

    def is_flagged(self, question_id: str) -> bool:
        return self._navigator.is_flagged(question_id)

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _emit(self, kind: str, **payload) -> None:
        event = SessionEvent(kind=kind, session=self, **payload)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Session listener failed on %r event", kind)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def start(self) -> None:
        """not-started -> in-progress. Starts the countdown."""
        if self._closed or self._state != NOT_STARTED:
            self._reject("start")

        self._navigator.reset()
        self._answers.clear()
        timer = Countdown(
            self.quiz.time_limit_seconds,
            on_tick=self._on_tick,
            on_expire=self._on_expire,
            interval=self.tick_interval,
        )
        # Raises RuntimeError outside an event loop; state is untouched then
        timer.start()

        self._timer = timer
        self._remaining = self.quiz.time_limit_seconds
        self._state = IN_PROGRESS
        logger.info(
            "Quiz %r started: %d questions, %d seconds",
            self.quiz.id, len(self.quiz.questions), self.quiz.time_limit_seconds,
        )
        self._emit(STARTED, remaining_seconds=self._remaining)

    def answer(self, question_id: str, value: Any) -> None:
        """Store (or replace) the answer to a question."""
        self._require_in_progress("answer")
        question = self._question(question_id)
        self._answers.set(question_id, normalize_answer(question, value))
        logger.debug("Answer stored for question %r", question_id)

    def clear_answer(self, question_id: str) -> None:
        """Forget the answer to a question, making it unanswered again."""
        self._require_in_progress("clear answer")
        self._question(question_id)
        self._answers.discard(question_id)

    def next(self) -> bool:
        self._require_in_progress("navigate")
        return self._navigator.go_to_next()

    def previous(self) -> bool:
        self._require_in_progress("navigate")
        return self._navigator.go_to_previous()

    def go_to(self, index: int) -> None:
        self._require_in_progress("navigate")
        self._navigator.go_to(index)

    def toggle_flag(self, question_id: str) -> bool:
        self._require_in_progress("flag")
        self._question(question_id)
        return self._navigator.toggle_flag(question_id)

    def submit(self) -> Score:
        """
        in-progress -> submitted.

        Calling it again after submission returns the stored score without
        scoring again.
        """
        if self._state == SUBMITTED:
            return self._score
        self._require_in_progress("submit")
        return self._finish(MANUAL)

    def review(self) -> list[scorer.QuestionReview]:
        if self._state != SUBMITTED or self._closed:
            self._reject("review")
        return scorer.review(self.quiz, self._answers)

    def close(self) -> None:
        """Discard the session. A running countdown stops without scoring."""
        if self._timer is not None:
            self._timer.stop()
        self._answers = AnswerStore()
        self._navigator.reset()
        self._remaining = None
        self._closed = True
        self._listeners.clear()
        logger.info("Quiz %r session closed in state %s", self.quiz.id, self._state)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _finish(self, reason: str) -> Score:
        # Score first: if it fails the session stays in progress
        result = scorer.score(self.quiz, self._answers)

        if self._timer is not None:
            self._timer.stop()
        self._score = result
        self._submit_reason = reason
        self._state = SUBMITTED
        self._answers.freeze()
        self._remaining = None

        logger.info(
            "Quiz %r submitted (%s): %d/%d auto-graded, %d pending manual grading",
            self.quiz.id, reason, result.achieved, result.possible_auto_graded,
            result.pending_manual_grade_points,
        )
        self._emit(SUBMITTED_EVENT, score=result, reason=reason)
        return result

    def _on_tick(self, remaining: int) -> None:
        self._remaining = remaining
        logger.debug("Quiz %r: %d seconds left", self.quiz.id, remaining)
        self._emit(TICK, remaining_seconds=remaining)

    def _on_expire(self) -> None:
        if self._state != IN_PROGRESS or self._closed:
            return
        logger.info("Time is up for quiz %r, submitting", self.quiz.id)
        self._finish(EXPIRED)

    def _question(self, question_id: str) -> Question:
        question = self.quiz.question(question_id)
        if question is None:
            raise UnknownQuestionError(f"Question {question_id!r} is not part of quiz {self.quiz.id!r}")
        return question

    def _require_in_progress(self, action: str) -> None:
        if self._closed or self._state != IN_PROGRESS:
            self._reject(action)

    def _reject(self, action: str) -> None:
        state = "closed" if self._closed else self._state
        logger.warning("Rejected %s: quiz %r session is %s", action, self.quiz.id, state)
        raise InvalidTransitionError(f"Cannot {action}: session is {state}")
