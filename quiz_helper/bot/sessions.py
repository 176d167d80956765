"""In-memory registry of quiz sessions, one per Telegram user."""
import logging
from typing import Optional

from quiz_helper.engine.models import Quiz
from quiz_helper.engine.session import QuizSession

logger = logging.getLogger(__name__)

_sessions: dict[int, QuizSession] = {}


def get_session(user_id: int) -> Optional[QuizSession]:
    return _sessions.get(user_id)


def create_session(user_id: int, quiz: Quiz, tick_interval: float = 1.0) -> QuizSession:
    """Replace any previous attempt of the user with a fresh session."""
    drop_session(user_id)
    session = QuizSession(quiz, tick_interval=tick_interval)
    _sessions[user_id] = session
    logger.info("New session for user_id=%d, quiz=%r", user_id, quiz.id)
    return session


def drop_session(user_id: int) -> None:
    """Close and forget the user's session, if any."""
    session = _sessions.pop(user_id, None)
    if session is not None:
        session.close()


def clear_sessions() -> None:
    for user_id in list(_sessions):
        drop_session(user_id)
