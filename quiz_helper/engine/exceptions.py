"""Custom exceptions for the quiz engine."""


class QuizError(Exception):
    """Base exception for quiz engine errors."""
    pass


class InvalidQuizError(QuizError):
    """Quiz definition is malformed (dangling references, negative points)."""
    pass


class InvalidTransitionError(QuizError):
    """Operation is not allowed in the current session state."""
    pass


class InvalidAnswerError(QuizError):
    """Answer value does not match the shape expected by the question."""
    pass


class UnknownQuestionError(InvalidAnswerError):
    """Question id does not belong to the quiz."""
    pass


class AnswerStoreFrozenError(QuizError):
    """Answer store is read-only after submission."""
    pass
