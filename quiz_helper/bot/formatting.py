from typing import Optional

from quiz_helper.engine.models import (
    CODE_ANSWER,
    MATCHING,
    MULTI_CHOICE,
    SINGLE_CHOICE,
    Answer,
    Question,
    Quiz,
    Score,
)
from quiz_helper.engine.scorer import CORRECT, INCORRECT, PENDING, QuestionReview
from quiz_helper.engine.session import QuizSession

# Telegram rejects longer messages
MESSAGE_LIMIT = 4096

INSTRUCTIONS = (
    "• Read each question carefully before answering.\n"
    "• Use ⬅️ / ➡️ to move between questions.\n"
    "• Use 🚩 to mark questions you want to come back to.\n"
    "• The quiz is timed and submits itself when the time runs out.\n"
    "• Some questions are graded later by an instructor."
)


def format_time(seconds: Optional[int]) -> str:
    """mm:ss, or --:-- when the clock is stopped."""
    if seconds is None:
        return "--:--"
    minutes, secs = divmod(max(0, seconds), 60)
    return f"{minutes:02d}:{secs:02d}"


def format_intro(quiz: Quiz) -> str:
    minutes = round(quiz.time_limit_seconds / 60)
    return (
        f"📝 {quiz.title}\n\n"
        f"{quiz.description}\n\n"
        f"🔢 {len(quiz.questions)} questions | ⏱ {minutes} min | 🏆 {quiz.total_points} points\n\n"
        f"ℹ️ Instructions:\n{INSTRUCTIONS}"
    )


def format_question(session: QuizSession) -> str:
    """Text of the current question screen (the keyboard carries the choices)."""
    question = session.current_question
    index = session.current_index
    total = len(session.quiz.questions)

    header = f"❓ Question {index + 1} of {total} | {question.points} points"
    if session.is_flagged(question.id):
        header += " | 🚩 flagged"
    header += f"\n⏱ {format_time(session.remaining_seconds)}"

    text = f"{header}\n\n{question.text}"
    answer = session.get_answer(question.id)

    if question.type == SINGLE_CHOICE:
        text += "\n\n👇 Choose one option:"
    elif question.type == MULTI_CHOICE:
        text += "\n\n👇 Select all that apply:"
    elif question.type == MATCHING:
        text += "\n\n🔗 Matches so far:\n" + describe_answer(question, answer)
        text += "\n\n👇 Pick an item, then its match:"
    else:
        label = "code" if question.type == CODE_ANSWER else "answer"
        prompt = f"\n\n✏️ Send your {label} as a message:"
        if answer:
            echo = f"\n\n📝 Your {label}:\n"
            room = MESSAGE_LIMIT - telegram_length(text + echo + prompt)
            text += echo + clip(answer, room)
        text += prompt
    return text


def format_submit_confirmation(session: QuizSession) -> str:
    total = len(session.quiz.questions)
    unanswered = total - session.answered_count
    text = "📤 Are you sure you want to submit your answers?"
    if unanswered:
        text += f"\n\n⚠️ {unanswered} of {total} questions are not answered."
    if session.flagged:
        text += f"\n🚩 {len(session.flagged)} questions are flagged for review."
    return text


def format_results(score: Score, expired: bool = False) -> str:
    lines = []
    if expired:
        lines.append("⏰ Time is up! Your answers were submitted automatically.\n")
    lines.append("📊 Quiz submitted!\n")
    lines.append(
        f"✅ Auto-graded score: {score.achieved} / {score.possible_auto_graded} points "
        f"({score.auto_graded_percent}%)"
    )
    if score.pending_manual_grade_points > 0:
        lines.append(f"✍️ Points awaiting grading: {score.pending_manual_grade_points}")
    lines.append(f"🏁 Total possible points: {score.total_possible}")

    if score.pending_manual_grade_points > 0:
        lines.append(
            f"\nYour final score will be available after the instructor grades "
            f"{score.pending_manual_grade_points} points worth of questions."
        )
    return "\n".join(lines)


def format_review(report: list[QuestionReview]) -> str:
    blocks = ["👁 Answer review"]
    for number, item in enumerate(report, start=1):
        question = item.question
        lines = [
            f"{number}. {question.text}",
            f"Your answer: {describe_answer(question, item.answer)}",
        ]
        if question.is_auto_graded:
            lines.append(f"Correct answer: {describe_correct(question)}")
        lines.append(_outcome_line(item))
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)


def _outcome_line(item: QuestionReview) -> str:
    points = item.question.points
    if item.outcome == CORRECT:
        return f"✅ Correct (+{points} pts)"
    if item.outcome == INCORRECT:
        return f"❌ Incorrect (0/{points} pts)"
    if item.outcome == PENDING:
        return f"✍️ Awaiting manual grading ({points} pts possible)"
    return f"⚪ Not answered (0/{points} pts)"


def describe_answer(question: Question, answer: Optional[Answer]) -> str:
    """Human-readable rendering of a stored answer."""
    if answer is None:
        return "Not answered"

    if question.type == SINGLE_CHOICE:
        choice = question.choice(answer)
        return choice.text if choice else "Invalid answer"

    if question.type == MULTI_CHOICE:
        texts = [c.text for c in question.choices if c.id in answer]
        return ", ".join(texts) if texts else "No selection"

    if question.type == MATCHING:
        if not answer:
            return "No matches made"
        lines = []
        for left in question.left_items:
            pair = next((p for p in answer if p.left_id == left.id), None)
            if pair is not None:
                right = question.right_item(pair.right_id)
                lines.append(f"{left.text} → {right.text if right else '?'}")
        return "\n".join(lines)

    return answer if answer else "No answer"


def describe_correct(question: Question) -> str:
    if question.type == SINGLE_CHOICE:
        choice = question.choice(question.correct_choice_id)
        return choice.text if choice else "?"

    if question.type == MULTI_CHOICE:
        return ", ".join(c.text for c in question.choices if c.id in question.correct_choice_ids)

    if question.type == MATCHING:
        return describe_answer(question, question.correct_pairs)

    return ""


def telegram_length(text: str) -> int:
    """Message length as Telegram counts it, in UTF-16 code units."""
    return len(text.encode("utf-16-le")) // 2


def clip(text: str, limit: int) -> str:
    """Cut text to at most `limit` UTF-16 units, marking the cut with an ellipsis."""
    if telegram_length(text) <= limit:
        return text
    if limit <= 0:
        return ""
    cut = text[:limit - 1]
    while telegram_length(cut) > limit - 1:
        cut = cut[:-1]
    return cut + "…"


def split_message(text: str, limit: int = MESSAGE_LIMIT) -> list[str]:
    """Split on paragraph boundaries so every chunk fits into one message."""
    chunks = []
    current = ""
    for block in text.split("\n\n"):
        candidate = f"{current}\n\n{block}" if current else block
        if len(candidate) <= limit:
            current = candidate
            continue
        if current:
            chunks.append(current)
        # A single oversized block is cut hard
        while len(block) > limit:
            chunks.append(block[:limit])
            block = block[limit:]
        current = block
    if current:
        chunks.append(current)
    return chunks
