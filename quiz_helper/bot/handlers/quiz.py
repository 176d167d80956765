import asyncio
import logging
import random
from typing import Optional

from aiogram import Bot, Router, F
from aiogram.exceptions import TelegramBadRequest
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, InlineKeyboardMarkup, Message

from quiz_helper.bot import sessions
from quiz_helper.bot.formatting import (
    format_intro,
    format_question,
    format_submit_confirmation,
    format_time,
)
from quiz_helper.bot.handlers.results import send_expired_results, show_results
from quiz_helper.bot.keyboards.main_menu import main_menu_keyboard
from quiz_helper.bot.keyboards.quiz_kb import (
    intro_keyboard,
    question_keyboard,
    submit_confirm_keyboard,
)
from quiz_helper.bot.states.quiz_states import QuizFlow
from quiz_helper.config import settings
from quiz_helper.engine.exceptions import QuizError
from quiz_helper.engine.models import (
    CODE_ANSWER,
    MATCHING,
    MULTI_CHOICE,
    SHORT_ANSWER,
    SINGLE_CHOICE,
    MatchPair,
    Quiz,
)
from quiz_helper.engine.session import (
    EXPIRED,
    IN_PROGRESS,
    SUBMITTED_EVENT,
    TICK,
    QuizSession,
    SessionEvent,
)

logger = logging.getLogger(__name__)

router = Router()

INACTIVE_MSG = "This quiz is no longer active."

# Keep references so pending sends are not garbage-collected mid-flight
_background_tasks: set[asyncio.Task] = set()


@router.callback_query(F.data == "start_test")
async def show_intro(callback: CallbackQuery, state: FSMContext, quiz: Quiz):
    """Show the quiz overview with the start button."""
    sessions.drop_session(callback.from_user.id)
    await state.clear()
    await state.set_state(QuizFlow.viewing_intro)
    await callback.message.edit_text(format_intro(quiz), reply_markup=intro_keyboard())
    await callback.answer()


@router.callback_query(QuizFlow.viewing_intro, F.data == "quiz:begin")
async def begin_quiz(callback: CallbackQuery, state: FSMContext, quiz: Quiz, bot: Bot):
    """Create a session, start the countdown and send the first question."""
    user_id = callback.from_user.id
    session = sessions.create_session(user_id, quiz, tick_interval=settings.TICK_INTERVAL_SECONDS)
    session.add_listener(_make_listener(bot, callback.message.chat.id, state))
    session.start()

    await state.set_state(QuizFlow.answering_question)
    await state.update_data(selected_left=None, right_order={})
    await callback.answer()
    await _show_question(callback.message, state, session, edit=True)


@router.callback_query(QuizFlow.answering_question, F.data.startswith("ans:"))
async def answer_single(callback: CallbackQuery, state: FSMContext):
    """Handle a single-choice pick."""
    session = await _active_session(callback)
    if session is None:
        return

    question = session.current_question
    if question.type != SINGLE_CHOICE:
        await callback.answer()  # stale keyboard from another question
        return

    choice = _item_at(question.choices, callback.data)
    if choice is None:
        await callback.answer()
        return

    if await _store_answer(callback, session, question.id, choice.id):
        await _show_question(callback.message, state, session, edit=True)


@router.callback_query(QuizFlow.answering_question, F.data.startswith("tog:"))
async def toggle_choice(callback: CallbackQuery, state: FSMContext):
    """Handle a multi-choice checkbox toggle."""
    session = await _active_session(callback)
    if session is None:
        return

    question = session.current_question
    if question.type != MULTI_CHOICE:
        await callback.answer()
        return

    choice = _item_at(question.choices, callback.data)
    if choice is None:
        await callback.answer()
        return

    current = session.get_answer(question.id) or frozenset()
    if choice.id in current:
        updated = current - {choice.id}
    else:
        updated = current | {choice.id}

    if await _store_answer(callback, session, question.id, updated):
        await _show_question(callback.message, state, session, edit=True)


@router.callback_query(QuizFlow.answering_question, F.data.startswith("ml:"))
@router.callback_query(QuizFlow.answering_matching_sub, F.data.startswith("ml:"))
async def select_left_item(callback: CallbackQuery, state: FSMContext):
    """Pick (or un-pick, with an empty id) the left item of a matching question."""
    session = await _active_session(callback)
    if session is None:
        return

    question = session.current_question
    if question.type != MATCHING:
        await callback.answer()
        return

    left = _item_at(question.left_items, callback.data)
    if callback.data == "ml:":
        await state.set_state(QuizFlow.answering_question)
        await state.update_data(selected_left=None)
    elif left is None:
        await callback.answer()
        return
    else:
        data = await state.get_data()
        right_order = dict(data.get("right_order") or {})
        if question.id not in right_order:
            # Display order only; pairs are stored by id
            ids = [item.id for item in question.right_items]
            right_order[question.id] = random.sample(ids, len(ids))
        await state.set_state(QuizFlow.answering_matching_sub)
        await state.update_data(selected_left=left.id, right_order=right_order)

    await callback.answer()
    await _show_question(callback.message, state, session, edit=True)


@router.callback_query(QuizFlow.answering_matching_sub, F.data.startswith("mr:"))
async def select_right_item(callback: CallbackQuery, state: FSMContext):
    """Pair the picked left item with a right item, replacing clashing pairs."""
    session = await _active_session(callback)
    if session is None:
        return

    question = session.current_question
    data = await state.get_data()
    left_id = data.get("selected_left")
    if question.type != MATCHING or not left_id:
        await callback.answer()
        return

    right = _item_at(question.right_items, callback.data)
    if right is None:
        await callback.answer()
        return
    right_id = right.id

    current = session.get_answer(question.id) or frozenset()
    pairs = [p for p in current if p.left_id != left_id and p.right_id != right_id]
    pairs.append(MatchPair(left_id, right_id))

    await state.set_state(QuizFlow.answering_question)
    await state.update_data(selected_left=None)
    if await _store_answer(callback, session, question.id, pairs):
        await _show_question(callback.message, state, session, edit=True)


@router.callback_query(QuizFlow.answering_question, F.data == "mreset")
async def reset_matches(callback: CallbackQuery, state: FSMContext):
    session = await _active_session(callback)
    if session is None:
        return

    question = session.current_question
    if question.type == MATCHING:
        session.clear_answer(question.id)
    await callback.answer("Matches cleared")
    await _show_question(callback.message, state, session, edit=True)


@router.callback_query(QuizFlow.answering_question, F.data.startswith("nav:"))
@router.callback_query(QuizFlow.answering_matching_sub, F.data.startswith("nav:"))
async def navigate(callback: CallbackQuery, state: FSMContext):
    """Move to the previous or next question."""
    session = await _active_session(callback)
    if session is None:
        return

    direction = callback.data.split(":", 1)[1]
    if direction == "prev":
        session.previous()
    else:
        session.next()

    await state.set_state(QuizFlow.answering_question)
    await state.update_data(selected_left=None)
    await callback.answer()
    await _show_question(callback.message, state, session, edit=True)


@router.callback_query(QuizFlow.answering_question, F.data == "flag")
@router.callback_query(QuizFlow.answering_matching_sub, F.data == "flag")
async def toggle_flag(callback: CallbackQuery, state: FSMContext):
    session = await _active_session(callback)
    if session is None:
        return

    flagged = session.toggle_flag(session.current_question.id)
    await callback.answer("🚩 Flagged for review" if flagged else "Flag removed")
    await _show_question(callback.message, state, session, edit=True)


@router.callback_query(QuizFlow.answering_question, F.data == "submit")
@router.callback_query(QuizFlow.answering_matching_sub, F.data == "submit")
async def confirm_submit(callback: CallbackQuery, state: FSMContext):
    """Ask for confirmation before submitting."""
    session = await _active_session(callback)
    if session is None:
        return

    await state.set_state(QuizFlow.confirming_submit)
    await state.update_data(selected_left=None)
    await callback.answer()
    await _safe_edit(
        callback.message,
        format_submit_confirmation(session),
        submit_confirm_keyboard(),
    )


@router.callback_query(QuizFlow.confirming_submit, F.data == "submit:no")
async def resume_quiz(callback: CallbackQuery, state: FSMContext):
    session = await _active_session(callback)
    if session is None:
        return

    await state.set_state(QuizFlow.answering_question)
    await callback.answer()
    await _show_question(callback.message, state, session, edit=True)


@router.callback_query(QuizFlow.confirming_submit, F.data == "submit:yes")
async def submit_quiz(callback: CallbackQuery, state: FSMContext):
    """Submit the answers and show the score breakdown."""
    session = await _active_session(callback)
    if session is None:
        return

    session.submit()
    await state.set_state(QuizFlow.viewing_results)
    await callback.answer()
    await show_results(callback.message, session, edit=True)


@router.callback_query(F.data == "cancel_quiz")
async def cancel_quiz(callback: CallbackQuery, state: FSMContext):
    """Cancel the current quiz and go home."""
    sessions.drop_session(callback.from_user.id)
    await state.clear()
    await callback.message.answer(
        "Quiz cancelled. Back to the main menu.",
        reply_markup=main_menu_keyboard(),
    )
    await callback.answer()


@router.message(QuizFlow.answering_question)
async def answer_via_text(message: Message, state: FSMContext):
    """Handle answers typed as text (short answer, code)."""
    session = sessions.get_session(message.from_user.id)
    if session is None or session.state != IN_PROGRESS:
        await message.answer(INACTIVE_MSG, reply_markup=main_menu_keyboard())
        return

    question = session.current_question
    if question.type not in (SHORT_ANSWER, CODE_ANSWER):
        await message.answer("👆 Use the buttons above to answer this question.")
        return

    text = message.text or ""
    if not text.strip():
        await message.answer("Send your answer as text:")
        return

    # Code keeps its indentation
    value = text if question.type == CODE_ANSWER else text.strip()
    try:
        session.answer(question.id, value)
    except QuizError as e:
        logger.warning("Text answer rejected: %s", e)
        await message.answer(f"⚠️ {e}")
        return

    await message.answer("✅ Answer saved.")
    await _show_question(message, state, session, edit=False)


@router.message(QuizFlow.answering_matching_sub)
async def text_during_matching(message: Message):
    await message.answer("👆 Pick the matching item with the buttons above.")


async def _active_session(callback: CallbackQuery) -> Optional[QuizSession]:
    """Return the user's in-progress session, or tell them it is gone."""
    session = sessions.get_session(callback.from_user.id)
    if session is None or session.state != IN_PROGRESS:
        await callback.answer(INACTIVE_MSG, show_alert=True)
        return None
    return session


def _item_at(items: tuple, data: str):
    """Resolve the position carried by a button ("ans:2") to the item, or None."""
    raw = data.split(":", 1)[1]
    if not raw.isdecimal() or int(raw) >= len(items):
        return None
    return items[int(raw)]


async def _store_answer(callback: CallbackQuery, session: QuizSession, question_id: str, value) -> bool:
    try:
        session.answer(question_id, value)
    except QuizError as e:
        logger.warning("Answer rejected for question %r: %s", question_id, e)
        await callback.answer(f"⚠️ {e}", show_alert=True)
        return False
    await callback.answer()
    return True


async def _show_question(message: Message, state: FSMContext, session: QuizSession, edit: bool):
    """Render the current question, editing the message in place for button presses."""
    data = await state.get_data()
    question = session.current_question
    right_order = (data.get("right_order") or {}).get(question.id)
    markup = question_keyboard(session, data.get("selected_left"), right_order)
    text = format_question(session)

    if edit:
        await _safe_edit(message, text, markup)
    else:
        await message.answer(text, reply_markup=markup)


async def _safe_edit(message: Message, text: str, markup: InlineKeyboardMarkup):
    try:
        await message.edit_text(text, reply_markup=markup)
    except TelegramBadRequest as e:
        # Same text and keyboard as before, nothing to update
        if "message is not modified" in str(e):
            logger.debug("Skipped edit: %s", e)
            return
        raise


def _make_listener(bot: Bot, chat_id: int, state: FSMContext):
    """Bridge engine events to Telegram messages."""
    def listener(event: SessionEvent):
        if event.kind == TICK:
            warning = settings.TIME_WARNING_SECONDS
            if warning and event.remaining_seconds == warning:
                _spawn(bot.send_message(chat_id, f"⏳ Only {format_time(warning)} left!"))
        elif event.kind == SUBMITTED_EVENT and event.reason == EXPIRED:
            _spawn(send_expired_results(bot, chat_id, state, event.session))

    return listener


def _spawn(coro) -> None:
    task = asyncio.get_running_loop().create_task(coro)
    _background_tasks.add(task)
    task.add_done_callback(_task_done)


def _task_done(task: asyncio.Task) -> None:
    _background_tasks.discard(task)
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.error("Background send failed: %s", error, exc_info=error)
