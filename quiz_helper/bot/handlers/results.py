import logging

from aiogram import Bot, Router, F
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message

from quiz_helper.bot import sessions
from quiz_helper.bot.formatting import format_results, format_review, split_message
from quiz_helper.bot.keyboards.quiz_kb import finish_keyboard, results_keyboard
from quiz_helper.bot.states.quiz_states import QuizFlow
from quiz_helper.engine.session import EXPIRED, SUBMITTED, QuizSession

logger = logging.getLogger(__name__)

router = Router()


async def show_results(message: Message, session: QuizSession, edit: bool = False):
    """Show the score breakdown of a submitted session."""
    text = format_results(session.score, expired=session.submit_reason == EXPIRED)
    if edit:
        await message.edit_text(text, reply_markup=results_keyboard())
    else:
        await message.answer(text, reply_markup=results_keyboard())


async def send_expired_results(bot: Bot, chat_id: int, state: FSMContext, session: QuizSession):
    """Deliver results after the countdown submitted the quiz on its own."""
    await state.set_state(QuizFlow.viewing_results)
    await state.update_data(selected_left=None)
    try:
        await bot.send_message(
            chat_id,
            format_results(session.score, expired=True),
            reply_markup=results_keyboard(),
        )
    except Exception:
        logger.exception("Could not deliver expired-quiz results to chat %s", chat_id)


@router.callback_query(QuizFlow.viewing_results, F.data == "review")
async def review_answers(callback: CallbackQuery, state: FSMContext):
    """Send the per-question review, split across messages if needed."""
    session = sessions.get_session(callback.from_user.id)
    if session is None or session.state != SUBMITTED:
        await callback.answer("There is nothing to review.", show_alert=True)
        return

    await callback.answer()
    chunks = split_message(format_review(session.review()))
    for i, chunk in enumerate(chunks):
        markup = finish_keyboard() if i == len(chunks) - 1 else None
        await callback.message.answer(chunk, reply_markup=markup)
