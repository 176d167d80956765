from aiogram import Router, F
from aiogram.filters import CommandStart
from aiogram.types import Message, CallbackQuery
from aiogram.fsm.context import FSMContext

from quiz_helper.bot import sessions
from quiz_helper.bot.keyboards.main_menu import main_menu_keyboard

router = Router()

WELCOME_TEXT = (
    "👋 Hi! I'm Quiz Helper. I run timed quizzes right here in the chat.\n\n"
    "Choose what you want to do:"
)


@router.message(CommandStart())
async def cmd_start(message: Message, state: FSMContext):
    sessions.drop_session(message.from_user.id)
    await state.clear()
    await message.answer(WELCOME_TEXT, reply_markup=main_menu_keyboard())


@router.callback_query(F.data == "go_home")
async def go_home(callback: CallbackQuery, state: FSMContext):
    sessions.drop_session(callback.from_user.id)
    await state.clear()
    await callback.message.edit_text(WELCOME_TEXT, reply_markup=main_menu_keyboard())
    await callback.answer()
