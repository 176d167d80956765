from aiogram.fsm.state import StatesGroup, State


class QuizFlow(StatesGroup):
    viewing_intro = State()
    answering_question = State()
    answering_matching_sub = State()
    confirming_submit = State()
    viewing_results = State()
