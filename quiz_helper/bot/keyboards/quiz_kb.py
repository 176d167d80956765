from typing import Optional, Sequence

from aiogram.types import InlineKeyboardMarkup, InlineKeyboardButton

from quiz_helper.engine.models import MATCHING, MULTI_CHOICE, SINGLE_CHOICE
from quiz_helper.engine.session import QuizSession

# Longer button captions are cut by the Telegram client anyway
CAPTION_LIMIT = 60


def intro_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text="▶️ Start quiz", callback_data="quiz:begin")],
        [InlineKeyboardButton(text="🏠 Main menu", callback_data="go_home")],
    ])


def question_keyboard(
    session: QuizSession,
    selected_left: Optional[str] = None,
    right_order: Optional[Sequence[str]] = None,
) -> InlineKeyboardMarkup:
    """Answer buttons for the current question plus the navigation rows."""
    question = session.current_question
    answer = session.get_answer(question.id)
    buttons = []

    if question.type == SINGLE_CHOICE:
        for i, choice in enumerate(question.choices):
            mark = "🔘" if answer == choice.id else "⚪"
            buttons.append([InlineKeyboardButton(
                text=_caption(f"{mark} {choice.text}"),
                callback_data=f"ans:{i}",
            )])

    elif question.type == MULTI_CHOICE:
        selected = answer or frozenset()
        for i, choice in enumerate(question.choices):
            mark = "☑️" if choice.id in selected else "⬜"
            buttons.append([InlineKeyboardButton(
                text=_caption(f"{mark} {choice.text}"),
                callback_data=f"tog:{i}",
            )])

    elif question.type == MATCHING:
        buttons.extend(_matching_rows(question, answer or frozenset(), selected_left, right_order))

    nav_row = []
    if not session.is_first:
        nav_row.append(InlineKeyboardButton(text="⬅️ Back", callback_data="nav:prev"))
    flag_text = "🏳️ Unflag" if session.is_flagged(question.id) else "🚩 Flag"
    nav_row.append(InlineKeyboardButton(text=flag_text, callback_data="flag"))
    if session.is_last:
        nav_row.append(InlineKeyboardButton(text="📤 Submit", callback_data="submit"))
    else:
        nav_row.append(InlineKeyboardButton(text="Next ➡️", callback_data="nav:next"))
    buttons.append(nav_row)

    buttons.append([InlineKeyboardButton(text="❌ Cancel quiz", callback_data="cancel_quiz")])
    return InlineKeyboardMarkup(inline_keyboard=buttons)


def _matching_rows(question, pairs, selected_left, right_order) -> list:
    rows = []
    if selected_left is None:
        for i, item in enumerate(question.left_items):
            pair = next((p for p in pairs if p.left_id == item.id), None)
            if pair is not None:
                right = question.right_item(pair.right_id)
                text = f"✅ {item.text} → {right.text}"
            else:
                text = f"▫️ {item.text}"
            rows.append([InlineKeyboardButton(text=_caption(text), callback_data=f"ml:{i}")])
        if pairs:
            rows.append([InlineKeyboardButton(text="🧹 Reset matches", callback_data="mreset")])
        return rows

    used = {p.right_id for p in pairs if p.left_id != selected_left}
    # Buttons carry item positions: ids may exceed the 64-byte callback_data limit
    positions = {item.id: i for i, item in enumerate(question.right_items)}
    for item_id in right_order or list(positions):
        if item_id not in positions:
            continue
        item = question.right_items[positions[item_id]]
        mark = "🔗" if item.id in used else "▫️"
        rows.append([InlineKeyboardButton(
            text=_caption(f"{mark} {item.text}"),
            callback_data=f"mr:{positions[item_id]}",
        )])
    rows.append([InlineKeyboardButton(text="↩️ Pick another item", callback_data="ml:")])
    return rows


def submit_confirm_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(inline_keyboard=[
        [
            InlineKeyboardButton(text="✅ Submit", callback_data="submit:yes"),
            InlineKeyboardButton(text="↩️ Keep answering", callback_data="submit:no"),
        ],
    ])


def results_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text="👁 Review answers", callback_data="review")],
        [InlineKeyboardButton(text="🏠 Finish", callback_data="go_home")],
    ])


def finish_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text="🏠 Finish", callback_data="go_home")],
    ])


def _caption(text: str) -> str:
    if len(text) <= CAPTION_LIMIT:
        return text
    return text[:CAPTION_LIMIT - 1] + "…"
