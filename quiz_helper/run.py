"""Main entry point for Quiz Helper."""
import asyncio
import logging
import sys

from aiogram import Bot, Dispatcher
from aiogram.fsm.storage.memory import MemoryStorage
from aiogram.types import BotCommand

from quiz_helper.bot import sessions
from quiz_helper.bot.handlers import quiz, results, start
from quiz_helper.config import settings
from quiz_helper.engine.exceptions import InvalidQuizError
from quiz_helper.engine.loader import load_quiz_file

logger = logging.getLogger(__name__)


def setup_logging() -> None:
    handlers = [logging.StreamHandler(sys.stdout)]
    if settings.LOG_FILE:
        handlers.append(logging.FileHandler(settings.LOG_FILE, encoding="utf-8"))

    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
    )


async def main():
    """Load the quiz and start polling."""
    if not settings.BOT_TOKEN:
        logger.error("BOT_TOKEN is not set. Create a .env file or export it.")
        sys.exit(1)

    logger.info("Starting Quiz Helper...")
    quiz_definition = load_quiz_file(settings.QUIZ_PATH)

    bot = Bot(token=settings.BOT_TOKEN)
    # The quiz is injected into handlers as the `quiz` argument
    dp = Dispatcher(storage=MemoryStorage(), quiz=quiz_definition)

    dp.include_router(start.router)
    dp.include_router(quiz.router)
    dp.include_router(results.router)
    logger.info("Bot handlers registered successfully")

    await bot.set_my_commands([
        BotCommand(command="start", description="Main menu"),
    ])

    try:
        logger.info("Starting bot polling...")
        await dp.start_polling(
            bot,
            allowed_updates=dp.resolve_used_update_types()
        )
    except Exception as e:
        logger.error(f"Error during polling: {e}")
        raise
    finally:
        sessions.clear_sessions()
        await bot.session.close()
        logger.info("Bot stopped")


def run():
    setup_logging()
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Bot stopped by user")
    except InvalidQuizError as e:
        logger.error(f"Invalid quiz definition: {e}")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Fatal error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    run()
