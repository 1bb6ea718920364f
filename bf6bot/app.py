from __future__ import annotations

import asyncio

from telegram import Update
from telegram.error import TelegramError
from telegram.ext import Application, ContextTypes, MessageHandler, filters
from telegram.request import HTTPXRequest

from .api import StatsClient
from .commands import CommandDispatcher, message_handler
from .config import Config, logger
from .delivery import ChannelSender
from .state import LastStatsCache
from .storage import PlayerStore
from .watchers import StatsWatcher

# New messages and channel posts only; edits must not re-run a command
COMMAND_FILTER = (
    (filters.UpdateType.MESSAGE | filters.UpdateType.CHANNEL_POST)
    & filters.TEXT
    & ~filters.COMMAND
)


def build_command_handler() -> MessageHandler:
    return MessageHandler(COMMAND_FILTER, message_handler)


async def startup_health_check(application: Application) -> bool:
    """Log who we are and check the destination chat is reachable."""
    logger.info("🏥 Running startup health check...")
    me = await application.bot.get_me()
    logger.info(f"✅ Bot is online as @{me.username}!")

    channel_id = Config.get_channel_id()
    if not channel_id:
        logger.warning("⚠️ No CHANNEL_ID configured, scheduled posts are disabled")
        return False
    try:
        chat = await application.bot.get_chat(channel_id)
    except TelegramError as e:
        logger.error(f"❌ Channel {channel_id} not reachable: {e}")
        logger.warning("⚠️ Scheduled posts will fail until the bot is added to that chat")
        return False
    logger.info(f"✅ Posting to {chat.title or chat.username or chat.id}")
    return True


async def error_handler(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    logger.error(f"Unhandled error while processing update: {context.error}", exc_info=context.error)


def _log_task_failure(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error(f"Stats watcher crashed: {exc}", exc_info=exc)


def start_watcher(application: Application, watcher: StatsWatcher) -> asyncio.Task:
    stop_event = asyncio.Event()
    task = asyncio.create_task(watcher.run(stop_event))
    task.add_done_callback(_log_task_failure)
    application.bot_data["stop_event"] = stop_event
    application.bot_data["watcher_task"] = task
    return task


async def stop_watcher(application: Application, store: PlayerStore, timeout: float = 5) -> None:
    """Stop the poll loop and persist the tracked players."""
    stop_event = application.bot_data.get("stop_event")
    task = application.bot_data.get("watcher_task")
    if stop_event is not None:
        stop_event.set()
    # a finished task has already been logged by _log_task_failure
    if task is not None and not task.done():
        try:
            await asyncio.wait_for(task, timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning("Stats watcher did not stop in time")
    store.save()
    logger.info("💾 Tracked players saved, bye")


def main():
    try:
        Config.validate_config()
    except ValueError as e:
        raise SystemExit(f"❌ {e}. Check your .env file.")

    store = PlayerStore(Config.PLAYERS_FILE)
    store.load()
    cache = LastStatsCache()
    client = StatsClient(Config.get_api_base_url())

    # Configure request with longer timeout to prevent startup failures
    request = HTTPXRequest(
        connection_pool_size=8,
        connect_timeout=30.0,
        read_timeout=30.0,
        write_timeout=30.0,
        pool_timeout=30.0,
    )

    async def post_init(application: Application) -> None:
        await startup_health_check(application)
        logger.info(f"📊 Tracking {len(store)} player(s)")
        start_watcher(application, watcher)

    async def post_shutdown(application: Application) -> None:
        await stop_watcher(application, store)

    app = (
        Application.builder()
        .token(Config.BOT_TOKEN)
        .request(request)
        .post_init(post_init)
        .post_shutdown(post_shutdown)
        .build()
    )

    watcher = StatsWatcher(
        store,
        cache,
        client,
        ChannelSender(app.bot, Config.get_channel_id()),
        interval_secs=Config.get_interval_secs(),
    )
    app.bot_data["dispatcher"] = CommandDispatcher(store, client, watcher)

    app.add_handler(build_command_handler())
    app.add_error_handler(error_handler)

    app.run_polling(drop_pending_updates=True, allowed_updates=Update.ALL_TYPES)
