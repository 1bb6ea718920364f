import os
import logging

from dotenv import load_dotenv


# Load env early
load_dotenv()

# Logging configuration
log_level = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=getattr(logging, log_level, logging.INFO),
)
logger = logging.getLogger("bf6bot")

# Reduce noisy libraries
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("telegram.ext.ExtBot").setLevel(logging.WARNING)
logging.getLogger("telegram.ext.Updater").setLevel(logging.WARNING)
logging.getLogger("telegram.ext.Application").setLevel(logging.WARNING)
logging.getLogger("telegram.bot").setLevel(logging.WARNING)
logging.getLogger("asyncio").setLevel(logging.WARNING)


DEFAULT_UPDATE_INTERVAL = 3600000


class Config:
    """Application configuration read from the environment."""

    # Telegram Bot Configuration
    BOT_TOKEN: str | None = os.getenv("BOT_TOKEN")
    CHANNEL_ID: str = os.getenv("CHANNEL_ID", "").strip()

    # Poll interval in milliseconds (default: 1 hour)
    UPDATE_INTERVAL: int = int(os.getenv("UPDATE_INTERVAL", str(DEFAULT_UPDATE_INTERVAL)))

    # Stats API Configuration
    API_BASE_URL: str = os.getenv("API_BASE_URL", "https://api.gametools.network/bf6/stats").strip()

    # Persistent files
    PLAYERS_FILE: str = os.getenv("PLAYERS_FILE", "tracked_players.json")

    @classmethod
    def validate_config(cls) -> None:
        if not cls.BOT_TOKEN:
            raise ValueError("BOT_TOKEN environment variable is required")
        if not cls.CHANNEL_ID:
            logger.warning("CHANNEL_ID not configured - commands work but scheduled posts will fail")
        if cls.UPDATE_INTERVAL <= 0:
            logger.warning(f"UPDATE_INTERVAL={cls.UPDATE_INTERVAL} is not positive, using {DEFAULT_UPDATE_INTERVAL}ms")
            cls.UPDATE_INTERVAL = DEFAULT_UPDATE_INTERVAL

    @classmethod
    def get_interval_secs(cls) -> float:
        return cls.UPDATE_INTERVAL / 1000

    @classmethod
    def get_api_base_url(cls) -> str:
        logger.info(f"Using API endpoint: {cls.API_BASE_URL}")
        return cls.API_BASE_URL

    @classmethod
    def get_channel_id(cls) -> int | str:
        """Numeric chat ids are passed to Telegram as ints, @usernames as-is."""
        try:
            return int(cls.CHANNEL_ID)
        except ValueError:
            return cls.CHANNEL_ID


config = Config()
BASE = config.API_BASE_URL
BOT_TOKEN = config.BOT_TOKEN
PLAYERS_FILE = config.PLAYERS_FILE
UPDATE_INTERVAL_SECS: float = config.UPDATE_INTERVAL / 1000

# Fixed pacing against the upstream's implicit rate limit
SEARCH_PAUSE_SECS: float = 0.5
PLAYER_DELAY_SECS: float = 2.0
HTTP_TIMEOUT_SECS: int = 25
