"""Configuration management"""
import logging
import os
from pathlib import Path
from dotenv import load_dotenv

from src.exceptions import ConfigurationError

load_dotenv()

# Storage
# - 'memory': process-local dict, lost on restart (tests, previews)
# - 'file': one JSON document per record under DATA_PATH
# - 'redis': one Redis string per record at REDIS_URL
STORAGE_BACKEND: str = os.getenv("STORAGE_BACKEND", "file").lower()
DATA_PATH: Path = Path(os.getenv("DATA_PATH", "./data"))
REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")

# Time
DEFAULT_TIMEZONE: str = os.getenv("DEFAULT_TIMEZONE", "UTC")

# Logging
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

# Monitoring
ENABLE_PROMETHEUS: bool = os.getenv("ENABLE_PROMETHEUS", "true").lower() == "true"

# Token gating
MIN_VIBE_FOR_CARD_PULL: int = int(os.getenv("MIN_VIBE_FOR_CARD_PULL", "1000"))
HOLDER_PACK_THRESHOLD: int = int(os.getenv("HOLDER_PACK_THRESHOLD", "1000"))
PULL_REQUIRES_TOKENS: bool = os.getenv("PULL_REQUIRES_TOKENS", "true").lower() == "true"

# Holder tiers, ascending by required balance
TOKEN_TIER_THRESHOLDS: list[tuple[str, int]] = [
    ("holder", 1_000),
    ("believer", 10_000),
    ("champion", 50_000),
    ("legend", 100_000),
    ("whale", 1_000_000),
]

# Level curve: XP to clear level n is floor(LEVEL_BASE_XP * LEVEL_GROWTH_RATE ** (n - 1))
LEVEL_BASE_XP: int = int(os.getenv("LEVEL_BASE_XP", "100"))
LEVEL_GROWTH_RATE: float = float(os.getenv("LEVEL_GROWTH_RATE", "1.5"))
XP_TRANSACTION_HISTORY_LIMIT: int = int(os.getenv("XP_TRANSACTION_HISTORY_LIMIT", "100"))

# Combo: (minimum combo, bonus XP), ascending by minimum combo
COMBO_WINDOW_SECONDS: int = int(os.getenv("COMBO_WINDOW_SECONDS", "300"))
COMBO_BONUS_TIERS: list[tuple[int, int]] = [
    (2, 5),
    (3, 10),
    (5, 20),
    (10, 50),
]

# Time-of-day ranges (local hour, end exclusive; start > end wraps midnight)
MORNING_HOURS: tuple[int, int] = (5, 12)
EVENING_HOURS: tuple[int, int] = (21, 5)
# date.weekday() values: Saturday, Sunday
WEEKEND_DAYS: frozenset[int] = frozenset({5, 6})

# Cards
MAX_CARD_ID: int = int(os.getenv("MAX_CARD_ID", "365"))


def configure_logging(level: str = LOG_LEVEL) -> None:
    """Configure root logging for applications embedding the engine"""
    logging.basicConfig(
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        level=getattr(logging, level.upper(), logging.INFO)
    )


# Validation
def validate_config() -> None:
    """Validate configuration values"""
    if STORAGE_BACKEND not in ("memory", "file", "redis"):
        raise ConfigurationError(
            f"Unknown STORAGE_BACKEND '{STORAGE_BACKEND}'",
            config_key="STORAGE_BACKEND"
        )
    if STORAGE_BACKEND == "redis" and not REDIS_URL:
        raise ConfigurationError("REDIS_URL is required for redis storage", config_key="REDIS_URL")
    if LEVEL_BASE_XP <= 0:
        raise ConfigurationError("LEVEL_BASE_XP must be positive", config_key="LEVEL_BASE_XP")
    if LEVEL_GROWTH_RATE < 1:
        raise ConfigurationError("LEVEL_GROWTH_RATE must be >= 1", config_key="LEVEL_GROWTH_RATE")
    if COMBO_WINDOW_SECONDS <= 0:
        raise ConfigurationError("COMBO_WINDOW_SECONDS must be positive", config_key="COMBO_WINDOW_SECONDS")
    if MIN_VIBE_FOR_CARD_PULL < 0:
        raise ConfigurationError("MIN_VIBE_FOR_CARD_PULL cannot be negative", config_key="MIN_VIBE_FOR_CARD_PULL")
