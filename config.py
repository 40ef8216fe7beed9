"""Configuration dataclasses and .env loading for the Zigma Oracle skill."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Mapping, Optional
import os

from dotenv import load_dotenv

load_dotenv()

# Project root
PROJECT_DIR = Path(__file__).resolve().parent
DATA_DIR = PROJECT_DIR / "data"
DB_PATH = DATA_DIR / "zigma_memory.db"

UNLIMITED = -1


class ConfigError(RuntimeError):
    """Raised when mandatory startup configuration is missing."""


class UserTier(str, Enum):
    FREE = "FREE"
    BASIC = "BASIC"
    PRO = "PRO"
    WHALE = "WHALE"

    @classmethod
    def parse(cls, value: Optional[str]) -> UserTier:
        """Map an API tier string to a tier, FREE for anything unknown."""
        try:
            return cls(str(value).upper())
        except ValueError:
            return cls.FREE


@dataclass(frozen=True)
class TierLimits:
    signals_per_request: int
    signals_per_day: int
    tracked_markets: int
    wallet_analysis_per_day: int
    arbitrage_enabled: bool = False
    alerts: Optional[str] = None
    api_access: bool = False


DEFAULT_TIER_LIMITS: Mapping[UserTier, TierLimits] = {
    UserTier.FREE: TierLimits(
        signals_per_request=3, signals_per_day=3,
        tracked_markets=1, wallet_analysis_per_day=1,
    ),
    UserTier.BASIC: TierLimits(
        signals_per_request=15, signals_per_day=15,
        tracked_markets=5, wallet_analysis_per_day=5,
        alerts="hourly",
    ),
    UserTier.PRO: TierLimits(
        signals_per_request=UNLIMITED, signals_per_day=UNLIMITED,
        tracked_markets=25, wallet_analysis_per_day=UNLIMITED,
        arbitrage_enabled=True, alerts="15min",
    ),
    UserTier.WHALE: TierLimits(
        signals_per_request=UNLIMITED, signals_per_day=UNLIMITED,
        tracked_markets=UNLIMITED, wallet_analysis_per_day=UNLIMITED,
        arbitrage_enabled=True, alerts="realtime", api_access=True,
    ),
}

# $ZIGMA balance needed for each paid tier
DEFAULT_TOKEN_REQUIREMENTS: Mapping[UserTier, int] = {
    UserTier.BASIC: 100,
    UserTier.PRO: 1000,
    UserTier.WHALE: 10000,
}


@dataclass(frozen=True)
class OracleConfig:
    base_url: str = "https://api.zigma.pro"
    api_key: str = ""
    timeout: float = 30.0
    max_retries: int = 3
    retry_delay: float = 1.0        # seconds, doubled per attempt
    cache_ttl: float = 600.0        # 10 minutes

    @classmethod
    def from_env(cls) -> OracleConfig:
        return cls(
            base_url=os.getenv("ZIGMA_API_URL", "https://api.zigma.pro").rstrip("/"),
            api_key=os.getenv("ZIGMA_API_KEY", ""),
            cache_ttl=float(os.getenv("ORACLE_CACHE_TTL", "600")),
        )


@dataclass(frozen=True)
class MoltbookConfig:
    base_url: str = "https://www.moltbook.com/api/v1"
    api_key: str = ""
    submolt: str = "general"
    share_community: str = "m/showandtell"

    @classmethod
    def from_env(cls) -> MoltbookConfig:
        return cls(
            base_url=os.getenv(
                "MOLTBOOK_BASE_URL", "https://www.moltbook.com/api/v1",
            ).rstrip("/"),
            api_key=os.getenv("MOLTBOOK_API_KEY", ""),
        )

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)


@dataclass(frozen=True)
class SlackConfig:
    webhook_url: str = ""

    @classmethod
    def from_env(cls) -> SlackConfig:
        return cls(webhook_url=os.getenv("SLACK_WEBHOOK_URL", ""))


@dataclass(frozen=True)
class SchedulerConfig:
    heartbeat_interval_minutes: int = 15

    @classmethod
    def from_env(cls) -> SchedulerConfig:
        return cls(
            heartbeat_interval_minutes=int(os.getenv("HEARTBEAT_INTERVAL_MINUTES", "15")),
        )

    def __post_init__(self) -> None:
        # */n in the minute field only fires every n minutes for n < 60
        if not 1 <= self.heartbeat_interval_minutes <= 59:
            raise ConfigError(
                "HEARTBEAT_INTERVAL_MINUTES must be between 1 and 59, "
                f"got {self.heartbeat_interval_minutes}"
            )

    @property
    def cron(self) -> str:
        return f"*/{self.heartbeat_interval_minutes} * * * *"


@dataclass(frozen=True)
class SkillLimits:
    max_tracked_markets: int = 10
    default_signal_limit: int = 5
    default_min_edge: float = 3.0           # percent
    default_track_threshold: float = 5.0    # percent edge change
    strong_signal_min_edge: float = 0.10    # fraction, as the API expects
    daily_post_signals: int = 3
    share_signal_pool: int = 5
    usage_retention_days: int = 7


@dataclass(frozen=True)
class AppConfig:
    oracle: OracleConfig = field(default_factory=OracleConfig)
    moltbook: MoltbookConfig = field(default_factory=MoltbookConfig)
    slack: SlackConfig = field(default_factory=SlackConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    limits: SkillLimits = field(default_factory=SkillLimits)
    tier_limits: Mapping[UserTier, TierLimits] = field(
        default_factory=lambda: dict(DEFAULT_TIER_LIMITS),
    )
    token_requirements: Mapping[UserTier, int] = field(
        default_factory=lambda: dict(DEFAULT_TOKEN_REQUIREMENTS),
    )
    log_level: str = "INFO"
    environment: str = "production"
    db_path: Path = DB_PATH
    database_url: Optional[str] = None

    @classmethod
    def from_env(cls) -> AppConfig:
        return cls(
            oracle=OracleConfig.from_env(),
            moltbook=MoltbookConfig.from_env(),
            slack=SlackConfig.from_env(),
            scheduler=SchedulerConfig.from_env(),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            environment=os.getenv("ZIGMA_ENV", "production").lower(),
            database_url=os.getenv("DATABASE_URL") or None,
        )

    @property
    def test_mode(self) -> bool:
        return self.environment == "test"

    def limits_for(self, tier: UserTier) -> TierLimits:
        return self.tier_limits[tier]


def load_config() -> AppConfig:
    """Load configuration from environment variables."""
    return AppConfig.from_env()


def validate_config(config: AppConfig) -> None:
    """Abort startup when the oracle API key is missing outside test mode."""
    if config.test_mode:
        return
    if not config.oracle.api_key:
        raise ConfigError("ZIGMA_API_KEY environment variable is required")
