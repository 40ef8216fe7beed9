"""Tier resolution and per-day usage accounting.

A user's tier comes from the oracle's token-gated access endpoint for the
wallet they connected; with no wallet, or when the lookup fails, the user
is FREE. Feature counters live in the user's memory under one map keyed
by local calendar day:

    zigma_usage = {"2026-10-19": {"signalsRequested": 2, "walletAnalyses": 0}}

Quota rule used by every feature: a limit of UNLIMITED (-1) never denies;
otherwise usage at or above the limit denies. Denials are raised as
EntitlementDenied carrying the user-facing message, and always happen
before the handler touches the network.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Callable, Dict, Optional

from clients.oracle_client import OracleClient
from config import UNLIMITED, AppConfig, TierLimits, UserTier
from db.memory import USAGE_KEY, WALLET_KEY, UserMemory
from db.models import UsageRecord
from . import formatters

logger = logging.getLogger(__name__)


class EntitlementDenied(Exception):
    """Quota, feature or capacity limit reached. str(exc) is user-facing."""


def effective_limit(tier_limit: int, requested: int) -> int:
    """Clamp a requested count to a tier limit, never upward."""
    if tier_limit == UNLIMITED:
        return requested
    return min(requested, tier_limit)


def quota_exhausted(tier_limit: int, used: int) -> bool:
    return tier_limit != UNLIMITED and used >= tier_limit


class EntitlementTracker:
    def __init__(self, config: AppConfig, oracle: OracleClient,
                 today: Callable[[], date] = date.today) -> None:
        self.config = config
        self.oracle = oracle
        self._today = today

    def limits(self, tier: UserTier) -> TierLimits:
        return self.config.limits_for(tier)

    # ── Tier ─────────────────────────────────────────────────

    def resolve_tier(self, memory: UserMemory) -> UserTier:
        wallet = memory.get(WALLET_KEY)
        if not wallet:
            return UserTier.FREE
        try:
            access = self.oracle.get_access(wallet)
        except Exception as exc:
            logger.warning("Failed to check token tier, defaulting to FREE: %s", exc)
            return UserTier.FREE
        return UserTier.parse(access.tier)

    # ── Usage ────────────────────────────────────────────────

    def day_key(self, day: Optional[date] = None) -> str:
        return (day or self._today()).isoformat()

    def get_usage(self, memory: UserMemory) -> UsageRecord:
        usage: Dict[str, dict] = memory.get(USAGE_KEY) or {}
        return UsageRecord.from_dict(usage.get(self.day_key()))

    def record_usage(self, memory: UserMemory, signals_requested: int = 0,
                     wallet_analyses: int = 0) -> UsageRecord:
        """Add to today's counters and persist the whole usage map."""
        today = self._today()
        with memory.locked():
            usage: Dict[str, dict] = memory.get(USAGE_KEY) or {}
            record = UsageRecord.from_dict(usage.get(self.day_key(today)))
            record.signals_requested += signals_requested
            record.wallet_analyses += wallet_analyses
            usage[self.day_key(today)] = record.to_dict()
            memory.set(USAGE_KEY, self._prune(usage, today))
        return record

    def _prune(self, usage: Dict[str, dict], today: date) -> Dict[str, dict]:
        retention = self.config.limits.usage_retention_days
        if retention <= 0:
            return usage
        cutoff = (today - timedelta(days=retention)).isoformat()
        # ISO day strings sort chronologically; keep unparseable legacy keys out
        return {day: rec for day, rec in usage.items() if day > cutoff and day[:1].isdigit()}

    # ── Quota checks ─────────────────────────────────────────

    def check_signal_quota(self, tier: UserTier, usage: UsageRecord) -> None:
        limit = self.limits(tier).signals_per_day
        if quota_exhausted(limit, usage.signals_requested):
            raise EntitlementDenied(formatters.signal_limit_message(
                tier, limit, self.config.token_requirements,
            ))

    def check_wallet_quota(self, tier: UserTier, usage: UsageRecord) -> None:
        limit = self.limits(tier).wallet_analysis_per_day
        if quota_exhausted(limit, usage.wallet_analyses):
            raise EntitlementDenied(formatters.wallet_limit_message(
                limit, self.config.token_requirements,
            ))

    def check_tracking_capacity(self, tier: UserTier, tracked_count: int) -> None:
        """Tier cap first, then the absolute cap that even unlimited tiers hit."""
        tier_cap = self.limits(tier).tracked_markets
        if quota_exhausted(tier_cap, tracked_count):
            raise EntitlementDenied(formatters.tracking_limit_message(
                tier_cap, self.config.token_requirements,
            ))
        max_tracked = self.config.limits.max_tracked_markets
        if tracked_count >= max_tracked:
            raise EntitlementDenied(formatters.max_tracked_message(max_tracked))

    def check_arbitrage(self, tier: UserTier) -> None:
        if not self.limits(tier).arbitrage_enabled:
            raise EntitlementDenied(formatters.arbitrage_locked_message(
                self.config.token_requirements,
            ))

    def signal_limit(self, tier: UserTier, requested: int) -> int:
        return effective_limit(self.limits(tier).signals_per_request, requested)
