"""Chat command handlers.

Handlers validate input before touching the tier or the network.
Metered handlers then resolve the tier and check quota, fetch from the
oracle, record usage and render markdown. Denials and bad input raise
before any data fetch; the registry's dispatch turns exceptions into
replies.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from clients.errors import ZigmaError
from clients.oracle_client import OracleClient
from config import AppConfig, UserTier
from db.memory import WALLET_KEY, load_tracked, save_tracked
from db.models import TrackedMarket
from . import formatters
from .base import Command, CommandRegistry, SkillContext
from .entitlements import EntitlementTracker
from .validators import (
    AddressParams, AlphaParams, ChallengeParams, InputValidationError,
    MarketParams, NoParams, ShareParams, TrackParams,
    extract_market_id, validate_limit, validate_market_id, validate_min_edge,
    validate_threshold, validate_wallet_address,
)

logger = logging.getLogger(__name__)


def _market_id(value: str) -> str:
    return validate_market_id(extract_market_id(value))


class SkillCommands:
    def __init__(self, config: AppConfig, oracle: OracleClient,
                 tracker: EntitlementTracker) -> None:
        self.config = config
        self.oracle = oracle
        self.tracker = tracker
        self.limits = config.limits

    # ── Signals ──────────────────────────────────────────────

    def alpha(self, ctx: SkillContext, params: AlphaParams) -> str:
        limit = validate_limit(
            params.limit if params.limit is not None else self.limits.default_signal_limit
        )
        min_edge = validate_min_edge(
            params.min_edge if params.min_edge is not None else self.limits.default_min_edge
        )
        tier = self.tracker.resolve_tier(ctx.memory)
        usage = self.tracker.get_usage(ctx.memory)
        self.tracker.check_signal_quota(tier, usage)

        signals = self.oracle.get_signals(
            limit=self.tracker.signal_limit(tier, limit),
            min_edge=min_edge / 100,
            category=params.category,
        )
        if not signals:
            return formatters.no_signals_message(self.oracle.get_market_count(), min_edge)

        self.tracker.record_usage(ctx.memory, signals_requested=1)
        return formatters.format_signals(signals)

    def share(self, ctx: SkillContext, params: ShareParams) -> str:
        signals = self.oracle.get_signals(
            limit=self.limits.share_signal_pool,
            min_edge=self.limits.default_min_edge / 100,
        )
        if not signals:
            return "❌ No signals available to share right now."

        index = params.signal_index
        if index < 1 or index > len(signals):
            raise InputValidationError(
                f"Signal #{index} not found. Try `zigma alpha` to see available signals."
            )

        content = formatters.format_share_post(signals[index - 1])
        community = self.config.moltbook.share_community
        if ctx.post:
            ctx.post({"community": community, "content": content})
            return f"✅ Signal shared to {community}!"
        return formatters.ready_to_share("Ready to Share", content)

    # ── Markets ──────────────────────────────────────────────

    def analyze(self, ctx: SkillContext, params: MarketParams) -> str:
        analysis = self.oracle.get_market_analysis(_market_id(params.market))
        return formatters.format_analysis(analysis)

    def challenge(self, ctx: SkillContext, params: ChallengeParams) -> str:
        agent = params.agent.strip()
        if not agent:
            raise InputValidationError("Name an agent to challenge")
        analysis = self.oracle.get_market_analysis(_market_id(params.market))

        content = formatters.format_challenge(agent, analysis)
        community = self.config.moltbook.share_community
        if ctx.post:
            ctx.post({"community": community, "content": content})
            return f"✅ Challenge posted to {community}! Let's see if {agent} accepts. 🔥"
        return formatters.ready_to_share("Challenge Ready", content)

    def track(self, ctx: SkillContext, params: TrackParams) -> str:
        market_id = _market_id(params.market)
        threshold = validate_threshold(
            params.threshold if params.threshold is not None
            else self.limits.default_track_threshold
        )
        tier = self.tracker.resolve_tier(ctx.memory)

        with ctx.memory.locked():
            tracked = load_tracked(ctx.memory)
            if any(t.market_id == market_id for t in tracked):
                raise InputValidationError(f"Already tracking {market_id}")
            self.tracker.check_tracking_capacity(tier, len(tracked))
            tracked.append(TrackedMarket(market_id=market_id, threshold=threshold))
            save_tracked(ctx.memory, tracked)

        logger.info("User %s tracking %s (threshold %.1f%%)", ctx.user_id, market_id, threshold)
        return formatters.format_tracking_confirmation(market_id, threshold)

    def untrack(self, ctx: SkillContext, params: MarketParams) -> str:
        target = params.market.strip()
        with ctx.memory.locked():
            tracked = load_tracked(ctx.memory)
            if target.isdigit() and 1 <= int(target) <= len(tracked):
                removed = tracked.pop(int(target) - 1)
            else:
                market_id = _market_id(target)
                matches = [t for t in tracked if t.market_id == market_id]
                if not matches:
                    raise InputValidationError(
                        f"Not tracking {market_id}. See `zigma portfolio`."
                    )
                removed = matches[0]
                tracked.remove(removed)
            save_tracked(ctx.memory, tracked)
        return f"✅ Stopped tracking {removed.market_id}"

    def portfolio(self, ctx: SkillContext, params: NoParams) -> str:
        rows: List[Dict[str, Any]] = []
        for market in load_tracked(ctx.memory):
            try:
                analysis = self.oracle.get_market_analysis(market.market_id)
            except ZigmaError as exc:
                logger.warning("Portfolio lookup failed for %s: %s", market.market_id, exc)
                analysis = None
            rows.append({
                "market_id": market.market_id,
                "threshold": market.threshold,
                "analysis": analysis,
            })
        return formatters.format_portfolio(rows)

    # ── Wallets ──────────────────────────────────────────────

    def connect(self, ctx: SkillContext, params: AddressParams) -> str:
        address = validate_wallet_address(params.address)
        ctx.memory.set(WALLET_KEY, address)
        access = self.oracle.get_access(address)
        limits = self.tracker.limits(UserTier.parse(access.tier))
        return formatters.format_connect(access, limits)

    def wallet(self, ctx: SkillContext, params: AddressParams) -> str:
        address = validate_wallet_address(params.address)
        tier = self.tracker.resolve_tier(ctx.memory)
        usage = self.tracker.get_usage(ctx.memory)
        self.tracker.check_wallet_quota(tier, usage)

        analysis = self.oracle.get_wallet(address)
        self.tracker.record_usage(ctx.memory, wallet_analyses=1)
        return formatters.format_wallet_analysis(analysis)

    # ── Premium & community ──────────────────────────────────

    def arb(self, ctx: SkillContext, params: NoParams) -> str:
        tier = self.tracker.resolve_tier(ctx.memory)
        self.tracker.check_arbitrage(tier)
        return formatters.format_arbitrage(self.oracle.get_arbitrage())

    def leaderboard(self, ctx: SkillContext, params: NoParams) -> str:
        return formatters.format_leaderboard(self.oracle.get_leaderboard())

    # ── Registration ─────────────────────────────────────────

    def build_registry(self) -> CommandRegistry:
        registry = CommandRegistry()
        for command in (
            Command("alpha", "Get top trading signals with edge", self.alpha, AlphaParams),
            Command("connect", "Connect your wallet for premium features",
                    self.connect, AddressParams),
            Command("analyze", "Deep analysis of a specific market", self.analyze, MarketParams),
            Command("track", "Track a market for alerts", self.track, TrackParams),
            Command("untrack", "Stop tracking a market", self.untrack, MarketParams),
            Command("portfolio", "View your tracked markets and positions", self.portfolio),
            Command("wallet", "Analyze a Polymarket wallet", self.wallet, AddressParams),
            Command("arb", "Scan for arbitrage opportunities", self.arb),
            Command("leaderboard", "View agent trading competition leaderboard",
                    self.leaderboard),
            Command("share", "Share a signal to the community", self.share, ShareParams),
            Command("challenge", "Challenge another agent to a prediction bet",
                    self.challenge, ChallengeParams),
        ):
            registry.register(command)
        return registry
