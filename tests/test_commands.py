"""Tests for chat commands — quota gating, validation, dispatch error mapping."""

from datetime import date
from unittest.mock import MagicMock

import pytest

from clients.errors import ApiError, NetworkError, ValidationFailure
from clients.schemas import (
    AccessInfo, ArbitrageOpportunity, MarketAnalysis, Signal, WalletAnalysis,
)
from config import AppConfig
from db.memory import USAGE_KEY, WALLET_KEY, InMemoryBackend, load_tracked, save_tracked
from db.models import TrackedMarket
from skill.base import SkillContext
from skill.commands import SkillCommands
from skill.entitlements import EntitlementTracker

TODAY = date(2026, 10, 19)
WALLET = "0x" + "ab" * 20

SIGNAL = Signal.model_validate({
    "marketId": "will-btc-hit-100k",
    "question": "Will BTC hit $100k by December?",
    "action": "BUY YES",
    "marketOdds": 42,
    "zigmaOdds": 55,
    "edge": 13,
    "confidence": 70,
    "tier": "STRONG_TRADE",
    "kelly": 0.08,
    "liquidity": 75000,
})

ANALYSIS = MarketAnalysis.model_validate({
    "id": "will-btc-hit-100k",
    "question": "Will BTC hit $100k by December?",
    "probability": 0.55,
    "confidence": 70,
    "edge": 0.13,
    "recommendation": "BUY YES",
    "reasoning": "ETF inflows outpace supply.",
})


@pytest.fixture
def oracle():
    return MagicMock()


@pytest.fixture
def registry(oracle):
    config = AppConfig(environment="test")
    tracker = EntitlementTracker(config, oracle, today=lambda: TODAY)
    return SkillCommands(config, oracle, tracker).build_registry()


@pytest.fixture
def ctx():
    return SkillContext(user_id="u1", memory=InMemoryBackend().for_user("u1"))


def with_tier(ctx, oracle, tier):
    ctx.memory.set(WALLET_KEY, WALLET)
    oracle.get_access.return_value = AccessInfo(tier=tier)


def set_usage(ctx, signals=0, wallets=0):
    ctx.memory.set(USAGE_KEY, {
        TODAY.isoformat(): {"signalsRequested": signals, "walletAnalyses": wallets},
    })


class TestAlpha:
    def test_returns_signals_and_records_usage(self, registry, oracle, ctx):
        oracle.get_signals.return_value = [SIGNAL]
        reply = registry.dispatch("alpha", ctx)
        assert "Top 1 Zigma Signals" in reply
        oracle.get_signals.assert_called_once_with(limit=3, min_edge=0.03, category=None)
        assert ctx.memory.get(USAGE_KEY)[TODAY.isoformat()]["signalsRequested"] == 1

    def test_limit_clamped_by_tier(self, registry, oracle, ctx):
        with_tier(ctx, oracle, "BASIC")
        oracle.get_signals.return_value = [SIGNAL]
        registry.dispatch("alpha", ctx, {"limit": 30, "minEdge": 5})
        oracle.get_signals.assert_called_once_with(limit=15, min_edge=0.05, category=None)

    def test_free_quota_exhausted_skips_fetch(self, registry, oracle, ctx):
        set_usage(ctx, signals=3)
        reply = registry.dispatch("alpha", ctx)
        assert "Daily Limit Reached" in reply
        oracle.get_signals.assert_not_called()

    def test_empty_result_shows_market_count(self, registry, oracle, ctx):
        oracle.get_signals.return_value = []
        oracle.get_market_count.return_value = 812
        reply = registry.dispatch("alpha", ctx)
        assert "scanning 812 markets" in reply
        assert ctx.memory.get(USAGE_KEY) is None

    def test_invalid_limit(self, registry, oracle, ctx):
        reply = registry.dispatch("alpha", ctx, {"limit": 0})
        assert reply.startswith("❌ Limit must be")
        oracle.get_signals.assert_not_called()

    def test_invalid_limit_skips_tier_lookup(self, registry, oracle, ctx):
        with_tier(ctx, oracle, "PRO")
        reply = registry.dispatch("alpha", ctx, {"limit": 99})
        assert reply.startswith("❌ Limit must be")
        oracle.get_access.assert_not_called()

    def test_nan_min_edge_refused(self, registry, oracle, ctx):
        reply = registry.dispatch("alpha", ctx, {"minEdge": "nan"})
        assert "Invalid parameters" in reply
        oracle.get_signals.assert_not_called()
        assert ctx.memory.get(USAGE_KEY) is None

    def test_fetch_failure_does_not_record_usage(self, registry, oracle, ctx):
        oracle.get_signals.side_effect = NetworkError("connection reset")
        reply = registry.dispatch("alpha", ctx)
        assert "Couldn't reach the Zigma oracle" in reply
        assert "connection reset" not in reply
        assert ctx.memory.get(USAGE_KEY) is None


class TestWallet:
    def test_connect_stores_wallet(self, registry, oracle, ctx):
        oracle.get_access.return_value = AccessInfo(tier="PRO", balance=1500)
        reply = registry.dispatch("connect", ctx, {"address": WALLET})
        assert "Current Tier: PRO" in reply
        assert "❌ No API access" in reply
        assert ctx.memory.get(WALLET_KEY) == WALLET

    def test_connect_whale_lists_api_access(self, registry, oracle, ctx):
        oracle.get_access.return_value = AccessInfo(tier="WHALE", balance=150000)
        reply = registry.dispatch("connect", ctx, {"address": WALLET})
        assert "✅ API access" in reply

    def test_connect_rejects_bad_address(self, registry, oracle, ctx):
        reply = registry.dispatch("connect", ctx, {"address": "0x123"})
        assert "Invalid wallet address" in reply
        assert ctx.memory.get(WALLET_KEY) is None
        oracle.get_access.assert_not_called()

    def test_wallet_analysis(self, registry, oracle, ctx):
        oracle.get_wallet.return_value = WalletAnalysis.model_validate({
            "address": WALLET, "totalPnl": 1234.5, "winRate": 0.61,
            "profitFactor": 1.8, "sharpeRatio": 1.2, "grade": "B+",
            "healthScore": 78, "avgHoldTime": 30, "tradeFrequency": 2.5,
            "avgPositionSize": 250,
        })
        reply = registry.dispatch("wallet", ctx, {"address": WALLET})
        assert "Wallet Analysis" in reply
        assert ctx.memory.get(USAGE_KEY)[TODAY.isoformat()]["walletAnalyses"] == 1

    def test_wallet_quota(self, registry, oracle, ctx):
        set_usage(ctx, wallets=1)
        reply = registry.dispatch("wallet", ctx, {"address": WALLET})
        assert "wallet analyses today" in reply
        oracle.get_wallet.assert_not_called()

    def test_wallet_bad_address(self, registry, oracle, ctx):
        reply = registry.dispatch("wallet", ctx, {"address": "0x123"})
        assert "Invalid wallet address" in reply
        oracle.get_wallet.assert_not_called()

    def test_wallet_bad_address_skips_tier_lookup(self, registry, oracle, ctx):
        with_tier(ctx, oracle, "WHALE")
        reply = registry.dispatch("wallet", ctx, {"address": "not-a-wallet"})
        assert "Invalid wallet address" in reply
        oracle.get_access.assert_not_called()


class TestTracking:
    def test_track_from_url(self, registry, oracle, ctx):
        reply = registry.dispatch(
            "track", ctx, {"market": "https://polymarket.com/event/will-btc-hit-100k"},
        )
        assert "Now Tracking" in reply
        tracked = load_tracked(ctx.memory)
        assert [(t.market_id, t.threshold) for t in tracked] == [("will-btc-hit-100k", 5.0)]

    def test_duplicate_rejected(self, registry, oracle, ctx):
        with_tier(ctx, oracle, "PRO")
        registry.dispatch("track", ctx, {"market": "abc"})
        reply = registry.dispatch("track", ctx, {"market": "abc"})
        assert "Already tracking abc" in reply
        assert len(load_tracked(ctx.memory)) == 1

    def test_free_tier_cap(self, registry, oracle, ctx):
        registry.dispatch("track", ctx, {"market": "one"})
        reply = registry.dispatch("track", ctx, {"market": "two"})
        assert "Tracking Limit Reached" in reply

    def test_whale_capped_at_ten(self, registry, oracle, ctx):
        with_tier(ctx, oracle, "WHALE")
        save_tracked(ctx.memory, [
            TrackedMarket(market_id=f"m{i}", threshold=5) for i in range(10)
        ])
        reply = registry.dispatch("track", ctx, {"market": "m10"})
        assert "Maximum 10 tracked markets" in reply
        assert len(load_tracked(ctx.memory)) == 10

    def test_threshold_range(self, registry, oracle, ctx):
        reply = registry.dispatch("track", ctx, {"market": "abc", "threshold": 150})
        assert "Threshold must be" in reply

    @pytest.mark.parametrize("threshold", ["nan", "inf"])
    def test_non_finite_threshold_not_stored(self, registry, oracle, ctx, threshold):
        reply = registry.dispatch("track", ctx, {"market": "abc", "threshold": threshold})
        assert "Invalid parameters" in reply
        assert load_tracked(ctx.memory) == []

    def test_untrack_by_index_and_id(self, registry, oracle, ctx):
        save_tracked(ctx.memory, [
            TrackedMarket(market_id="a", threshold=5),
            TrackedMarket(market_id="b", threshold=5),
            TrackedMarket(market_id="c", threshold=5),
        ])
        assert "Stopped tracking b" in registry.dispatch("untrack", ctx, {"market": "2"})
        assert "Stopped tracking c" in registry.dispatch("untrack", ctx, {"market": "c"})
        assert [t.market_id for t in load_tracked(ctx.memory)] == ["a"]

    def test_untrack_unknown(self, registry, oracle, ctx):
        reply = registry.dispatch("untrack", ctx, {"market": "zzz"})
        assert "Not tracking zzz" in reply

    def test_portfolio_partial_failure(self, registry, oracle, ctx):
        save_tracked(ctx.memory, [
            TrackedMarket(market_id="good", threshold=5),
            TrackedMarket(market_id="bad", threshold=5),
        ])

        def lookup(market_id):
            if market_id == "bad":
                raise ApiError("API error: 404", 404)
            return ANALYSIS

        oracle.get_market_analysis.side_effect = lookup
        reply = registry.dispatch("portfolio", ctx)
        assert "2 markets tracked" in reply
        assert "bad (data unavailable)" in reply

    def test_empty_portfolio(self, registry, oracle, ctx):
        assert "No markets tracked yet" in registry.dispatch("portfolio", ctx)


class TestPremiumAndCommunity:
    def test_arb_locked_for_free(self, registry, oracle, ctx):
        reply = registry.dispatch("arb", ctx)
        assert "Feature Not Available" in reply
        oracle.get_arbitrage.assert_not_called()

    def test_arb_for_pro(self, registry, oracle, ctx):
        with_tier(ctx, oracle, "PRO")
        oracle.get_arbitrage.return_value = [ArbitrageOpportunity.model_validate({
            "type": "INVERSE", "expectedProfit": 2.5,
            "marketATitle": "A", "marketBTitle": "B",
            "trades": [{"action": "BUY YES A"}, {"action": "BUY YES B"}],
            "confidence": 80,
        })]
        reply = registry.dispatch("arb", ctx)
        assert "1 found" in reply
        assert "BUY YES A + BUY YES B" in reply

    def test_leaderboard_empty(self, registry, oracle, ctx):
        oracle.get_leaderboard.return_value = []
        assert "No agents competing yet" in registry.dispatch("leaderboard", ctx)

    def test_analyze(self, registry, oracle, ctx):
        oracle.get_market_analysis.return_value = ANALYSIS
        reply = registry.dispatch("analyze", ctx, {"market": "will-btc-hit-100k"})
        assert "Market Analysis" in reply
        assert "+13.0%" in reply

    def test_share_posts_when_host_can(self, registry, oracle, ctx):
        oracle.get_signals.return_value = [SIGNAL]
        ctx.post = MagicMock()
        reply = registry.dispatch("share", ctx)
        assert "Signal shared to m/showandtell" in reply
        posted = ctx.post.call_args[0][0]
        assert posted["community"] == "m/showandtell"
        assert "Zigma Signal Alert" in posted["content"]

    def test_share_without_post_capability(self, registry, oracle, ctx):
        oracle.get_signals.return_value = [SIGNAL]
        reply = registry.dispatch("share", ctx)
        assert "Copy this to post" in reply

    def test_share_bad_index(self, registry, oracle, ctx):
        oracle.get_signals.return_value = [SIGNAL]
        reply = registry.dispatch("share", ctx, {"signalIndex": 9})
        assert "Signal #9 not found" in reply

    def test_challenge(self, registry, oracle, ctx):
        oracle.get_market_analysis.return_value = ANALYSIS
        reply = registry.dispatch("challenge", ctx, {"agent": "rival", "market": "abc"})
        assert "AGENT CHALLENGE" in reply
        assert "rival says: **NO**" in reply


class TestDispatch:
    def test_all_commands_registered(self, registry):
        assert registry.command_names == [
            "alpha", "connect", "analyze", "track", "untrack", "portfolio",
            "wallet", "arb", "leaderboard", "share", "challenge",
        ]

    def test_describe_has_parameter_schema(self, registry):
        described = registry.describe()
        assert "address" in described["connect"]["parameters"]["properties"]
        assert described["alpha"]["description"]

    def test_unknown_command(self, registry, ctx):
        with pytest.raises(KeyError):
            registry.dispatch("moon", ctx)

    def test_missing_parameter(self, registry, ctx):
        assert registry.dispatch("track", ctx, {}) == "❌ Invalid parameters: market"

    @pytest.mark.parametrize("error,expected", [
        (NetworkError("down"), "Couldn't reach the Zigma oracle for `zigma analyze`"),
        (ApiError("API error: 500", 500), "couldn't complete `zigma analyze`"),
        (ValidationFailure("bad body"), "unexpected response for `zigma analyze`"),
        (RuntimeError("kaboom"), "Something went wrong with `zigma analyze`"),
    ])
    def test_errors_mapped_to_messages(self, registry, oracle, ctx, error, expected):
        oracle.get_market_analysis.side_effect = error
        reply = registry.dispatch("analyze", ctx, {"market": "abc"})
        assert expected in reply
        assert str(error) not in reply
