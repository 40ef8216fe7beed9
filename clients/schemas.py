"""
Pydantic models for oracle API responses.

Every payload is validated against one of these before it reaches a
handler or the cache. Field names are snake_case; the API's camelCase
names are accepted through aliases.
"""
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


Action = Literal["BUY YES", "BUY NO", "HOLD"]
SignalTier = Literal["STRONG_TRADE", "SMALL_TRADE", "PROBE", "NO_TRADE"]


class OracleModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# ============================================================================
# SIGNALS & MARKETS
# ============================================================================

class Signal(OracleModel):
    """Trading signal for one market outcome"""
    market_id: str = Field(alias="marketId")
    question: str
    action: Action
    market_odds: float = Field(alias="marketOdds", description="Market-implied probability (%)")
    zigma_odds: float = Field(alias="zigmaOdds", description="Oracle fair probability (%)")
    edge: float = Field(description="Edge in percentage points")
    confidence: float
    tier: SignalTier
    kelly: float = Field(description="Kelly fraction (0-1)")
    liquidity: float = Field(description="Market liquidity (USD)")
    reasoning: Optional[str] = None
    link: Optional[str] = None


class NewsItem(OracleModel):
    title: str
    source: str


class MarketAnalysis(OracleModel):
    """Deep analysis of a single market. edge and probability are fractions."""
    id: str
    question: str
    probability: float
    confidence: float
    edge: float
    recommendation: str
    reasoning: str
    news: Optional[List[NewsItem]] = None


# ============================================================================
# WALLETS
# ============================================================================

class CategoryStat(OracleModel):
    name: str
    win_rate: float = Field(alias="winRate")


class Recommendation(OracleModel):
    title: str


class WalletAnalysis(OracleModel):
    address: str
    total_pnl: float = Field(alias="totalPnl")
    win_rate: float = Field(alias="winRate")
    profit_factor: float = Field(alias="profitFactor")
    sharpe_ratio: float = Field(alias="sharpeRatio")
    grade: str
    health_score: float = Field(alias="healthScore")
    avg_hold_time: float = Field(alias="avgHoldTime", description="Hours")
    trade_frequency: float = Field(alias="tradeFrequency", description="Trades per day")
    avg_position_size: float = Field(alias="avgPositionSize")
    top_categories: Optional[List[CategoryStat]] = Field(default=None, alias="topCategories")
    recommendations: Optional[List[Recommendation]] = None


class AccessFeatures(OracleModel):
    signals_per_day: Optional[int] = Field(default=None, alias="signalsPerDay")
    alerts: Optional[str] = None
    arbitrage: Optional[bool] = None
    tracking: Optional[int] = None


class AccessInfo(OracleModel):
    """Token-gated access level for a wallet"""
    tier: Optional[str] = None
    balance: float = 0
    features: Optional[AccessFeatures] = None


# ============================================================================
# ARBITRAGE, LEADERBOARD, STATS
# ============================================================================

class ArbTrade(OracleModel):
    action: str


class ArbitrageOpportunity(OracleModel):
    type: str
    expected_profit: float = Field(alias="expectedProfit")
    market_a_title: Optional[str] = Field(default=None, alias="marketATitle")
    market_b_title: Optional[str] = Field(default=None, alias="marketBTitle")
    trades: List[ArbTrade]
    confidence: float


class LeaderboardEntry(OracleModel):
    agent: str
    pnl: float
    win_rate: float = Field(alias="winRate")
    trades: int
    sharpe: float


class OracleStats(OracleModel):
    market_count: int = Field(alias="marketCount")
