"""Input validators and command parameter models.

All user-supplied parameters are checked here before any network access;
failures raise InputValidationError, whose message is shown to the user.
"""

from __future__ import annotations

import math
import re
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

WALLET_ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")
POLYMARKET_URL_RE = re.compile(r"polymarket\.com/event/([^/?#]+)")


class InputValidationError(ValueError):
    """Malformed user-supplied parameter."""


def validate_wallet_address(address: str) -> str:
    address = (address or "").strip()
    if not WALLET_ADDRESS_RE.match(address):
        raise InputValidationError(
            "Invalid wallet address. Please provide a valid Ethereum address (0x...)"
        )
    return address


def extract_market_id(value: str) -> str:
    """Pull the event slug out of a Polymarket URL; other input passes through."""
    value = (value or "").strip()
    if "polymarket.com" in value:
        match = POLYMARKET_URL_RE.search(value)
        if match:
            return match.group(1)
        raise InputValidationError("Could not extract market ID from URL")
    return value


def validate_market_id(market_id: str) -> str:
    if not market_id or not market_id.strip():
        raise InputValidationError("Invalid market ID")
    return market_id.strip()


def validate_threshold(threshold: float) -> float:
    if not math.isfinite(threshold) or threshold < 0 or threshold > 100:
        raise InputValidationError("Threshold must be a number between 0 and 100")
    return threshold


def validate_limit(limit: int) -> int:
    if limit < 1 or limit > 50:
        raise InputValidationError("Limit must be a number between 1 and 50")
    return limit


def validate_min_edge(min_edge: float) -> float:
    if not math.isfinite(min_edge) or min_edge < 0 or min_edge > 100:
        raise InputValidationError("Min edge must be a number between 0 and 100")
    return min_edge


# ── Command parameters ──────────────────────────────────────

class CommandParams(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", allow_inf_nan=False)


class NoParams(CommandParams):
    pass


class AlphaParams(CommandParams):
    limit: Optional[int] = None
    min_edge: Optional[float] = Field(default=None, alias="minEdge")
    category: Optional[str] = None


class AddressParams(CommandParams):
    address: str = Field(description="Wallet address (0x...)")


class MarketParams(CommandParams):
    market: str = Field(description="Market ID, URL, or search query")


class TrackParams(CommandParams):
    market: str = Field(description="Market ID or URL")
    threshold: Optional[float] = Field(default=None, description="Alert on edge change (%)")


class ShareParams(CommandParams):
    signal_index: int = Field(default=1, alias="signalIndex")


class ChallengeParams(CommandParams):
    agent: str
    market: str
