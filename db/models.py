"""Data models for per-user skill state.

Records are persisted as plain JSON-compatible dicts with the camelCase
field names the host memory has always used.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional


@dataclass
class UsageRecord:
    """Per-day feature counters for one user."""
    signals_requested: int = 0
    wallet_analyses: int = 0

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> UsageRecord:
        data = data or {}
        return cls(
            signals_requested=int(data.get("signalsRequested", 0)),
            wallet_analyses=int(data.get("walletAnalyses", 0)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "signalsRequested": self.signals_requested,
            "walletAnalyses": self.wallet_analyses,
        }


@dataclass
class TrackedMarket:
    """A market a user asked to be alerted about."""
    market_id: str
    threshold: float                    # edge change (percentage points) that triggers an alert
    added_at: str = ""
    last_edge: Optional[float] = None   # abs edge (%) seen on the previous sweep

    def __post_init__(self) -> None:
        if not self.added_at:
            self.added_at = datetime.now(timezone.utc).isoformat()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> TrackedMarket:
        last_edge = data.get("lastEdge")
        return cls(
            market_id=str(data["marketId"]),
            threshold=float(data.get("threshold", 0)),
            added_at=data.get("addedAt", ""),
            last_edge=float(last_edge) if last_edge is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "marketId": self.market_id,
            "threshold": self.threshold,
            "addedAt": self.added_at,
        }
        if self.last_edge is not None:
            data["lastEdge"] = self.last_edge
        return data
