"""Zigma oracle API client — cached, retrying, schema-validated fetches.

Oracle API: https://api.zigma.pro — bearer token from ZIGMA_API_KEY
  - /api/v1/signals — top trading signals (limit, minEdge, category)
  - /api/v1/market/{id}/analysis — single-market analysis
  - /api/v1/wallet/{address} — trader wallet analysis
  - /api/v1/arbitrage — arbitrage opportunities
  - /api/v1/access/{address} — token-gated tier for a wallet
  - /api/v1/stats — oracle coverage stats
  - /api/v1/leaderboard — agent trading league

Every call goes through fetch():
1. Cache lookup by full URL (hit skips the network entirely)
2. GET with a timeout; timeouts and non-2xx responses fail immediately
3. Transport failures retry with exponential backoff
4. Body validated against a pydantic schema, then cached
"""

from __future__ import annotations

import logging
import time
from functools import lru_cache
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import quote, urlencode

import requests
from pydantic import TypeAdapter, ValidationError

from config import OracleConfig
from .schemas import (
    AccessInfo, ArbitrageOpportunity, LeaderboardEntry, MarketAnalysis,
    OracleStats, Signal, WalletAnalysis,
)
from .cache import ResponseCache
from .errors import ApiError, NetworkError, ValidationFailure, ZigmaError

logger = logging.getLogger(__name__)

DEFAULT_MARKET_COUNT = 500


@lru_cache(maxsize=None)
def _adapter(schema: Any) -> TypeAdapter:
    return TypeAdapter(schema)


class OracleClient:
    def __init__(self, config: OracleConfig,
                 cache: Optional[ResponseCache] = None,
                 sleep: Callable[[float], None] = time.sleep) -> None:
        self.config = config
        self.base_url = config.base_url
        self.cache = cache if cache is not None else ResponseCache(config.cache_ttl)
        self._sleep = sleep
        self.session = requests.Session()
        self.session.headers.update({
            "Accept": "application/json",
            "Content-Type": "application/json",
            "User-Agent": "ZigmaOracle-Skill/1.0",
        })
        if config.api_key:
            self.session.headers["Authorization"] = f"Bearer {config.api_key}"

    # ── Resilient fetch ──────────────────────────────────────

    def build_url(self, endpoint: str,
                  params: Optional[Dict[str, Any]] = None) -> str:
        url = f"{self.base_url}{endpoint}"
        if params:
            query = urlencode({k: v for k, v in params.items() if v is not None})
            if query:
                url = f"{url}?{query}"
        return url

    def fetch(self, endpoint: str, schema: Any,
              params: Optional[Dict[str, Any]] = None,
              use_cache: bool = True) -> Any:
        """Fetch an endpoint and return the payload validated against schema."""
        url = self.build_url(endpoint, params)

        if use_cache:
            cached = self.cache.get(url)
            if cached is not None:
                logger.debug("Cache hit url=%s", url)
                return cached

        logger.debug("Fetching from API url=%s", url)
        response = self._request_with_retry(url)
        data = self._validate(url, response, schema)

        if use_cache:
            self.cache.set(url, data)
        return data

    def retry_delay(self, attempt: int) -> float:
        """Backoff before retry number attempt + 1 (attempt counts from 0)."""
        return self.config.retry_delay * (2 ** attempt)

    def _request_with_retry(self, url: str) -> requests.Response:
        last_error: Optional[NetworkError] = None

        for attempt in range(self.config.max_retries + 1):
            try:
                response = self.session.get(url, timeout=self.config.timeout)
            except requests.Timeout as exc:
                raise NetworkError(
                    "Request timeout", timeout=True,
                    details={"url": url, "timeout": self.config.timeout},
                ) from exc
            except requests.RequestException as exc:
                last_error = NetworkError(
                    "Network request failed",
                    details={"url": url, "error": str(exc)},
                )
                retries_left = self.config.max_retries - attempt
                if retries_left <= 0:
                    break
                delay = self.retry_delay(attempt)
                logger.warning(
                    "Retrying request after %.1fs url=%s retries_left=%d",
                    delay, url, retries_left,
                )
                self._sleep(delay)
                continue

            if not 200 <= response.status_code < 300:
                raise ApiError(
                    f"API error: {response.status_code}", response.status_code,
                    details={"url": url, "status": response.status_code},
                )
            return response

        raise last_error

    def _validate(self, url: str, response: requests.Response, schema: Any) -> Any:
        try:
            payload = response.json()
        except ValueError as exc:
            logger.error("Validation error url=%s error=%s", url, exc)
            raise ValidationFailure(
                "API response was not valid JSON", details={"url": url},
            ) from exc

        try:
            return _adapter(schema).validate_python(payload)
        except ValidationError as exc:
            logger.error("Validation error url=%s errors=%s", url, exc.errors())
            raise ValidationFailure(
                "API response validation failed",
                details={"url": url, "errors": exc.errors()},
            ) from exc

    # ── Endpoints ────────────────────────────────────────────

    def get_signals(self, limit: int = 5, min_edge: float = 0.03,
                    category: Optional[str] = None) -> List[Signal]:
        """Fetch top signals. min_edge is a fraction (0.03 = 3%)."""
        params: Dict[str, Any] = {"limit": limit, "minEdge": min_edge}
        if category:
            params["category"] = category
        return self.fetch("/api/v1/signals", List[Signal], params=params)

    def get_market_analysis(self, market_id: str) -> MarketAnalysis:
        return self.fetch(
            f"/api/v1/market/{quote(market_id, safe='')}/analysis", MarketAnalysis,
        )

    def get_wallet(self, address: str) -> WalletAnalysis:
        return self.fetch(f"/api/v1/wallet/{address}", WalletAnalysis)

    def get_arbitrage(self) -> List[ArbitrageOpportunity]:
        return self.fetch("/api/v1/arbitrage", List[ArbitrageOpportunity])

    def get_access(self, address: str) -> AccessInfo:
        """Token-gated access for a wallet. Never cached: balances change."""
        return self.fetch(f"/api/v1/access/{address}", AccessInfo, use_cache=False)

    def get_leaderboard(self) -> List[LeaderboardEntry]:
        return self.fetch("/api/v1/leaderboard", List[LeaderboardEntry])

    def get_market_count(self) -> int:
        """Number of markets the oracle scans, with a fixed fallback."""
        try:
            stats = self.fetch("/api/v1/stats", OracleStats, use_cache=False)
            return stats.market_count
        except ZigmaError as exc:
            logger.warning("Failed to fetch market count, using default: %s", exc)
            return DEFAULT_MARKET_COUNT

    def health_check(self) -> bool:
        """Test connectivity to the oracle API."""
        try:
            resp = self.session.get(f"{self.base_url}/api/v1/stats", timeout=10)
            return resp.status_code == 200
        except requests.RequestException:
            return False
