"""
Alpha Vantage Client
--------------------
Blocking retrieval of the two raw inputs: ``TIME_SERIES_DAILY`` closes and
the ``NEWS_SENTIMENT`` feed. One request per call, no retries.
"""

from __future__ import annotations

import logging
from typing import Any

import pandas as pd
import requests

from .config import DataCfg
from .data_io import parse_daily_prices, parse_sentiment_feed

logger = logging.getLogger(__name__)

USER_AGENT = "sentiment-backtester"


class DataFetchError(RuntimeError):
    """Transport, HTTP status, or decoding failure talking to Alpha Vantage."""


class AlphaVantageClient:
    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = "https://www.alphavantage.co/query",
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ):
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_config(
        cls, cfg: DataCfg, session: requests.Session | None = None
    ) -> "AlphaVantageClient":
        return cls(
            cfg.resolve_api_key(),
            base_url=cfg.base_url,
            timeout=float(cfg.timeout_s),
            session=session,
        )

    def get_json(self, params: dict[str, Any]) -> Any:
        query = {**params, "apikey": self.api_key}
        logger.info("GET %s function=%s", self.base_url, params.get("function"))
        try:
            resp = self.session.get(
                self.base_url,
                params=query,
                timeout=self.timeout,
                headers={"User-Agent": USER_AGENT},
            )
            resp.raise_for_status()
        except requests.RequestException as e:
            raise DataFetchError(f"{params.get('function')} request failed: {e}") from e

        try:
            return resp.json()
        except ValueError as e:
            raise DataFetchError(
                f"{params.get('function')} returned a non-JSON body"
            ) from e

    def daily_prices_raw(self, ticker: str, outputsize: str = "compact") -> Any:
        return self.get_json(
            {"function": "TIME_SERIES_DAILY", "symbol": ticker, "outputsize": outputsize}
        )

    def news_sentiment_raw(self, ticker: str, limit: int = 200) -> Any:
        return self.get_json(
            {"function": "NEWS_SENTIMENT", "tickers": ticker, "limit": int(limit)}
        )

    def daily_prices(self, ticker: str, outputsize: str = "compact") -> pd.Series:
        """Closes keyed by ISO date; raises ValueError on an API-level refusal."""
        return parse_daily_prices(self.daily_prices_raw(ticker, outputsize))

    def news_sentiment(self, ticker: str, limit: int = 200) -> dict[str, Any]:
        return parse_sentiment_feed(self.news_sentiment_raw(ticker, limit))
