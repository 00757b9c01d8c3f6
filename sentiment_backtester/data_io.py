"""
Data IO Layer
-------------
Normalizes the two simulation inputs:

- daily closes, as a float ``pd.Series`` keyed by ISO ``YYYY-MM-DD`` strings,
  sorted ascending;
- the news-sentiment feed, as the decoded Alpha Vantage ``NEWS_SENTIMENT``
  payload (a mapping with a ``feed`` list).

Accepts Alpha Vantage JSON payloads, plain ``{date: close}`` JSON, and CSV.
"""

from __future__ import annotations

import datetime as dt
import json
import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

DAILY_SERIES_KEY = "Time Series (Daily)"
CLOSE_KEY = "4. close"
FEED_KEY = "feed"

# Alpha Vantage answers HTTP 200 with one of these keys when a call is refused
_API_ERROR_KEYS = ("Error Message", "Note", "Information")


def _iso_date(key: Any) -> str:
    if isinstance(key, (dt.date, pd.Timestamp)):
        return pd.Timestamp(key).strftime("%Y-%m-%d")
    s = str(key).strip()
    try:
        return pd.Timestamp(s).strftime("%Y-%m-%d")
    except ValueError as e:
        raise ValueError(f"to_price_series: unparseable date {key!r}") from e


def to_price_series(prices: Any) -> pd.Series:
    """
    Builds the canonical price series from a mapping, a Series, or an iterable
    of ``{"date": ..., "close": ...}`` records.

    Later duplicates of a date overwrite earlier ones. Closes must be finite
    and non-negative.
    """
    if isinstance(prices, pd.Series):
        items: Iterable[tuple[Any, Any]] = prices.items()
    elif isinstance(prices, Mapping):
        items = prices.items()
    elif prices is None:
        items = []
    else:
        items = ((rec["date"], rec["close"]) for rec in prices)

    closes: dict[str, float] = {}
    for key, value in items:
        closes[_iso_date(key)] = float(value)

    s = pd.Series(closes, dtype=float, name="close")
    s.index.name = "date"
    if s.empty:
        return s

    bad = ~np.isfinite(s.to_numpy()) | (s.to_numpy() < 0.0)
    if bad.any():
        raise ValueError(
            f"to_price_series: invalid closes on {list(s.index[bad])}; "
            "closes must be finite and >= 0"
        )

    return s.sort_index()


def _check_api_error(payload: Mapping[str, Any], what: str) -> None:
    for key in _API_ERROR_KEYS:
        if key in payload:
            raise ValueError(f"{what}: Alpha Vantage refused the request: {payload[key]}")


def parse_daily_prices(payload: Any) -> pd.Series:
    """Extracts closes from a decoded ``TIME_SERIES_DAILY`` response."""
    if not isinstance(payload, Mapping):
        raise ValueError(
            f"parse_daily_prices: expected a JSON object, got {type(payload).__name__}"
        )
    _check_api_error(payload, "parse_daily_prices")

    series = payload.get(DAILY_SERIES_KEY)
    if not isinstance(series, Mapping):
        raise ValueError(
            f"parse_daily_prices: missing {DAILY_SERIES_KEY!r}; "
            f"got keys={sorted(payload)}"
        )

    closes: dict[str, Any] = {}
    for date, bar in series.items():
        try:
            closes[date] = float(bar[CLOSE_KEY])
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(
                f"parse_daily_prices: bad {CLOSE_KEY!r} for {date}: {bar!r}"
            ) from e

    return to_price_series(closes)


def parse_sentiment_feed(payload: Any) -> dict[str, Any]:
    """
    Checks the envelope of a decoded ``NEWS_SENTIMENT`` response.

    Article contents are left untouched; the signal resolver treats malformed
    articles as "no signal".
    """
    if isinstance(payload, list):
        payload = {FEED_KEY: payload}
    if not isinstance(payload, Mapping):
        raise ValueError(
            f"parse_sentiment_feed: expected a JSON object, got {type(payload).__name__}"
        )
    _check_api_error(payload, "parse_sentiment_feed")

    feed = payload.get(FEED_KEY)
    if not isinstance(feed, list):
        raise ValueError(
            f"parse_sentiment_feed: missing {FEED_KEY!r} list; got keys={sorted(payload)}"
        )
    return dict(payload)


def _read_json(path: Path) -> Any:
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {str(path)!r}: {e}") from e


def load_prices(path: str | Path) -> pd.Series:
    """
    Loads daily closes from disk.

    ``.json``: an Alpha Vantage ``TIME_SERIES_DAILY`` payload or a flat
    ``{date: close}`` object. ``.csv``: a date column (``date``/``timestamp``)
    and a ``close`` column.
    """
    p = Path(path)
    if p.suffix.lower() == ".csv":
        if not p.exists():
            raise FileNotFoundError(f"Input file not found: {p}")
        df = pd.read_csv(p)
        df.columns = [str(c).strip().lower() for c in df.columns]
        date_col = next((c for c in ("date", "timestamp") if c in df.columns), None)
        if date_col is None or "close" not in df.columns:
            raise ValueError(
                f"load_prices: need a date and a close column in {str(p)!r}; "
                f"got columns={list(df.columns)}"
            )
        s = to_price_series(dict(zip(df[date_col], df["close"])))
    else:
        payload = _read_json(p)
        if isinstance(payload, Mapping) and DAILY_SERIES_KEY in payload:
            s = parse_daily_prices(payload)
        elif isinstance(payload, Mapping):
            _check_api_error(payload, "load_prices")
            s = to_price_series(payload)
        else:
            raise ValueError(f"load_prices: unsupported JSON layout in {str(p)!r}")

    logger.info("Loaded %d daily closes from %s", len(s), p)
    return s


def load_sentiment_feed(path: str | Path) -> dict[str, Any]:
    """Loads a saved ``NEWS_SENTIMENT`` payload (or a bare list of articles)."""
    p = Path(path)
    feed = parse_sentiment_feed(_read_json(p))
    logger.info("Loaded %d news articles from %s", len(feed[FEED_KEY]), p)
    return feed
