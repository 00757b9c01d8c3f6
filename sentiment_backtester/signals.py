"""
Sentiment Signal Resolver
-------------------------
Maps (news feed, calendar date, ticker) to BUY / SELL / HOLD.

Policy:
1. The first article, in feed order, published on the query date is selected.
2. Inside it, the first ``ticker_sentiment`` entry for the ticker is used.
3. score >= buy_threshold -> BUY, score <= sell_threshold -> SELL, else HOLD.

Missing or malformed data never raises: it resolves to HOLD. The reason is
kept on the ``Resolution`` record so callers and tests can tell "no news"
from "bad news data".
"""

from __future__ import annotations

import datetime as dt
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

import numpy as np

from .config import DEFAULT_BUY_THRESHOLD, DEFAULT_SELL_THRESHOLD, StrategyCfg

logger = logging.getLogger(__name__)


class Signal(Enum):
    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"


class ResolutionStatus(Enum):
    RESOLVED = "resolved"
    NO_ARTICLE = "no_article"
    NO_TICKER = "no_ticker"
    MALFORMED = "malformed"


@dataclass(frozen=True)
class Resolution:
    signal: Signal
    status: ResolutionStatus
    score: float | None = None
    article_index: int | None = None


class MalformedArticle(ValueError):
    """An article (or the feed itself) cannot be read. The resolvers turn it into HOLD."""


def article_date(time_published: Any) -> str:
    """
    Calendar date of an article as ``YYYY-MM-DD``.

    ``"20240105T143000"`` -> ``"2024-01-05"``; time of day is dropped. A
    ``date``/``datetime`` is truncated to its date. A string in some other
    layout is sliced the same way and simply matches no trading day; only a
    string too short to slice is rejected.
    """
    if isinstance(time_published, dt.datetime):
        return time_published.date().isoformat()
    if isinstance(time_published, dt.date):
        return time_published.isoformat()
    if not isinstance(time_published, str):
        raise MalformedArticle(f"time_published is not a string: {time_published!r}")

    if len(time_published) < 6:
        raise MalformedArticle(f"time_published too short: {time_published!r}")
    s = time_published
    return f"{s[:4]}-{s[4:6]}-{s[6:8]}"


def _articles(feed: Any) -> list[Any]:
    if feed is None:
        return []
    if isinstance(feed, Mapping):
        items = feed.get("feed", [])
    else:
        items = feed
    if not isinstance(items, (list, tuple)):
        raise MalformedArticle(f"feed is not a list: {type(items).__name__}")
    return list(items)


def _score_for(article: Any, ticker: str) -> float | None:
    """First score for ``ticker`` inside one article, or None when not mentioned."""
    if not isinstance(article, Mapping):
        raise MalformedArticle(f"article is not an object: {article!r}")
    entries = article.get("ticker_sentiment")
    if not isinstance(entries, (list, tuple)):
        raise MalformedArticle("ticker_sentiment missing or not a list")

    for entry in entries:
        if not isinstance(entry, Mapping) or "ticker" not in entry:
            raise MalformedArticle(f"bad ticker_sentiment entry: {entry!r}")
        if entry["ticker"] != ticker:
            continue
        raw = entry.get("ticker_sentiment_score")
        if isinstance(raw, bool) or not isinstance(raw, (str, int, float)):
            raise MalformedArticle(f"bad ticker_sentiment_score: {raw!r}")
        try:
            return float(raw)
        except ValueError as e:
            raise MalformedArticle(f"bad ticker_sentiment_score: {raw!r}") from e
    return None


def classify(
    score: float,
    buy_threshold: float = DEFAULT_BUY_THRESHOLD,
    sell_threshold: float = DEFAULT_SELL_THRESHOLD,
) -> Signal:
    """Threshold a sentiment score. NaN falls through to HOLD."""
    if score >= buy_threshold:
        return Signal.BUY
    if score <= sell_threshold:
        return Signal.SELL
    return Signal.HOLD


def _resolve_in(
    article: Any, index: int, ticker: str, strategy: StrategyCfg
) -> Resolution:
    try:
        score = _score_for(article, ticker)
    except MalformedArticle as e:
        logger.debug("article #%d unreadable: %s", index, e)
        return Resolution(Signal.HOLD, ResolutionStatus.MALFORMED, article_index=index)

    if score is None:
        return Resolution(Signal.HOLD, ResolutionStatus.NO_TICKER, article_index=index)
    if not np.isfinite(score):
        logger.debug("article #%d has non-finite score %r", index, score)
        return Resolution(Signal.HOLD, ResolutionStatus.MALFORMED, score, index)

    signal = classify(score, strategy.buy_threshold, strategy.sell_threshold)
    return Resolution(signal, ResolutionStatus.RESOLVED, score, index)


def resolve_detailed(
    feed: Any, date: str, ticker: str, strategy: StrategyCfg | None = None
) -> Resolution:
    """Linear scan of the feed; see module docstring for the matching policy."""
    strategy = strategy or StrategyCfg()
    try:
        articles = _articles(feed)
    except MalformedArticle as e:
        logger.debug("feed unreadable: %s", e)
        return Resolution(Signal.HOLD, ResolutionStatus.MALFORMED)

    for i, article in enumerate(articles):
        try:
            published = article["time_published"]
            day = article_date(published)
        except (MalformedArticle, KeyError, TypeError) as e:
            logger.debug("article #%d has no usable date: %s", i, e)
            return Resolution(Signal.HOLD, ResolutionStatus.MALFORMED, article_index=i)
        if day == date:
            return _resolve_in(article, i, ticker, strategy)

    return Resolution(Signal.HOLD, ResolutionStatus.NO_ARTICLE)


def resolve(
    feed: Any, date: str, ticker: str, strategy: StrategyCfg | None = None
) -> Signal:
    """Signal for one date. Never raises."""
    return resolve_detailed(feed, date, ticker, strategy).signal


class FeedIndex:
    """
    Articles pre-grouped by publication date, in feed order.

    Gives exactly the same answers as ``resolve_detailed`` but avoids a full
    scan per trading day. An undatable article poisons every date whose first
    match comes after it, as in the linear scan.
    """

    def __init__(self, feed: Any):
        self._by_date: dict[str, list[int]] = {}
        self._first_bad: int | None = None
        try:
            self._articles = _articles(feed)
        except MalformedArticle as e:
            logger.debug("feed unreadable: %s", e)
            self._articles = []
            self._first_bad = 0
            return

        for i, article in enumerate(self._articles):
            try:
                day = article_date(article["time_published"])
            except (MalformedArticle, KeyError, TypeError):
                if self._first_bad is None:
                    self._first_bad = i
                continue
            self._by_date.setdefault(day, []).append(i)

        if self._first_bad is not None:
            logger.warning(
                "news feed: article #%d has an unusable time_published; "
                "later dates resolve to HOLD",
                self._first_bad,
            )

    def __len__(self) -> int:
        return len(self._articles)

    def dates(self) -> list[str]:
        return sorted(self._by_date)

    def articles_on(self, date: str) -> list[Any]:
        return [self._articles[i] for i in self._by_date.get(date, [])]

    def resolve_detailed(
        self, date: str, ticker: str, strategy: StrategyCfg | None = None
    ) -> Resolution:
        strategy = strategy or StrategyCfg()
        hits = self._by_date.get(date)
        first = hits[0] if hits else None

        bad = self._first_bad
        if bad is not None and (first is None or bad < first):
            index = bad if self._articles else None
            return Resolution(Signal.HOLD, ResolutionStatus.MALFORMED, article_index=index)
        if first is None:
            return Resolution(Signal.HOLD, ResolutionStatus.NO_ARTICLE)
        return _resolve_in(self._articles[first], first, ticker, strategy)

    def resolve(
        self, date: str, ticker: str, strategy: StrategyCfg | None = None
    ) -> Signal:
        return self.resolve_detailed(date, ticker, strategy).signal
