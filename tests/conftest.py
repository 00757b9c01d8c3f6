"""
Pytest Fixtures
---------------
Shared resources for testing.
- make_article: builder for NEWS_SENTIMENT article dicts.
- sample_prices / sample_feed: small deterministic inputs.
- input_files: the same inputs written to disk as Alpha Vantage JSON.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest


def article(time_published, *scores, ticker="IBM"):
    """One article; each score becomes a ticker_sentiment entry for ``ticker``."""
    return {
        "time_published": time_published,
        "title": "headline",
        "ticker_sentiment": [
            {"ticker": ticker, "ticker_sentiment_score": str(s)} for s in scores
        ],
    }


@pytest.fixture
def make_article():
    return article


@pytest.fixture
def sample_prices():
    # deliberately unsorted
    return {
        "2024-01-04": 105.0,
        "2024-01-02": 100.0,
        "2024-01-05": 95.0,
        "2024-01-03": 110.0,
    }


@pytest.fixture
def sample_feed():
    return {
        "items": "3",
        "feed": [
            article("20240105T090000", "-0.4"),
            article("20240103T160000", "0.1"),
            article("20240102T143000", "0.5"),
        ],
    }


@pytest.fixture
def input_files(tmp_path: Path, sample_prices, sample_feed) -> tuple[Path, Path]:
    prices = {
        "Meta Data": {"2. Symbol": "IBM"},
        "Time Series (Daily)": {
            d: {"1. open": str(c), "4. close": str(c)} for d, c in sample_prices.items()
        },
    }
    p_prices = tmp_path / "prices.json"
    p_news = tmp_path / "news.json"
    p_prices.write_text(json.dumps(prices), encoding="utf-8")
    p_news.write_text(json.dumps(sample_feed), encoding="utf-8")
    return p_prices, p_news


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    p = tmp_path / "base.yaml"
    p.write_text(
        """
ticker: IBM
strategy:
  buy_threshold: 0.35
  sell_threshold: -0.15
portfolio:
  initial_cash: 10000.0
""",
        encoding="utf-8",
    )
    return p
