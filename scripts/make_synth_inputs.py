"""
Script: Synthetic Input Generator
Purpose: Writes deterministic Alpha Vantage-shaped prices.json / news.json.

Description:
    Business-day random walk for closes plus one news article on a random
    subset of days, each scoring the ticker uniformly in [-1, 1].
    Lets the backtest command run without an API key.

Usage:
    python scripts/make_synth_inputs.py --out-dir data/sample --days 60 --ticker IBM
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path

import numpy as np
import pandas as pd


def make_synth_inputs(
    start_date: str, n_days: int, ticker: str, seed: int, news_prob: float = 0.4
) -> tuple[dict, dict]:
    rng = np.random.default_rng(seed)
    days = pd.bdate_range(start_date, periods=n_days)
    close = 100.0 * np.exp(np.cumsum(rng.normal(0.0005, 0.015, size=n_days)))

    series = {
        d.strftime("%Y-%m-%d"): {"4. close": f"{c:.4f}"} for d, c in zip(days, close)
    }
    prices = {
        "Meta Data": {"2. Symbol": ticker},
        "Time Series (Daily)": series,
    }

    feed = []
    for d in days:
        if rng.random() >= news_prob:
            continue
        score = rng.uniform(-1.0, 1.0)
        feed.append(
            {
                "time_published": d.strftime("%Y%m%d") + "T143000",
                "title": f"Synthetic headline for {ticker}",
                "ticker_sentiment": [
                    {"ticker": ticker, "ticker_sentiment_score": f"{score:.6f}"}
                ],
            }
        )
    # newest first, like the live endpoint
    news = {"items": str(len(feed)), "feed": feed[::-1]}
    return prices, news


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--out-dir", required=True)
    ap.add_argument("--start-date", default="2024-01-02")
    ap.add_argument("--days", type=int, default=60)
    ap.add_argument("--ticker", default="IBM")
    ap.add_argument("--seed", type=int, default=123)
    args = ap.parse_args()

    out = Path(args.out_dir).expanduser().resolve()
    out.mkdir(parents=True, exist_ok=True)

    prices, news = make_synth_inputs(args.start_date, args.days, args.ticker, args.seed)
    (out / "prices.json").write_text(json.dumps(prices, indent=2), encoding="utf-8")
    (out / "news.json").write_text(json.dumps(news, indent=2), encoding="utf-8")
    print(str(out))


if __name__ == "__main__":
    main()
