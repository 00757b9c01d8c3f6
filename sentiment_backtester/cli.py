"""
Sentiment Backtester CLI

Glue layer: config -> inputs (files or Alpha Vantage) -> engine -> report + artifacts.
"""

from __future__ import annotations

import argparse
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any

import pandas as pd

from .config import Config, load_config
from .data_io import load_prices, load_sentiment_feed, parse_daily_prices, parse_sentiment_feed
from .engine import BacktestResult, run_backtest
from .fetch import AlphaVantageClient, DataFetchError
from .report import print_report
from .run_meta import build_run_meta, write_run_meta

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1

# failures of config/input acquisition that end a run with EXIT_FAILURE
_INPUT_ERRORS = (FileNotFoundError, ValueError, TypeError, DataFetchError)


# -----------------------------
# Helpers
# -----------------------------
def _now_run_id() -> str:
    return datetime.now().strftime("%Y%m%d_%H%M%S")


def _write_json(path: Path, obj: Any) -> None:
    path.write_text(json.dumps(obj, indent=2, default=str), encoding="utf-8")


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _obtain_inputs(
    cfg: Config,
    ticker: str,
    *,
    prices_path: str | None,
    news_path: str | None,
    fetch: bool,
) -> tuple[pd.Series, dict[str, Any]]:
    """Sentiment first, then prices, from disk or from Alpha Vantage."""
    if fetch:
        client = AlphaVantageClient.from_config(cfg.data)
        feed = client.news_sentiment(ticker, cfg.data.news_limit)
        prices = client.daily_prices(ticker, cfg.data.outputsize)
        return prices, feed

    if not prices_path or not news_path:
        raise ValueError("--prices and --news are required unless --fetch is given")
    feed = load_sentiment_feed(news_path)
    prices = load_prices(prices_path)
    return prices, feed


def write_artifacts(
    root: Path, result: BacktestResult, *, write_trades: bool = True
) -> None:
    root.mkdir(parents=True, exist_ok=True)
    _write_json(root / "summary.json", result.summary())
    result.ledger.to_csv(root / "ledger.csv", index=False)
    if write_trades:
        trades = result.trades_frame()
        trades.to_csv(root / "trades.csv", index=False)
        trades.to_parquet(root / "trades.parquet", index=False)


# -----------------------------
# Commands
# -----------------------------
def cmd_backtest(
    config_path: str,
    *,
    ticker: str | None = None,
    prices_path: str | None = None,
    news_path: str | None = None,
    fetch: bool = False,
    out_dir: str = "outputs/backtest",
    run_id: str | None = None,
    write_trades: bool = True,
    argv: list[str] | None = None,
) -> int:
    try:
        cfg = load_config(config_path)
        ticker = ticker or cfg.ticker
        logger.info("Fetching data for ticker: %s", ticker)
        prices, feed = _obtain_inputs(
            cfg, ticker, prices_path=prices_path, news_path=news_path, fetch=fetch
        )
    except _INPUT_ERRORS as e:
        logger.error("%s", e)
        return EXIT_FAILURE

    result = run_backtest(prices, feed, ticker, cfg)
    if result is None:
        return EXIT_FAILURE

    print_report(result)

    run_id = run_id or _now_run_id()
    root = Path(out_dir) / run_id
    write_artifacts(root, result, write_trades=write_trades)

    inputs = {}
    if not fetch:
        inputs = {"prices": str(prices_path), "news": str(news_path)}
    meta = build_run_meta(
        cmd="backtest",
        argv=argv or [],
        run_id=run_id,
        outputs_dir=root,
        config_path=config_path,
        config_obj=cfg,
        inputs=inputs,
    )
    meta.update({"ticker": ticker, "fetch": fetch, "write_trades": write_trades})
    write_run_meta(root, meta)

    logger.info("Artifacts written to %s", root)
    return EXIT_OK


def cmd_fetch(
    config_path: str,
    *,
    ticker: str | None = None,
    out_dir: str = "data",
) -> int:
    """Saves raw NEWS_SENTIMENT and TIME_SERIES_DAILY payloads for offline runs."""
    try:
        cfg = load_config(config_path)
        ticker = ticker or cfg.ticker
        client = AlphaVantageClient.from_config(cfg.data)
        news = client.news_sentiment_raw(ticker, cfg.data.news_limit)
        parse_sentiment_feed(news)
        prices = client.daily_prices_raw(ticker, cfg.data.outputsize)
        parse_daily_prices(prices)
    except _INPUT_ERRORS as e:
        logger.error("%s", e)
        return EXIT_FAILURE

    root = Path(out_dir)
    root.mkdir(parents=True, exist_ok=True)
    _write_json(root / "news.json", news)
    _write_json(root / "prices.json", prices)
    logger.info("Saved %s inputs to %s", ticker, root)
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="News-sentiment daily backtester")
    p.add_argument("--log-level", default="INFO")
    sub = p.add_subparsers(dest="cmd", required=True)

    # ---------------- backtest ----------------
    p_bt = sub.add_parser("backtest", help="Run a single backtest")
    p_bt.add_argument("--config", required=True)
    p_bt.add_argument("--ticker", default=None, help="Overrides config ticker.")
    p_bt.add_argument("--prices", default=None, help="Prices file (.json/.csv).")
    p_bt.add_argument("--news", default=None, help="NEWS_SENTIMENT JSON file.")
    p_bt.add_argument(
        "--fetch",
        action="store_true",
        help="Download inputs from Alpha Vantage instead of reading files.",
    )
    p_bt.add_argument("--out-dir", default="outputs/backtest")
    p_bt.add_argument("--run-id", default=None)
    p_bt.add_argument(
        "--write-trades", action=argparse.BooleanOptionalAction, default=True
    )

    # ---------------- fetch ----------------
    p_f = sub.add_parser("fetch", help="Download raw inputs to disk")
    p_f.add_argument("--config", required=True)
    p_f.add_argument("--ticker", default=None)
    p_f.add_argument("--out-dir", default="data")

    args = p.parse_args(argv)
    _setup_logging(args.log_level)

    if args.cmd == "backtest":
        if not args.fetch and not (args.prices and args.news):
            p_bt.error("--prices and --news are required unless --fetch is given")
        return cmd_backtest(
            args.config,
            ticker=args.ticker,
            prices_path=args.prices,
            news_path=args.news,
            fetch=bool(args.fetch),
            out_dir=args.out_dir,
            run_id=args.run_id,
            write_trades=bool(args.write_trades),
            argv=list(argv) if argv is not None else [],
        )

    return cmd_fetch(args.config, ticker=args.ticker, out_dir=args.out_dir)


if __name__ == "__main__":
    raise SystemExit(main())
