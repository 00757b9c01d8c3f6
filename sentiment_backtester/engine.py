"""
Core Backtest Engine
--------------------
Single-ticker, long-only, all-in / all-out walk-forward over daily closes.

For each date (ascending) the sentiment signal is resolved and applied:
BUY spends as much cash as buys whole shares, SELL liquidates the whole
position. The result carries final value, P&L and a buy-and-hold baseline.
"""

from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass, field
from typing import Any

import pandas as pd

from .config import Config
from .data_io import to_price_series
from .signals import FeedIndex, Resolution, Signal

logger = logging.getLogger(__name__)

_LEDGER_COLS = ["date", "signal", "status", "score", "close", "cash", "shares", "equity"]
_TRADE_COLS = ["date", "action", "shares", "price"]


@dataclass
class Portfolio:
    cash: float
    shares: int = 0
    initial_value: float = field(init=False)

    def __post_init__(self) -> None:
        self.initial_value = float(self.cash)

    def value(self, price: float) -> float:
        return self.cash + self.shares * price


@dataclass(frozen=True)
class Trade:
    date: str
    action: Signal
    shares: int
    price: float


@dataclass
class BacktestResult:
    ticker: str
    initial_value: float
    final_value: float
    pnl: float
    buy_and_hold_value: float
    cash: float
    shares: int
    first_date: str
    last_date: str
    trades: list[Trade] = field(default_factory=list)
    ledger: pd.DataFrame = field(default_factory=lambda: pd.DataFrame(columns=_LEDGER_COLS))

    def trades_frame(self) -> pd.DataFrame:
        """Executed trades as a DataFrame (action as its string value)."""
        rows = [{**asdict(t), "action": t.action.value} for t in self.trades]
        return pd.DataFrame(rows, columns=_TRADE_COLS)

    def summary(self) -> dict[str, Any]:
        """JSON-friendly headline numbers."""
        return {
            "ticker": self.ticker,
            "first_date": self.first_date,
            "last_date": self.last_date,
            "days": int(len(self.ledger)),
            "trades": len(self.trades),
            "initial_value": self.initial_value,
            "final_value": self.final_value,
            "pnl": self.pnl,
            "buy_and_hold_value": self.buy_and_hold_value,
            "cash": self.cash,
            "shares": self.shares,
        }


def apply_signal(
    portfolio: Portfolio, signal: Signal, date: str, price: float
) -> Trade | None:
    """
    Mutates ``portfolio`` for one day and returns the executed trade, if any.

    Blocked actions (BUY without enough cash for one share, SELL while flat)
    are silent no-ops.
    """
    if signal is Signal.BUY and portfolio.cash >= price and price > 0.0:
        qty = math.floor(portfolio.cash / price)
        # float division can round up across an integer boundary
        if qty * price > portfolio.cash:
            qty -= 1
        if qty <= 0:
            return None
        portfolio.shares += qty
        portfolio.cash -= qty * price
        return Trade(date, Signal.BUY, qty, price)

    if signal is Signal.SELL and portfolio.shares > 0:
        qty = portfolio.shares
        portfolio.cash += qty * price
        portfolio.shares = 0
        return Trade(date, Signal.SELL, qty, price)

    return None


def buy_and_hold_value(initial_value: float, first_price: float, last_price: float) -> float:
    """Fractional all-in on the first close, marked at the last close."""
    if first_price <= 0.0:
        return float("nan")
    return (initial_value / first_price) * last_price


def run_backtest(
    prices: Any,
    feed: Any,
    ticker: str,
    cfg: Config | None = None,
) -> BacktestResult | None:
    """
    Runs one simulation.

    Args:
        prices: Daily closes keyed by ISO date (Mapping, Series, or records).
        feed: Decoded NEWS_SENTIMENT payload or bare list of articles.
        ticker: Symbol matched case-sensitively against ticker_sentiment.
        cfg: Thresholds and starting cash; defaults when None.

    Returns:
        The result, or None when there are no prices (logged as an error).
    """
    cfg = cfg or Config()
    series = to_price_series(prices)
    if series.empty:
        logger.error("Price data is empty. Cannot run backtest.")
        return None

    index = FeedIndex(feed)
    portfolio = Portfolio(cash=float(cfg.portfolio.initial_cash))
    trades: list[Trade] = []
    rows: list[dict[str, Any]] = []

    logger.info(
        "Running backtest for %s over %d days (%s .. %s), initial value %.2f",
        ticker,
        len(series),
        series.index[0],
        series.index[-1],
        portfolio.initial_value,
    )

    for date, close in series.items():
        price = float(close)
        res: Resolution = index.resolve_detailed(str(date), ticker, cfg.strategy)
        trade = apply_signal(portfolio, res.signal, str(date), price)
        if trade is not None:
            trades.append(trade)
            logger.info(
                "%s: %s %d shares at $%.2f",
                trade.date,
                trade.action.value,
                trade.shares,
                trade.price,
            )
        rows.append(
            {
                "date": str(date),
                "signal": res.signal.value,
                "status": res.status.value,
                "score": res.score,
                "close": price,
                "cash": portfolio.cash,
                "shares": portfolio.shares,
                "equity": portfolio.value(price),
            }
        )

    first_price = float(series.iloc[0])
    last_price = float(series.iloc[-1])
    final_value = portfolio.value(last_price)

    return BacktestResult(
        ticker=ticker,
        initial_value=portfolio.initial_value,
        final_value=final_value,
        pnl=final_value - portfolio.initial_value,
        buy_and_hold_value=buy_and_hold_value(
            portfolio.initial_value, first_price, last_price
        ),
        cash=portfolio.cash,
        shares=portfolio.shares,
        first_date=str(series.index[0]),
        last_date=str(series.index[-1]),
        trades=trades,
        ledger=pd.DataFrame(rows, columns=_LEDGER_COLS),
    )
