"""
Console Report
--------------
Human-readable rendering of a BacktestResult.
"""

from __future__ import annotations

from .engine import BacktestResult

RULE = "-------------------------"


def _money(x: float) -> str:
    return f"${x:.2f}"


def format_report(result: BacktestResult) -> list[str]:
    lines = [
        "--- Running Backtest ---",
        f"Initial Portfolio Value: {_money(result.initial_value)}",
    ]
    for t in result.trades:
        lines.append(f"{t.date}: {t.action.value} {t.shares} shares at {_money(t.price)}")

    lines += [
        "--- Backtest Results ---",
        f"Final Portfolio Value: {_money(result.final_value)}",
        f"Total Profit/Loss: {_money(result.pnl)}",
        f"Buy and Hold Value: {_money(result.buy_and_hold_value)}",
        RULE,
    ]
    return lines


def print_report(result: BacktestResult) -> None:
    print("\n".join(format_report(result)))
