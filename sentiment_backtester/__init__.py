"""
Sentiment Backtester
--------------------
Single-pass daily backtester driven by Alpha Vantage news sentiment.
Long-only, one ticker, all-in on BUY and all-out on SELL, compared against buy-and-hold.
"""
