"""
Tests for sentiment_backtester.data_io
--------------------------------------
Coverage:
- Price normalization (sorting, ISO keys, validation).
- Alpha Vantage payload decoding and API error envelopes.
- Loading from JSON / CSV files.
"""

import datetime as dt
import json
import logging

import pandas as pd
import pytest

from sentiment_backtester.data_io import (
    load_prices,
    load_sentiment_feed,
    parse_daily_prices,
    parse_sentiment_feed,
    to_price_series,
)


def test_to_price_series_sorts_and_normalizes(sample_prices):
    s = to_price_series(sample_prices)
    assert list(s.index) == ["2024-01-02", "2024-01-03", "2024-01-04", "2024-01-05"]
    assert s.dtype == float
    assert s["2024-01-03"] == 110.0


def test_to_price_series_accepts_dates_and_timestamps():
    s = to_price_series(
        {dt.date(2024, 1, 3): 2, pd.Timestamp("2024-01-02 16:00"): "1.5"}
    )
    assert list(s.index) == ["2024-01-02", "2024-01-03"]
    assert list(s) == [1.5, 2.0]


def test_to_price_series_rejects_negative_and_nan():
    with pytest.raises(ValueError, match="invalid closes"):
        to_price_series({"2024-01-01": -1.0})
    with pytest.raises(ValueError, match="invalid closes"):
        to_price_series({"2024-01-01": float("nan")})


def test_to_price_series_rejects_bad_dates():
    with pytest.raises(ValueError, match="unparseable date"):
        to_price_series({"not-a-date": 1.0})


def test_to_price_series_empty():
    assert to_price_series({}).empty
    assert to_price_series(None).empty


def test_parse_daily_prices():
    payload = {
        "Meta Data": {},
        "Time Series (Daily)": {
            "2024-01-03": {"4. close": "187.5"},
            "2024-01-02": {"4. close": "185.1"},
        },
    }
    s = parse_daily_prices(payload)
    assert list(s.index) == ["2024-01-02", "2024-01-03"]
    assert s.iloc[-1] == 187.5


@pytest.mark.parametrize(
    "payload, msg",
    [
        ({"Error Message": "Invalid API call"}, "refused"),
        ({"Note": "Thank you for using Alpha Vantage!"}, "refused"),
        ({"Meta Data": {}}, "missing"),
        ({"Time Series (Daily)": {"2024-01-02": {"1. open": "1"}}}, "bad '4. close'"),
        ([], "expected a JSON object"),
    ],
)
def test_parse_daily_prices_errors(payload, msg):
    with pytest.raises(ValueError, match=msg):
        parse_daily_prices(payload)


def test_parse_sentiment_feed_envelope(sample_feed):
    assert parse_sentiment_feed(sample_feed)["feed"] == sample_feed["feed"]
    assert parse_sentiment_feed([{"x": 1}]) == {"feed": [{"x": 1}]}

    with pytest.raises(ValueError, match="refused"):
        parse_sentiment_feed({"Information": "rate limit"})
    with pytest.raises(ValueError, match="missing 'feed'"):
        parse_sentiment_feed({"items": "0"})


def test_load_prices_alpha_vantage_json(input_files, caplog):
    prices_path, _ = input_files
    with caplog.at_level(logging.INFO):
        s = load_prices(prices_path)
    assert len(s) == 4
    assert s.index[0] == "2024-01-02"
    assert "Loaded 4 daily closes" in caplog.text


def test_load_prices_flat_json_and_csv(tmp_path):
    flat = tmp_path / "flat.json"
    flat.write_text(json.dumps({"2024-01-02": 10, "2024-01-01": 9}), encoding="utf-8")
    assert list(load_prices(flat)) == [9.0, 10.0]

    csv = tmp_path / "px.csv"
    csv.write_text("Date,Close\n2024-01-02,10\n2024-01-01,9\n", encoding="utf-8")
    assert list(load_prices(csv).index) == ["2024-01-01", "2024-01-02"]


def test_load_prices_csv_missing_columns(tmp_path):
    csv = tmp_path / "px.csv"
    csv.write_text("day,price\n2024-01-02,10\n", encoding="utf-8")
    with pytest.raises(ValueError, match="need a date and a close column"):
        load_prices(csv)


def test_load_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_prices(tmp_path / "missing.json")
    with pytest.raises(FileNotFoundError):
        load_sentiment_feed(tmp_path / "missing.json")

    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    with pytest.raises(ValueError, match="Invalid JSON"):
        load_sentiment_feed(broken)


def test_load_sentiment_feed(input_files):
    _, news_path = input_files
    feed = load_sentiment_feed(news_path)
    assert len(feed["feed"]) == 3
