"""
Configuration Schemas
---------------------
Dataclasses describing the YAML configuration: the ticker under test, the
sentiment thresholds, starting capital, and the Alpha Vantage data source.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .validator import validate_keys

DEFAULT_BUY_THRESHOLD = 0.35
DEFAULT_SELL_THRESHOLD = -0.15
DEFAULT_INITIAL_CASH = 10000.0

_OUTPUT_SIZES = ("compact", "full")


@dataclass
class StrategyCfg:
    """Sentiment thresholds. Both bounds are inclusive."""

    buy_threshold: float = DEFAULT_BUY_THRESHOLD
    sell_threshold: float = DEFAULT_SELL_THRESHOLD

    def __post_init__(self) -> None:
        if float(self.sell_threshold) >= float(self.buy_threshold):
            raise ValueError(
                "Configuration Error: sell_threshold "
                f"({self.sell_threshold}) must be below buy_threshold "
                f"({self.buy_threshold})"
            )


@dataclass
class PortfolioCfg:
    """Starting capital of the simulated account."""

    initial_cash: float = DEFAULT_INITIAL_CASH

    def __post_init__(self) -> None:
        if float(self.initial_cash) <= 0.0:
            raise ValueError(
                f"Configuration Error: initial_cash must be > 0, got {self.initial_cash}"
            )


@dataclass
class DataCfg:
    """Alpha Vantage access."""

    api_key: str | None = None
    api_key_env: str = "ALPHAVANTAGE_API_KEY"
    base_url: str = "https://www.alphavantage.co/query"
    news_limit: int = 200
    outputsize: str = "compact"
    timeout_s: float = 30.0

    def __post_init__(self) -> None:
        if int(self.news_limit) < 1:
            raise ValueError(
                f"Configuration Error: news_limit must be >= 1, got {self.news_limit}"
            )
        if self.outputsize not in _OUTPUT_SIZES:
            raise ValueError(
                f"Invalid outputsize '{self.outputsize}'. Must be one of {_OUTPUT_SIZES}"
            )
        if float(self.timeout_s) <= 0.0:
            raise ValueError(
                f"Configuration Error: timeout_s must be > 0, got {self.timeout_s}"
            )

    def resolve_api_key(self) -> str:
        """Explicit key first, then the environment variable named by api_key_env."""
        key = self.api_key or os.environ.get(self.api_key_env)
        if not key:
            raise ValueError(
                f"No Alpha Vantage API key: set data.api_key or ${self.api_key_env}"
            )
        return key


@dataclass
class Config:
    """Root configuration object."""

    ticker: str = "IBM"
    strategy: StrategyCfg = field(default_factory=StrategyCfg)
    portfolio: PortfolioCfg = field(default_factory=PortfolioCfg)
    data: DataCfg = field(default_factory=DataCfg)


def _build(cls: type, patch: dict[str, Any]) -> Any:
    """
    Instantiates ``cls`` from a (validated) mapping, recursing into nested
    dataclass sections so their ``__post_init__`` checks run on the final values.
    """
    kwargs: dict[str, Any] = {}
    defaults = cls()
    for name, value in patch.items():
        current = getattr(defaults, name)
        if hasattr(current, "__dataclass_fields__") and isinstance(value, dict):
            kwargs[name] = _build(type(current), value)
        else:
            kwargs[name] = value
    return cls(**kwargs)


def config_from_dict(data: dict[str, Any] | None) -> Config:
    """Validates a raw mapping and builds a Config, keeping defaults for omitted keys."""
    data = data or {}
    if not isinstance(data, dict):
        raise TypeError(f"Config root must be a mapping, got {type(data).__name__}")
    validate_keys(data, Config)
    return _build(Config, data)


def load_config(path: str | Path) -> Config:
    """Loads and validates a YAML config file."""
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(p, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    return config_from_dict(data)
