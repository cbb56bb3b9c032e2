#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Engine configuration."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Optional, Tuple


USD = "USD"
LOCAL_CURRENCY = "UZS"

# 本地币种兜底汇率（1 USD = 12 800 UZS）
FALLBACK_EXCHANGE_RATE = 12800.0

# 超过该金额的 USD 字段视为误录的本币金额
ANOMALY_THRESHOLD = 1_000_000.0

DEBT_EPSILON = 0.01
BALANCE_TOLERANCE = 1e-6

# 描述中出现这些词的 income 交易视为还款
REPAYMENT_KEYWORDS: Tuple[str, ...] = ("погашение", "repayment", "debt payment")

MATCH_STRATEGIES = ("fuzzy", "strict")
DEFAULT_MATCH_STRATEGY = "fuzzy"


@dataclass(frozen=True)
class EngineConfig:
    default_exchange_rate: float = FALLBACK_EXCHANGE_RATE
    anomaly_threshold: float = ANOMALY_THRESHOLD
    debt_epsilon: float = DEBT_EPSILON
    balance_tolerance: float = BALANCE_TOLERANCE
    match_strategy: str = DEFAULT_MATCH_STRATEGY
    local_currency: str = LOCAL_CURRENCY
    repayment_keywords: Tuple[str, ...] = REPAYMENT_KEYWORDS

    @classmethod
    def from_settings(cls, settings: Any = None, **overrides: Optional[Any]) -> "EngineConfig":
        """按 settings 的默认汇率构建配置，非 None 的 overrides 优先。"""
        config = cls()
        rate = getattr(settings, "default_exchange_rate", None)
        if rate:
            config = replace(config, default_exchange_rate=float(rate))
        values = {key: value for key, value in overrides.items() if value is not None}
        if values:
            config = replace(config, **values)
        return config
