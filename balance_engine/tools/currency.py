# -*- coding: utf-8 -*-
"""
currency.py - 币种折算原子工具

把任意 (金额, 币种, 汇率快照) 折算为 USD，或把 USD 金额折算为本币。
优先使用事件自身的汇率快照，缺失或非正时回退到默认汇率。
"""

import logging
from typing import Optional

from balance_engine.config import USD
from balance_engine.models.results import Diagnostics
from balance_engine.utils import num

logger = logging.getLogger(__name__)


def resolve_rate(
    rate_snapshot: Optional[float],
    default_rate: float,
    diagnostics: Optional[Diagnostics] = None
) -> Optional[float]:
    """
    选择折算汇率

    Returns:
        快照汇率(>0) → 默认汇率(>0) → None（两者都无效）
    """
    snapshot = num(rate_snapshot) if rate_snapshot is not None else 0.0
    if snapshot > 0:
        return snapshot

    if diagnostics is not None:
        diagnostics.rate_fallbacks += 1

    default = num(default_rate)
    if default > 0:
        return default
    return None


def to_usd(
    amount: float,
    currency: str,
    rate_snapshot: Optional[float] = None,
    default_rate: float = 0.0,
    diagnostics: Optional[Diagnostics] = None,
    subject: str = ""
) -> float:
    """
    折算为 USD

    USD 金额原样返回；其他币种除以汇率。从不抛异常：
    汇率全部无效时返回 0，并计入 diagnostics.unreliable_inputs。

    Example:
        >>> to_usd(1_280_000, "UZS", None, 12800)
        100.0
    """
    value = num(amount)
    if (currency or USD).upper() == USD:
        return value

    rate = resolve_rate(rate_snapshot, default_rate, diagnostics)
    if rate is None:
        logger.warning("No usable exchange rate for %s, normalized to 0", subject or currency)
        if diagnostics is not None:
            diagnostics.unreliable_inputs += 1
            diagnostics.notes.append(f"missing exchange rate: {subject or currency}")
        return 0.0
    return value / rate


def to_local(
    amount: float,
    currency: str,
    rate_snapshot: Optional[float] = None,
    default_rate: float = 0.0,
    diagnostics: Optional[Diagnostics] = None,
    subject: str = ""
) -> float:
    """USD 金额乘以汇率折为本币；本币金额原样返回。"""
    value = num(amount)
    if (currency or USD).upper() != USD:
        return value

    rate = resolve_rate(rate_snapshot, default_rate, diagnostics)
    if rate is None:
        logger.warning("No usable exchange rate for %s, normalized to 0", subject or currency)
        if diagnostics is not None:
            diagnostics.unreliable_inputs += 1
            diagnostics.notes.append(f"missing exchange rate: {subject or currency}")
        return 0.0
    return value * rate
