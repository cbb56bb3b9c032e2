# -*- coding: utf-8 -*-
"""
guards.py - 非负保护

计算出的负余额（现金、债务、应交增值税）一律视为上游数据缺陷：
对外展示 0，原始值记入 diagnostics 以便排查。
"""

import logging
from typing import Optional

from balance_engine.models.results import Diagnostics

logger = logging.getLogger(__name__)

# 小于该值的负数视为浮点误差，不记录
_NOISE = 1e-9


def non_negative(value: float, name: str, diagnostics: Optional[Diagnostics] = None) -> float:
    """max(0, value)，负值被截断时记录到 diagnostics。"""
    if value >= 0:
        return value
    if value < -_NOISE:
        logger.info("Clamped negative %s (%.2f) to zero", name, value)
        if diagnostics is not None:
            diagnostics.record_clamp(name, value)
    return 0.0
