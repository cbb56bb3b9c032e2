# -*- coding: utf-8 -*-
"""
往来对账与资产负债表引擎

从一份不可变的业务快照（订单、采购、费用、账本交易、客户、供应商、
存货、固定资产、设置）推导：

- 异常金额修正记录 (Correction)
- 资金余额 (CashBalances)
- 客户/供应商重算欠款 (RecalculatedDebt)
- 资产负债表与损益摘要 (BalanceSheet)

引擎是纯函数：同一快照无论记录顺序如何，结果都一致；从不修改快照，
写回由调用方负责。

使用示例:
    from balance_engine import Snapshot, reconcile

    result = reconcile(Snapshot.from_dict(payload))
    result.balance_sheet.total_assets
    result.debt_updates()

    # 原子工具
    from balance_engine.tools import to_usd, correct_amount
    to_usd(1_280_000, "UZS", None, 12800)      # 100.0
    correct_amount(2_500_000, 12800)           # 195.3125
"""

from .config import EngineConfig
from .engine import ReconciliationResult, reconcile
from .models import (
    BalanceSheet,
    CashBalances,
    Correction,
    Diagnostics,
    RecalculatedDebt,
    Snapshot,
)
from .utils import EngineError
from . import tools

__version__ = "0.1.0"
__all__ = [
    'EngineConfig',
    'EngineError',
    'ReconciliationResult',
    'reconcile',
    'BalanceSheet',
    'CashBalances',
    'Correction',
    'Diagnostics',
    'RecalculatedDebt',
    'Snapshot',
    'tools',
]
