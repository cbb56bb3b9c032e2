# -*- coding: utf-8 -*-
"""
原子工具模块

独立的、可组合的对账计算工具，引擎按依赖顺序调用。

模块结构:
- currency: 币种折算（3个）
- guards: 非负保护（1个）
- corrections: 异常金额修正（5个）
- cash: 资金余额（2个）
- matching: 交易对手归属（5个）
- debt: 往来债务（4个）
- composer: 资产负债表合成（6个）
"""

# 币种折算
from .currency import (
    resolve_rate,
    to_usd,
    to_local,
)

# 非负保护
from .guards import non_negative

# 异常金额修正
from .corrections import (
    CorrectedView,
    correct_amount,
    correct_order,
    correct_transaction,
    correct_expense,
    apply_corrections,
)

# 资金余额
from .cash import (
    collect_flows,
    calc_cash_balances,
)

# 交易对手归属
from .matching import (
    StrictMatcher,
    FuzzyMatcher,
    get_matcher,
    best_match,
    attribute,
)

# 往来债务
from .debt import (
    DebtRules,
    CLIENT_RULES,
    SUPPLIER_RULES,
    reconcile_counterparty,
    reconcile_debts,
    reconcile_clients,
    reconcile_suppliers,
)

# 资产负债表合成
from .composer import (
    calc_inventory,
    calc_fixed_assets,
    calc_vat,
    calc_profit_and_loss,
    accumulated_equity,
    compose_balance_sheet,
)

__all__ = [
    # currency
    'resolve_rate',
    'to_usd',
    'to_local',
    # guards
    'non_negative',
    # corrections
    'CorrectedView',
    'correct_amount',
    'correct_order',
    'correct_transaction',
    'correct_expense',
    'apply_corrections',
    # cash
    'collect_flows',
    'calc_cash_balances',
    # matching
    'StrictMatcher',
    'FuzzyMatcher',
    'get_matcher',
    'best_match',
    'attribute',
    # debt
    'DebtRules',
    'CLIENT_RULES',
    'SUPPLIER_RULES',
    'reconcile_counterparty',
    'reconcile_debts',
    'reconcile_clients',
    'reconcile_suppliers',
    # composer
    'calc_inventory',
    'calc_fixed_assets',
    'calc_vat',
    'calc_profit_and_loss',
    'accumulated_equity',
    'compose_balance_sheet',
]
