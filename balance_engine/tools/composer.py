# -*- coding: utf-8 -*-
"""
composer.py - 资产负债表合成

资产 = 固定资产 + 存货 + 现金 + 银行 + 刷卡 + 应收账款
负债与权益 = 股本 + 固定资产基金 + 留存收益 + 应交增值税 + 应付账款 + 固定资产应付款

留存收益作为轧差项求解，因此两边按构造相等。
除留存收益外，所有输出均为非负数。合成过程从不抛异常。
"""

import logging
import math
from typing import Dict, Iterable, Optional, Sequence, Tuple

from balance_engine.config import BALANCE_TOLERANCE, FALLBACK_EXCHANGE_RATE
from balance_engine.models.events import (
    PNL_BUCKETS,
    Expense,
    FixedAsset,
    Product,
    Purchase,
    SaleOrder,
    Settings,
)
from balance_engine.models.results import (
    BalanceSheet,
    CashBalances,
    Correction,
    Diagnostics,
    ProfitAndLoss,
    RecalculatedDebt,
)
from balance_engine.tools.currency import to_usd
from balance_engine.tools.guards import non_negative

logger = logging.getLogger(__name__)

DEFAULT_WAREHOUSES = ("main", "cloud")


# ============================================================
# 资产
# ============================================================

def calc_inventory(
    products: Iterable[Product],
    diagnostics: Optional[Diagnostics] = None
) -> Tuple[float, Dict[str, float]]:
    """
    存货价值（按成本价），按仓库拆分

    超卖造成的负库存按仓库截断为 0，原始值记入 diagnostics。

    Returns:
        (总值, {仓库: 价值})，main / cloud 两个仓库始终存在
    """
    lines: Dict[str, list] = {name: [] for name in DEFAULT_WAREHOUSES}
    for product in products:
        warehouse = product.warehouse or "main"
        lines.setdefault(warehouse, []).append(product.quantity * product.cost_price)
    by_warehouse = {
        name: non_negative(math.fsum(values), f"inventory_{name}", diagnostics)
        for name, values in sorted(lines.items())
    }
    return math.fsum(by_warehouse.values()), by_warehouse


def calc_fixed_assets(fixed_assets: Iterable[FixedAsset]) -> Dict[str, float]:
    """固定资产账面价值、未付款、基金"""
    fixed_assets = tuple(fixed_assets)
    value = math.fsum(a.current_value for a in fixed_assets)
    payable = math.fsum(a.unpaid_amount for a in fixed_assets)
    return {
        "fixed_assets_value": value,
        "fixed_assets_payable": payable,
        "fixed_assets_fund": max(0.0, value - payable),
    }


# ============================================================
# 增值税
# ============================================================

def purchase_vat_usd(purchase: Purchase, default_rate: float, diagnostics: Optional[Diagnostics] = None) -> float:
    """采购进项税（USD）：显式 USD 税额优先，其次本币税额 / 汇率快照"""
    if purchase.vat_amount is not None:
        return purchase.vat_amount
    local_vat = purchase.total_vat_amount_local
    if local_vat <= 0:
        local_vat = math.fsum(item.vat_amount for item in purchase.items)
    if local_vat <= 0:
        return 0.0
    return to_usd(local_vat, "local", purchase.exchange_rate, default_rate,
                  diagnostics, subject=f"purchase {purchase.id}")


def calc_vat(
    orders: Iterable[SaleOrder],
    purchases: Iterable[Purchase],
    default_rate: float = FALLBACK_EXCHANGE_RATE,
    diagnostics: Optional[Diagnostics] = None
) -> Dict[str, float]:
    """
    增值税

    Returns:
        {"vat_output": 销项, "vat_input": 进项, "vat_liability": max(0, 销项 − 进项)}

    Example:
        >>> calc_vat([SaleOrder(id="o", vat_amount=50)], [Purchase(id="p", vat_amount=70)])
        {'vat_output': 50.0, 'vat_input': 70.0, 'vat_liability': 0.0}
    """
    vat_output = math.fsum(o.vat_amount for o in orders)
    vat_input = math.fsum(purchase_vat_usd(p, default_rate, diagnostics) for p in purchases)
    return {
        "vat_output": vat_output,
        "vat_input": vat_input,
        # 进项大于销项时不列示为负债
        "vat_liability": non_negative(vat_output - vat_input, "vat_liability"),
    }


# ============================================================
# 损益摘要
# ============================================================

def calc_profit_and_loss(
    orders: Iterable[SaleOrder],
    expenses: Iterable[Expense],
    fixed_assets: Iterable[FixedAsset],
    settings: Optional[Settings] = None,
    default_rate: float = FALLBACK_EXCHANGE_RATE,
    diagnostics: Optional[Diagnostics] = None
) -> ProfitAndLoss:
    """
    损益摘要

    净利润 = (收入 − 销售成本) − 费用 − 累计折旧
    费用按 settings.expense_categories 拆分为 administrative / operational / commercial。
    """
    settings = settings or Settings()
    orders = tuple(orders)

    revenue = math.fsum(o.subtotal_amount for o in orders)
    cogs = math.fsum(item.quantity * item.cost_at_sale for o in orders for item in o.items)

    buckets: Dict[str, list] = {name: [] for name in PNL_BUCKETS}
    for expense in expenses:
        amount = to_usd(expense.amount, expense.currency, expense.exchange_rate, default_rate,
                        diagnostics, subject=f"expense {expense.id}")
        buckets[settings.pnl_bucket(expense.category)].append(amount)
    opex = {name: math.fsum(values) for name, values in buckets.items()}
    total_expenses = math.fsum(opex.values())

    depreciation = math.fsum(a.accumulated_depreciation for a in fixed_assets)
    gross_profit = revenue - cogs

    return ProfitAndLoss(
        revenue=revenue,
        cogs=cogs,
        gross_profit=gross_profit,
        total_expenses=total_expenses,
        opex_by_category=opex,
        total_depreciation=depreciation,
        net_profit=gross_profit - total_expenses - depreciation,
    )


# ============================================================
# 合成
# ============================================================

def accumulated_equity(purchases: Iterable[Purchase]) -> float:
    """未配置股本时，以采购已付款累计作为投入存货的资本"""
    return math.fsum(p.amount_paid for p in purchases)


def compose_balance_sheet(
    products: Iterable[Product],
    fixed_assets: Iterable[FixedAsset],
    cash: CashBalances,
    client_debts: Sequence[RecalculatedDebt],
    supplier_debts: Sequence[RecalculatedDebt],
    orders: Iterable[SaleOrder],
    purchases: Iterable[Purchase],
    expenses: Iterable[Expense] = (),
    settings: Optional[Settings] = None,
    corrections: Sequence[Correction] = (),
    default_rate: float = FALLBACK_EXCHANGE_RATE,
    tolerance: float = BALANCE_TOLERANCE,
    diagnostics: Optional[Diagnostics] = None
) -> BalanceSheet:
    """
    合成资产负债表

    Args:
        products / fixed_assets: 存货与固定资产
        cash: calc_cash_balances() 的结果
        client_debts / supplier_debts: reconcile_clients() / reconcile_suppliers() 的结果
        orders / purchases / expenses: 修正视图中的记录（增值税、损益）
        settings: 设置（股本、费用分类）
        corrections: 本次运行的修正记录
        default_rate: 资金折算 USD 的当前汇率

    Returns:
        BalanceSheet
    """
    settings = settings or Settings()
    fixed_assets = tuple(fixed_assets)
    orders = tuple(orders)
    purchases = tuple(purchases)

    # 资产
    inventory_value, inventory_by_warehouse = calc_inventory(products, diagnostics)
    fa = calc_fixed_assets(fixed_assets)

    total_cash_usd = cash.cash_usd + to_usd(cash.cash_local, "local", None, default_rate, diagnostics, "cash_local")
    net_bank_usd = to_usd(cash.bank_local, "local", None, default_rate, diagnostics, "bank_local")
    net_card_usd = to_usd(cash.card_local, "local", None, default_rate, diagnostics, "card_local")
    total_liquid_assets = math.fsum([total_cash_usd, net_bank_usd, net_card_usd])

    accounts_receivable = math.fsum(d.total_debt for d in client_debts)

    total_assets = math.fsum([
        fa["fixed_assets_value"],
        inventory_value,
        total_cash_usd,
        net_bank_usd,
        net_card_usd,
        accounts_receivable,
    ])

    # 负债与权益
    vat = calc_vat(orders, purchases, default_rate, diagnostics)
    accounts_payable = math.fsum(d.total_debt for d in supplier_debts)
    equity = settings.equity if settings.equity is not None else accumulated_equity(purchases)
    equity = non_negative(equity, "equity", diagnostics)

    liabilities = [
        equity,
        fa["fixed_assets_fund"],
        vat["vat_liability"],
        accounts_payable,
        fa["fixed_assets_payable"],
    ]
    retained_earnings = total_assets - math.fsum(liabilities)
    total_passives = math.fsum(liabilities + [retained_earnings])

    balance_diff = total_assets - total_passives
    is_balanced = abs(balance_diff) <= tolerance
    if not is_balanced:
        logger.warning("Balance sheet diverges by %.6f (assets %.2f, passives %.2f)",
                       balance_diff, total_assets, total_passives)
        if diagnostics is not None:
            diagnostics.notes.append(f"unbalanced sheet: diff {balance_diff:.6f}")

    pnl = calc_profit_and_loss(orders, expenses, fixed_assets, settings, default_rate, diagnostics)

    return BalanceSheet(
        inventory_value=inventory_value,
        inventory_by_warehouse=inventory_by_warehouse,
        cash_usd=cash.cash_usd,
        cash_local=cash.cash_local,
        bank_local=cash.bank_local,
        card_local=cash.card_local,
        total_cash_usd=total_cash_usd,
        net_bank_usd=net_bank_usd,
        net_card_usd=net_card_usd,
        total_liquid_assets=total_liquid_assets,
        fixed_assets_value=fa["fixed_assets_value"],
        accounts_receivable=accounts_receivable,
        total_assets=total_assets,
        vat_output=vat["vat_output"],
        vat_input=vat["vat_input"],
        vat_liability=vat["vat_liability"],
        accounts_payable=accounts_payable,
        fixed_assets_payable=fa["fixed_assets_payable"],
        equity=equity,
        fixed_assets_fund=fa["fixed_assets_fund"],
        retained_earnings=retained_earnings,
        total_passives=total_passives,
        exchange_rate=default_rate,
        profit_and_loss=pnl,
        corrections=tuple(corrections),
        balance_diff=balance_diff,
        is_balanced=is_balanced,
    )
