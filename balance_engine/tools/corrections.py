# -*- coding: utf-8 -*-
"""
corrections.py - 异常金额修正

识别反复出现的录入错误：操作员把本币金额填进了 USD 字段，
导致 USD 金额大得离谱。生成修正后的平行视图与修正记录，原始记录保持不变。
"""

import logging
from dataclasses import dataclass, replace
from typing import Iterable, List, Optional, Tuple

from balance_engine.config import ANOMALY_THRESHOLD, USD
from balance_engine.models.events import Expense, LedgerTransaction, SaleOrder
from balance_engine.models.results import Correction, Diagnostics

logger = logging.getLogger(__name__)

CORRECTION_REASON = "amount exceeds plausible USD magnitude"

# 订单上所有以 USD 计价的金额字段
ORDER_USD_FIELDS = ("subtotal_amount", "vat_amount", "total_amount", "amount_paid")


@dataclass(frozen=True)
class CorrectedView:
    """修正后的平行视图，下游组件只消费这里的记录"""
    orders: Tuple[SaleOrder, ...]
    transactions: Tuple[LedgerTransaction, ...]
    expenses: Tuple[Expense, ...]
    corrections: Tuple[Correction, ...]


def correct_amount(
    amount: float,
    default_rate: float,
    threshold: float = ANOMALY_THRESHOLD
) -> Optional[float]:
    """
    单个 USD 金额的修正规则

    |amount| > threshold 且 amount / default_rate 回落到阈值以内时，
    返回修正值；否则返回 None（无需修正或无法可靠修正）。
    修正值必然 <= threshold，再次修正不会触发。

    Example:
        >>> correct_amount(2_500_000, 12800)
        195.3125
    """
    if abs(amount) <= threshold:
        return None
    if not default_rate or default_rate <= 0:
        return None
    candidate = amount / default_rate
    if abs(candidate) > threshold:
        return None
    return candidate


def _check(
    subject_id: str,
    kind: str,
    field_name: str,
    amount: float,
    default_rate: float,
    threshold: float,
    found: List[Correction],
    diagnostics: Optional[Diagnostics]
) -> float:
    corrected = correct_amount(amount, default_rate, threshold)
    if corrected is not None:
        logger.warning(
            "Auto-correction %s %s.%s: %.2f -> %.2f USD (assumed local currency entry)",
            kind, subject_id, field_name, amount, corrected,
        )
        found.append(Correction(
            id=subject_id,
            kind=kind,
            field=field_name,
            reason=CORRECTION_REASON,
            original_amount=amount,
            corrected_amount=corrected,
        ))
        return corrected

    if abs(amount) > threshold:
        logger.warning("Suspiciously large USD amount left as is: %s %s.%s = %.2f",
                       kind, subject_id, field_name, amount)
        if diagnostics is not None:
            diagnostics.suspicious_amounts.append({
                "id": subject_id,
                "type": kind,
                "field": field_name,
                "amount": amount,
            })
    return amount


def correct_order(
    order: SaleOrder,
    default_rate: float,
    threshold: float = ANOMALY_THRESHOLD,
    found: Optional[List[Correction]] = None,
    diagnostics: Optional[Diagnostics] = None
) -> SaleOrder:
    found = found if found is not None else []
    changes = {}
    for field_name in ORDER_USD_FIELDS:
        amount = getattr(order, field_name)
        value = _check(order.id, "order", field_name, amount, default_rate, threshold, found, diagnostics)
        if value != amount:
            changes[field_name] = value
    return replace(order, **changes) if changes else order


def correct_transaction(
    tx: LedgerTransaction,
    default_rate: float,
    threshold: float = ANOMALY_THRESHOLD,
    found: Optional[List[Correction]] = None,
    diagnostics: Optional[Diagnostics] = None
) -> LedgerTransaction:
    found = found if found is not None else []
    if (tx.currency or USD).upper() != USD:
        return tx
    value = _check(tx.id, "transaction", "amount", tx.amount, default_rate, threshold, found, diagnostics)
    return replace(tx, amount=value) if value != tx.amount else tx


def correct_expense(
    expense: Expense,
    default_rate: float,
    threshold: float = ANOMALY_THRESHOLD,
    found: Optional[List[Correction]] = None,
    diagnostics: Optional[Diagnostics] = None
) -> Expense:
    found = found if found is not None else []
    if (expense.currency or USD).upper() != USD:
        return expense
    value = _check(expense.id, "expense", "amount", expense.amount, default_rate, threshold, found, diagnostics)
    return replace(expense, amount=value) if value != expense.amount else expense


def apply_corrections(
    orders: Iterable[SaleOrder],
    transactions: Iterable[LedgerTransaction],
    expenses: Iterable[Expense],
    default_rate: float,
    threshold: float = ANOMALY_THRESHOLD,
    diagnostics: Optional[Diagnostics] = None
) -> CorrectedView:
    """
    扫描三类记录，生成修正视图

    修正记录按 (类型, id, 字段) 排序，结果与输入顺序无关。
    对修正视图再次调用本函数不会产生新的修正。
    """
    found: List[Correction] = []
    corrected_orders = tuple(
        correct_order(o, default_rate, threshold, found, diagnostics) for o in orders
    )
    corrected_transactions = tuple(
        correct_transaction(t, default_rate, threshold, found, diagnostics) for t in transactions
    )
    corrected_expenses = tuple(
        correct_expense(e, default_rate, threshold, found, diagnostics) for e in expenses
    )
    found.sort(key=lambda c: (c.kind, c.id, c.field, c.original_amount))
    return CorrectedView(
        orders=corrected_orders,
        transactions=corrected_transactions,
        expenses=corrected_expenses,
        corrections=tuple(found),
    )
