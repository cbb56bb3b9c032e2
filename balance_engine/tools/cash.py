# -*- coding: utf-8 -*-
"""
cash.py - 资金余额汇总

按 (支付方式, 币种) 分桶汇总现金/银行/刷卡余额：
    现金(USD)、现金(本币)、银行(本币)、刷卡(本币)

余额 = Σ订单流入 + Σ独立收款 − Σ费用 − Σ供应商付款 − Σ退款
所有金额取自修正视图；最终余额经非负保护。
"""

import logging
import math
import re
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from balance_engine.config import FALLBACK_EXCHANGE_RATE, USD
from balance_engine.models.events import Expense, LedgerTransaction, SaleOrder
from balance_engine.models.results import CashBalances, Diagnostics
from balance_engine.tools.currency import to_local, to_usd
from balance_engine.tools.guards import non_negative

logger = logging.getLogger(__name__)

CASH_USD = ("cash", USD)
CASH_LOCAL = ("cash", "local")
BANK_LOCAL = ("bank", "local")
CARD_LOCAL = ("card", "local")
BUCKETS = (CASH_USD, CASH_LOCAL, BANK_LOCAL, CARD_LOCAL)

INFLOW_KINDS = ("client_payment", "income")
OUTFLOW_KINDS = ("supplier_payment", "client_return", "client_refund", "expense")

ORDER_ID_PATTERN = re.compile(r"ORD-\d+", re.IGNORECASE)


def related_order_id(tx: LedgerTransaction, order_ids: Iterable[str]) -> Optional[str]:
    """
    交易关联的订单 id

    优先 order_id，其次 related_id（需为已知订单），最后从描述中提取 ORD-xxx。
    """
    known = order_ids if isinstance(order_ids, (set, frozenset, dict)) else set(order_ids)
    if tx.order_id:
        return tx.order_id
    if tx.related_id and tx.related_id in known:
        return tx.related_id
    match = ORDER_ID_PATTERN.search(tx.description or "")
    if match and match.group(0) in known:
        return match.group(0)
    return None


def _order_local_total(order: SaleOrder, default_rate: float, diagnostics: Optional[Diagnostics]) -> float:
    if order.total_amount_local:
        return order.total_amount_local
    return to_local(order.total_amount, USD, order.exchange_rate, default_rate,
                    diagnostics, subject=f"order {order.id}")


def _bucket_for(method: str, currency: str) -> Optional[Tuple[str, str]]:
    method = (method or "").lower()
    if method == "cash":
        return CASH_USD if (currency or USD).upper() == USD else CASH_LOCAL
    if method == "bank":
        return BANK_LOCAL
    if method == "card":
        return CARD_LOCAL
    return None


def _amount_for_bucket(
    bucket: Tuple[str, str],
    amount: float,
    currency: str,
    rate_snapshot: Optional[float],
    default_rate: float,
    diagnostics: Optional[Diagnostics],
    subject: str
) -> float:
    if bucket == CASH_USD:
        return to_usd(amount, currency, rate_snapshot, default_rate, diagnostics, subject)
    return to_local(amount, currency, rate_snapshot, default_rate, diagnostics, subject)


def collect_flows(
    orders: Iterable[SaleOrder],
    transactions: Iterable[LedgerTransaction],
    expenses: Iterable[Expense],
    default_rate: float = FALLBACK_EXCHANGE_RATE,
    diagnostics: Optional[Diagnostics] = None
) -> Dict[Tuple[str, str], List[float]]:
    """
    收集每个资金桶的带符号流水

    Returns:
        {(method, currency): [+流入, -流出, ...]}
    """
    orders = tuple(orders)
    flows: Dict[Tuple[str, str], List[float]] = {bucket: [] for bucket in BUCKETS}
    orders_by_id: Mapping[str, SaleOrder] = {o.id: o for o in orders}

    # 1. 订单收入（赊账、混合支付订单的款项走交易）
    for order in orders:
        method = (order.payment_method or "").lower()
        if method == "cash":
            if (order.payment_currency or USD).upper() == USD:
                paid = order.amount_paid if order.amount_paid > 0 else order.total_amount
                flows[CASH_USD].append(paid)
            else:
                flows[CASH_LOCAL].append(_order_local_total(order, default_rate, diagnostics))
        elif method == "bank":
            flows[BANK_LOCAL].append(_order_local_total(order, default_rate, diagnostics))
        elif method == "card":
            flows[CARD_LOCAL].append(_order_local_total(order, default_rate, diagnostics))

    # 2. 交易
    for tx in transactions:
        if tx.kind in INFLOW_KINDS:
            order_id = related_order_id(tx, orders_by_id)
            order = orders_by_id.get(order_id) if order_id else None
            # 普通订单的收款已计入订单本身，只计混合支付订单与独立还款
            if order is not None and order.payment_method != "mixed":
                continue
            sign = 1.0
        elif tx.kind in OUTFLOW_KINDS:
            sign = -1.0
        else:
            continue

        bucket = _bucket_for(tx.method, tx.currency)
        if bucket is None:
            continue
        amount = _amount_for_bucket(bucket, tx.amount, tx.currency, tx.exchange_rate,
                                    default_rate, diagnostics, f"transaction {tx.id}")
        flows[bucket].append(sign * amount)

    # 3. 费用
    for expense in expenses:
        bucket = _bucket_for(expense.payment_method, expense.currency)
        if bucket is None:
            continue
        amount = _amount_for_bucket(bucket, expense.amount, expense.currency, expense.exchange_rate,
                                    default_rate, diagnostics, f"expense {expense.id}")
        flows[bucket].append(-amount)

    return flows


def calc_cash_balances(
    orders: Iterable[SaleOrder],
    transactions: Iterable[LedgerTransaction],
    expenses: Iterable[Expense],
    default_rate: float = FALLBACK_EXCHANGE_RATE,
    diagnostics: Optional[Diagnostics] = None
) -> CashBalances:
    """
    资金余额

    Args:
        orders / transactions / expenses: 修正视图中的记录
        default_rate: 默认汇率（本币/USD），事件无汇率快照时使用

    Returns:
        CashBalances(cash_usd, cash_local, bank_local, card_local)，均 >= 0

    Example:
        >>> calc_cash_balances(
        ...     [SaleOrder(id="ORD-1", payment_method="cash", total_amount=500, amount_paid=500)],
        ...     [],
        ...     [Expense(id="EXP-1", amount=120, payment_method="cash")],
        ... ).cash_usd
        380.0
    """
    flows = collect_flows(orders, transactions, expenses, default_rate, diagnostics)
    raw = {bucket: math.fsum(values) for bucket, values in flows.items()}
    logger.debug("Raw cash buckets: %s", raw)
    return CashBalances(
        cash_usd=non_negative(raw[CASH_USD], "cash_usd", diagnostics),
        cash_local=non_negative(raw[CASH_LOCAL], "cash_local", diagnostics),
        bank_local=non_negative(raw[BANK_LOCAL], "bank_local", diagnostics),
        card_local=non_negative(raw[CARD_LOCAL], "card_local", diagnostics),
    )
