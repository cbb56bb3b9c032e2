# -*- coding: utf-8 -*-
"""
debt.py - 往来债务对账

从订单/采购单的付款状态与账本交易两路证据推导每个客户、供应商的欠款，
避免重复计算：订单自身的 amount_paid 已反映的付款，不再从交易中扣减。

客户欠款 = Σ订单未付 + Σ旧账债务（未关联已计订单）
          − Σ直接还款（未关联已计订单） − Σ赊账退货
结果经非负保护。供应商为镜像规则：采购单 + supplier_payment，无退货。

所有汇总使用 math.fsum，结果与数组顺序无关。
"""

import logging
import math
import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from balance_engine.config import EngineConfig
from balance_engine.models.events import Counterparty, LedgerTransaction
from balance_engine.models.results import Diagnostics, RecalculatedDebt
from balance_engine.tools.currency import to_usd
from balance_engine.tools.guards import non_negative
from balance_engine.tools.matching import StrictMatcher, attribute, get_matcher, normalize_name

logger = logging.getLogger(__name__)

DEBT_STATUSES = ("unpaid", "partial")


@dataclass(frozen=True)
class DebtRules:
    """客户侧与供应商侧的差异点"""
    role: str
    record_id_attr: str
    record_name_attr: str
    payment_kinds: Tuple[str, ...]
    return_kinds: Tuple[str, ...]
    income_repayments: bool
    obligations_by_description: bool


CLIENT_RULES = DebtRules(
    role="client",
    record_id_attr="client_id",
    record_name_attr="customer_name",
    payment_kinds=("client_payment",),
    return_kinds=("client_return",),
    income_repayments=True,
    obligations_by_description=True,
)

SUPPLIER_RULES = DebtRules(
    role="supplier",
    record_id_attr="supplier_id",
    record_name_attr="supplier_name",
    payment_kinds=("supplier_payment",),
    return_kinds=(),
    income_repayments=False,
    obligations_by_description=False,
)


# ============================================================
# 判定规则
# ============================================================

def is_debt_bearing(record, epsilon: float = 0.01) -> bool:
    """赊账方式、未付/部分付款状态，或未付金额超过 epsilon"""
    return (
        record.payment_method == "debt"
        or record.payment_status in DEBT_STATUSES
        or record.open_amount > epsilon
    )


def mentions_id(text: str, record_id: str) -> bool:
    """record_id 作为完整标识出现在 text 中（ORD-1 不匹配 ORD-12）"""
    return re.search(rf"(?<!\w){re.escape(record_id)}(?!\w)", text) is not None


def references_any(tx: LedgerTransaction, ids: Set[str]) -> bool:
    """交易是否通过 order_id / related_id / 描述指向 ids 中的记录（ids 为小写）"""
    if not ids:
        return False
    if tx.order_id and tx.order_id.lower() in ids:
        return True
    if tx.related_id and tx.related_id.lower() in ids:
        return True
    description = (tx.description or "").lower()
    return any(mentions_id(description, record_id) for record_id in ids)


def is_repayment(tx: LedgerTransaction, rules: DebtRules, keywords: Sequence[str]) -> bool:
    if tx.kind in rules.payment_kinds:
        return True
    if rules.income_repayments and tx.kind == "income":
        description = (tx.description or "").lower()
        return any(keyword.lower() in description for keyword in keywords)
    return False


def obligation_owner(
    tx: LedgerTransaction,
    counterparties: Sequence[Counterparty],
    rules: DebtRules,
    matcher: StrictMatcher
) -> Optional[str]:
    """
    旧账债务归属：related_id 命中对手 id 优先；
    否则（仅客户侧）取描述中提及名称最长的对手，同长按 id。
    """
    ids = {c.id for c in counterparties}
    if tx.related_id and tx.related_id in ids:
        return tx.related_id
    if not rules.obligations_by_description:
        return None

    mentioned = [c for c in counterparties if matcher.text_mentions(tx.description, c)]
    if not mentioned:
        return None
    mentioned.sort(key=lambda c: (-max(len(normalize_name(c.name)), len(normalize_name(c.company_name))), c.id))
    return mentioned[0].id


# ============================================================
# 单个对手
# ============================================================

def reconcile_counterparty(
    counterparty: Counterparty,
    records: Iterable,
    obligations: Iterable[LedgerTransaction],
    transactions: Iterable[LedgerTransaction],
    rules: DebtRules = CLIENT_RULES,
    config: Optional[EngineConfig] = None,
    diagnostics: Optional[Diagnostics] = None
) -> RecalculatedDebt:
    """
    单个对手的欠款

    Args:
        counterparty: 客户或供应商
        records: 已归属给该对手的订单/采购单（修正视图）
        obligations: 已归属给该对手的 debt_obligation 交易
        transactions: 全部交易（修正视图）
        rules: CLIENT_RULES / SUPPLIER_RULES

    Returns:
        RecalculatedDebt，total_debt >= 0
    """
    config = config or EngineConfig()
    rate = config.default_exchange_rate

    def usd(tx: LedgerTransaction) -> float:
        return to_usd(tx.amount, tx.currency, tx.exchange_rate, rate, diagnostics, f"transaction {tx.id}")

    # 1-2. 带欠款的订单
    debt_records = [r for r in records if is_debt_bearing(r, config.debt_epsilon)]
    record_ids = {r.id.lower() for r in debt_records}
    record_debt = math.fsum(max(0.0, r.open_amount) for r in debt_records)

    # 3. 未关联已计订单的旧账债务
    counted_obligations = [
        tx for tx in obligations
        if not tx.order_id and not references_any(tx, record_ids)
    ]
    obligation_ids = {tx.id.lower() for tx in counted_obligations}
    obligation_total = math.fsum(usd(tx) for tx in counted_obligations)

    transactions = tuple(transactions)

    # 4. 直接还款（订单关联的付款已体现在订单的 amount_paid 中）
    payments = [
        tx for tx in transactions
        if is_repayment(tx, rules, config.repayment_keywords)
        and not tx.order_id
        and (
            tx.related_id == counterparty.id
            or (tx.related_id or "").lower() in obligation_ids
        )
        and not references_any(tx, record_ids)
    ]
    payment_total = math.fsum(usd(tx) for tx in payments)

    # 5. 赊账退货
    returns = [
        tx for tx in transactions
        if tx.kind in rules.return_kinds
        and tx.method == "debt"
        and tx.related_id == counterparty.id
    ]
    return_total = math.fsum(usd(tx) for tx in returns)

    # 6. 汇总并截断
    raw = math.fsum([record_debt, obligation_total, -payment_total, -return_total])
    total = non_negative(raw, f"{rules.role}_debt:{counterparty.id}", diagnostics)

    return RecalculatedDebt(
        counterparty_id=counterparty.id,
        name=counterparty.name,
        role=rules.role,
        total_debt=total,
        stored_debt=counterparty.total_debt,
        record_debt=record_debt,
        obligations=obligation_total,
        payments=payment_total,
        returns=return_total,
        record_ids=tuple(sorted(r.id for r in debt_records)),
        obligation_ids=tuple(sorted(tx.id for tx in counted_obligations)),
        changed=abs(total - counterparty.total_debt) > config.debt_epsilon,
    )


# ============================================================
# 批量
# ============================================================

def reconcile_debts(
    counterparties: Sequence[Counterparty],
    records: Iterable,
    transactions: Iterable[LedgerTransaction],
    rules: DebtRules = CLIENT_RULES,
    config: Optional[EngineConfig] = None,
    diagnostics: Optional[Diagnostics] = None
) -> List[RecalculatedDebt]:
    """
    全部对手的欠款

    每条订单/采购单与旧账债务只归属给一个对手（得分最高者），
    结果按对手 id 排序。
    """
    config = config or EngineConfig()
    matcher = get_matcher(config.match_strategy)
    transactions = tuple(transactions)
    counterparties = tuple(counterparties)

    by_owner = attribute(records, counterparties, rules.record_id_attr, rules.record_name_attr, matcher)

    obligations_by_owner: Dict[str, List[LedgerTransaction]] = {c.id: [] for c in counterparties}
    for tx in transactions:
        if tx.kind != "debt_obligation":
            continue
        owner = obligation_owner(tx, counterparties, rules, matcher)
        if owner is not None:
            obligations_by_owner[owner].append(tx)

    unattributed = [r for r in by_owner.get("", []) if is_debt_bearing(r, config.debt_epsilon)]
    if unattributed:
        open_total = math.fsum(max(0.0, r.open_amount) for r in unattributed)
        logger.info("%d %s records with open balance %.2f match no %s",
                    len(unattributed), rules.role, open_total, rules.role)
        if diagnostics is not None:
            diagnostics.notes.append(
                f"unattributed {rules.role} records: {len(unattributed)} (open {open_total:.2f})"
            )

    debts = [
        reconcile_counterparty(
            counterparty,
            by_owner.get(counterparty.id, []),
            obligations_by_owner.get(counterparty.id, []),
            transactions,
            rules,
            config,
            diagnostics,
        )
        for counterparty in counterparties
    ]
    debts.sort(key=lambda d: d.counterparty_id)
    return debts


def reconcile_clients(clients, orders, transactions, config=None, diagnostics=None) -> List[RecalculatedDebt]:
    return reconcile_debts(clients, orders, transactions, CLIENT_RULES, config, diagnostics)


def reconcile_suppliers(suppliers, purchases, transactions, config=None, diagnostics=None) -> List[RecalculatedDebt]:
    return reconcile_debts(suppliers, purchases, transactions, SUPPLIER_RULES, config, diagnostics)
