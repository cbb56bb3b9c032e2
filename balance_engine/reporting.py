#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Reports built on top of a reconciliation result.

Input checks, result diagnosis, field explanations and per-client debt
reports (open items with FIFO allocation, chronological history).
"""

from __future__ import annotations

import math
from collections import Counter
from typing import Any, Dict, List, Optional

from balance_engine.config import EngineConfig
from balance_engine.engine import ReconciliationResult
from balance_engine.models import Counterparty, LedgerTransaction, SaleOrder, Snapshot
from balance_engine.models.events import TRANSACTION_KINDS
from balance_engine.tools.corrections import apply_corrections
from balance_engine.tools.currency import to_usd
from balance_engine.tools.debt import CLIENT_RULES, is_repayment, references_any
from balance_engine.tools.matching import best_match, get_matcher
from balance_engine.utils import EngineError

KNOWN_METHODS = ("cash", "bank", "card", "debt", "mixed")

# 除留存收益外，资产负债表字段均应非负
NON_NEGATIVE_FIELDS = (
    "inventory_value", "cash_usd", "cash_local", "bank_local", "card_local",
    "total_cash_usd", "net_bank_usd", "net_card_usd", "total_liquid_assets",
    "fixed_assets_value", "accounts_receivable", "total_assets",
    "vat_output", "vat_input", "vat_liability", "accounts_payable",
    "fixed_assets_payable", "equity", "fixed_assets_fund", "total_passives",
)


# ============================================================
# 输入校验
# ============================================================

def check_snapshot(snapshot: Snapshot, config: Optional[EngineConfig] = None) -> Dict[str, Any]:
    """校验快照数据是否合理（不影响对账，对账始终会降级完成）"""
    config = config or EngineConfig.from_settings(snapshot.settings)
    errors: List[str] = []
    warnings: List[str] = []

    if snapshot.settings.default_exchange_rate <= 0:
        warnings.append(f"未设置默认汇率，使用兜底汇率 {config.default_exchange_rate}")

    for label, records in (
        ("orders", snapshot.orders),
        ("purchases", snapshot.purchases),
        ("expenses", snapshot.expenses),
        ("transactions", snapshot.transactions),
        ("clients", snapshot.clients),
        ("suppliers", snapshot.suppliers),
    ):
        missing = sum(1 for r in records if not r.id)
        if missing:
            errors.append(f"{label}: {missing} 条记录缺少 id")
        duplicates = [rid for rid, count in Counter(r.id for r in records if r.id).items() if count > 1]
        if duplicates:
            errors.append(f"{label}: 重复 id {sorted(duplicates)}")

    for order in snapshot.orders:
        if order.payment_method not in KNOWN_METHODS:
            warnings.append(f"订单 {order.id} 支付方式未知: {order.payment_method}")
        if order.amount_paid > order.total_amount + config.debt_epsilon:
            warnings.append(f"订单 {order.id} 已付({order.amount_paid})超过总额({order.total_amount})")
        if abs(order.total_amount) > config.anomaly_threshold:
            warnings.append(f"订单 {order.id} 金额({order.total_amount})疑似误录本币")

    for tx in snapshot.transactions:
        if tx.kind not in TRANSACTION_KINDS:
            warnings.append(f"交易 {tx.id} 类型未知: {tx.kind}")
        if tx.amount < 0:
            warnings.append(f"交易 {tx.id} 金额为负数: {tx.amount}")
        if tx.currency.upper() != "USD" and not (tx.exchange_rate and tx.exchange_rate > 0):
            warnings.append(f"交易 {tx.id} 缺少汇率快照，将使用默认汇率")

    for expense in snapshot.expenses:
        if expense.currency.upper() != "USD" and not (expense.exchange_rate and expense.exchange_rate > 0):
            warnings.append(f"费用 {expense.id} 缺少汇率快照，将使用默认汇率")

    return {
        "status": "error" if errors else ("warning" if warnings else "ok"),
        "errors": errors,
        "warnings": warnings,
        "checked_records": sum(len(records) for records in (
            snapshot.orders, snapshot.purchases, snapshot.expenses,
            snapshot.transactions, snapshot.clients, snapshot.suppliers,
        )),
    }


# ============================================================
# 结果诊断
# ============================================================

def diagnose(result: ReconciliationResult, config: Optional[EngineConfig] = None) -> Dict[str, Any]:
    """
    诊断对账结果

    检查：资产 = 负债 + 权益、输出字段非负、债务非负、修正幂等。
    """
    sheet = result.balance_sheet
    config = config or result.config
    tolerance = config.balance_tolerance
    checks = []

    diff = sheet.total_assets - sheet.total_passives
    checks.append({
        "item": "balance_identity",
        "formula": "total_assets − total_passives",
        "value": diff,
        "match": abs(diff) <= tolerance,
    })

    negative_fields = [name for name in NON_NEGATIVE_FIELDS if getattr(sheet, name) < 0]
    checks.append({
        "item": "non_negative_fields",
        "value": negative_fields,
        "match": not negative_fields,
    })

    negative_debts = [d.counterparty_id for d in result.debts if d.total_debt < 0]
    checks.append({
        "item": "non_negative_debts",
        "value": negative_debts,
        "match": not negative_debts,
    })

    view = result.view
    again = apply_corrections(view.orders, view.transactions, view.expenses,
                              sheet.exchange_rate, config.anomaly_threshold)
    checks.append({
        "item": "correction_idempotence",
        "value": len(again.corrections),
        "match": not again.corrections,
    })

    warnings = []
    if sheet.retained_earnings < 0:
        warnings.append(f"留存收益为负: {sheet.retained_earnings:.2f}")
    if result.diagnostics.unreliable_inputs:
        warnings.append(f"{result.diagnostics.unreliable_inputs} 笔金额因缺少汇率被计为 0")
    for clamp in result.diagnostics.clamped:
        warnings.append(f"{clamp['name']} 计算值为负({clamp['raw_value']})，已按 0 列示")

    all_match = all(c["match"] for c in checks)
    return {
        "status": "ok" if all_match else "mismatch",
        "all_match": all_match,
        "checks": checks,
        "warnings": warnings,
        "summary": {
            "total_assets": round(sheet.total_assets, 2),
            "total_passives": round(sheet.total_passives, 2),
            "corrections": len(result.corrections),
            "is_balanced": sheet.is_balanced,
        },
    }


# ============================================================
# 追溯解释
# ============================================================

def explain(result: ReconciliationResult, field: str) -> Dict[str, Any]:
    """追溯解释某个字段的计算过程"""
    s = result.balance_sheet
    pnl = s.profit_and_loss
    r2 = lambda value: round(value, 2)  # noqa: E731

    explanations = {
        "total_assets": {
            "formula": "总资产 = 固定资产 + 存货 + 现金 + 银行 + 刷卡 + 应收账款",
            "components": {
                "fixed_assets_value": r2(s.fixed_assets_value),
                "inventory_value": r2(s.inventory_value),
                "total_cash_usd": r2(s.total_cash_usd),
                "net_bank_usd": r2(s.net_bank_usd),
                "net_card_usd": r2(s.net_card_usd),
                "accounts_receivable": r2(s.accounts_receivable),
            },
            "value": r2(s.total_assets),
        },
        "total_passives": {
            "formula": "总负债与权益 = 股本 + 固定资产基金 + 留存收益 + 应交增值税 + 应付账款 + 固定资产应付款",
            "components": {
                "equity": r2(s.equity),
                "fixed_assets_fund": r2(s.fixed_assets_fund),
                "retained_earnings": r2(s.retained_earnings),
                "vat_liability": r2(s.vat_liability),
                "accounts_payable": r2(s.accounts_payable),
                "fixed_assets_payable": r2(s.fixed_assets_payable),
            },
            "value": r2(s.total_passives),
        },
        "retained_earnings": {
            "formula": "留存收益 = 总资产 − (股本 + 固定资产基金 + 应交增值税 + 应付账款 + 固定资产应付款)",
            "components": {
                "total_assets": r2(s.total_assets),
                "equity": r2(s.equity),
                "fixed_assets_fund": r2(s.fixed_assets_fund),
                "vat_liability": r2(s.vat_liability),
                "accounts_payable": r2(s.accounts_payable),
                "fixed_assets_payable": r2(s.fixed_assets_payable),
            },
            "value": r2(s.retained_earnings),
        },
        "vat_liability": {
            "formula": "应交增值税 = max(0, 销项 − 进项)",
            "components": {"vat_output": r2(s.vat_output), "vat_input": r2(s.vat_input)},
            "value": r2(s.vat_liability),
        },
        "total_cash_usd": {
            "formula": "现金(USD) = 现金USD + 现金本币 / 汇率",
            "components": {
                "cash_usd": r2(s.cash_usd),
                "cash_local": r2(s.cash_local),
                "exchange_rate": s.exchange_rate,
            },
            "value": r2(s.total_cash_usd),
        },
        "accounts_receivable": {
            "formula": "应收账款 = Σ 客户重算欠款",
            "components": {d.counterparty_id: r2(d.total_debt) for d in result.client_debts if d.total_debt},
            "value": r2(s.accounts_receivable),
        },
        "accounts_payable": {
            "formula": "应付账款 = Σ 供应商重算欠款",
            "components": {d.counterparty_id: r2(d.total_debt) for d in result.supplier_debts if d.total_debt},
            "value": r2(s.accounts_payable),
        },
        "inventory_value": {
            "formula": "存货 = Σ 数量 × 成本价",
            "components": {k: r2(v) for k, v in s.inventory_by_warehouse.items()},
            "value": r2(s.inventory_value),
        },
        "net_profit": {
            "formula": "净利润 = 收入 − 销售成本 − 费用 − 累计折旧",
            "components": {
                "revenue": r2(pnl.revenue),
                "cogs": r2(pnl.cogs),
                "total_expenses": r2(pnl.total_expenses),
                "total_depreciation": r2(pnl.total_depreciation),
            },
            "value": r2(pnl.net_profit),
        },
    }

    if field not in explanations:
        raise EngineError(
            "UNSUPPORTED_FIELD",
            f"不支持的字段: {field}",
            {"supported": sorted(explanations)},
        )
    return {"field": field, **explanations[field]}


# ============================================================
# 客户债务明细
# ============================================================

def _usd(tx: LedgerTransaction, rate: float) -> float:
    return to_usd(tx.amount, tx.currency, tx.exchange_rate, rate)


def _payment_record(tx: LedgerTransaction, rate: float) -> Dict[str, Any]:
    return {
        "id": tx.id,
        "date": tx.date,
        "amount": tx.amount,
        "amount_usd": round(_usd(tx, rate), 2),
        "currency": tx.currency,
        "method": tx.method,
    }


def client_purchases_total(client: Counterparty, orders: List[SaleOrder], clients: List[Counterparty],
                           config: Optional[EngineConfig] = None) -> float:
    """归属给该客户的全部订单金额"""
    config = config or EngineConfig()
    matcher = get_matcher(config.match_strategy)
    return math.fsum(
        o.total_amount for o in orders
        if best_match(o.client_id, o.customer_name, clients, matcher)[0] == client
    )


def _debt_context(result: ReconciliationResult, client_id: str):
    debt = result.debt_for(client_id, "client")
    if debt is None:
        raise EngineError("CLIENT_NOT_FOUND", f"客户不存在: {client_id}")
    view = result.view
    orders = {o.id: o for o in view.orders}
    transactions = {t.id: t for t in view.transactions}
    record_ids = {rid.lower() for rid in debt.record_ids}
    return debt, orders, transactions, record_ids


def _direct_repayments(result: ReconciliationResult, client_id: str, record_ids) -> List[LedgerTransaction]:
    keywords = result.config.repayment_keywords
    return [
        tx for tx in result.view.transactions
        if is_repayment(tx, CLIENT_RULES, keywords)
        and not tx.order_id
        and tx.related_id == client_id
        and not references_any(tx, record_ids)
    ]


def _debt_returns(result: ReconciliationResult, client_id: str) -> List[LedgerTransaction]:
    return [
        tx for tx in result.view.transactions
        if tx.kind in CLIENT_RULES.return_kinds and tx.method == "debt" and tx.related_id == client_id
    ]


def unpaid_items(result: ReconciliationResult, client_id: str) -> List[Dict[str, Any]]:
    """
    客户未结清明细（还款弹窗用）

    1. 带欠款订单：未付 = 总额 − 已付
    2. 旧账债务：未付 = 金额 − 关联还款
    3. 未关联具体单据的还款与赊账退货按日期先进先出冲销
    4. 没有可列示明细但重算欠款 > 0 时，给出一条"客户总欠款"

    Returns:
        [{"id", "date", "kind", "total_amount", "amount_paid", "debt_amount", "payments", ...}]
    """
    debt, orders, transactions, record_ids = _debt_context(result, client_id)
    rate = result.balance_sheet.exchange_rate
    epsilon = result.config.debt_epsilon
    items: List[Dict[str, Any]] = []
    pool = 0.0

    for order_id in debt.record_ids:
        order = orders[order_id]
        linked = [
            t for t in transactions.values()
            if t.kind == "client_payment" and order_id in (t.related_id, t.order_id)
        ]
        items.append({
            "id": order.id,
            "date": order.date,
            "kind": "order",
            "total_amount": order.total_amount,
            "amount_paid": order.amount_paid,
            "debt_amount": max(0.0, order.open_amount),
            "items": ", ".join(item.product_name for item in order.items[:2]) + ("..." if len(order.items) > 2 else ""),
            "report_no": order.report_no,
            "payment_due_date": order.payment_due_date,
            "payments": [_payment_record(t, rate) for t in sorted(linked, key=lambda t: (t.date, t.id))],
        })

    for obligation_id in debt.obligation_ids:
        tx = transactions[obligation_id]
        linked = [
            t for t in transactions.values()
            if is_repayment(t, CLIENT_RULES, result.config.repayment_keywords) and t.related_id == tx.id
        ]
        amount = _usd(tx, rate)
        repaid = math.fsum(_usd(t, rate) for t in linked)
        if repaid > amount:
            pool += repaid - amount
        items.append({
            "id": tx.id,
            "date": tx.date,
            "kind": "obligation",
            "total_amount": amount,
            "amount_paid": min(repaid, amount),
            "debt_amount": max(0.0, amount - repaid),
            "items": tx.description,
            "payments": [_payment_record(t, rate) for t in sorted(linked, key=lambda t: (t.date, t.id))],
        })

    items.sort(key=lambda item: (item["date"], item["id"]))

    pool += math.fsum(_usd(t, rate) for t in _direct_repayments(result, client_id, record_ids))
    pool += math.fsum(_usd(t, rate) for t in _debt_returns(result, client_id))
    for item in items:
        if pool <= 0:
            break
        allocated = min(pool, item["debt_amount"])
        item["amount_paid"] += allocated
        item["debt_amount"] -= allocated
        pool -= allocated

    still_unpaid = [item for item in items if item["debt_amount"] > epsilon]
    if not still_unpaid and debt.total_debt > epsilon:
        still_unpaid.append({
            "id": f"DEBT-{client_id}",
            "date": "",
            "kind": "general",
            "total_amount": debt.total_debt,
            "amount_paid": 0.0,
            "debt_amount": debt.total_debt,
            "items": "client total debt",
            "payments": [],
        })

    for item in still_unpaid:
        for key in ("total_amount", "amount_paid", "debt_amount"):
            item[key] = round(item[key], 2)
    return still_unpaid


def debt_history(result: ReconciliationResult, client_id: str) -> List[Dict[str, Any]]:
    """
    客户债务流水（最新在前）

    债务变动与重算口径一致：订单按当前未付金额计入，
    订单关联的还款已体现在订单已付金额中，变动为 0。
    余额按时间累计，低于 0 时按 0 列示。
    """
    debt, orders, transactions, record_ids = _debt_context(result, client_id)
    rate = result.balance_sheet.exchange_rate
    obligation_ids = {oid.lower() for oid in debt.obligation_ids}
    keywords = result.config.repayment_keywords
    history: List[Dict[str, Any]] = []

    for order_id in debt.record_ids:
        order = orders[order_id]
        history.append({
            "id": order.id,
            "date": order.date,
            "type": "order",
            "description": f"Report #{order.report_no}" if order.report_no else f"Order #{order.id[-6:]}",
            "total_amount": order.total_amount,
            "debt_change": max(0.0, order.open_amount),
        })

    for obligation_id in debt.obligation_ids:
        tx = transactions[obligation_id]
        history.append({
            "id": tx.id,
            "date": tx.date,
            "type": "obligation",
            "description": tx.description or "opening debt",
            "total_amount": tx.amount,
            "debt_change": _usd(tx, rate),
        })

    for tx in transactions.values():
        if is_repayment(tx, CLIENT_RULES, keywords):
            if tx.order_id or references_any(tx, record_ids):
                if tx.order_id and tx.order_id.lower() not in record_ids:
                    continue
                if not tx.order_id and (tx.related_id or "").lower() not in record_ids \
                        and tx.related_id != client_id:
                    continue
                change = 0.0
            elif tx.related_id == client_id or (tx.related_id or "").lower() in obligation_ids:
                change = -_usd(tx, rate)
            else:
                continue
        elif tx.kind in CLIENT_RULES.return_kinds and tx.method == "debt" and tx.related_id == client_id:
            change = -_usd(tx, rate)
        else:
            continue
        history.append({
            "id": tx.id,
            "date": tx.date,
            "type": "return" if tx.kind == "client_return" else "repayment",
            "description": tx.description,
            "total_amount": tx.amount,
            "currency": tx.currency,
            "method": tx.method,
            "debt_change": change,
        })

    history.sort(key=lambda item: (item["date"], item["id"]))
    running = 0.0
    for item in history:
        running += item["debt_change"]
        running = max(0.0, running)
        item["debt_change"] = round(item["debt_change"], 2)
        item["balance"] = round(running, 2)
    history.reverse()
    return history
