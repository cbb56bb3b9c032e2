#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Derived, ephemeral values produced by a reconciliation run."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Tuple


def _rounded(values: Dict[str, Any]) -> Dict[str, Any]:
    return {
        key: round(value, 2) if isinstance(value, float) else value
        for key, value in values.items()
    }


@dataclass(frozen=True)
class Correction:
    id: str
    kind: str                   # order / transaction / expense
    field: str
    reason: str
    original_amount: float
    corrected_amount: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.kind,
            "field": self.field,
            "reason": self.reason,
            "originalAmount": self.original_amount,
            "correctedAmount": round(self.corrected_amount, 2),
        }


@dataclass
class Diagnostics:
    """
    单次运行的数据质量记录

    引擎从不因数据问题抛异常，所有降级处理都记在这里供调用方展示。
    """
    rate_fallbacks: int = 0
    unreliable_inputs: int = 0
    clamped: List[Dict[str, Any]] = field(default_factory=list)
    suspicious_amounts: List[Dict[str, Any]] = field(default_factory=list)
    notes: List[str] = field(default_factory=list)

    def record_clamp(self, name: str, raw_value: float) -> None:
        self.clamped.append({"name": name, "raw_value": round(raw_value, 2)})

    def to_dict(self) -> Dict[str, Any]:
        # 列表按内容排序，输出与记录顺序无关
        return {
            "rate_fallbacks": self.rate_fallbacks,
            "unreliable_inputs": self.unreliable_inputs,
            "clamped": sorted(self.clamped, key=lambda c: (c["name"], c["raw_value"])),
            "suspicious_amounts": sorted(
                self.suspicious_amounts,
                key=lambda s: (s["type"], s["id"], s["field"], s["amount"]),
            ),
            "notes": sorted(self.notes),
        }


@dataclass(frozen=True)
class CashBalances:
    cash_usd: float = 0.0
    cash_local: float = 0.0
    bank_local: float = 0.0
    card_local: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return _rounded(asdict(self))


@dataclass(frozen=True)
class RecalculatedDebt:
    counterparty_id: str
    name: str
    role: str                   # client / supplier
    total_debt: float
    stored_debt: float = 0.0
    record_debt: float = 0.0    # 订单/采购单未付部分
    obligations: float = 0.0
    payments: float = 0.0
    returns: float = 0.0
    record_ids: Tuple[str, ...] = ()
    obligation_ids: Tuple[str, ...] = ()
    changed: bool = False

    def to_dict(self) -> Dict[str, Any]:
        data = _rounded(asdict(self))
        data["record_ids"] = list(self.record_ids)
        data["obligation_ids"] = list(self.obligation_ids)
        return data


@dataclass(frozen=True)
class ProfitAndLoss:
    revenue: float = 0.0
    cogs: float = 0.0
    gross_profit: float = 0.0
    total_expenses: float = 0.0
    opex_by_category: Dict[str, float] = field(default_factory=dict)
    total_depreciation: float = 0.0
    net_profit: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        data = _rounded(asdict(self))
        data["opex_by_category"] = _rounded(dict(self.opex_by_category))
        return data


@dataclass(frozen=True)
class BalanceSheet:
    # 资产
    inventory_value: float = 0.0
    inventory_by_warehouse: Dict[str, float] = field(default_factory=dict)
    cash_usd: float = 0.0
    cash_local: float = 0.0
    bank_local: float = 0.0
    card_local: float = 0.0
    total_cash_usd: float = 0.0
    net_bank_usd: float = 0.0
    net_card_usd: float = 0.0
    total_liquid_assets: float = 0.0
    fixed_assets_value: float = 0.0
    accounts_receivable: float = 0.0
    total_assets: float = 0.0
    # 负债与权益
    vat_output: float = 0.0
    vat_input: float = 0.0
    vat_liability: float = 0.0
    accounts_payable: float = 0.0
    fixed_assets_payable: float = 0.0
    equity: float = 0.0
    fixed_assets_fund: float = 0.0
    retained_earnings: float = 0.0
    total_passives: float = 0.0
    # 其他
    exchange_rate: float = 0.0
    profit_and_loss: ProfitAndLoss = field(default_factory=ProfitAndLoss)
    corrections: Tuple[Correction, ...] = ()
    balance_diff: float = 0.0
    is_balanced: bool = True

    def to_dict(self) -> Dict[str, Any]:
        data = {
            key: value
            for key, value in asdict(self).items()
            if key not in ("profit_and_loss", "corrections", "inventory_by_warehouse")
        }
        data = _rounded(data)
        data["balance_diff"] = self.balance_diff
        data["inventory_by_warehouse"] = _rounded(dict(self.inventory_by_warehouse))
        data["profit_and_loss"] = self.profit_and_loss.to_dict()
        data["corrections"] = [c.to_dict() for c in self.corrections]
        return data
