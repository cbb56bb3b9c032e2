#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Reconciliation pipeline.

Runs the components bottom-up over one immutable snapshot:

    currency → corrections → cash → debts → balance sheet

``reconcile`` is a pure function of its inputs: it reads no ambient state,
never writes to the snapshot, and returns the same result for the same
events in any order. Write-back of corrections and recalculated debts is
left to the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from balance_engine.config import EngineConfig
from balance_engine.models import (
    BalanceSheet,
    Correction,
    Diagnostics,
    RecalculatedDebt,
    Snapshot,
)
from balance_engine.tools.cash import calc_cash_balances
from balance_engine.tools.composer import compose_balance_sheet
from balance_engine.tools.corrections import CorrectedView, apply_corrections
from balance_engine.tools.debt import reconcile_clients, reconcile_suppliers

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReconciliationResult:
    balance_sheet: BalanceSheet
    corrections: Tuple[Correction, ...]
    client_debts: Tuple[RecalculatedDebt, ...]
    supplier_debts: Tuple[RecalculatedDebt, ...]
    diagnostics: Diagnostics
    view: CorrectedView
    config: EngineConfig = field(default_factory=EngineConfig)

    @property
    def debts(self) -> Tuple[RecalculatedDebt, ...]:
        return self.client_debts + self.supplier_debts

    def debt_for(self, counterparty_id: str, role: str = "client") -> Optional[RecalculatedDebt]:
        pool = self.client_debts if role == "client" else self.supplier_debts
        return next((d for d in pool if d.counterparty_id == counterparty_id), None)

    def debt_updates(self) -> List[Dict[str, Any]]:
        """存储值与重算值不一致的对手，供调用方写回"""
        return [
            {
                "id": d.counterparty_id,
                "role": d.role,
                "totalDebt": round(d.total_debt, 2),
                "previous": round(d.stored_debt, 2),
            }
            for d in self.debts
            if d.changed
        ]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "balance": self.balance_sheet.to_dict(),
            "corrections": [c.to_dict() for c in self.corrections],
            "debts": {
                "clients": [d.to_dict() for d in self.client_debts],
                "suppliers": [d.to_dict() for d in self.supplier_debts],
            },
            "debt_updates": self.debt_updates(),
            "diagnostics": self.diagnostics.to_dict(),
        }


def reconcile(
    snapshot: Union[Snapshot, Mapping[str, Any]],
    config: Optional[EngineConfig] = None
) -> ReconciliationResult:
    """
    对一个快照执行完整对账

    Args:
        snapshot: Snapshot，或可由 Snapshot.from_dict() 解析的 JSON 对象
        config: 引擎配置；缺省时按 snapshot.settings 的默认汇率构建

    Returns:
        ReconciliationResult(balance_sheet, corrections, client_debts, supplier_debts, diagnostics)
    """
    if not isinstance(snapshot, Snapshot):
        snapshot = Snapshot.from_dict(snapshot)
    config = config or EngineConfig.from_settings(snapshot.settings)
    rate = config.default_exchange_rate
    diagnostics = Diagnostics()

    view = apply_corrections(
        snapshot.orders,
        snapshot.transactions,
        snapshot.expenses,
        rate,
        config.anomaly_threshold,
        diagnostics,
    )

    cash = calc_cash_balances(view.orders, view.transactions, view.expenses, rate, diagnostics)

    client_debts = reconcile_clients(snapshot.clients, view.orders, view.transactions, config, diagnostics)
    supplier_debts = reconcile_suppliers(snapshot.suppliers, snapshot.purchases, view.transactions,
                                         config, diagnostics)

    sheet = compose_balance_sheet(
        products=snapshot.products,
        fixed_assets=snapshot.fixed_assets,
        cash=cash,
        client_debts=client_debts,
        supplier_debts=supplier_debts,
        orders=view.orders,
        purchases=snapshot.purchases,
        expenses=view.expenses,
        settings=snapshot.settings,
        corrections=view.corrections,
        default_rate=rate,
        tolerance=config.balance_tolerance,
        diagnostics=diagnostics,
    )

    logger.debug(
        "Reconciled %d orders, %d purchases, %d expenses, %d transactions: "
        "assets %.2f, %d corrections",
        len(snapshot.orders), len(snapshot.purchases), len(snapshot.expenses),
        len(snapshot.transactions), sheet.total_assets, len(view.corrections),
    )

    return ReconciliationResult(
        balance_sheet=sheet,
        corrections=view.corrections,
        client_debts=tuple(client_debts),
        supplier_debts=tuple(supplier_debts),
        diagnostics=diagnostics,
        view=view,
        config=config,
    )
