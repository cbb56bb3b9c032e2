#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Immutable in-memory snapshot of the event source."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Tuple

from balance_engine.models.events import (
    Counterparty,
    Expense,
    FixedAsset,
    LedgerTransaction,
    Product,
    Purchase,
    SaleOrder,
    Settings,
)
from balance_engine.utils import EngineError


def _records(data: Mapping[str, Any], key: str) -> list:
    value = data.get(key) or []
    if not isinstance(value, list):
        raise EngineError("INVALID_SNAPSHOT", f"{key} 必须为列表")
    for item in value:
        if not isinstance(item, Mapping):
            raise EngineError("INVALID_SNAPSHOT", f"{key} 的元素必须为对象")
    return value


@dataclass(frozen=True)
class Snapshot:
    orders: Tuple[SaleOrder, ...] = ()
    purchases: Tuple[Purchase, ...] = ()
    expenses: Tuple[Expense, ...] = ()
    transactions: Tuple[LedgerTransaction, ...] = ()
    clients: Tuple[Counterparty, ...] = ()
    suppliers: Tuple[Counterparty, ...] = ()
    products: Tuple[Product, ...] = ()
    fixed_assets: Tuple[FixedAsset, ...] = ()
    settings: Settings = field(default_factory=Settings)

    def find_client(self, client_id: str) -> Optional[Counterparty]:
        return next((c for c in self.clients if c.id == client_id), None)

    def find_supplier(self, supplier_id: str) -> Optional[Counterparty]:
        return next((s for s in self.suppliers if s.id == supplier_id), None)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Snapshot":
        if not isinstance(data, Mapping):
            raise EngineError("INVALID_SNAPSHOT", "快照必须是 JSON 对象")
        settings = data.get("settings") or {}
        if not isinstance(settings, Mapping):
            raise EngineError("INVALID_SNAPSHOT", "settings 必须为对象")
        return cls(
            orders=tuple(SaleOrder.from_dict(o) for o in _records(data, "orders")),
            purchases=tuple(Purchase.from_dict(p) for p in _records(data, "purchases")),
            expenses=tuple(Expense.from_dict(e) for e in _records(data, "expenses")),
            transactions=tuple(LedgerTransaction.from_dict(t) for t in _records(data, "transactions")),
            clients=tuple(Counterparty.from_dict(c, "client") for c in _records(data, "clients")),
            suppliers=tuple(Counterparty.from_dict(s, "supplier") for s in _records(data, "suppliers")),
            products=tuple(Product.from_dict(p) for p in _records(data, "products")),
            fixed_assets=tuple(
                FixedAsset.from_dict(a) for a in _records(data, "fixedAssets") or _records(data, "fixed_assets")
            ),
            settings=Settings.from_dict(settings),
        )
