#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Event-source records consumed by the engine.

Records are read-only: the engine only derives values from them. Every
``from_dict`` accepts the event source's camelCase payload as well as
snake_case keys.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

from balance_engine.config import USD
from balance_engine.utils import num


def _pick(data: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def _text(data: Mapping[str, Any], *keys: str, default: str = "") -> str:
    value = _pick(data, *keys)
    return str(value) if value is not None else default


def _optional_text(data: Mapping[str, Any], *keys: str) -> Optional[str]:
    value = _pick(data, *keys)
    if value is None or value == "":
        return None
    return str(value)


def _optional_num(data: Mapping[str, Any], *keys: str) -> Optional[float]:
    value = _pick(data, *keys)
    return None if value is None else num(value)


@dataclass(frozen=True)
class OrderItem:
    product_name: str = ""
    quantity: float = 0.0
    price_at_sale: float = 0.0
    cost_at_sale: float = 0.0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "OrderItem":
        return cls(
            product_name=_text(data, "productName", "product_name", "name"),
            quantity=num(_pick(data, "quantity", default=0)),
            price_at_sale=num(_pick(data, "priceAtSale", "price_at_sale", default=0)),
            cost_at_sale=num(_pick(data, "costAtSale", "cost_at_sale", default=0)),
        )


@dataclass(frozen=True)
class SaleOrder:
    id: str
    date: str = ""
    customer_name: str = ""
    client_id: Optional[str] = None
    items: Tuple[OrderItem, ...] = ()
    subtotal_amount: float = 0.0
    vat_amount: float = 0.0
    total_amount: float = 0.0
    total_amount_local: float = 0.0
    exchange_rate: Optional[float] = None
    payment_method: str = "cash"
    payment_currency: Optional[str] = None
    payment_status: str = "paid"
    amount_paid: float = 0.0
    payment_due_date: Optional[str] = None
    report_no: Optional[int] = None
    status: str = "completed"

    @property
    def open_amount(self) -> float:
        return self.total_amount - self.amount_paid

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SaleOrder":
        report_no = _pick(data, "reportNo", "report_no")
        return cls(
            id=_text(data, "id"),
            date=_text(data, "date"),
            customer_name=_text(data, "customerName", "counterpartyName", "customer_name"),
            client_id=_optional_text(data, "clientId", "counterpartyId", "client_id"),
            items=tuple(OrderItem.from_dict(item) for item in _pick(data, "items", default=[]) or []),
            subtotal_amount=num(_pick(data, "subtotalAmount", "subtotal_amount", default=0)),
            vat_amount=num(_pick(data, "vatAmount", "vat_amount", default=0)),
            total_amount=num(_pick(data, "totalAmount", "total_amount", default=0)),
            total_amount_local=num(
                _pick(data, "totalAmountUZS", "totalInUZS", "totalAmountLocal", "total_amount_local", default=0)
            ),
            exchange_rate=_optional_num(data, "exchangeRate", "exchangeRateSnapshot", "exchange_rate"),
            payment_method=_text(data, "paymentMethod", "payment_method", default="cash"),
            payment_currency=_optional_text(data, "paymentCurrency", "payment_currency"),
            payment_status=_text(data, "paymentStatus", "payment_status", default="paid"),
            amount_paid=num(_pick(data, "amountPaid", "amount_paid", default=0)),
            payment_due_date=_optional_text(data, "paymentDueDate", "payment_due_date"),
            report_no=int(num(report_no)) if report_no is not None else None,
            status=_text(data, "status", default="completed"),
        )


@dataclass(frozen=True)
class PurchaseItem:
    product_name: str = ""
    quantity: float = 0.0
    landed_cost: float = 0.0
    vat_amount: float = 0.0
    warehouse: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PurchaseItem":
        return cls(
            product_name=_text(data, "productName", "product_name", "name"),
            quantity=num(_pick(data, "quantity", default=0)),
            landed_cost=num(_pick(data, "landedCost", "landed_cost", default=0)),
            vat_amount=num(_pick(data, "vatAmount", "vat_amount", default=0)),
            warehouse=_optional_text(data, "warehouse"),
        )


@dataclass(frozen=True)
class Purchase:
    id: str
    date: str = ""
    supplier_name: str = ""
    supplier_id: Optional[str] = None
    items: Tuple[PurchaseItem, ...] = ()
    total_invoice_amount: float = 0.0
    total_invoice_amount_local: float = 0.0
    total_vat_amount_local: float = 0.0
    vat_amount: Optional[float] = None
    exchange_rate: Optional[float] = None
    payment_method: str = "debt"
    payment_status: str = "unpaid"
    amount_paid: float = 0.0
    warehouse: Optional[str] = None

    @property
    def open_amount(self) -> float:
        return self.total_invoice_amount - self.amount_paid

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Purchase":
        return cls(
            id=_text(data, "id"),
            date=_text(data, "date"),
            supplier_name=_text(data, "supplierName", "counterpartyName", "supplier_name"),
            supplier_id=_optional_text(data, "supplierId", "counterpartyId", "supplier_id"),
            items=tuple(PurchaseItem.from_dict(item) for item in _pick(data, "items", default=[]) or []),
            total_invoice_amount=num(_pick(data, "totalInvoiceAmount", "total_invoice_amount", default=0)),
            total_invoice_amount_local=num(
                _pick(data, "totalInvoiceAmountUZS", "totalInvoiceAmountLocal", "total_invoice_amount_local", default=0)
            ),
            total_vat_amount_local=num(
                _pick(data, "totalVatAmountUZS", "totalVatAmountLocal", "total_vat_amount_local", default=0)
            ),
            vat_amount=_optional_num(data, "vatAmount", "vat_amount"),
            exchange_rate=_optional_num(data, "exchangeRate", "exchangeRateSnapshot", "exchange_rate"),
            payment_method=_text(data, "paymentMethod", "payment_method", default="debt"),
            payment_status=_text(data, "paymentStatus", "payment_status", default="unpaid"),
            # amountPaidUSD 存在时优先，旧数据 amountPaid 即为 USD
            amount_paid=num(_pick(data, "amountPaidUSD", "amountPaid", "amount_paid", default=0)),
            warehouse=_optional_text(data, "warehouse"),
        )


@dataclass(frozen=True)
class Expense:
    id: str
    date: str = ""
    description: str = ""
    category: str = ""
    amount: float = 0.0
    currency: str = USD
    exchange_rate: Optional[float] = None
    payment_method: str = "cash"
    vat_amount: float = 0.0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Expense":
        return cls(
            id=_text(data, "id"),
            date=_text(data, "date"),
            description=_text(data, "description"),
            category=_text(data, "category"),
            amount=num(_pick(data, "amount", default=0)),
            currency=_text(data, "currency", default=USD),
            exchange_rate=_optional_num(data, "exchangeRate", "exchangeRateSnapshot", "exchange_rate"),
            payment_method=_text(data, "paymentMethod", "payment_method", default="cash"),
            vat_amount=num(_pick(data, "vatAmount", "vat_amount", default=0)),
        )


TRANSACTION_KINDS = (
    "supplier_payment",
    "client_payment",
    "client_refund",
    "client_return",
    "debt_obligation",
    "income",
    "expense",
)


@dataclass(frozen=True)
class LedgerTransaction:
    id: str
    kind: str
    amount: float = 0.0
    currency: str = USD
    date: str = ""
    exchange_rate: Optional[float] = None
    method: str = "cash"
    related_id: Optional[str] = None
    order_id: Optional[str] = None
    description: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "LedgerTransaction":
        return cls(
            id=_text(data, "id"),
            kind=_text(data, "kind", "type"),
            amount=num(_pick(data, "amount", default=0)),
            currency=_text(data, "currency", default=USD),
            date=_text(data, "date"),
            exchange_rate=_optional_num(data, "exchangeRate", "exchangeRateSnapshot", "exchange_rate"),
            method=_text(data, "method", default="cash"),
            related_id=_optional_text(data, "relatedId", "related_id"),
            order_id=_optional_text(data, "orderId", "order_id"),
            description=_text(data, "description"),
        )


@dataclass(frozen=True)
class Counterparty:
    id: str
    name: str = ""
    company_name: Optional[str] = None
    total_debt: float = 0.0
    role: str = "client"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], role: str = "client") -> "Counterparty":
        return cls(
            id=_text(data, "id"),
            name=_text(data, "name"),
            company_name=_optional_text(data, "companyName", "company_name"),
            total_debt=num(_pick(data, "totalDebt", "total_debt", default=0)),
            role=role,
        )


@dataclass(frozen=True)
class Product:
    id: str = ""
    name: str = ""
    quantity: float = 0.0
    cost_price: float = 0.0
    warehouse: str = "main"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Product":
        return cls(
            id=_text(data, "id"),
            name=_text(data, "name"),
            quantity=num(_pick(data, "quantity", default=0)),
            cost_price=num(_pick(data, "costPrice", "cost_price", default=0)),
            warehouse=_text(data, "warehouse", default="main") or "main",
        )


@dataclass(frozen=True)
class FixedAsset:
    id: str = ""
    name: str = ""
    purchase_cost: float = 0.0
    current_value: float = 0.0
    accumulated_depreciation: float = 0.0
    amount_paid: Optional[float] = None

    @property
    def unpaid_amount(self) -> float:
        paid = self.purchase_cost if self.amount_paid is None else self.amount_paid
        return max(0.0, self.purchase_cost - paid)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FixedAsset":
        return cls(
            id=_text(data, "id"),
            name=_text(data, "name"),
            purchase_cost=num(_pick(data, "purchaseCost", "purchase_cost", default=0)),
            current_value=num(_pick(data, "currentValue", "bookValue", "current_value", "book_value", default=0)),
            accumulated_depreciation=num(
                _pick(data, "accumulatedDepreciation", "accumulated_depreciation", default=0)
            ),
            amount_paid=_optional_num(data, "amountPaid", "amount_paid"),
        )


PNL_BUCKETS = ("administrative", "operational", "commercial")


@dataclass(frozen=True)
class Settings:
    vat_rate: float = 0.0
    default_exchange_rate: float = 0.0
    expense_categories: Dict[str, str] = field(default_factory=dict)
    equity: Optional[float] = None

    def pnl_bucket(self, category: str) -> str:
        bucket = self.expense_categories.get(category, "administrative")
        return bucket if bucket in PNL_BUCKETS else "administrative"

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "Settings":
        data = data or {}
        raw_categories = _pick(data, "expenseCategories", "expense_categories", default={}) or {}
        if isinstance(raw_categories, Mapping):
            categories = {str(key): str(value) for key, value in raw_categories.items()}
        else:
            # 事件源中保存为 [{"id": ..., "pnlCategory": ...}] 列表
            categories = {
                str(item.get("id")): str(_pick(item, "pnlCategory", "pnl_category", default="administrative"))
                for item in raw_categories
                if isinstance(item, Mapping) and item.get("id") is not None
            }
        return cls(
            vat_rate=num(_pick(data, "vatRate", "vat_rate", default=0)),
            default_exchange_rate=num(_pick(data, "defaultExchangeRate", "default_exchange_rate", default=0)),
            expense_categories=categories,
            equity=_optional_num(data, "equity", "investedCapital", "invested_capital"),
        )
