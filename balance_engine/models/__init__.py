from .events import (
    Counterparty,
    Expense,
    FixedAsset,
    LedgerTransaction,
    OrderItem,
    Product,
    Purchase,
    PurchaseItem,
    SaleOrder,
    Settings,
)
from .results import (
    BalanceSheet,
    CashBalances,
    Correction,
    Diagnostics,
    ProfitAndLoss,
    RecalculatedDebt,
)
from .snapshot import Snapshot

__all__ = [
    "BalanceSheet",
    "CashBalances",
    "Correction",
    "Counterparty",
    "Diagnostics",
    "Expense",
    "FixedAsset",
    "LedgerTransaction",
    "OrderItem",
    "ProfitAndLoss",
    "Product",
    "Purchase",
    "PurchaseItem",
    "RecalculatedDebt",
    "SaleOrder",
    "Settings",
    "Snapshot",
]
