import copy

import pytest

SAMPLE_SNAPSHOT = {
    "settings": {
        "vatRate": 12,
        "defaultExchangeRate": 12800,
        "expenseCategories": [
            {"id": "rent", "pnlCategory": "administrative"},
            {"id": "fuel", "pnlCategory": "operational"},
        ],
    },
    "clients": [
        {"id": "C1", "name": "Acme Trading", "totalDebt": 0},
        {"id": "C2", "name": "Beta", "totalDebt": 50},
    ],
    "suppliers": [
        {"id": "S1", "name": "Steel Co", "totalDebt": 0},
    ],
    "products": [
        {"id": "P1", "name": "Pipe", "quantity": 10, "costPrice": 20, "warehouse": "main"},
        {"id": "P2", "name": "Sheet", "quantity": 5, "costPrice": 10, "warehouse": "cloud"},
    ],
    "fixedAssets": [
        {"id": "FA1", "name": "Forklift", "purchaseCost": 1000, "currentValue": 900,
         "accumulatedDepreciation": 100, "amountPaid": 600},
    ],
    "orders": [
        {
            "id": "ORD-1", "date": "2024-01-01", "customerName": "Acme Trading",
            "items": [{"productName": "Pipe", "quantity": 2, "priceAtSale": 200, "costAtSale": 100}],
            "subtotalAmount": 400, "vatAmount": 100, "totalAmount": 500,
            "paymentMethod": "cash", "paymentStatus": "paid", "amountPaid": 500,
        },
        {
            "id": "ORD-2", "date": "2024-01-02", "clientId": "C1", "customerName": "Acme",
            "items": [{"productName": "Sheet", "quantity": 1, "priceAtSale": 100, "costAtSale": 50}],
            "subtotalAmount": 100, "vatAmount": 0, "totalAmount": 100,
            "paymentMethod": "debt", "paymentStatus": "partial", "amountPaid": 40,
            "reportNo": 7,
        },
        {
            "id": "ORD-3", "date": "2024-01-03", "customerName": "Beta",
            "items": [{"productName": "Pipe", "quantity": 1, "priceAtSale": 200, "costAtSale": 120}],
            "subtotalAmount": 200, "vatAmount": 0, "totalAmount": 200, "totalAmountUZS": 2560000,
            "paymentMethod": "bank", "paymentStatus": "paid", "amountPaid": 200,
        },
    ],
    "purchases": [
        {"id": "PUR-1", "date": "2024-01-01", "supplierId": "S1", "totalInvoiceAmount": 300,
         "amountPaid": 100, "paymentStatus": "partial", "vatAmount": 30},
    ],
    "expenses": [
        {"id": "EXP-1", "date": "2024-01-04", "category": "rent", "amount": 120,
         "currency": "USD", "paymentMethod": "cash"},
        {"id": "EXP-2", "date": "2024-01-04", "category": "fuel", "amount": 640000,
         "currency": "UZS", "exchangeRate": 12800, "paymentMethod": "bank"},
    ],
    "transactions": [
        {"id": "TX-1", "type": "client_payment", "amount": 40, "currency": "USD", "method": "cash",
         "orderId": "ORD-2", "date": "2024-01-02"},
        {"id": "TX-2", "type": "supplier_payment", "amount": 100, "currency": "USD", "method": "cash",
         "relatedId": "PUR-1", "date": "2024-01-01"},
        {"id": "TX-3", "type": "debt_obligation", "amount": 50, "currency": "USD",
         "relatedId": "C2", "description": "opening balance", "date": "2024-01-01"},
        {"id": "TX-4", "type": "client_payment", "amount": 20, "currency": "USD", "method": "cash",
         "relatedId": "C2", "date": "2024-01-05"},
    ],
}


@pytest.fixture
def sample_payload():
    return copy.deepcopy(SAMPLE_SNAPSHOT)
