import pytest

from balance_engine import EngineConfig, EngineError, Snapshot
from balance_engine.models import FixedAsset, LedgerTransaction, Purchase, SaleOrder, Settings


def test_sale_order_accepts_camel_case_and_aliases():
    order = SaleOrder.from_dict({
        "id": "ORD-1",
        "counterpartyName": "Acme",
        "counterpartyId": "C1",
        "totalAmount": "1 200,50",
        "totalInUZS": 15_366_400,
        "exchangeRateSnapshot": 12800,
        "items": [{"productName": "Pipe", "quantity": 2, "costAtSale": 10}],
    })

    assert order.customer_name == "Acme"
    assert order.client_id == "C1"
    assert order.total_amount == 1200.5
    assert order.total_amount_local == 15_366_400
    assert order.exchange_rate == 12800
    assert order.items[0].cost_at_sale == 10
    assert order.payment_method == "cash"
    assert order.open_amount == 1200.5


def test_snake_case_keys_are_accepted():
    tx = LedgerTransaction.from_dict({"id": "TX-1", "kind": "income", "related_id": "C1", "order_id": "ORD-1"})
    assert (tx.kind, tx.related_id, tx.order_id) == ("income", "C1", "ORD-1")


def test_purchase_prefers_usd_paid_amount():
    purchase = Purchase.from_dict({"id": "P", "totalInvoiceAmount": 500, "amountPaid": 1_280_000,
                                   "amountPaidUSD": 100})
    assert purchase.amount_paid == 100
    assert purchase.open_amount == 400
    assert purchase.vat_amount is None


def test_fixed_asset_without_paid_amount_is_fully_paid():
    assert FixedAsset.from_dict({"purchaseCost": 900, "bookValue": 800}).unpaid_amount == 0
    assert FixedAsset.from_dict({"purchaseCost": 900, "amountPaid": 300}).unpaid_amount == 600


def test_settings_expense_categories_from_list_or_mapping():
    from_list = Settings.from_dict({"expenseCategories": [{"id": "ads", "pnlCategory": "commercial"}]})
    from_map = Settings.from_dict({"expense_categories": {"ads": "commercial", "x": "bogus"}})

    assert from_list.pnl_bucket("ads") == "commercial"
    assert from_map.pnl_bucket("ads") == "commercial"
    assert from_map.pnl_bucket("x") == "administrative"
    assert from_map.pnl_bucket("unknown") == "administrative"


def test_settings_equity_alias():
    assert Settings.from_dict({"investedCapital": 5000}).equity == 5000
    assert Settings.from_dict({}).equity is None


@pytest.mark.parametrize("payload", [
    [],
    {"orders": {"id": "ORD-1"}},
    {"orders": ["ORD-1"]},
    {"settings": "fast"},
])
def test_snapshot_rejects_malformed_payloads(payload):
    with pytest.raises(EngineError) as exc:
        Snapshot.from_dict(payload)
    assert exc.value.code == "INVALID_SNAPSHOT"


def test_snapshot_lookups(sample_payload):
    snapshot = Snapshot.from_dict(sample_payload)
    assert snapshot.find_client("C2").name == "Beta"
    assert snapshot.find_supplier("S1").role == "supplier"
    assert snapshot.find_client("S1") is None
    assert len(snapshot.fixed_assets) == 1


def test_engine_config_from_settings():
    settings = Settings(default_exchange_rate=13000)

    assert EngineConfig.from_settings(settings).default_exchange_rate == 13000
    assert EngineConfig.from_settings(Settings()).default_exchange_rate == 12800
    config = EngineConfig.from_settings(settings, default_exchange_rate=None, match_strategy="strict")
    assert config.default_exchange_rate == 13000
    assert config.match_strategy == "strict"


def test_engine_error_payload():
    err = EngineError("CLIENT_NOT_FOUND", "客户不存在: C9", {"id": "C9"})
    assert str(err) == "CLIENT_NOT_FOUND: 客户不存在: C9"
    assert err.to_dict() == {
        "error": True,
        "code": "CLIENT_NOT_FOUND",
        "message": "客户不存在: C9",
        "details": {"id": "C9"},
    }
