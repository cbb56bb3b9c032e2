import pytest

from balance_engine.models import (
    CashBalances,
    Diagnostics,
    Expense,
    FixedAsset,
    OrderItem,
    Product,
    Purchase,
    PurchaseItem,
    RecalculatedDebt,
    SaleOrder,
    Settings,
)
from balance_engine.tools.composer import (
    calc_fixed_assets,
    calc_inventory,
    calc_profit_and_loss,
    calc_vat,
    compose_balance_sheet,
)


def debt(counterparty_id, amount, role="client"):
    return RecalculatedDebt(counterparty_id=counterparty_id, name=counterparty_id, role=role, total_debt=amount)


def test_scenario_vat_input_exceeding_output_is_not_a_liability():
    vat = calc_vat([SaleOrder(id="o", vat_amount=50)], [Purchase(id="p", vat_amount=70)])
    assert vat == {"vat_output": 50.0, "vat_input": 70.0, "vat_liability": 0.0}


def test_purchase_vat_from_local_amount_uses_snapshot_rate():
    purchases = [
        Purchase(id="P1", total_vat_amount_local=1_250_000, exchange_rate=12500),
        Purchase(id="P2", items=(PurchaseItem(vat_amount=640_000), PurchaseItem(vat_amount=640_000))),
    ]
    vat = calc_vat([], purchases, 12800)
    assert vat["vat_input"] == pytest.approx(200.0)


def test_inventory_always_reports_main_and_cloud():
    total, by_warehouse = calc_inventory([
        Product(quantity=3, cost_price=10),
        Product(quantity=1, cost_price=5, warehouse="store-2"),
    ])
    assert total == 35
    assert by_warehouse == {"main": 30.0, "cloud": 0.0, "store-2": 5.0}


def test_oversold_warehouse_is_clamped_and_recorded():
    diagnostics = Diagnostics()
    total, by_warehouse = calc_inventory([
        Product(quantity=-5, cost_price=10),
        Product(quantity=2, cost_price=10, warehouse="store-2"),
    ], diagnostics)

    assert total == 20
    assert by_warehouse == {"main": 0.0, "cloud": 0.0, "store-2": 20.0}
    assert diagnostics.clamped == [{"name": "inventory_main", "raw_value": -50.0}]


def test_fixed_assets_fund_excludes_unpaid_part():
    values = calc_fixed_assets([
        FixedAsset(purchase_cost=1000, current_value=800, amount_paid=700),
        FixedAsset(purchase_cost=500, current_value=450),
    ])
    assert values == {
        "fixed_assets_value": 1250.0,
        "fixed_assets_payable": 300.0,
        "fixed_assets_fund": 950.0,
    }


def test_profit_and_loss_buckets_expenses_by_category():
    settings = Settings(expense_categories={"ads": "commercial", "fuel": "operational"})
    orders = [SaleOrder(id="o", subtotal_amount=1000, items=(OrderItem(quantity=4, cost_at_sale=100),))]
    expenses = [
        Expense(id="e1", category="ads", amount=50),
        Expense(id="e2", category="fuel", amount=128_000, currency="UZS"),
        Expense(id="e3", category="misc", amount=20),
    ]

    pnl = calc_profit_and_loss(orders, expenses, [FixedAsset(accumulated_depreciation=30)], settings, 12800)

    assert pnl.gross_profit == 600
    assert pnl.opex_by_category == {"administrative": 20.0, "operational": 10.0, "commercial": 50.0}
    assert pnl.net_profit == pytest.approx(600 - 80 - 30)


def test_balance_sheet_identity_holds_by_construction():
    sheet = compose_balance_sheet(
        products=[Product(quantity=10, cost_price=20)],
        fixed_assets=[FixedAsset(purchase_cost=1000, current_value=900, amount_paid=600)],
        cash=CashBalances(cash_usd=300, cash_local=128_000, bank_local=1_280_000),
        client_debts=[debt("C1", 60), debt("C2", 30)],
        supplier_debts=[debt("S1", 200, "supplier")],
        orders=[SaleOrder(id="o", vat_amount=100)],
        purchases=[Purchase(id="p", vat_amount=30, amount_paid=100)],
        default_rate=12800,
    )

    assert sheet.total_cash_usd == pytest.approx(310.0)
    assert sheet.net_bank_usd == pytest.approx(100.0)
    assert sheet.accounts_receivable == 90
    assert sheet.accounts_payable == 200
    assert sheet.vat_liability == 70
    assert sheet.equity == 100
    assert sheet.fixed_assets_fund == 500
    assert sheet.total_assets == pytest.approx(900 + 200 + 310 + 100 + 90)
    assert sheet.retained_earnings == pytest.approx(1600 - (100 + 500 + 70 + 200 + 400))
    assert sheet.total_assets == pytest.approx(sheet.total_passives, abs=1e-6)
    assert sheet.is_balanced


def test_configured_equity_overrides_accumulated_purchases():
    sheet = compose_balance_sheet(
        products=[], fixed_assets=[], cash=CashBalances(cash_usd=1000),
        client_debts=[], supplier_debts=[], orders=[],
        purchases=[Purchase(id="p", amount_paid=400)],
        settings=Settings(equity=1500),
    )
    assert sheet.equity == 1500
    assert sheet.retained_earnings == pytest.approx(-500.0)
    assert sheet.is_balanced
