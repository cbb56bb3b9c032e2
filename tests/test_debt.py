import pytest

from balance_engine.config import EngineConfig
from balance_engine.models import Counterparty, Diagnostics, LedgerTransaction, Purchase, SaleOrder
from balance_engine.tools.debt import mentions_id, reconcile_clients, reconcile_suppliers

CLIENT = Counterparty(id="C1", name="Acme Trading")


def client_debt(orders, transactions, clients=(CLIENT,), config=None, diagnostics=None):
    debts = reconcile_clients(list(clients), orders, transactions, config, diagnostics)
    return {d.counterparty_id: d for d in debts}


def test_scenario_direct_payment_reduces_unpaid_order():
    orders = [SaleOrder(id="ORD-1", client_id="C1", total_amount=300, payment_method="debt",
                        payment_status="unpaid")]
    transactions = [LedgerTransaction(id="TX-1", kind="client_payment", amount=120, related_id="C1")]

    debt = client_debt(orders, transactions)["C1"]

    assert debt.total_debt == pytest.approx(180.0)
    assert debt.record_ids == ("ORD-1",)


def test_payment_linked_to_order_is_not_subtracted_twice():
    orders = [SaleOrder(id="ORD-1", client_id="C1", total_amount=100, amount_paid=40,
                        payment_method="debt", payment_status="partial")]
    by_related = [LedgerTransaction(id="TX-1", kind="client_payment", amount=60, related_id="ORD-1")]
    by_order_id = [LedgerTransaction(id="TX-1", kind="client_payment", amount=60, related_id="C1",
                                     order_id="ORD-1")]

    assert client_debt(orders, by_related)["C1"].total_debt == pytest.approx(60.0)
    assert client_debt(orders, by_order_id)["C1"].total_debt == pytest.approx(60.0)


def test_paid_orders_carry_no_debt():
    orders = [SaleOrder(id="ORD-1", client_id="C1", total_amount=100, amount_paid=100)]
    debt = client_debt(orders, [])["C1"]
    assert debt.total_debt == 0
    assert debt.record_ids == ()


def test_obligation_referencing_counted_order_is_skipped():
    orders = [SaleOrder(id="ORD-1", client_id="C1", total_amount=100, payment_method="debt",
                        payment_status="unpaid")]
    transactions = [
        LedgerTransaction(id="OB-1", kind="debt_obligation", amount=100, related_id="C1",
                          description="migrated ord-1"),
        LedgerTransaction(id="OB-2", kind="debt_obligation", amount=25, related_id="C1",
                          description="opening balance"),
    ]

    debt = client_debt(orders, transactions)["C1"]

    assert debt.obligation_ids == ("OB-2",)
    assert debt.total_debt == pytest.approx(125.0)


def test_obligation_attributed_by_description_in_fuzzy_mode():
    transactions = [LedgerTransaction(id="OB-1", kind="debt_obligation", amount=50,
                                      description="Старый долг Acme Trading")]

    assert client_debt([], transactions)["C1"].total_debt == pytest.approx(50.0)
    strict = EngineConfig(match_strategy="strict")
    assert client_debt([], transactions, config=strict)["C1"].total_debt == 0


def test_payment_against_obligation_id_counts():
    transactions = [
        LedgerTransaction(id="OB-1", kind="debt_obligation", amount=50, related_id="C1"),
        LedgerTransaction(id="TX-1", kind="client_payment", amount=20, related_id="OB-1"),
    ]
    assert client_debt([], transactions)["C1"].total_debt == pytest.approx(30.0)


def test_returns_on_credit_and_keyword_income_reduce_debt():
    orders = [SaleOrder(id="ORD-1", client_id="C1", total_amount=200, payment_method="debt",
                        payment_status="unpaid")]
    transactions = [
        LedgerTransaction(id="TX-1", kind="client_return", amount=30, method="debt", related_id="C1"),
        LedgerTransaction(id="TX-2", kind="client_return", amount=30, method="cash", related_id="C1"),
        LedgerTransaction(id="TX-3", kind="income", amount=10, related_id="C1", description="Погашение долга"),
        LedgerTransaction(id="TX-4", kind="income", amount=10, related_id="C1", description="прочий доход"),
    ]

    debt = client_debt(orders, transactions)["C1"]

    assert debt.returns == pytest.approx(30.0)
    assert debt.payments == pytest.approx(10.0)
    assert debt.total_debt == pytest.approx(160.0)


def test_local_currency_payment_is_normalized():
    orders = [SaleOrder(id="ORD-1", client_id="C1", total_amount=300, payment_method="debt")]
    transactions = [LedgerTransaction(id="TX-1", kind="client_payment", amount=1_280_000, currency="UZS",
                                      related_id="C1")]
    debt = client_debt(orders, transactions)["C1"]
    assert debt.total_debt == pytest.approx(200.0)


def test_overpayment_is_clamped_to_zero():
    diagnostics = Diagnostics()
    transactions = [LedgerTransaction(id="TX-1", kind="client_payment", amount=500, related_id="C1")]

    debt = client_debt([], transactions, diagnostics=diagnostics)["C1"]

    assert debt.total_debt == 0
    assert diagnostics.clamped == [{"name": "client_debt:C1", "raw_value": -500.0}]


def test_similar_names_do_not_double_count_an_order():
    clients = [Counterparty(id="C1", name="Ali"), Counterparty(id="C2", name="Ali Trading")]
    orders = [SaleOrder(id="ORD-1", customer_name="Ali Trading", total_amount=100, payment_method="debt")]

    debts = client_debt(orders, [], clients=clients)

    assert debts["C1"].total_debt == 0
    assert debts["C2"].total_debt == pytest.approx(100.0)


def test_changed_flag_compares_with_stored_debt():
    clients = [Counterparty(id="C1", name="A", total_debt=100.004), Counterparty(id="C2", name="B", total_debt=5)]
    orders = [SaleOrder(id="ORD-1", client_id="C1", total_amount=100, payment_method="debt")]

    debts = client_debt(orders, [], clients=clients)

    assert debts["C1"].changed is False
    assert debts["C2"].changed is True


def test_unattributed_debt_records_are_noted():
    diagnostics = Diagnostics()
    orders = [SaleOrder(id="ORD-1", customer_name="Walk-in", total_amount=40, payment_method="debt")]

    client_debt(orders, [], diagnostics=diagnostics)

    assert diagnostics.notes == ["unattributed client records: 1 (open 40.00)"]


def test_supplier_debt_mirrors_client_rules():
    suppliers = [Counterparty(id="S1", name="Steel Co", role="supplier")]
    purchases = [Purchase(id="PUR-1", supplier_id="S1", total_invoice_amount=300, amount_paid=100,
                          payment_status="partial")]
    transactions = [
        LedgerTransaction(id="TX-1", kind="supplier_payment", amount=50, related_id="S1"),
        LedgerTransaction(id="TX-2", kind="supplier_payment", amount=100, related_id="PUR-1"),
        LedgerTransaction(id="TX-3", kind="client_payment", amount=70, related_id="S1"),
    ]

    debts = reconcile_suppliers(suppliers, purchases, transactions)

    assert len(debts) == 1
    assert debts[0].role == "supplier"
    assert debts[0].total_debt == pytest.approx(150.0)


def test_results_are_sorted_and_order_independent():
    clients = [Counterparty(id="C2", name="Beta"), Counterparty(id="C1", name="Alpha")]
    orders = [
        SaleOrder(id=f"ORD-{i}", customer_name="Alpha" if i % 2 else "Beta", total_amount=10.1 * i,
                  payment_method="debt")
        for i in range(1, 8)
    ]

    forward = reconcile_clients(clients, orders, [])
    backward = reconcile_clients(list(reversed(clients)), list(reversed(orders)), [])

    assert [d.counterparty_id for d in forward] == ["C1", "C2"]
    assert forward == backward


def test_order_ids_in_descriptions_match_whole_ids_only():
    assert mentions_id("migrated ord-1", "ord-1")
    assert mentions_id("ord-1, ord-2", "ord-1")
    assert not mentions_id("payment for ord-12", "ord-1")
    assert not mentions_id("xord-1", "ord-1")


def test_payment_mentioning_a_longer_order_id_still_reduces_debt():
    orders = [
        SaleOrder(id="ORD-1", client_id="C1", total_amount=100, payment_method="debt", payment_status="unpaid"),
        SaleOrder(id="ORD-12", client_id="C1", total_amount=50, amount_paid=50),
    ]
    transactions = [LedgerTransaction(id="TX-1", kind="client_payment", amount=30, related_id="C1",
                                      description="balance after ORD-12")]

    debt = client_debt(orders, transactions)["C1"]

    assert debt.record_ids == ("ORD-1",)
    assert debt.total_debt == pytest.approx(70.0)
