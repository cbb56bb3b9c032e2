import pytest

from balance_engine.models import Counterparty, SaleOrder
from balance_engine.tools.matching import (
    EXACT_ID,
    EXACT_NAME,
    SUBSTRING,
    FuzzyMatcher,
    StrictMatcher,
    attribute,
    best_match,
    get_matcher,
)
from balance_engine.utils import EngineError

CLIENTS = [
    Counterparty(id="C1", name="Ali"),
    Counterparty(id="C2", name="Ali Trading", company_name="Ali Trading LLC"),
    Counterparty(id="C3", name="Zarina"),
]


def test_exact_id_beats_fuzzy_name():
    match, score = best_match("C2", "Ali", CLIENTS, FuzzyMatcher())
    assert match.id == "C2"
    assert score == EXACT_ID


def test_exact_name_beats_substring():
    match, score = best_match(None, "  ali ", CLIENTS, FuzzyMatcher())
    assert match.id == "C1"
    assert score == EXACT_NAME


def test_company_name_counts_as_exact():
    match, _ = best_match(None, "ali trading llc", CLIENTS, StrictMatcher())
    assert match.id == "C2"


def test_substring_only_in_fuzzy_strategy():
    fuzzy_match, fuzzy_score = best_match(None, "Trading", CLIENTS, FuzzyMatcher())
    strict_match, strict_score = best_match(None, "Trading", CLIENTS, StrictMatcher())

    assert fuzzy_match.id == "C2"
    assert fuzzy_score == SUBSTRING
    assert strict_match is None
    assert strict_score == 0


def test_ties_resolve_by_counterparty_id():
    twins = [Counterparty(id="B2", name="Bob"), Counterparty(id="B1", name="Bob")]
    assert best_match(None, "Bob", twins)[0].id == "B1"
    assert best_match(None, "Bob", list(reversed(twins)))[0].id == "B1"


def test_unknown_stored_id_falls_back_to_name():
    match, score = best_match("C-DELETED", "Zarina", CLIENTS)
    assert match.id == "C3"
    assert score == EXACT_NAME


def test_attribute_assigns_each_record_once():
    orders = [
        SaleOrder(id="O1", customer_name="Ali Trading"),
        SaleOrder(id="O2", customer_name="Ali"),
        SaleOrder(id="O3", customer_name="Unknown Buyer"),
    ]

    by_owner = attribute(orders, CLIENTS, "client_id", "customer_name", FuzzyMatcher())

    assert [o.id for o in by_owner["C1"]] == ["O2"]
    assert [o.id for o in by_owner["C2"]] == ["O1"]
    assert by_owner["C3"] == []
    assert [o.id for o in by_owner[""]] == ["O3"]


def test_text_mentions():
    assert FuzzyMatcher().text_mentions("Долг Zarina за март", CLIENTS[2])
    assert not StrictMatcher().text_mentions("Долг Zarina за март", CLIENTS[2])


def test_unknown_strategy_is_rejected():
    with pytest.raises(EngineError) as exc:
        get_matcher("phonetic")
    assert exc.value.code == "UNKNOWN_MATCH_STRATEGY"
    assert exc.value.details == {"supported": ["fuzzy", "strict"]}
