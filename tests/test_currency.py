import pytest

from balance_engine.models import Diagnostics
from balance_engine.tools.currency import resolve_rate, to_local, to_usd
from balance_engine.utils import num


def test_usd_amount_passes_through():
    assert to_usd(150, "USD", None, 12800) == 150.0
    assert to_usd(150, "usd", 0, 0) == 150.0


def test_local_amount_uses_default_rate_without_snapshot():
    diagnostics = Diagnostics()
    assert to_usd(1_280_000, "UZS", None, 12800, diagnostics) == pytest.approx(100.0)
    assert diagnostics.rate_fallbacks == 1
    assert diagnostics.unreliable_inputs == 0


def test_snapshot_rate_wins_over_default():
    diagnostics = Diagnostics()
    assert to_usd(1_300_000, "UZS", 13000, 12800, diagnostics) == pytest.approx(100.0)
    assert diagnostics.rate_fallbacks == 0


def test_non_positive_snapshot_falls_back():
    assert resolve_rate(0, 12800) == 12800
    assert resolve_rate(-5, 12800) == 12800
    assert resolve_rate(None, 12800) == 12800


def test_missing_rates_normalize_to_zero_and_count_unreliable():
    diagnostics = Diagnostics()
    assert to_usd(500_000, "UZS", None, 0, diagnostics) == 0.0
    assert to_local(10, "USD", None, 0, diagnostics) == 0.0
    assert diagnostics.unreliable_inputs == 2
    assert resolve_rate(None, 0) is None


def test_to_local_multiplies_usd_only():
    assert to_local(10, "USD", 12000, 12800) == pytest.approx(120_000)
    assert to_local(50_000, "UZS", None, 12800) == 50_000


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("1 250,50", 1250.5),
        ("$300", 300.0),
        (None, 0.0),
        ("abc", 0.0),
        (float("nan"), 0.0),
        (float("inf"), 0.0),
        (True, 1.0),
        (42, 42.0),
    ],
)
def test_num_parses_defensively(raw, expected):
    assert num(raw) == expected
