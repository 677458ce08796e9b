from decimal import Decimal

import pytest

from app.domain.errors import InvalidAmountError
from app.domain.services.fee_split_calculator import FeeSplitCalculator, compute_split
from app.domain.value_objects.fee_split import FeeSplit


def test_default_rate_split():
    split = compute_split(8000)

    assert split == FeeSplit(gross_amount=8000, platform_fee_amount=1200, instructor_net_amount=6800)


@pytest.mark.parametrize(
    "gross, expected_fee",
    [
        (10, 2),  # 1.5 -> 2 (half-up)
        (7, 1),  # 1.05 -> 1
        (3, 0),  # 0.45 -> 0
        (1, 0),
        (9999, 1500),  # 1499.85 -> 1500
        (15050, 2258),  # 2257.5 -> 2258
    ],
)
def test_fee_rounds_half_up_and_net_is_remainder(gross, expected_fee):
    split = compute_split(gross)

    assert split.platform_fee_amount == expected_fee
    assert split.instructor_net_amount == gross - expected_fee


def test_fee_plus_net_always_equals_gross():
    for gross in range(1, 5001, 7):
        split = compute_split(gross, Decimal("0.175"))
        assert split.platform_fee_amount + split.instructor_net_amount == gross


def test_rate_bounds_are_allowed():
    assert compute_split(8000, Decimal("0")).platform_fee_amount == 0
    assert compute_split(8000, Decimal("1")).instructor_net_amount == 0


def test_rate_accepts_string():
    assert compute_split(8000, "0.20").platform_fee_amount == 1600


@pytest.mark.parametrize("gross", [0, -100, 80.5, "8000", True, None])
def test_invalid_gross_amount(gross):
    with pytest.raises(InvalidAmountError):
        compute_split(gross)


@pytest.mark.parametrize("rate", [Decimal("-0.01"), Decimal("1.01"), "abc", Decimal("NaN")])
def test_invalid_rate(rate):
    with pytest.raises(InvalidAmountError):
        compute_split(8000, rate)


def test_calculator_uses_configured_rate():
    calculator = FeeSplitCalculator(Decimal("0.10"))

    assert calculator.fee_rate == Decimal("0.10")
    assert calculator.compute_split(8000).platform_fee_amount == 800


def test_calculator_rejects_invalid_rate_on_construction():
    with pytest.raises(InvalidAmountError):
        FeeSplitCalculator(Decimal("2"))


def test_fee_split_rejects_inconsistent_parts():
    with pytest.raises(ValueError):
        FeeSplit(gross_amount=100, platform_fee_amount=20, instructor_net_amount=70)
