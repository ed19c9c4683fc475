import math

import pytest

from bonuspilot.currency_values import CurrencyValueContext
from bonuspilot.models import BonusTier, Card, CardOffer
from bonuspilot.returns import (
    compute_return_on_spend,
    format_ros,
    primary_spend_requirement_cents,
    ros_breakdown,
    value_offer,
)


def test_no_spend_with_bonus_is_infinite():
    assert compute_return_on_spend(0, 50000, 1, 1.5) == math.inf


def test_one_dollar_spend_is_still_infinite():
    assert compute_return_on_spend(100, 50000, 1, 1.5) == math.inf


def test_token_spend_without_bonus_is_zero():
    assert compute_return_on_spend(100, 0, 1, 1.5) == 0
    assert compute_return_on_spend(None, None, None, None) == 0


def test_hand_computed_return():
    # $6,000 spend, $1,250 bonus, 1x at 1.25c -> ($1,250 + $75) / $6,000
    assert compute_return_on_spend(600000, 125000, 1, 1.25) == pytest.approx(22.0833, rel=1e-4)


def test_just_over_one_dollar_uses_formula():
    result = compute_return_on_spend(101, 0, 1, 1.0)
    assert math.isfinite(result)
    assert result == pytest.approx(1.0)


def test_primary_spend_requirement_is_largest_tier():
    offer = CardOffer("o", "c", bonuses=[
        BonusTier("points", 300000, points_amount=50000, currency_id="ur"),
        BonusTier("benefit", 0, default_benefit_value_cents=10000),
        BonusTier("cash", 500000, cash_amount_cents=10000),
    ])
    assert primary_spend_requirement_cents(offer) == 500000
    assert primary_spend_requirement_cents(CardOffer("o", "c")) == 0


def test_value_offer(currencies):
    context = CurrencyValueContext(currency_table=currencies)
    card = Card("csp", "Sapphire Preferred", "Chase", default_earn_rate=1, primary_currency_id="ur")
    offer = CardOffer("o", "csp", bonuses=[BonusTier("points", 400000, points_amount=60000, currency_id="ur")])

    result = value_offer(card, offer, context)
    assert result.bonus_value_cents == pytest.approx(90000)
    assert result.spend_requirement_dollars == 4000
    # ($900 + 4000 * 1.5c) / $4,000
    assert result.return_on_spend_percent == pytest.approx((900 + 60) / 4000 * 100)

    lines = ros_breakdown(result, card.default_earn_rate, 1.5)
    assert lines[0] == "Spend: $4,000"
    assert lines[-1] == "ROS: 24.0%"


def test_first_purchase_breakdown(currencies):
    context = CurrencyValueContext(currency_table=currencies)
    card = Card("hh", "Hilton", "American Express", default_earn_rate=3, primary_currency_id="mr")
    offer = CardOffer("o", "hh", bonuses=[BonusTier("points", 100, points_amount=70000, currency_id="mr")])
    result = value_offer(card, offer, context)
    assert math.isinf(result.return_on_spend_percent)
    assert ros_breakdown(result, 3, 1.6) == ["First purchase only", "Bonus Value: $1,120", "ROS: ∞ (infinite)"]


def test_format_ros():
    assert format_ros(math.inf) == "∞"
    assert format_ros(22.08) == "22.1%"
    assert format_ros(250.4) == "250%"
