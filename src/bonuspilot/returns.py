"""
BonusPilot - Return on Spend
----------------------------
Bonus value plus what the card earns on the required spend itself, as a
percentage of that spend. Offers needing $1 or less with any bonus are
infinite; with no bonus they are 0.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Mapping

from bonuspilot.bonus_engine import BonusValuation, compute_bonus_value
from bonuspilot.currency_values import CurrencyValueContext, coerce_number
from bonuspilot.models import Card, CardOffer

TOKEN_SPEND_DOLLARS = 1


@dataclass(frozen=True, slots=True)
class ValuationResult:
    bonus_value_cents: float
    spend_requirement_cents: float
    return_on_spend_percent: float
    breakdown: BonusValuation

    @property
    def spend_requirement_dollars(self) -> float:
        return self.spend_requirement_cents / 100


def compute_return_on_spend(spend_requirement_cents, bonus_value_cents, earn_rate, currency_value_cents) -> float:
    spend_dollars = coerce_number(spend_requirement_cents) / 100
    bonus_cents = coerce_number(bonus_value_cents)

    if spend_dollars > TOKEN_SPEND_DOLLARS:
        earned_points = spend_dollars * coerce_number(earn_rate)
        earned_value = earned_points * coerce_number(currency_value_cents) / 100
        return (bonus_cents / 100 + earned_value) / spend_dollars * 100

    if bonus_cents > 0:
        return math.inf
    return 0.0


def primary_spend_requirement_cents(offer: CardOffer) -> float:
    """Largest spend requirement across the offer's tiers."""
    return max((coerce_number(b.spend_requirement_cents) for b in offer.bonuses), default=0.0)


def value_offer(
    card: Card,
    offer: CardOffer,
    context: CurrencyValueContext,
    player_currencies: Mapping[int, Iterable[str]] | None = None,
) -> ValuationResult:
    # all tiers are summed before the return on spend sees the total
    valuation = compute_bonus_value(offer, context, card=card, player_currencies=player_currencies)
    spend_cents = primary_spend_requirement_cents(offer)
    ros = compute_return_on_spend(
        spend_cents,
        valuation.total_value_cents,
        coerce_number(card.default_earn_rate, default=1.0),
        context.resolve(card.primary_currency_id),
    )
    return ValuationResult(
        bonus_value_cents=valuation.total_value_cents,
        spend_requirement_cents=spend_cents,
        return_on_spend_percent=ros,
        breakdown=valuation,
    )


def format_ros(percent: float) -> str:
    if math.isinf(percent):
        return "∞"
    if percent >= 100:
        return f"{round(percent)}%"
    return f"{percent:.1f}%"


def ros_breakdown(result: ValuationResult, earn_rate: float, currency_value_cents: float) -> list[str]:
    bonus_dollars = result.bonus_value_cents / 100
    spend_dollars = result.spend_requirement_dollars

    if spend_dollars <= TOKEN_SPEND_DOLLARS:
        spend_text = "No spend required" if spend_dollars == 0 else "First purchase only"
        return [spend_text, f"Bonus Value: ${bonus_dollars:,.0f}", "ROS: ∞ (infinite)" if bonus_dollars > 0 else "ROS: 0%"]

    earn_rate = coerce_number(earn_rate)
    currency_value_cents = coerce_number(currency_value_cents)
    earned_points = spend_dollars * earn_rate
    earned_value = earned_points * currency_value_cents / 100
    return [
        f"Spend: ${spend_dollars:,.0f}",
        f"Earned: {earned_points:,.0f} × {currency_value_cents:.2f}¢ = ${earned_value:,.0f}",
        f"Bonus Value: ${bonus_dollars:,.0f}",
        f"Total Value: ${bonus_dollars + earned_value:,.0f}",
        f"ROS: {format_ros(result.return_on_spend_percent)}",
    ]
