"""
BonusPilot - Bonus Engine
-------------------------
✅ Values every bonus tier of an offer in cents (points, cash, benefit)
✅ Sums tiers into one comparable number
✅ Swaps a bonus into the card's secondary currency when player 1 already
   holds a card earning it (one code path for the number and the label)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Mapping

from bonuspilot.currency_values import CurrencyValueContext, coerce_number
from bonuspilot.models import BonusTier, Card, CardOffer

logger = logging.getLogger(__name__)

SUBSTITUTION_PLAYER = 1
CASH_BACK = "cash_back"


@dataclass(frozen=True, slots=True)
class EffectiveCurrency:
    currency_id: str | None
    currency_name: str | None
    value_cents: float
    is_substituted: bool = False


@dataclass(frozen=True, slots=True)
class ComponentValue:
    bonus_id: str
    component_type: str
    value_cents: float
    label: str
    detail: str | None = None
    currency_name: str | None = None
    is_substituted: bool = False


@dataclass(frozen=True, slots=True)
class BonusValuation:
    total_value_cents: float
    components: tuple[ComponentValue, ...] = field(default_factory=tuple)

    @property
    def total_value_dollars(self) -> float:
        return self.total_value_cents / 100


# ==========================================================
# EFFECTIVE CURRENCY
# ==========================================================
def held_currencies(player_currencies: Mapping[int, Iterable[str]] | None, player_number: int = SUBSTITUTION_PLAYER) -> set[str]:
    if not player_currencies:
        return set()
    return set(player_currencies.get(player_number) or ())


def effective_currency_for_bonus(
    bonus: BonusTier,
    card: Card | None,
    context: CurrencyValueContext,
    player_currencies: Mapping[int, Iterable[str]] | None = None,
) -> EffectiveCurrency:
    """The currency a bonus should be priced and shown in."""
    native = EffectiveCurrency(
        currency_id=bonus.currency_id,
        currency_name=context.currency_name(bonus.currency_id),
        value_cents=context.resolve(bonus.currency_id),
    )
    if bonus.component_type != "points" or not bonus.currency_id or card is None:
        return native

    secondary_id = card.secondary_currency_id
    if bonus.currency_id != card.primary_currency_id or not secondary_id:
        return native

    if secondary_id not in held_currencies(player_currencies):
        return native

    logger.debug("Bonus %s on %s revalued in secondary currency %s", bonus.id, card.id, secondary_id)
    return EffectiveCurrency(
        currency_id=secondary_id,
        currency_name=context.currency_name(secondary_id),
        value_cents=context.resolve(secondary_id),
        is_substituted=True,
    )


# ==========================================================
# FORMATTING
# ==========================================================
def _dollars(cents: float) -> str:
    return f"${cents / 100:,.0f}"


def format_bonus(
    bonus: BonusTier,
    card: Card | None,
    context: CurrencyValueContext,
    player_currencies: Mapping[int, Iterable[str]] | None = None,
) -> str:
    if bonus.component_type == "points":
        effective = effective_currency_for_bonus(bonus, card, context, player_currencies)
        amount = f"{coerce_number(bonus.points_amount):,.0f}"
        primary = context.currency(card.primary_currency_id) if card else None
        is_cash_back = primary is not None and primary.currency_type == CASH_BACK
        if effective.currency_name and (effective.is_substituted or not is_cash_back):
            return f"{amount} {effective.currency_name}"
        return f"{amount} points"
    if bonus.component_type == "cash":
        return _dollars(coerce_number(bonus.cash_amount_cents))
    return bonus.benefit_description or "Benefit"


# ==========================================================
# VALUATION
# ==========================================================
def value_bonus_tier(
    bonus: BonusTier,
    card: Card | None,
    context: CurrencyValueContext,
    player_currencies: Mapping[int, Iterable[str]] | None = None,
) -> ComponentValue:
    label = format_bonus(bonus, card, context, player_currencies)

    if bonus.component_type == "points":
        points = coerce_number(bonus.points_amount)
        if not bonus.currency_id:
            logger.warning("Points bonus %s has no currency; valued at 0", bonus.id or "<unnamed>")
            return ComponentValue(bonus.id, "points", 0.0, label)
        effective = effective_currency_for_bonus(bonus, card, context, player_currencies)
        value = points * effective.value_cents
        suffix = f" ({effective.currency_name})" if effective.is_substituted else ""
        detail = f"{points:,.0f} × {effective.value_cents:.2f}¢ = {_dollars(value)}{suffix}"
        return ComponentValue(
            bonus.id, "points", value, label, detail,
            currency_name=effective.currency_name,
            is_substituted=effective.is_substituted,
        )

    if bonus.component_type == "cash":
        value = coerce_number(bonus.cash_amount_cents)
        return ComponentValue(bonus.id, "cash", value, label, f"{_dollars(value)} cash")

    if bonus.component_type == "benefit":
        value = coerce_number(bonus.default_benefit_value_cents)
        detail = f"{bonus.benefit_description or 'Benefit'}: {_dollars(value)}"
        return ComponentValue(bonus.id, "benefit", value, label, detail)

    logger.warning("Unknown bonus component type %r on %s; valued at 0", bonus.component_type, bonus.id)
    return ComponentValue(bonus.id, str(bonus.component_type), 0.0, label)


def compute_bonus_value(
    offer: CardOffer,
    context: CurrencyValueContext,
    card: Card | None = None,
    player_currencies: Mapping[int, Iterable[str]] | None = None,
) -> BonusValuation:
    components = tuple(
        value_bonus_tier(bonus, card, context, player_currencies) for bonus in offer.bonuses
    )
    total = sum(c.value_cents for c in components)
    return BonusValuation(total_value_cents=total, components=components)


def value_breakdown(valuation: BonusValuation) -> list[str]:
    """Lines for the bonus value tooltip; a total line only when there is more than one."""
    lines = [c.detail for c in valuation.components if c.detail and c.value_cents]
    if len(lines) > 1:
        lines.append(f"Total: {_dollars(valuation.total_value_cents)}")
    return lines
