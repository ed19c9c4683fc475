"""
BonusPilot - Currency Values
----------------------------
Single cascade for pricing a reward currency, in cents per unit:

    user override  >  selected template  >  currency base value  >  1

Every screen that prices points goes through resolve_currency_value_cents so a
personal value for a currency shows up the same way everywhere.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterable, Mapping

from bonuspilot.models import PointValueTemplate, RewardCurrency

FALLBACK_VALUE_CENTS = 1.0


def coerce_number(value, default: float = 0.0) -> float:
    """Turn None, NaN and junk into ``default`` so nothing leaks into a dollar amount."""
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(number):
        return default
    return number


def _lookup(values: Mapping[str, float], currency_id: str) -> float | None:
    value = coerce_number(values.get(currency_id), default=math.nan)
    return None if math.isnan(value) else value


@dataclass(frozen=True, slots=True)
class CurrencyValueContext:
    user_overrides: Mapping[str, float] = field(default_factory=dict)
    template_values: Mapping[str, float] = field(default_factory=dict)
    currency_table: Mapping[str, RewardCurrency] = field(default_factory=dict)

    def resolve(self, currency_id: str | None) -> float:
        return resolve_currency_value_cents(currency_id, self)

    def currency(self, currency_id: str | None) -> RewardCurrency | None:
        if not currency_id:
            return None
        return self.currency_table.get(currency_id)

    def currency_name(self, currency_id: str | None) -> str | None:
        currency = self.currency(currency_id)
        return currency.name if currency else None


def resolve_currency_value_cents(currency_id: str | None, context: CurrencyValueContext) -> float:
    if not currency_id:
        return FALLBACK_VALUE_CENTS

    override = _lookup(context.user_overrides, currency_id)
    if override is not None:
        return override

    template_value = _lookup(context.template_values, currency_id)
    if template_value is not None:
        return template_value

    currency = context.currency_table.get(currency_id)
    if currency is not None:
        base = coerce_number(currency.base_value_cents, default=math.nan)
        if not math.isnan(base):
            return base

    return FALLBACK_VALUE_CENTS


def select_template(templates: Iterable[PointValueTemplate], selected_template_id: str | None = None) -> PointValueTemplate | None:
    """The user's chosen template, else the one flagged as the system default."""
    templates = list(templates)
    if selected_template_id:
        for template in templates:
            if template.id == selected_template_id:
                return template
    for template in templates:
        if template.is_default:
            return template
    return None


def build_value_context(
    currencies: Iterable[RewardCurrency],
    templates: Iterable[PointValueTemplate] = (),
    user_overrides: Mapping[str, float] | None = None,
    selected_template_id: str | None = None,
) -> CurrencyValueContext:
    template = select_template(templates, selected_template_id)
    return CurrencyValueContext(
        user_overrides=dict(user_overrides or {}),
        template_values=dict(template.values) if template else {},
        currency_table={c.id: c for c in currencies},
    )
