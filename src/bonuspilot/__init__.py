"""BonusPilot: signup-bonus valuation and issuer eligibility rules."""

from bonuspilot.bonus_engine import compute_bonus_value, effective_currency_for_bonus
from bonuspilot.card_rules import CandidateCard, check_eligibility
from bonuspilot.currency_values import CurrencyValueContext, resolve_currency_value_cents
from bonuspilot.keyword_index import build_bidirectional_index
from bonuspilot.returns import compute_return_on_spend, value_offer

__version__ = "0.1.0"

__all__ = [
    "CandidateCard",
    "CurrencyValueContext",
    "build_bidirectional_index",
    "check_eligibility",
    "compute_bonus_value",
    "compute_return_on_spend",
    "effective_currency_for_bonus",
    "resolve_currency_value_cents",
    "value_offer",
]
