from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

CURRENCY_TYPES = (
    "transferable_points",
    "airline_miles",
    "hotel_points",
    "cash_back",
    "non_transferable_points",
    "other",
)


@dataclass(frozen=True, slots=True)
class RewardCurrency:
    id: str
    name: str
    code: str
    currency_type: str = "other"
    base_value_cents: float | None = None


@dataclass(frozen=True, slots=True)
class PointValueTemplate:
    id: str
    name: str
    is_default: bool = False
    values: dict[str, float] = field(default_factory=dict)


@dataclass(slots=True)
class Card:
    id: str
    name: str
    issuer_name: str
    brand_name: str | None = None
    product_type: str = "personal"
    card_charge_type: str | None = None
    annual_fee: float = 0.0
    default_earn_rate: float = 1.0
    primary_currency_id: str | None = None
    secondary_currency_id: str | None = None
    exclude_from_recommendations: bool = False
    slug: str = ""


@dataclass(slots=True)
class BonusTier:
    component_type: str
    spend_requirement_cents: float = 0
    time_period: int = 0
    time_period_unit: str = "months"
    points_amount: float | None = None
    currency_id: str | None = None
    cash_amount_cents: float | None = None
    benefit_description: str | None = None
    default_benefit_value_cents: float | None = None
    id: str = ""


@dataclass(slots=True)
class ElevatedEarning:
    elevated_rate: float
    duration: int | None = None
    duration_unit: str = "months"
    category_id: int | None = None
    category_name: str | None = None
    id: str = ""


@dataclass(slots=True)
class IntroApr:
    apr_type: str
    apr_rate: float
    duration: int
    duration_unit: str = "months"
    id: str = ""


@dataclass(slots=True)
class CardOffer:
    id: str
    card_id: str
    bonuses: list[BonusTier] = field(default_factory=list)
    elevated_earnings: list[ElevatedEarning] = field(default_factory=list)
    intro_aprs: list[IntroApr] = field(default_factory=list)
    is_active: bool = True
    is_archived: bool = False
    offer_description: str | None = None
    internal_description: str | None = None
    offer_type: str = "direct"
    first_year_af_waived: bool = False
    expires_at: str | None = None
    application_url: str | None = None

    @property
    def is_live(self) -> bool:
        return self.is_active and not self.is_archived


@dataclass(slots=True)
class WalletEntry:
    """Raw user_wallets row: one card held by one player."""

    card_id: str
    player_number: int
    approval_date: datetime | None = None
    closed_date: datetime | None = None


@dataclass(frozen=True, slots=True)
class WalletCardApproval:
    card_id: str
    player_number: int
    issuer_name: str
    brand_name: str | None = None
    product_type: str = "personal"
    card_charge_type: str | None = None
    approval_date: datetime | None = None


@dataclass(frozen=True, slots=True)
class EligibilityVerdict:
    eligible: bool
    reason: str | None = None
    description: str | None = None

    @classmethod
    def blocked(cls, reason: str, description: str | None = None) -> "EligibilityVerdict":
        return cls(eligible=False, reason=reason, description=description or reason)


ELIGIBLE = EligibilityVerdict(eligible=True)
