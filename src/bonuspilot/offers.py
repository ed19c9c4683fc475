"""
BonusPilot - Offers Table
-------------------------
✅ One row per live offer (inactive and archived offers are skipped)
✅ Bonus value, spend requirement and return on spend from the engines
✅ Search with keyword aliases, filters, sorting and colour-scale bounds
✅ Offer terms: spend deadlines, elevated earnings, intro APR, badges
✅ Writes offers_review.csv for the dashboard
"""

from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, Mapping

import pandas as pd

from bonuspilot import catalog as catalog_io
from bonuspilot import settings
from bonuspilot.bonus_engine import CASH_BACK, value_breakdown
from bonuspilot.card_rules import CandidateCard, RuleBook, check_eligibility, eligibility_by_player
from bonuspilot.currency_values import CurrencyValueContext, coerce_number
from bonuspilot.keyword_index import KeywordIndexes, matches_search
from bonuspilot.models import (
    BonusTier,
    Card,
    CardOffer,
    ElevatedEarning,
    EligibilityVerdict,
    IntroApr,
    WalletCardApproval,
    WalletEntry,
)
from bonuspilot.returns import ValuationResult, format_ros, ros_breakdown, value_offer

logger = logging.getLogger(__name__)

SORT_KEYS = ("bonus_value", "name", "return_on_spend", "annual_fee")
MAX_VALUE_SCALE_DOLLARS = 1000
MAX_ROS_SCALE_PERCENT = 100
SPECTRUM_BANDS = ((0.8, "emerald"), (0.6, "green"), (0.4, "yellow"), (0.2, "orange"))


@dataclass(slots=True)
class OfferRow:
    card: Card
    offer: CardOffer
    valuation: ValuationResult
    currency_name: str
    currency_type: str
    currency_value_cents: float
    owners: list[int] = field(default_factory=list)
    eligibility: dict[int, EligibilityVerdict] = field(default_factory=dict)

    @property
    def id(self) -> str:
        return f"{self.card.id}-{self.offer.id}"

    @property
    def bonus_value(self) -> float:
        """Dollars."""
        return self.valuation.bonus_value_cents / 100

    @property
    def return_on_spend(self) -> float:
        return self.valuation.return_on_spend_percent


# ==========================================================
# BUILD ROWS
# ==========================================================
def owners_by_card(wallet: Iterable[WalletEntry]) -> dict[str, list[int]]:
    owners: dict[str, set[int]] = {}
    for entry in wallet:
        if entry.closed_date is None:
            owners.setdefault(entry.card_id, set()).add(entry.player_number)
    return {card_id: sorted(players) for card_id, players in owners.items()}


def build_offer_rows(
    cards: Iterable[Card],
    offers: Iterable[CardOffer],
    context: CurrencyValueContext,
    wallet: Iterable[WalletEntry] = (),
    approvals: Iterable[WalletCardApproval] = (),
    player_currencies: Mapping[int, Iterable[str]] | None = None,
    players: Iterable[int] = (),
    now=None,
    rule_book: RuleBook | None = None,
) -> list[OfferRow]:
    cards_by_id = {card.id: card for card in cards}
    owners = owners_by_card(wallet)
    approvals = list(approvals)
    players = list(players)

    rows = []
    for offer in offers:
        if not offer.is_live:
            continue
        card = cards_by_id.get(offer.card_id)
        if card is None:
            logger.warning("Offer %s points at unknown card %s", offer.id, offer.card_id)
            continue

        currency = context.currency(card.primary_currency_id)
        rows.append(
            OfferRow(
                card=card,
                offer=offer,
                valuation=value_offer(card, offer, context, player_currencies),
                currency_name=currency.name if currency else "Unknown",
                currency_type=currency.currency_type if currency else "other",
                currency_value_cents=context.resolve(card.primary_currency_id),
                owners=owners.get(card.id, []),
                eligibility=eligibility_by_player(card, players, approvals, now, rule_book) if players else {},
            )
        )
    return rows


# ==========================================================
# FILTER + SORT
# ==========================================================
def filter_offer_rows(
    rows: Iterable[OfferRow],
    search: str = "",
    product_type: str | None = None,
    brand_name: str | None = None,
    currency_type: str | None = None,
    currency_name: str | None = None,
    missing_for_player: int | None = None,
    eligible_for_player: int | None = None,
    indexes: KeywordIndexes | None = None,
) -> list[OfferRow]:
    result = []
    for row in rows:
        if row.card.exclude_from_recommendations:
            continue
        if search.strip() and not matches_search(
            search, row.card.name, row.card.issuer_name, row.currency_name,
            row.offer.internal_description, indexes,
        ):
            continue
        if product_type and row.card.product_type != product_type:
            continue
        if brand_name and row.card.brand_name != brand_name:
            continue
        if currency_type and row.currency_type != currency_type:
            continue
        if currency_name and row.currency_name != currency_name:
            continue
        if missing_for_player is not None and missing_for_player in row.owners:
            continue
        if eligible_for_player is not None:
            verdict = row.eligibility.get(eligible_for_player)
            if verdict is not None and not verdict.eligible:
                continue
        result.append(row)
    return result


def sort_offer_rows(rows: Iterable[OfferRow], key: str = "bonus_value", descending: bool | None = None) -> list[OfferRow]:
    if key not in SORT_KEYS:
        raise ValueError(f"Unknown sort key {key!r}; expected one of {SORT_KEYS}")
    if descending is None:
        descending = key != "name"

    getters = {
        "bonus_value": lambda r: r.bonus_value,
        "name": lambda r: r.card.name.lower(),
        "return_on_spend": lambda r: r.return_on_spend,
        "annual_fee": lambda r: r.card.annual_fee,
    }
    return sorted(rows, key=getters[key], reverse=descending)


# ==========================================================
# COLOUR SCALE
# ==========================================================
def value_stats(rows: Iterable[OfferRow]) -> dict[str, float]:
    """Colour-scale bounds; infinite returns and zeros never stretch the scale."""
    rows = list(rows)
    values = [r.bonus_value for r in rows if r.bonus_value > 0]
    ros = [r.return_on_spend for r in rows if r.return_on_spend > 0 and not math.isinf(r.return_on_spend)]
    return {
        "min_value": min(values + [0]),
        "max_value": min(max(values + [1]), MAX_VALUE_SCALE_DOLLARS),
        "min_ros": min(ros + [0]),
        "max_ros": min(max(ros + [1]), MAX_ROS_SCALE_PERCENT),
    }


def spectrum_band(value: float, low: float, high: float) -> str:
    """red (worst) .. emerald (best); 'neutral' when the scale is flat."""
    if high == low:
        return "neutral"
    ratio = (value - low) / (high - low)
    for cutoff, band in SPECTRUM_BANDS:
        if ratio >= cutoff:
            return band
    return "red"


# ==========================================================
# OFFER TERMS
# ==========================================================
SPEND_UNIT_LABELS = {"days": "days", "statement_cycles": "statement cycles"}
OFFER_TYPE_BADGES = {"nll": "NLL", "targeted": "Targeted"}
VISIBLE_BONUS_TIERS = 2


def _number(value) -> str:
    return f"{coerce_number(value):g}"


def _short_unit(unit: str | None) -> str:
    return "d" if unit == "days" else "mo"


def spend_terms(bonus: BonusTier) -> str:
    """'after approval', 'after first purchase' or 'after $4,000 in 3 months'."""
    spend_dollars = coerce_number(bonus.spend_requirement_cents) / 100
    if spend_dollars == 0:
        return "after approval"
    if spend_dollars == 1:
        return "after first purchase"
    unit = SPEND_UNIT_LABELS.get(bonus.time_period_unit, "months")
    return f"after ${spend_dollars:,.0f} in {bonus.time_period} {unit}"


def elevated_earning_terms(earning: ElevatedEarning, currency_type: str) -> str:
    rate = f"{_number(earning.elevated_rate)}%" if currency_type == CASH_BACK else f"{_number(earning.elevated_rate)}x"
    terms = f"{rate} on {earning.category_name or 'all purchases'}"
    if earning.duration:
        terms += f" for {earning.duration}{_short_unit(earning.duration_unit)}"
    return terms


def intro_apr_terms(apr: IntroApr) -> str:
    return f"{_number(apr.apr_rate)}% APR for {apr.duration}{_short_unit(apr.duration_unit)}"


def expiry_label(expires_at) -> str:
    if not expires_at:
        return ""
    ts = pd.to_datetime(expires_at, errors="coerce")
    if pd.isna(ts):
        logger.warning("Unreadable offer expiry %r", expires_at)
        return ""
    return f"Expires: {ts.month}/{ts.day}"


def format_offer_terms(row: OfferRow) -> dict[str, str]:
    """Display strings for an offer's bonuses, extras and badges."""
    offer = row.offer
    tiers = [
        f"{component.label} {spend_terms(bonus)}"
        for bonus, component in zip(offer.bonuses, row.valuation.breakdown.components)
    ]
    hidden = len(tiers) - VISIBLE_BONUS_TIERS
    tiers = tiers[:VISIBLE_BONUS_TIERS]
    if hidden > 0:
        tiers.append(f"+{hidden} more")

    badges = [OFFER_TYPE_BADGES[offer.offer_type]] if offer.offer_type in OFFER_TYPE_BADGES else []
    expiry = expiry_label(offer.expires_at)
    if expiry:
        badges.append(expiry)

    return {
        "bonus_terms": "; ".join(tiers),
        "elevated_earnings": ", ".join(elevated_earning_terms(e, row.currency_type) for e in offer.elevated_earnings),
        "intro_apr": intro_apr_terms(offer.intro_aprs[0]) if offer.intro_aprs else "",
        "af_waived": "AF waived" if offer.first_year_af_waived else "",
        "badges": " · ".join(badges),
        "offer_description": offer.offer_description or "",
        "application_url": offer.application_url or "",
    }


# ==========================================================
# DATAFRAME / REVIEW FILE
# ==========================================================
OFFER_COLUMNS = [
    "id", "card_name", "issuer_name", "brand_name", "product_type", "currency_name",
    "currency_type", "annual_fee", "bonus", "bonus_value", "spend_requirement",
    "return_on_spend", "ros_display", "value_detail", "ros_detail", "owners", "blocked_reasons",
    "bonus_terms", "elevated_earnings", "intro_apr", "af_waived", "badges", "offer_description", "application_url",
]


def offers_frame(rows: Iterable[OfferRow]) -> pd.DataFrame:
    records = []
    for row in rows:
        blocked = {
            f"P{player}": verdict.reason
            for player, verdict in sorted(row.eligibility.items())
            if not verdict.eligible
        }
        records.append({
            "id": row.id,
            "card_name": row.card.name,
            "issuer_name": row.card.issuer_name,
            "brand_name": row.card.brand_name,
            "product_type": row.card.product_type,
            "currency_name": row.currency_name,
            "currency_type": row.currency_type,
            "annual_fee": row.card.annual_fee,
            "bonus": " + ".join(c.label for c in row.valuation.breakdown.components),
            "bonus_value": round(row.bonus_value, 2),
            "spend_requirement": row.valuation.spend_requirement_dollars,
            "return_on_spend": row.return_on_spend,
            "ros_display": format_ros(row.return_on_spend),
            "value_detail": "\n".join(value_breakdown(row.valuation.breakdown)),
            "ros_detail": "\n".join(ros_breakdown(row.valuation, row.card.default_earn_rate, row.currency_value_cents)),
            "owners": ", ".join(f"P{p}" for p in row.owners),
            "blocked_reasons": "; ".join(f"{p}: {reason}" for p, reason in blocked.items()),
            **format_offer_terms(row),
        })
    return pd.DataFrame(records, columns=OFFER_COLUMNS)


def compute_offers(data_dir: str | None = None, now=None) -> pd.DataFrame:
    """Load the data folder, value every live offer and save offers_review.csv."""
    data_dir = data_dir or settings.data_dir()
    output_path = os.path.join(data_dir, "offers_review.csv")

    catalog = catalog_io.load_catalog(os.path.join(data_dir, "catalog.yaml"))
    user = catalog_io.load_user_settings(os.path.join(data_dir, "user_values.yaml"))
    wallet = catalog_io.load_wallet(os.path.join(data_dir, "wallet.csv"))

    rows = build_offer_rows(
        catalog.cards,
        catalog.offers,
        catalog_io.value_context(catalog, user),
        wallet=wallet,
        approvals=catalog_io.wallet_approvals(wallet, catalog.cards),
        player_currencies=catalog_io.player_currencies(wallet, catalog.cards),
        players=catalog_io.wallet_players(wallet, user),
        now=now or datetime.now(timezone.utc),
    )
    df = offers_frame(sort_offer_rows(rows))
    df.to_csv(output_path, index=False)

    print(f"Valued {len(df)} live offers across {df['card_name'].nunique()} cards.")
    print(f"Saved → {output_path}")
    return df


def issuer_eligibility_frame(
    cards: Iterable[Card],
    players: Iterable[int],
    approvals: Iterable[WalletCardApproval],
    now=None,
    player_names: Mapping[int, str] | None = None,
    rule_book: RuleBook | None = None,
) -> pd.DataFrame:
    """One row per player and issuer, judged for a personal card from that issuer."""
    approvals = list(approvals)
    player_names = player_names or {}
    issuers = sorted({card.issuer_name for card in cards if card.issuer_name})

    records = []
    for player in players:
        for issuer in issuers:
            verdict = check_eligibility(CandidateCard(issuer, "personal", player), approvals, now, rule_book)
            records.append({
                "player": player_names.get(player) or f"P{player}",
                "player_number": player,
                "issuer_name": issuer,
                "eligible": verdict.eligible,
                "reason": verdict.reason,
            })
    return pd.DataFrame(records, columns=["player", "player_number", "issuer_name", "eligible", "reason"])


if __name__ == "__main__":
    settings.configure_logging()
    compute_offers()
