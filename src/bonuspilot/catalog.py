"""
BonusPilot - Catalog Loader
---------------------------
Reads the card catalog and user settings (YAML) and the household wallet
(CSV) into the plain records the valuation and rules engines work on.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

import pandas as pd
import yaml

from bonuspilot import settings
from bonuspilot.currency_values import CurrencyValueContext, build_value_context
from bonuspilot.models import (
    BonusTier,
    Card,
    CardOffer,
    ElevatedEarning,
    IntroApr,
    PointValueTemplate,
    RewardCurrency,
    WalletCardApproval,
    WalletEntry,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Catalog:
    currencies: list[RewardCurrency] = field(default_factory=list)
    templates: list[PointValueTemplate] = field(default_factory=list)
    cards: list[Card] = field(default_factory=list)
    offers: list[CardOffer] = field(default_factory=list)

    @property
    def cards_by_id(self) -> dict[str, Card]:
        return {card.id: card for card in self.cards}


@dataclass(slots=True)
class UserSettings:
    currency_values: dict[str, float] = field(default_factory=dict)
    selected_template_id: str | None = None
    players: dict[int, str] = field(default_factory=dict)

    def player_name(self, player_number: int) -> str:
        return self.players.get(player_number) or f"P{player_number}"


def _read_yaml(path):
    if not os.path.exists(path):
        raise FileNotFoundError(f"File not found at {path}")
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


# ==========================================================
# CATALOG
# ==========================================================
def _offer_from_config(card_id: str, entry: dict) -> CardOffer:
    return CardOffer(
        id=str(entry["id"]),
        card_id=card_id,
        bonuses=[BonusTier(**b) for b in entry.get("bonuses") or []],
        elevated_earnings=[ElevatedEarning(**e) for e in entry.get("elevated_earnings") or []],
        intro_aprs=[IntroApr(**a) for a in entry.get("intro_aprs") or []],
        is_active=entry.get("is_active", True),
        is_archived=entry.get("is_archived", False),
        offer_description=entry.get("offer_description"),
        internal_description=entry.get("internal_description"),
        offer_type=entry.get("offer_type", "direct"),
        first_year_af_waived=entry.get("first_year_af_waived", False),
        expires_at=entry.get("expires_at"),
        application_url=entry.get("application_url"),
    )


def parse_catalog(data: dict) -> Catalog:
    catalog = Catalog(
        currencies=[RewardCurrency(**c) for c in data.get("currencies") or []],
        templates=[
            PointValueTemplate(
                id=str(t["id"]),
                name=t.get("name", str(t["id"])),
                is_default=t.get("is_default", False),
                values={str(k): float(v) for k, v in (t.get("values") or {}).items()},
            )
            for t in data.get("templates") or []
        ],
    )
    for entry in data.get("cards") or []:
        entry = dict(entry)
        offers = entry.pop("offers", None) or []
        card = Card(**entry)
        catalog.cards.append(card)
        catalog.offers.extend(_offer_from_config(card.id, o) for o in offers)
    return catalog


def load_catalog(path: str | None = None) -> Catalog:
    path = path or settings.catalog_path()
    catalog = parse_catalog(_read_yaml(path))
    logger.info("Loaded %d cards / %d offers from %s", len(catalog.cards), len(catalog.offers), path)
    return catalog


def load_user_settings(path: str | None = None) -> UserSettings:
    path = path or settings.user_values_path()
    data = _read_yaml(path)
    return UserSettings(
        currency_values={str(k): float(v) for k, v in (data.get("currency_values") or {}).items()},
        selected_template_id=data.get("selected_template_id"),
        players={int(k): str(v) for k, v in (data.get("players") or {}).items()},
    )


def value_context(catalog: Catalog, user: UserSettings | None = None) -> CurrencyValueContext:
    user = user or UserSettings()
    return build_value_context(catalog.currencies, catalog.templates, user.currency_values, user.selected_template_id)


# ==========================================================
# WALLET
# ==========================================================
def _as_datetime(value):
    ts = pd.to_datetime(value, errors="coerce")
    return None if pd.isna(ts) else ts.to_pydatetime()


def load_wallet(path: str | None = None) -> list[WalletEntry]:
    path = path or settings.wallet_path()
    if not os.path.exists(path):
        raise FileNotFoundError(f"Wallet not found at {path}")

    df = pd.read_csv(path)
    df.columns = [c.strip().lower().replace(" ", "_") for c in df.columns]
    df = df[df["player_number"].notna() & df["card_id"].notna()]

    entries = [
        WalletEntry(
            card_id=str(row["card_id"]),
            player_number=int(row["player_number"]),
            approval_date=_as_datetime(row.get("approval_date")),
            closed_date=_as_datetime(row.get("closed_date")),
        )
        for _, row in df.iterrows()
    ]
    logger.info("Loaded %d wallet cards from %s", len(entries), path)
    return entries


def open_entries(wallet: list[WalletEntry]) -> list[WalletEntry]:
    return [w for w in wallet if w.closed_date is None]


def wallet_approvals(wallet: list[WalletEntry], cards: list[Card]) -> list[WalletCardApproval]:
    """Open wallet cards joined with their catalog card, for the card rules."""
    cards_by_id = {card.id: card for card in cards}
    approvals = []
    for entry in open_entries(wallet):
        card = cards_by_id.get(entry.card_id)
        if card is None:
            logger.warning("Wallet card %s is not in the catalog", entry.card_id)
            continue
        approvals.append(
            WalletCardApproval(
                card_id=card.id,
                player_number=entry.player_number,
                issuer_name=card.issuer_name or "Unknown",
                brand_name=card.brand_name,
                product_type=card.product_type or "personal",
                card_charge_type=card.card_charge_type,
                approval_date=entry.approval_date,
            )
        )
    return approvals


def player_currencies(wallet: list[WalletEntry], cards: list[Card]) -> dict[int, set[str]]:
    """Player -> primary currencies of the open cards they hold."""
    cards_by_id = {card.id: card for card in cards}
    held: dict[int, set[str]] = {}
    for entry in open_entries(wallet):
        card = cards_by_id.get(entry.card_id)
        if card is None or not card.primary_currency_id:
            continue
        held.setdefault(entry.player_number, set()).add(card.primary_currency_id)
    return held


def wallet_players(wallet: list[WalletEntry], user: UserSettings | None = None) -> list[int]:
    players = {w.player_number for w in wallet}
    if user:
        players.update(user.players)
    return sorted(players)
