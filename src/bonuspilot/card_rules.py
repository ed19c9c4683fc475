"""
BonusPilot - Card Rules
-----------------------
✅ Loads issuer velocity rules (5/24, 2/90, ...) from issuer_rules.yaml
✅ Counts a player's approvals with pandas (issuer, any issuer, charge type,
   business, flagship brand)
✅ Returns the first rule that blocks a new application, else eligible
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from functools import lru_cache
from typing import Callable, Iterable, Mapping

import pandas as pd
import yaml

from bonuspilot import settings
from bonuspilot.models import ELIGIBLE, Card, EligibilityVerdict, WalletCardApproval

logger = logging.getLogger(__name__)

ISSUER_WINDOW = "issuer-window"
ANY_ISSUER_WINDOW = "any-issuer-window"
LIFETIME_BY_CHARGE_TYPE = "lifetime-by-chargetype"
BUSINESS_WINDOW = "business-window"
BRANDED_ONLY_WINDOW = "branded-only-window"

WINDOW_KINDS = {ISSUER_WINDOW, ANY_ISSUER_WINDOW, BUSINESS_WINDOW, BRANDED_ONLY_WINDOW}
RULE_KINDS = WINDOW_KINDS | {LIFETIME_BY_CHARGE_TYPE}

APPROVAL_COLUMNS = [
    "card_id", "player_number", "issuer_name", "brand_name",
    "product_type", "card_charge_type", "approval_date",
]


class RuleConfigError(ValueError):
    pass


# ==========================================================
# RULE TABLE
# ==========================================================
@dataclass(frozen=True, slots=True)
class IssuerRule:
    issuer_match: tuple[str, ...]
    kind: str
    threshold: int
    reason: str
    window_days: int | None = None
    charge_type: str | None = None
    exclude_charge_type: bool = False
    description: str | None = None

    def applies_to(self, issuer_name: str | None) -> bool:
        return issuer_name in self.issuer_match

    @classmethod
    def from_config(cls, entry: Mapping) -> "IssuerRule":
        issuer = entry.get("issuer")
        issuers = tuple(issuer) if isinstance(issuer, (list, tuple)) else (issuer,)
        kind = entry.get("kind")
        reason = entry.get("reason")

        if not all(issuers):
            raise RuleConfigError(f"Rule {reason!r} has no issuer")
        if kind not in RULE_KINDS:
            raise RuleConfigError(f"Rule {reason!r} has unknown kind {kind!r}")
        if not reason:
            raise RuleConfigError(f"{kind} rule for {issuers} has no reason")
        if entry.get("threshold") is None:
            raise RuleConfigError(f"Rule {reason!r} has no threshold")
        if kind in WINDOW_KINDS and not entry.get("window_days"):
            raise RuleConfigError(f"Rule {reason!r} needs window_days")
        if kind == LIFETIME_BY_CHARGE_TYPE and not entry.get("charge_type"):
            raise RuleConfigError(f"Rule {reason!r} needs charge_type")

        return cls(
            issuer_match=issuers,
            kind=kind,
            threshold=int(entry["threshold"]),
            reason=str(reason),
            window_days=int(entry["window_days"]) if entry.get("window_days") else None,
            charge_type=entry.get("charge_type"),
            exclude_charge_type=bool(entry.get("exclude_charge_type", False)),
            description=entry.get("description"),
        )


@dataclass(frozen=True, slots=True)
class RuleBook:
    rules: tuple[IssuerRule, ...]
    flagship_brands: Mapping[str, str] = field(default_factory=dict)

    def rules_for(self, issuer_name: str | None) -> list[IssuerRule]:
        return [rule for rule in self.rules if rule.applies_to(issuer_name)]

    def flagship_brand(self, issuers: Iterable[str]) -> str | None:
        for issuer in issuers:
            if issuer in self.flagship_brands:
                return self.flagship_brands[issuer]
        return None

    @classmethod
    def from_config(cls, config: Mapping) -> "RuleBook":
        flagship = dict(config.get("flagship_brands") or {})
        rules = tuple(IssuerRule.from_config(entry) for entry in config.get("rules") or [])
        for rule in rules:
            if rule.kind == BRANDED_ONLY_WINDOW and not any(i in flagship for i in rule.issuer_match):
                raise RuleConfigError(f"Rule {rule.reason!r} needs a flagship brand for {rule.issuer_match}")
        return cls(rules=rules, flagship_brands=flagship)


def load_rule_book(path: str | None = None) -> RuleBook:
    return _load_rule_book(path or settings.rules_path())


@lru_cache(maxsize=4)
def _load_rule_book(path: str) -> RuleBook:
    with open(path, "r") as f:
        config = yaml.safe_load(f) or {}
    book = RuleBook.from_config(config)
    logger.debug("Loaded %d issuer rules from %s", len(book.rules), path)
    return book


# ==========================================================
# APPROVAL HISTORY
# ==========================================================
def _as_utc(moment) -> pd.Timestamp:
    ts = pd.Timestamp(moment if moment is not None else datetime.now(timezone.utc))
    return ts.tz_localize("UTC") if ts.tzinfo is None else ts.tz_convert("UTC")


def approvals_frame(approvals: Iterable[WalletCardApproval], player_number: int | None = None) -> pd.DataFrame:
    """Approved cards only (pending entries have no date), optionally for one player."""
    df = pd.DataFrame([asdict(a) for a in approvals], columns=APPROVAL_COLUMNS)
    df["approval_date"] = pd.to_datetime(df["approval_date"], errors="coerce", utc=True)
    df = df[df["approval_date"].notna()]
    if player_number is not None:
        df = df[df["player_number"] == player_number]
    return df


class ApprovalHistory:
    def __init__(self, approvals: Iterable[WalletCardApproval], player_number: int, now=None):
        self.frame = approvals_frame(approvals, player_number)
        self.now = _as_utc(now)

    def _in_window(self, window_days: int) -> pd.Series:
        return self.frame["approval_date"] >= self.now - pd.Timedelta(days=window_days)

    def _from_issuer(self, issuers: Iterable[str]) -> pd.Series:
        return self.frame["issuer_name"].isin(list(issuers))

    def count_issuer_approvals_in_window(self, issuers: Iterable[str], window_days: int) -> int:
        return int((self._from_issuer(issuers) & self._in_window(window_days)).sum())

    def count_all_approvals_in_window(self, window_days: int) -> int:
        return int(self._in_window(window_days).sum())

    def count_issuer_approvals_by_charge_type(self, issuers: Iterable[str], charge_type: str, exclude: bool = False) -> int:
        # cards with no charge type count as credit cards
        is_type = self.frame["card_charge_type"] == charge_type
        mask = ~is_type if exclude else is_type
        return int((self._from_issuer(issuers) & mask).sum())

    def count_issuer_business_approvals_in_window(self, issuers: Iterable[str], window_days: int) -> int:
        is_business = self.frame["product_type"] == "business"
        return int((self._from_issuer(issuers) & is_business & self._in_window(window_days)).sum())

    def count_branded_approvals_in_window(self, issuers: Iterable[str], brand_name: str, window_days: int) -> int:
        is_brand = self.frame["brand_name"] == brand_name
        return int((self._from_issuer(issuers) & is_brand & self._in_window(window_days)).sum())


# ==========================================================
# INTERPRETER
# ==========================================================
@dataclass(frozen=True, slots=True)
class CandidateCard:
    issuer_name: str
    product_type: str = "personal"
    player_number: int = 1
    card_id: str | None = None

    @classmethod
    def from_card(cls, card: Card, player_number: int = 1) -> "CandidateCard":
        return cls(card.issuer_name, card.product_type or "personal", player_number, card.id)


RuleCounter = Callable[[IssuerRule, CandidateCard, ApprovalHistory, RuleBook], "int | None"]


def _issuer_window(rule, candidate, history, book):
    return history.count_issuer_approvals_in_window(rule.issuer_match, rule.window_days)


def _any_issuer_window(rule, candidate, history, book):
    return history.count_all_approvals_in_window(rule.window_days)


def _lifetime_by_charge_type(rule, candidate, history, book):
    return history.count_issuer_approvals_by_charge_type(rule.issuer_match, rule.charge_type, rule.exclude_charge_type)


def _business_window(rule, candidate, history, book):
    if candidate.product_type != "business":
        return None
    return history.count_issuer_business_approvals_in_window(rule.issuer_match, rule.window_days)


def _branded_only_window(rule, candidate, history, book):
    brand = book.flagship_brand(rule.issuer_match)
    if brand is None:
        logger.warning("No flagship brand configured for %s; skipping %r", rule.issuer_match, rule.reason)
        return None
    return history.count_branded_approvals_in_window(rule.issuer_match, brand, rule.window_days)


RULE_COUNTERS: dict[str, RuleCounter] = {
    ISSUER_WINDOW: _issuer_window,
    ANY_ISSUER_WINDOW: _any_issuer_window,
    LIFETIME_BY_CHARGE_TYPE: _lifetime_by_charge_type,
    BUSINESS_WINDOW: _business_window,
    BRANDED_ONLY_WINDOW: _branded_only_window,
}


def is_triggered(rule: IssuerRule, candidate: CandidateCard, history: ApprovalHistory, book: RuleBook) -> bool:
    count = RULE_COUNTERS[rule.kind](rule, candidate, history, book)
    return count is not None and count >= rule.threshold


def check_eligibility(
    candidate: CandidateCard,
    approval_history: Iterable[WalletCardApproval],
    now=None,
    rule_book: RuleBook | None = None,
) -> EligibilityVerdict:
    book = rule_book or load_rule_book()
    rules = book.rules_for(candidate.issuer_name)
    if not rules:
        return ELIGIBLE

    history = ApprovalHistory(approval_history, candidate.player_number, now)
    for rule in rules:
        if is_triggered(rule, candidate, history, book):
            logger.debug("P%s blocked for %s: %s", candidate.player_number, candidate.issuer_name, rule.reason)
            return EligibilityVerdict.blocked(rule.reason, rule.description)
    return ELIGIBLE


def eligibility_by_player(
    card: Card,
    players: Iterable[int],
    approval_history: Iterable[WalletCardApproval],
    now=None,
    rule_book: RuleBook | None = None,
) -> dict[int, EligibilityVerdict]:
    history = list(approval_history)
    return {
        player: check_eligibility(CandidateCard.from_card(card, player), history, now, rule_book)
        for player in players
    }
