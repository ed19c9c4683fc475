"""
BonusPilot - Keyword Index
--------------------------
Search aliases ("csr", "amex", "ur") mapped to canonical card, issuer and
currency names. Built once from search_keywords.yaml; read-only afterwards.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from types import MappingProxyType
from typing import Iterable, Mapping

import yaml

from bonuspilot import settings

logger = logging.getLogger(__name__)

AliasIndex = Mapping[str, tuple[str, ...]]


def build_bidirectional_index(canonical_to_aliases: Mapping[str, Iterable[str]]) -> AliasIndex:
    """
    alias -> every canonical that lists it, canonical -> its own aliases.

    Keys and values are lower-cased; lists keep first-seen order without
    duplicates. A canonical's entry never picks up another canonical's aliases.
    A single alias may be given as a plain string.
    """
    lookup: dict[str, list[str]] = {}

    for value, keywords in canonical_to_aliases.items():
        if isinstance(keywords, str):
            keywords = [keywords]
        value_lower = str(value).lower()
        keywords_lower = [str(k).lower() for k in (keywords or [])]

        for keyword in keywords_lower:
            existing = lookup.setdefault(keyword, [])
            if value_lower not in existing:
                existing.append(value_lower)

        existing_for_value = lookup.setdefault(value_lower, [])
        for keyword in keywords_lower:
            if keyword not in existing_for_value:
                existing_for_value.append(keyword)

    return MappingProxyType({key: tuple(values) for key, values in lookup.items()})


@dataclass(frozen=True, slots=True)
class KeywordIndexes:
    issuers: AliasIndex
    currencies: AliasIndex
    cards: AliasIndex

    @classmethod
    def from_config(cls, config: Mapping[str, Mapping[str, Iterable[str]]]) -> "KeywordIndexes":
        return cls(
            issuers=build_bidirectional_index(config.get("issuers") or {}),
            currencies=build_bidirectional_index(config.get("currencies") or {}),
            cards=build_bidirectional_index(config.get("cards") or {}),
        )


def load_keyword_indexes(path: str | None = None) -> KeywordIndexes:
    return _load_keyword_indexes(path or settings.keywords_path())


@lru_cache(maxsize=4)
def _load_keyword_indexes(path: str) -> KeywordIndexes:
    with open(path, "r") as f:
        config = yaml.safe_load(f) or {}
    indexes = KeywordIndexes.from_config(config)
    logger.debug(
        "Loaded keyword indexes from %s (%d issuer, %d currency, %d card keys)",
        path, len(indexes.issuers), len(indexes.currencies), len(indexes.cards),
    )
    return indexes


# ==========================================================
# SEARCH MATCHING
# ==========================================================
def term_matches_card(term: str, card_name: str, issuer_name: str, currency_name: str, indexes: KeywordIndexes) -> bool:
    """All strings are expected lower-cased."""
    if term in card_name or term in issuer_name or term in currency_name:
        return True

    if any(name in card_name for name in indexes.cards.get(term, ())):
        return True
    if any(issuer in issuer_name for issuer in indexes.issuers.get(term, ())):
        return True
    if any(currency in currency_name for currency in indexes.currencies.get(term, ())):
        return True
    return False


def matches_search(
    query: str,
    card_name: str,
    issuer_name: str,
    currency_name: str,
    internal_description: str | None = None,
    indexes: KeywordIndexes | None = None,
) -> bool:
    query = (query or "").lower().strip()
    if not query:
        return True

    indexes = indexes or load_keyword_indexes()
    card_name = (card_name or "").lower()
    issuer_name = (issuer_name or "").lower()
    currency_name = (currency_name or "").lower()
    internal_description = (internal_description or "").lower()

    all_text = f"{card_name} {issuer_name} {currency_name} {internal_description}"
    if query in all_text:
        return True

    return all(
        term_matches_card(term, card_name, issuer_name, currency_name, indexes) or term in internal_description
        for term in query.split()
    )
