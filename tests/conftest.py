import os
from datetime import datetime, timedelta, timezone

import pytest

from bonuspilot.currency_values import CurrencyValueContext
from bonuspilot.models import Card, RewardCurrency, WalletCardApproval

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)
DATA_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "data")


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def data_dir():
    return DATA_DIR


@pytest.fixture
def currencies():
    return {
        "ur": RewardCurrency("ur", "Chase Ultimate Rewards", "UR", "transferable_points", 1.5),
        "ccb": RewardCurrency("ccb", "Chase Cash Back", "CCB", "cash_back", 1.0),
        "mr": RewardCurrency("mr", "Amex Membership Rewards", "MR", "transferable_points", 1.6),
        "hh": RewardCurrency("hh", "Hilton Honors", "HH", "hotel_points", None),
    }


@pytest.fixture
def context(currencies):
    return CurrencyValueContext(currency_table=currencies)


@pytest.fixture
def freedom():
    return Card(
        id="cfu",
        name="Chase Freedom Unlimited",
        issuer_name="Chase",
        default_earn_rate=1.5,
        primary_currency_id="ccb",
        secondary_currency_id="ur",
    )


def approval(issuer, days_ago, player=1, brand=None, product_type="personal", charge_type=None, card_id="card"):
    return WalletCardApproval(
        card_id=card_id,
        player_number=player,
        issuer_name=issuer,
        brand_name=brand,
        product_type=product_type,
        card_charge_type=charge_type,
        approval_date=None if days_ago is None else NOW - timedelta(days=days_ago),
    )
