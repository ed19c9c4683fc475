import pytest

from bonuspilot.card_rules import (
    ApprovalHistory,
    CandidateCard,
    RuleBook,
    RuleConfigError,
    check_eligibility,
    eligibility_by_player,
    load_rule_book,
)
from bonuspilot.models import Card
from conftest import approval


def chase():
    return CandidateCard("Chase")


def amex():
    return CandidateCard("American Express")


def test_five_twenty_four_blocks_chase(now):
    history = [approval(issuer, 100 + i * 120) for i, issuer in enumerate(["Citi", "Amex", "Discover", "Barclays", "Chase"])]
    assert max(100 + i * 120 for i in range(5)) <= 700

    verdict = check_eligibility(chase(), history, now)
    assert not verdict.eligible
    assert verdict.reason == "5/24 rule"


def test_unknown_issuer_is_eligible(now):
    history = [approval("Chase", 10 * i) for i in range(8)]
    verdict = check_eligibility(CandidateCard("US Bank"), history, now)
    assert verdict.eligible
    assert verdict.reason is None


def test_four_cards_do_not_trigger_five_twenty_four(now):
    history = [approval("Citi", d) for d in (100, 200, 300, 400)] + [approval("Citi", 800)]
    assert check_eligibility(chase(), history, now).eligible


def test_amex_five_day_cooldown(now):
    assert check_eligibility(amex(), [approval("American Express", 4)], now).reason == "1 Amex per 5 days"
    assert check_eligibility(amex(), [approval("American Express", 6)], now).eligible


def test_window_boundary_is_inclusive(now):
    assert not check_eligibility(amex(), [approval("American Express", 5)], now).eligible


def test_amex_two_per_ninety(now):
    history = [approval("American Express", 20), approval("American Express", 80)]
    assert check_eligibility(amex(), history, now).reason == "2 Amex per 90 days"


def test_amex_lifetime_caps(now):
    credit = [approval("American Express", 400 * (i + 1), charge_type=ct) for i, ct in enumerate(["credit", None, "credit", None, "credit"])]
    assert check_eligibility(amex(), credit, now).reason == "5 Amex credit cards max"

    charge = [approval("American Express", 200 + 100 * i, charge_type="charge") for i in range(10)]
    assert check_eligibility(amex(), charge, now).reason == "10 Amex charge cards max"
    assert check_eligibility(amex(), charge[:9], now).eligible


def test_first_triggered_rule_wins(now):
    history = [approval("American Express", 2), approval("American Express", 30)]
    assert check_eligibility(amex(), history, now).reason == "1 Amex per 5 days"


@pytest.mark.parametrize(
    "days, reason",
    [
        ((10, 50), "2 BoA per 2 months"),
        ((10, 100, 300), "3 BoA per 12 months"),
        ((100, 400, 500, 700), "4 BoA per 24 months"),
    ],
)
def test_bank_of_america_windows(now, days, reason):
    history = [approval("Bank of America", d) for d in days]
    assert check_eligibility(CandidateCard("Bank of America"), history, now).reason == reason


def test_bank_of_america_any_issuer_velocity(now):
    history = [approval(issuer, 30 * (i + 1)) for i, issuer in enumerate(["Chase", "Citi", "Chase", "Amex", "Discover", "Barclays", "Chase"])]
    assert check_eligibility(CandidateCard("Bank of America"), history, now).reason == "7+ cards in 12 months"


def test_capital_one_ignores_co_brands(now):
    cap1 = CandidateCard("Capital One")
    co_brand = [approval("Capital One", 30, brand="Walmart")]
    assert check_eligibility(cap1, co_brand, now).eligible

    branded = [approval("Capital One", 150, brand="Capital One")]
    assert check_eligibility(cap1, branded, now).reason == "1 Cap1 per 6 months"
    assert check_eligibility(cap1, [approval("Capital One", 200, brand="Capital One")], now).eligible


def test_chase_two_per_thirty(now):
    history = [approval("Chase", 5), approval("Chase", 25)]
    assert check_eligibility(chase(), history, now).reason == "2 Chase per 30 days"


def test_citi_names_count_together(now):
    history = [approval("Citibank", 20), approval("Citi", 40)]
    assert check_eligibility(CandidateCard("Citi"), history, now).reason == "2 Citi per 65 days"
    assert check_eligibility(CandidateCard("Citibank"), [approval("Citi", 3)], now).reason == "1 Citi per 8 days"


def test_citi_business_rule_only_for_business_candidates(now):
    history = [approval("Citi", 70, product_type="business")]
    assert check_eligibility(CandidateCard("Citi", "personal"), history, now).eligible
    verdict = check_eligibility(CandidateCard("Citi", "business"), history, now)
    assert verdict.reason == "1 Citi biz per 95 days"
    assert verdict.description == "One Citi business card every 95 days"


def test_history_limited_to_player_and_approved_cards(now):
    history = [approval("American Express", 2, player=2), approval("American Express", None)]
    assert check_eligibility(CandidateCard("American Express", player_number=1), history, now).eligible
    assert not check_eligibility(CandidateCard("American Express", player_number=2), history, now).eligible


def test_empty_history(now):
    assert check_eligibility(chase(), [], now).eligible


def test_naive_now_is_treated_as_utc(now):
    naive = now.replace(tzinfo=None)
    assert check_eligibility(amex(), [approval("American Express", 1)], naive).reason == "1 Amex per 5 days"


def test_history_counters(now):
    history = ApprovalHistory(
        [
            approval("Citi", 10, product_type="business"),
            approval("Citi", 100),
            approval("Chase", 10, brand="Chase", charge_type="credit"),
        ],
        player_number=1,
        now=now,
    )
    assert history.count_issuer_approvals_in_window(["Citi"], 30) == 1
    assert history.count_all_approvals_in_window(30) == 2
    assert history.count_issuer_approvals_by_charge_type(["Chase"], "credit") == 1
    assert history.count_issuer_approvals_by_charge_type(["Citi"], "charge", exclude=True) == 2
    assert history.count_issuer_business_approvals_in_window(["Citi", "Citibank"], 95) == 1
    assert history.count_branded_approvals_in_window(["Chase"], "Chase", 30) == 1


def test_eligibility_by_player(now):
    card = Card("csp", "Sapphire Preferred", "Chase")
    history = [approval("Chase", d, player=2) for d in (5, 20)]
    verdicts = eligibility_by_player(card, [1, 2], history, now)
    assert verdicts[1].eligible
    assert verdicts[2].reason == "2 Chase per 30 days"


def test_packaged_rule_book_is_complete():
    book = load_rule_book()
    assert len(book.rules) == 14
    assert [r.reason for r in book.rules_for("Chase")] == ["5/24 rule", "2 Chase per 30 days"]
    assert book.rules_for("Citibank") == book.rules_for("Citi")
    assert book.flagship_brand(["Capital One"]) == "Capital One"


def test_rule_config_errors():
    with pytest.raises(RuleConfigError):
        RuleBook.from_config({"rules": [{"issuer": "Chase", "kind": "lunar-window", "threshold": 1, "reason": "x"}]})
    with pytest.raises(RuleConfigError):
        RuleBook.from_config({"rules": [{"issuer": "Chase", "kind": "issuer-window", "threshold": 1, "reason": "x"}]})
    with pytest.raises(RuleConfigError):
        RuleBook.from_config({"rules": [
            {"issuer": "US Bank", "kind": "branded-only-window", "window_days": 90, "threshold": 1, "reason": "x"},
        ]})


def test_custom_rule_book_is_a_config_change(now):
    book = RuleBook.from_config({"rules": [
        {"issuer": "US Bank", "kind": "issuer-window", "window_days": 90, "threshold": 1, "reason": "1 USB per 90 days"},
    ]})
    verdict = check_eligibility(CandidateCard("US Bank"), [approval("US Bank", 45)], now, rule_book=book)
    assert verdict.reason == "1 USB per 90 days"
    assert verdict.description == "1 USB per 90 days"


def test_rules_path_from_environment_replaces_packaged_book(tmp_path, monkeypatch, now):
    assert len(load_rule_book().rules) == 14
    custom = tmp_path / "rules.yaml"
    custom.write_text(
        "rules:\n"
        "  - {issuer: Chase, kind: issuer-window, window_days: 30, threshold: 1, reason: custom}\n"
    )
    monkeypatch.setenv("BONUSPILOT_RULES_PATH", str(custom))
    assert [r.reason for r in load_rule_book().rules] == ["custom"]
    assert check_eligibility(CandidateCard("Chase"), [approval("Chase", 5)], now).reason == "custom"

    monkeypatch.delenv("BONUSPILOT_RULES_PATH")
    assert len(load_rule_book().rules) == 14
