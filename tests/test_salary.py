from datetime import date, datetime

import pytest

from memory.models import SalaryProfile
from payroll.engine import QuoteStatus, SalaryEngine, estimate
from payroll.extraction import STRICT_HOURS_BAND, extract_hours, extract_rate, parse_bare_number
from payroll.pay_tables import current_table, default_rate, group_from_points, hourly_by_group


# -----------------------
# Rate extraction
# -----------------------
@pytest.mark.parametrize(
    "text,expected",
    [
        ("ставка 12,26", 12.26),
        ("my hourly rate is 13.10", 13.10),
        ("I get 12,5/h", 12.5),
        ("15 euros per hour", 15.0),
        ("€14.20 before tax", 14.20),
        ("tuntipalkkani on 12,88", 12.88),
    ],
)
def test_extract_rate(text, expected):
    assert extract_rate(text) == pytest.approx(expected)


@pytest.mark.parametrize(
    "text",
    [
        "I earn 500 euros",  # out of band
        "rate 3",  # out of band
        "I work 25 hours",  # no wage marker
        "",
    ],
)
def test_extract_rate_not_found(text):
    assert extract_rate(text) is None


# -----------------------
# Hours extraction
# -----------------------
@pytest.mark.parametrize(
    "text,expected",
    [
        ("25 h/week", 25),
        ("I work 30 hours a week", 30),
        ("15 hours per day, 6 days per week", 90),
        ("8 h/day 5 days/week", 40),
        ("20 часов в неделю", 20),
        ("20 tuntia viikossa", 20),
        ("25 t/vko", 25),
        ("37,5 h", 37.5),
        ("I work 40 hours a week, 8 hours a day", 40),
        ("8 h per day, about 35 h/week", 35),
    ],
)
def test_extract_hours(text, expected):
    assert extract_hours(text) == pytest.approx(expected)


def test_daily_hours_without_days_is_not_enough():
    assert extract_hours("12 hours per day") is None


def test_hours_outside_band_are_rejected():
    assert extract_hours("120 h/week") is None
    assert extract_hours("70 h/week", STRICT_HOURS_BAND) is None
    assert extract_hours("40 h/week", STRICT_HOURS_BAND) == 40


def test_parse_bare_number():
    assert parse_bare_number("25") == (25.0, False)
    assert parse_bare_number(" 12,5 ") == (12.5, True)
    assert parse_bare_number("25 hours please") is None


# -----------------------
# Estimate
# -----------------------
def test_estimate_both_conventions():
    est = estimate(12.26, 25)
    assert est.by_average_weeks_per_month == 1328.17
    assert est.by_four_week_month == 1226.0


# -----------------------
# PAM tables
# -----------------------
@pytest.mark.parametrize(
    "when,table,rate",
    [
        (date(2025, 11, 9), "2025", 12.26),
        (date(2026, 7, 31), "2025", 12.26),
        (date(2026, 8, 1), "2026", 12.59),
        (datetime(2027, 6, 30, 23, 59), "2026", 12.59),
        (date(2027, 7, 1), "2027", 12.89),
    ],
)
def test_default_rate_follows_effective_table(when, table, rate):
    assert current_table(when) == table
    assert default_rate(when) == (rate, table)


def test_group_is_clamped():
    assert hourly_by_group(0, date(2025, 1, 1)) == (11.03, "2025")
    assert hourly_by_group(42, date(2025, 1, 1)) == (17.44, "2025")


@pytest.mark.parametrize(
    "points,group",
    [(0, 1), (16, 1), (17, 2), (20, 2), (21, 3), (33, 5), (58, 9), (59, 10), (100, 10)],
)
def test_group_from_points(points, group):
    assert group_from_points(points) == group


# -----------------------
# Engine
# -----------------------
def test_quote_from_message():
    quote = SalaryEngine().quote("rate 12,26 and 25 h/week", SalaryProfile())
    assert quote.status == QuoteStatus.OK
    assert quote.rate == 12.26
    assert quote.rate_source == "message"
    assert quote.hours_per_week == 25
    assert quote.hours_source == "message"
    assert quote.estimate.by_average_weeks_per_month == 1328.17


def test_quote_reuses_profile_rate():
    profile = SalaryProfile(hourly_rate=13.0)
    quote = SalaryEngine().quote("how much for 30 h/week?", profile)
    assert quote.status == QuoteStatus.OK
    assert quote.rate == 13.0
    assert quote.rate_source == "profile"


def test_quote_falls_back_to_pam_group_2():
    quote = SalaryEngine().quote("salary for 25 h/week", SalaryProfile(), now=date(2026, 9, 1))
    assert quote.rate_source == "default"
    assert quote.rate == 12.59
    assert quote.table == "2026"
    assert quote.group == 2


def test_quote_without_hours_is_insufficient():
    quote = SalaryEngine().quote("rate 12,26", SalaryProfile())
    assert quote.status == QuoteStatus.INSUFFICIENT_INPUT
    assert quote.estimate is None
    assert quote.rate == 12.26


def test_quote_uses_profile_hours():
    quote = SalaryEngine().quote("what about rate 14?", SalaryProfile(hours_per_week=20))
    assert quote.status == QuoteStatus.OK
    assert quote.hours_source == "profile"
    assert quote.estimate.by_four_week_month == 1120.0


def test_short_answer_fills_missing_hours_first():
    engine = SalaryEngine()
    assert engine.interpret_short_answer("25", SalaryProfile()) == (None, 25.0)
    assert engine.interpret_short_answer("12,5", SalaryProfile()) == (12.5, None)
    assert engine.interpret_short_answer("13", SalaryProfile(hours_per_week=25)) == (13.0, None)
    assert engine.interpret_short_answer("hello", SalaryProfile()) == (None, None)


def test_profile_rejects_out_of_band_values():
    profile = SalaryProfile()
    assert profile.remember(hourly_rate=500, hours_per_week=200) is False
    assert profile.is_empty()
    assert profile.remember(hourly_rate=12.26, hours_per_week=25) is True
    assert (profile.hourly_rate, profile.hours_per_week) == (12.26, 25.0)
