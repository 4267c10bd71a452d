# payroll/extraction.py
from __future__ import annotations

import re
from typing import Iterable, List, Optional, Pattern, Tuple

from memory.models import HOURS_BAND, RATE_BAND, in_band

# -------------------------------------------------------------------
# Constants
# -------------------------------------------------------------------
STRICT_HOURS_BAND: Tuple[float, float] = (5.0, 60.0)

# a number not glued to other digits: 12 | 12,26 | 12.5
_NUM = r"(?<![\d.,])(\d{1,3}(?:[.,]\d{1,2})?)(?!\d)"

_RATE_KEYWORD = (
    r"\b(?:hourly\s+(?:rate|wage|pay)|rate|wage|ставк[аиуе]|тариф|tuntipalkk\w*|palkka)"
)
_CURRENCY_AFTER = r"(?:€|eur(?:o|os)?\b|евро)"
_PER_HOUR = (
    r"(?:/\s*(?:h|hr|hour|t|tunti|ч|час)\b|per\s+hour|an?\s+hour|в\s+час|tunnissa|tunti(?:a)?\s+kohti)"
)

_RATE_PATTERNS: List[Pattern[str]] = [
    # «ставка 12,26», «rate: 12.26», «tuntipalkkani on 12,26»
    re.compile(rf"{_RATE_KEYWORD}\s*(?:is|on|=|:|-|of)?\s*(?:€\s*)?{_NUM}", re.I),
    # «12,5/h», «15 per hour», «13 € в час»
    re.compile(rf"{_NUM}\s*{_CURRENCY_AFTER}?\s*{_PER_HOUR}", re.I),
    # «12.26 €», «13 eur»
    re.compile(rf"{_NUM}\s*{_CURRENCY_AFTER}", re.I),
    # «€12.26»
    re.compile(rf"€\s*{_NUM}", re.I),
]

_HOUR_UNIT = r"(?:h|hrs?|hours?|ч|час(?:а|ов)?|t|tuntia|tunnit)"
_BARE_HOUR_UNIT = r"(?:h|hrs?|hours?|ч|час(?:а|ов)?|tuntia)"
_DAYS_UNIT = r"(?:days?|дн(?:я|ей)|день|päivää|pv)"
_PER = r"\s*(?:/|per|an?|in\s+a|в|за|kohti)?\s*"
_WEEK = r"(?:week|wk|недел[юяиь]|нед|vko|viiko\w*)"
_DAY = r"(?:day|день|сутки|pv|päivä(?:ssä)?)"

_WEEKLY_HOURS_RE = re.compile(rf"{_NUM}\s*{_HOUR_UNIT}\b[^\d\n]{{0,12}}?{_WEEK}", re.I)
_DAILY_HOURS_RE = re.compile(rf"{_NUM}\s*{_HOUR_UNIT}\b{_PER}{_DAY}\b", re.I)
_DAYS_PER_WEEK_RE = re.compile(rf"(?<![\d.,])([1-7])\s*{_DAYS_UNIT}\b{_PER}{_WEEK}", re.I)
_BARE_HOURS_RE = re.compile(rf"{_NUM}\s*{_BARE_HOUR_UNIT}\b", re.I)

_BARE_NUMBER_RE = re.compile(r"^\s*(\d{1,3}(?:[.,]\d{1,2})?)\s*(?:€|eur|h|t|ч)?\s*[.!]?\s*$", re.I)

__all__ = [
    "extract_rate",
    "extract_hours",
    "parse_bare_number",
    "STRICT_HOURS_BAND",
]


# -------------------------------------------------------------------
# Helpers
# -------------------------------------------------------------------
def _to_float(raw: str) -> Optional[float]:
    try:
        return float(raw.replace(",", "."))
    except (TypeError, ValueError):
        return None


def _normalize(text: str) -> str:
    return re.sub(r"\s+", " ", (text or "")).strip().lower()


def _candidates(patterns: Iterable[Pattern[str]], text: str) -> Iterable[float]:
    for pattern in patterns:
        for m in pattern.finditer(text):
            value = _to_float(m.group(1))
            if value is not None:
                yield value


# -------------------------------------------------------------------
# Extraction
# -------------------------------------------------------------------
def extract_rate(text: str, band: Tuple[float, float] = RATE_BAND) -> Optional[float]:
    """
    Hourly wage from free text. Needs a keyword, a currency or a per-hour unit next
    to the number; values outside the plausible wage band count as not found.
    """
    t = _normalize(text)
    if not t:
        return None
    for value in _candidates(_RATE_PATTERNS, t):
        if in_band(value, band):
            return round(value, 2)
    return None


def extract_hours(text: str, band: Tuple[float, float] = HOURS_BAND) -> Optional[float]:
    """
    Weekly hours from free text.
    «25 h/week» -> 25, «15 hours per day, 6 days per week» -> 90.
    A per-day figure without days-per-week only defers to an explicit weekly one.
    """
    t = _normalize(text)
    if not t:
        return None

    patterns: Tuple[Pattern[str], ...] = (_WEEKLY_HOURS_RE, _BARE_HOURS_RE)
    daily = _DAILY_HOURS_RE.search(t)
    if daily:
        days = _DAYS_PER_WEEK_RE.search(t)
        per_day = _to_float(daily.group(1))
        if days and per_day is not None:
            value = per_day * int(days.group(1))
            return value if in_band(value, band) else None
        # «8 hours a day» must not be read as 8 weekly hours
        patterns = (_WEEKLY_HOURS_RE,)

    for pattern in patterns:
        m = pattern.search(t)
        if m:
            value = _to_float(m.group(1))
            return value if in_band(value, band) else None
    return None


def parse_bare_number(text: str) -> Optional[Tuple[float, bool]]:
    """«25» or «12,5» sent on its own. Returns (value, has_decimals)."""
    m = _BARE_NUMBER_RE.match(text or "")
    if not m:
        return None
    raw = m.group(1)
    value = _to_float(raw)
    if value is None:
        return None
    return value, ("," in raw or "." in raw)
