# payroll/engine.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Optional, Tuple, Union

from memory.models import HOURS_BAND, RATE_BAND, SalaryProfile, in_band
from payroll.extraction import extract_hours, extract_rate, parse_bare_number
from payroll.pay_tables import DEFAULT_GROUP, default_rate


@dataclass(frozen=True)
class SalaryEstimate:
    by_average_weeks_per_month: float
    by_four_week_month: float


class QuoteStatus(str, Enum):
    OK = "ok"
    INSUFFICIENT_INPUT = "insufficient_input"


@dataclass(frozen=True)
class SalaryQuote:
    status: QuoteStatus
    rate: float
    rate_source: str  # "message" | "profile" | "default"
    hours_per_week: Optional[float] = None
    hours_source: Optional[str] = None  # "message" | "profile"
    estimate: Optional[SalaryEstimate] = None
    table: Optional[str] = None  # PAM table year when the default rate was used
    group: Optional[int] = None


def estimate(rate: float, hours_per_week: float) -> SalaryEstimate:
    """Both month conventions, rounded to cents."""
    return SalaryEstimate(
        by_average_weeks_per_month=round(rate * hours_per_week * 52 / 12, 2),
        by_four_week_month=round(rate * hours_per_week * 4, 2),
    )


class SalaryEngine:
    """
    Turns free text plus the remembered profile into a deterministic monthly estimate.
    Rate falls back to the published PAM minimum; hours never fall back.
    """

    def extract_rate(self, text: str) -> Optional[float]:
        return extract_rate(text)

    def extract_hours(self, text: str, band: Tuple[float, float] = HOURS_BAND) -> Optional[float]:
        return extract_hours(text, band)

    def estimate(self, rate: float, hours_per_week: float) -> SalaryEstimate:
        return estimate(rate, hours_per_week)

    def interpret_short_answer(self, text: str, profile: SalaryProfile) -> Tuple[Optional[float], Optional[float]]:
        """
        A bare number as a follow-up to a salary question: hours if we are still
        missing them, otherwise a rate when it looks like one (decimals, wage band).
        Returns (rate, hours).
        """
        parsed = parse_bare_number(text)
        if not parsed:
            return None, None
        value, has_decimals = parsed

        if profile.hours_per_week is None and not has_decimals and in_band(value, HOURS_BAND):
            return None, value
        if in_band(value, RATE_BAND) and (has_decimals or profile.hours_per_week is not None):
            return round(value, 2), None
        if in_band(value, HOURS_BAND):
            return None, value
        return None, None

    def quote(
        self,
        text: str,
        profile: SalaryProfile,
        now: Optional[Union[date, datetime]] = None,
    ) -> SalaryQuote:
        msg_rate = self.extract_rate(text)
        msg_hours = self.extract_hours(text)
        if msg_rate is None and msg_hours is None:
            msg_rate, msg_hours = self.interpret_short_answer(text, profile)

        table = None
        group = None
        if msg_rate is not None:
            rate, source = msg_rate, "message"
        elif profile.hourly_rate is not None:
            rate, source = profile.hourly_rate, "profile"
        else:
            rate, table = default_rate(now)
            source, group = "default", DEFAULT_GROUP

        hours = msg_hours if msg_hours is not None else profile.hours_per_week
        hours_source = "message" if msg_hours is not None else ("profile" if hours is not None else None)
        if hours is None:
            return SalaryQuote(
                status=QuoteStatus.INSUFFICIENT_INPUT,
                rate=rate,
                rate_source=source,
                table=table,
                group=group,
            )

        return SalaryQuote(
            status=QuoteStatus.OK,
            rate=rate,
            rate_source=source,
            hours_per_week=hours,
            hours_source=hours_source,
            estimate=self.estimate(rate, hours),
            table=table,
            group=group,
        )
