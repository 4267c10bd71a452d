# payroll/pay_tables.py
from __future__ import annotations

from datetime import date, datetime
from typing import Dict, List, Optional, Tuple, Union

# PAM cleaning-sector minimum hourly wages (€/h) for wage groups 1..10
PAM_HOURLY: Dict[str, List[float]] = {
    "2025": [11.03, 12.26, 12.88, 13.52, 14.20, 14.90, 15.50, 16.12, 16.77, 17.44],
    "2026": [11.33, 12.59, 13.22, 13.88, 14.58, 15.30, 15.92, 16.55, 17.22, 17.90],
    "2027": [11.60, 12.89, 13.54, 14.21, 14.92, 15.67, 16.30, 16.95, 17.63, 18.33],
}

# (effective from, table key), newest first
TABLE_TRANSITIONS: List[Tuple[date, str]] = [
    (date(2027, 7, 1), "2027"),
    (date(2026, 8, 1), "2026"),
]
BASE_TABLE = "2025"

DEFAULT_GROUP = 2

# inclusive upper bound of requirement points for groups 2..9
_GROUP_POINT_LIMITS = [20, 24, 28, 33, 38, 44, 51, 58]


def _as_date(when: Union[date, datetime, None]) -> date:
    if when is None:
        return date.today()
    if isinstance(when, datetime):
        return when.date()
    return when


def current_table(when: Union[date, datetime, None] = None) -> str:
    d = _as_date(when)
    for effective, key in TABLE_TRANSITIONS:
        if d >= effective:
            return key
    return BASE_TABLE


def hourly_by_group(group: int, when: Union[date, datetime, None] = None) -> Tuple[float, str]:
    """Returns (rate, table_key). Group is clamped to 1..10."""
    key = current_table(when)
    idx = max(1, min(10, int(group))) - 1
    return PAM_HOURLY[key][idx], key


def group_from_points(points: float) -> int:
    if points < 17:
        return 1
    for group, limit in enumerate(_GROUP_POINT_LIMITS, start=2):
        if points <= limit:
            return group
    return 10


def default_rate(when: Optional[Union[date, datetime]] = None) -> Tuple[float, str]:
    return hourly_by_group(DEFAULT_GROUP, when)
