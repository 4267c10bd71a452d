# ai/triggers.py
"""
One multilingual trigger table per intent.
Everything that matches on literal words lives here so the resolver, the
short-answer handling and the tests all read the same lists.
"""
from __future__ import annotations

import re
from typing import Any, Dict, List, Pattern, Tuple

SCHEDULE_KEYWORDS: List[str] = [
    "schedule", "shift", "calendar", "horario", "calendario", "grafik", "duty",
    "расписание", "смен", "календарь", "график",
    "aikataulu", "vuorolista", "työvuoro",
    "समय", "कार्यतालिका", "शिफ्ट",
    "সময়সূচি", "ক্যালেন্ডার", "শিফট",
    "时间表", "班表", "工作时间",
    "勤務表", "シフト", "スケジュール",
]

SCHEDULE_COMBOS: List[Tuple[str, str]] = [
    ("today", "shift"), ("job", "time"), ("next", "shift"),
    ("сегодня", "смен"), ("график", "работ"), ("vuoro", "tänään"),
    ("আজ", "শিফট"), ("班", "今天"),
]

CHITCHAT_PHRASES: List[str] = [
    "small talk", "let's talk", "lets talk", "just chat", "chat with me",
    "i'm tired", "im tired", "i am tired", "i'm sad", "i am sad",
    "поболтаем", "поговорим", "просто чат", "я устал", "мне грустно",
    "jutellaan", "jutella", "olen väsynyt",
]

SALARY_RE: Pattern[str] = re.compile(
    r"\b(?:salary|wages?|pay|paycheck|earn(?:ings)?|income|monthly|hourly|per month)\b"
    r"|зарплат|ставк|заработ|в месяц"
    r"|\bpalk(?:ka|kaa|an|kani)\b|tuntipalk|ansai|kuukaudessa",
    re.I,
)

AFFIRMATIVES: List[str] = [
    "yes", "y", "yeah", "yep", "sure", "ok", "okay", "more", "tell me more",
    "да", "ага", "конечно", "подробнее",
    "kyllä", "joo", "juu", "lisää",
]

RESET_RE: Pattern[str] = re.compile(r"^\s*(?:reset|сброс|nollaa|start over|/reset)\b", re.I)

# one entry per intent tag; the resolver reads its triggers from here
TRIGGERS: Dict[str, Any] = {
    "reset": RESET_RE,
    "chitchat": CHITCHAT_PHRASES,
    "schedule": SCHEDULE_KEYWORDS,
    "schedule_combos": SCHEDULE_COMBOS,
    "salary": SALARY_RE,
    "affirmative": AFFIRMATIVES,
}


def contains_any(low: str, phrases: List[str]) -> bool:
    return any(p in low for p in phrases)


def is_affirmative(text: str) -> bool:
    low = re.sub(r"[.!?\s]+$", "", (text or "").strip().lower())
    return low in TRIGGERS["affirmative"]
