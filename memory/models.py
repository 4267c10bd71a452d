# memory/models.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from settings import MAX_TURNS

RATE_BAND = (6.0, 40.0)
HOURS_BAND = (1.0, 100.0)


def in_band(value: Optional[float], band: tuple) -> bool:
    return value is not None and band[0] <= value <= band[1]


@dataclass
class Turn:
    role: str  # "user" | "assistant"
    content: str

    def as_message(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass
class SalaryProfile:
    hourly_rate: Optional[float] = None
    hours_per_week: Optional[float] = None

    def remember(self, *, hourly_rate: Optional[float] = None, hours_per_week: Optional[float] = None) -> bool:
        """
        Keep only plausible values; anything outside the bands is ignored.
        Returns True if something changed.
        """
        changed = False
        if in_band(hourly_rate, RATE_BAND) and hourly_rate != self.hourly_rate:
            self.hourly_rate = round(float(hourly_rate), 2)
            changed = True
        if in_band(hours_per_week, HOURS_BAND) and hours_per_week != self.hours_per_week:
            self.hours_per_week = float(hours_per_week)
            changed = True
        return changed

    def is_empty(self) -> bool:
        return self.hourly_rate is None and self.hours_per_week is None


@dataclass
class ConversationState:
    language_code: Optional[str] = None
    history: List[Turn] = field(default_factory=list)
    profile: SalaryProfile = field(default_factory=SalaryProfile)
    last_topic: Optional[str] = None  # "salary" | "kb" | "schedule" | "translation" | "chitchat"
    last_intent: Optional[str] = None
    last_kb_query: Optional[str] = None
    last_bot_text: Optional[str] = None
    last_user_text: Optional[str] = None
    welcomed: bool = False

    def push_turn(self, role: str, content: str, max_turns: int = MAX_TURNS) -> None:
        self.history.append(Turn(role=role, content=content))
        while len(self.history) > max_turns:
            self.history.pop(0)

    def history_messages(self) -> List[Dict[str, str]]:
        return [t.as_message() for t in self.history]

    def after_reset(self) -> "ConversationState":
        """Fresh record for a reset: language and welcome flag survive, nothing else."""
        return ConversationState(language_code=self.language_code, welcomed=self.welcomed)
