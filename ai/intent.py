# ai/intent.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, List, Optional, Tuple

from ai.capabilities import Capabilities
from ai.prompts import SCHEDULE_CLASSIFIER_QUESTION
from ai.translation import parse_translation_command
from ai.triggers import TRIGGERS, contains_any
from memory.models import ConversationState
from payroll.extraction import extract_hours, extract_rate, parse_bare_number
from telemetry.logger import get_logger

logger = get_logger(__name__)

CLASSIFIER_TEXT_CHARS = 600


class IntentKind(str, Enum):
    RESET = "reset"
    CHITCHAT = "chitchat"
    TRANSLATION = "translation"
    SCHEDULE = "schedule"
    SALARY_CALC = "salary_calc"
    KNOWLEDGE_QUERY = "knowledge_query"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class IntentDecision:
    kind: IntentKind
    target_lang: Optional[str] = None  # TRANSLATION only
    text: Optional[str] = None  # TRANSLATION only; empty = back-reference
    reason: str = ""


@dataclass
class _Message:
    raw: str
    low: str
    lang_hint: Optional[str]
    state: Optional[ConversationState]


Matcher = Callable[[_Message], Awaitable[Optional[IntentDecision]]]


def fast_schedule_hit(text: str) -> bool:
    t = (text or "").lower()
    if contains_any(t, TRIGGERS["schedule"]):
        return True
    return any(a in t and b in t for a, b in TRIGGERS["schedule_combos"])


class IntentResolver:
    """
    Ordered rule table, first match wins:
      reset > small talk > translation command > schedule > salary > knowledge query.
    Only the schedule rule may call out (yes/no classifier) and only after its fast path missed.
    """

    def __init__(self, capabilities: Capabilities) -> None:
        self.capabilities = capabilities
        self.rules: List[Tuple[IntentKind, Matcher]] = [
            (IntentKind.RESET, self._match_reset),
            (IntentKind.CHITCHAT, self._match_chitchat),
            (IntentKind.TRANSLATION, self._match_translation),
            (IntentKind.SCHEDULE, self._match_schedule),
            (IntentKind.SALARY_CALC, self._match_salary),
        ]

    async def classify(
        self,
        text: str,
        lang_hint: Optional[str] = None,
        state: Optional[ConversationState] = None,
    ) -> IntentDecision:
        raw = (text or "").strip()
        if not raw:
            return IntentDecision(IntentKind.UNKNOWN, reason="empty")

        msg = _Message(raw=raw, low=raw.lower(), lang_hint=lang_hint, state=state)
        for kind, matcher in self.rules:
            decision = await matcher(msg)
            if decision is not None:
                return decision
        return IntentDecision(IntentKind.KNOWLEDGE_QUERY, reason="default")

    # -----------------------
    # Rules
    # -----------------------
    async def _match_reset(self, msg: _Message) -> Optional[IntentDecision]:
        if TRIGGERS["reset"].search(msg.raw):
            return IntentDecision(IntentKind.RESET, reason="reset_command")
        return None

    async def _match_chitchat(self, msg: _Message) -> Optional[IntentDecision]:
        if contains_any(msg.low, TRIGGERS["chitchat"]):
            return IntentDecision(IntentKind.CHITCHAT, reason="chitchat_phrase")
        return None

    async def _match_translation(self, msg: _Message) -> Optional[IntentDecision]:
        cmd = parse_translation_command(msg.raw)
        if cmd is None:
            return None
        return IntentDecision(
            IntentKind.TRANSLATION,
            target_lang=cmd.target_lang,
            text=cmd.text,
            reason="translation_command",
        )

    async def _match_schedule(self, msg: _Message) -> Optional[IntentDecision]:
        if fast_schedule_hit(msg.low):
            return IntentDecision(IntentKind.SCHEDULE, reason="schedule_keyword")

        res = await self.capabilities.classify_yes_no(
            SCHEDULE_CLASSIFIER_QUESTION,
            msg.raw[:CLASSIFIER_TEXT_CHARS],
            msg.lang_hint,
        )
        if res.ok and res.value:
            return IntentDecision(IntentKind.SCHEDULE, reason="schedule_classifier")
        if not res.ok:
            logger.info(f"schedule classifier unavailable ({res.error}); treating as no")
        return None

    async def _match_salary(self, msg: _Message) -> Optional[IntentDecision]:
        rate = extract_rate(msg.raw)
        hours = extract_hours(msg.raw)

        has_number = rate is not None or hours is not None

        # a trigger word alone ("holiday pay", "monthly") stays a knowledge question
        if has_number and TRIGGERS["salary"].search(msg.low):
            return IntentDecision(IntentKind.SALARY_CALC, reason="salary_phrase")
        if rate is not None and hours is not None:
            return IntentDecision(IntentKind.SALARY_CALC, reason="rate_and_hours")

        in_salary_thread = bool(msg.state and msg.state.last_topic == "salary")
        if in_salary_thread and (has_number or parse_bare_number(msg.raw)):
            return IntentDecision(IntentKind.SALARY_CALC, reason="salary_follow_up")
        return None
