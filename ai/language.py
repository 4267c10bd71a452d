# ai/language.py
from __future__ import annotations

import re
from typing import Optional

from ai.capabilities import Capabilities
from ai.prompts import UI_TRANSLATE_SYSTEM_PROMPT
from memory.models import ConversationState
from memory.store import StateStore
from settings import DEFAULT_LANGUAGE, DETECT_SAMPLE_CHARS
from telemetry.logger import get_logger, log_event

logger = get_logger(__name__)

_CODE_RE = re.compile(r"^[a-z]{2}$")
_LETTER_RE = re.compile(r"[^\W\d_]", re.UNICODE)

# below this many letters a message says nothing reliable about its language («25», «ok»)
MIN_SWITCH_LETTERS = 3


def two(value: Optional[str]) -> str:
    return (value or "").strip()[:2].lower()


def clamp(text: Optional[str], n: int) -> str:
    t = text or ""
    return t[:n] if len(t) > n else t


class LanguageRegistry:
    """
    Tracks each user's active language on their conversation state.
    Never leaves a user without a language: every failure lands on DEFAULT_LANGUAGE.
    """

    def __init__(
        self,
        store: StateStore,
        capabilities: Capabilities,
        *,
        native_language: str = DEFAULT_LANGUAGE,
        sample_chars: int = DETECT_SAMPLE_CHARS,
    ) -> None:
        self.store = store
        self.capabilities = capabilities
        self.native_language = native_language
        self.sample_chars = sample_chars

    # -----------------------
    # Lookups
    # -----------------------
    def current(self, user_id: str) -> str:
        state = self.store.get(user_id)
        return (state.language_code if state else None) or self.native_language

    async def detect(self, text: str) -> str:
        res = await self.capabilities.detect_language(clamp(text, self.sample_chars))
        if res.ok and _CODE_RE.match(res.value or ""):
            return res.value
        return self.native_language

    # -----------------------
    # Resolution
    # -----------------------
    async def resolve_state(
        self,
        state: ConversationState,
        platform_hint: Optional[str],
        sample_text: str,
    ) -> str:
        """Cached value, then platform locale, then detection on a bounded sample."""
        if state.language_code:
            return state.language_code

        hint = two(platform_hint)
        if _CODE_RE.match(hint):
            state.language_code = hint
            return hint

        state.language_code = await self.detect(sample_text)
        return state.language_code

    async def resolve(self, user_id: str, platform_hint: Optional[str], sample_text: str) -> str:
        state = self.store.get(user_id) or ConversationState()
        code = await self.resolve_state(state, platform_hint, sample_text)
        self.store.set(user_id, state)
        return code

    async def maybe_switch_state(self, state: ConversationState, latest_text: str, *, user_id: str = "") -> str:
        """Follow the language of the latest message when it clearly differs."""
        current = state.language_code or self.native_language
        if len(_LETTER_RE.findall(latest_text or "")) < MIN_SWITCH_LETTERS:
            return current

        res = await self.capabilities.detect_language(clamp(latest_text, self.sample_chars))
        if not res.ok or not _CODE_RE.match(res.value or ""):
            return current

        latest = res.value
        if latest != state.language_code:
            logger.info(f"Language switched for {user_id or 'user'}: {state.language_code} -> {latest}")
            log_event("language_switched", {"from": state.language_code, "to": latest}, user_id=user_id or None)
            state.language_code = latest
        return latest

    async def maybe_switch(self, user_id: str, latest_text: str) -> str:
        state = self.store.get(user_id) or ConversationState()
        code = await self.maybe_switch_state(state, latest_text, user_id=user_id)
        self.store.set(user_id, state)
        return code

    # -----------------------
    # UI strings
    # -----------------------
    async def translate_ui_to(self, lang: Optional[str], source_text: str) -> str:
        lang = lang or self.native_language
        if lang == self.native_language:
            return source_text
        res = await self.capabilities.generate(
            UI_TRANSLATE_SYSTEM_PROMPT.format(lang=lang),
            source_text,
            temperature=0.2,
        )
        return res.value.strip() if res.ok and res.value else source_text

    async def translate_ui(self, user_id: str, source_text: str) -> str:
        return await self.translate_ui_to(self.current(user_id), source_text)
