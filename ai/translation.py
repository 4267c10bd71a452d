# ai/translation.py
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Optional

from ai.capabilities import Capabilities
from ai.result import ErrorKind, Result
from memory.models import ConversationState
from telemetry.logger import get_logger

logger = get_logger(__name__)

# -------------------------------------------------------------------
# Language names -> ISO 639-1
# -------------------------------------------------------------------
LANGUAGE_NAMES: Dict[str, str] = {
    # English names
    "english": "en", "finnish": "fi", "russian": "ru", "swedish": "sv", "estonian": "et",
    "ukrainian": "uk", "nepali": "ne", "bengali": "bn", "bangla": "bn", "hindi": "hi",
    "urdu": "ur", "tamil": "ta", "sinhala": "si", "arabic": "ar", "french": "fr",
    "spanish": "es", "portuguese": "pt", "thai": "th", "chinese": "zh", "japanese": "ja",
    "german": "de", "somali": "so", "persian": "fa", "farsi": "fa", "turkish": "tr",
    # Finnish translatives («käännä suomeksi»)
    "suomeksi": "fi", "englanniksi": "en", "venäjäksi": "ru", "ruotsiksi": "sv",
    "viroksi": "et", "ukrainaksi": "uk", "nepaliksi": "ne", "bengaliksi": "bn",
    "arabiaksi": "ar", "ranskaksi": "fr", "espanjaksi": "es", "saksaksi": "de",
    # Russian accusatives («переведи на финский»)
    "английский": "en", "финский": "fi", "русский": "ru", "шведский": "sv",
    "эстонский": "et", "украинский": "uk", "непальский": "ne", "бенгальский": "bn",
    "хинди": "hi", "арабский": "ar", "французский": "fr", "испанский": "es",
    "немецкий": "de", "китайский": "zh",
}

_CODE_RE = re.compile(r"^[a-z]{2}$")

_ARROW_RE = re.compile(r"^\s*->\s*([a-z]{2})\b\s*([\s\S]*)$", re.I)
_SLASH_RE = re.compile(r"^\s*/(?:tr|translate)\s+([a-z]{2})\b\s*([\s\S]*)$", re.I)
_NATURAL_RES = [
    re.compile(
        r"^\s*(?:please\s+|can you\s+|could you\s+)?translate\s+(?:this|that|it|the text)?\s*"
        r"(?:to|into|in)\s+(?P<lang>[^\s:,.\-]+)\s*[:,.\-]?\s*(?P<text>[\s\S]*)$",
        re.I,
    ),
    re.compile(
        r"^\s*переведи(?:те)?\s+(?:это\s+|мне\s+)?на\s+(?P<lang>[^\s:,.\-]+)(?:\s+язык)?\s*[:,.\-]?\s*(?P<text>[\s\S]*)$",
        re.I,
    ),
    re.compile(
        r"^\s*käännä\s+(?:tämä\s+|se\s+)?(?P<lang>[^\s:,.\-]+)\s*[:,.\-]?\s*(?P<text>[\s\S]*)$",
        re.I,
    ),
]


@dataclass(frozen=True)
class TranslationCommand:
    target_lang: str
    text: str  # empty means "translate the last thing" (back-reference)

    @property
    def is_back_reference(self) -> bool:
        return not self.text.strip()


def resolve_language(token: str) -> Optional[str]:
    t = (token or "").strip().lower()
    if t in LANGUAGE_NAMES:
        return LANGUAGE_NAMES[t]
    if _CODE_RE.match(t):
        return t
    return None


def parse_translation_command(message: str) -> Optional[TranslationCommand]:
    """
    «->fi text», «/tr fi text», «translate to finnish: text», «translate that to ru»,
    «переведи на финский ...», «käännä englanniksi ...».
    """
    m = (message or "").strip()
    if not m:
        return None

    for rx in (_ARROW_RE, _SLASH_RE):
        hit = rx.match(m)
        if hit:
            return TranslationCommand(target_lang=hit.group(1).lower(), text=hit.group(2).strip())

    for rx in _NATURAL_RES:
        hit = rx.match(m)
        if not hit:
            continue
        code = resolve_language(hit.group("lang"))
        if code:
            return TranslationCommand(target_lang=code, text=hit.group("text").strip())
    return None


def is_shorthand_command(message: str) -> bool:
    """«->fi ...» or «/tr fi ...»: command syntax, not a sample of the user's language."""
    m = (message or "").strip()
    return any(rx.match(m) for rx in (_ARROW_RE, _SLASH_RE))


class TranslationRouter:
    """Parses explicit translation commands and runs them through the translate capability."""

    def __init__(self, capabilities: Capabilities) -> None:
        self.capabilities = capabilities

    def parse(self, message: str) -> Optional[TranslationCommand]:
        return parse_translation_command(message)

    async def dispatch(self, command: TranslationCommand, state: ConversationState) -> Result[str]:
        source = command.text
        if command.is_back_reference:
            source = state.last_bot_text or ""
        if not source.strip():
            return Result.failure(ErrorKind.EMPTY, "nothing to translate")

        res = await self.capabilities.translate(source, command.target_lang)
        if not res.ok:
            logger.warning(f"translation to {command.target_lang} failed: {res.error}")
        return res
