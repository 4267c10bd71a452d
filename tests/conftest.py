"""Shared fakes: scripted model capabilities and a recording transport."""
from __future__ import annotations

import os
import re

os.environ.setdefault("OPENAI_API_KEY", "test-key")
os.environ["TELEMETRY_DB"] = ":memory:"
os.environ.setdefault("VERIFY_TOKEN", "verify-me")

from typing import Dict, List, Optional, Sequence, Tuple

import pytest

from ai.result import ErrorKind, Result
from core.services import build_services
from knowledge.documents import Document, InMemoryDocumentStore
from memory.store import InMemoryStateStore
from transport.whatsapp import MediaError

VOCAB = ["vacation", "sick", "safety", "chemical", "gloves", "overtime", "holiday", "shift"]

_UI_LANG_RE = re.compile(r"^Translate the following UI string to (\w+)\.")


def keyword_vector(text: str) -> List[float]:
    low = (text or "").lower()
    return [float(low.count(word)) for word in VOCAB]


class FakeCapabilities:
    """
    Deterministic stand-in for the model calls.
    Language detection looks for marker words; embeddings count VOCAB words;
    UI translations come back as "[xx] text" so tests can see the target language.
    """

    def __init__(self) -> None:
        self.language_markers: Dict[str, str] = {
            "hei": "fi", "kiitos": "fi", "mitä": "fi", "palkka": "fi", "nollaa": "fi",
            "привет": "ru", "ставка": "ru", "сколько": "ru",
        }
        self.schedule_answer = False
        self.answer = "Generated answer"
        self.ocr_text = "Shift starts at 7:00"
        self.fail: Dict[str, ErrorKind] = {}

        self.detect_calls: List[str] = []
        self.classify_calls: List[Tuple[str, str, Optional[str]]] = []
        self.embed_calls: List[List[str]] = []
        self.generate_calls: List[Tuple[str, str, Optional[List[Dict[str, str]]]]] = []
        self.translate_calls: List[Tuple[str, str]] = []
        self.ocr_calls = 0

    def _failed(self, name: str) -> Optional[Result]:
        if name in self.fail:
            return Result.failure(self.fail[name], f"{name} scripted failure")
        return None

    @property
    def total_calls(self) -> int:
        return (
            len(self.detect_calls) + len(self.classify_calls) + len(self.embed_calls)
            + len(self.generate_calls) + len(self.translate_calls) + self.ocr_calls
        )

    async def detect_language(self, text: str) -> Result[str]:
        self.detect_calls.append(text)
        failed = self._failed("detect_language")
        if failed:
            return failed
        low = (text or "").lower()
        for marker, code in self.language_markers.items():
            if marker in low:
                return Result.success(code)
        return Result.success("en")

    async def classify_yes_no(self, question: str, text: str, lang_hint: Optional[str]) -> Result[bool]:
        self.classify_calls.append((question, text, lang_hint))
        return self._failed("classify_yes_no") or Result.success(self.schedule_answer)

    async def embed(self, texts: Sequence[str]) -> Result[List[List[float]]]:
        self.embed_calls.append(list(texts))
        return self._failed("embed") or Result.success([keyword_vector(t) for t in texts])

    async def generate(self, system_prompt, user_prompt, *, history=None, temperature=0.25) -> Result[str]:
        self.generate_calls.append((system_prompt, user_prompt, history))
        ui = _UI_LANG_RE.match(system_prompt)
        if ui:
            failed = self._failed("translate_ui")
            return failed or Result.success(f"[{ui.group(1)}] {user_prompt}")
        return self._failed("generate") or Result.success(self.answer)

    async def translate(self, text: str, target: str) -> Result[str]:
        self.translate_calls.append((text, target))
        return self._failed("translate") or Result.success(f"<{target}> {text}")

    async def ocr(self, image_bytes: bytes) -> Result[str]:
        self.ocr_calls += 1
        return self._failed("ocr") or Result.success(self.ocr_text)


class FakeTransport:
    def __init__(self) -> None:
        self.sent: List[Tuple[str, str]] = []
        self.media: Dict[str, bytes] = {}

    async def send_message(self, user_id: str, text: str) -> None:
        self.sent.append((user_id, text))

    async def fetch_media(self, media_ref: str) -> bytes:
        if media_ref not in self.media:
            raise MediaError(f"unknown media {media_ref}")
        return self.media[media_ref]

    def texts_for(self, user_id: str) -> List[str]:
        return [text for uid, text in self.sent if uid == user_id]


SAMPLE_DOCUMENTS = [
    Document(
        name="vacation.md",
        raw_text="Vacation rules. Summer vacation is agreed with your supervisor. Holiday pay follows the PAM agreement.",
    ),
    Document(
        name="safety.md",
        raw_text="Safety first. Always wear gloves when handling any chemical. Report safety issues to your supervisor.",
    ),
]


@pytest.fixture
def capabilities() -> FakeCapabilities:
    return FakeCapabilities()


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def store() -> InMemoryStateStore:
    return InMemoryStateStore()


@pytest.fixture
def documents() -> InMemoryDocumentStore:
    return InMemoryDocumentStore(SAMPLE_DOCUMENTS)


@pytest.fixture
def services(capabilities, transport, store, documents):
    return build_services(
        capabilities=capabilities,
        transport=transport,
        documents=documents,
        store=store,
        index_url="https://example.com/schedule",
    )
