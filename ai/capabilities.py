# ai/capabilities.py
from __future__ import annotations

import re
from typing import Any, Awaitable, Dict, List, Optional, Protocol, Sequence

import httpx
import openai
from openai import AsyncOpenAI

from ai.prompts import (
    DETECT_LANGUAGE_PROMPT,
    TRANSLATE_SYSTEM_PROMPT,
    YES_NO_SYSTEM_PROMPT,
    YES_NO_USER_PROMPT,
)
from ai.result import ErrorKind, Result
from settings import (
    DEFAULT_LANGUAGE,
    EMBEDDING_MODEL,
    OPENAI_CLASSIFIER_MODEL,
    OPENAI_MODEL,
)
from telemetry.logger import get_logger

logger = get_logger(__name__)

_LANG_CODE_RE = re.compile(r"^[a-z]{2}$")


class Capabilities(Protocol):
    """The opaque model-backed operations the assistant core depends on."""

    async def detect_language(self, text: str) -> Result[str]: ...

    async def classify_yes_no(self, question: str, text: str, lang_hint: Optional[str]) -> Result[bool]: ...

    async def embed(self, texts: Sequence[str]) -> Result[List[List[float]]]: ...

    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        history: Optional[List[Dict[str, str]]] = None,
        temperature: float = 0.25,
    ) -> Result[str]: ...

    async def translate(self, text: str, target: str) -> Result[str]: ...

    async def ocr(self, image_bytes: bytes) -> Result[str]: ...


async def guarded(name: str, call: Awaitable[Any]) -> Result[Any]:
    """Await a vendor call and fold every failure into a Result."""
    try:
        return Result.success(await call)
    except openai.APITimeoutError as e:
        logger.warning(f"{name} timed out: {e}")
        return Result.failure(ErrorKind.TIMEOUT, str(e))
    except (openai.APIError, httpx.HTTPError) as e:
        logger.error(f"{name} upstream error: {e}")
        return Result.failure(ErrorKind.UPSTREAM, str(e))
    except Exception as e:
        logger.exception(f"{name} failed unexpectedly")
        return Result.failure(ErrorKind.UPSTREAM, repr(e))


def _content(resp: Any) -> str:
    return (resp.choices[0].message.content or "").strip()


class OpenAICapabilities:
    """Capabilities backed by the OpenAI chat, embedding and vision endpoints."""

    def __init__(self, client: Optional[AsyncOpenAI] = None, ocr_engine: Any = None) -> None:
        if client is None:
            from ai.client import client as default_client
            client = default_client
        self.client = client
        self._ocr_engine = ocr_engine

    async def _chat(self, messages: List[Dict[str, Any]], *, model: str = OPENAI_MODEL, temperature: float = 0.0) -> str:
        resp = await self.client.chat.completions.create(
            model=model,
            messages=messages,
            temperature=temperature,
        )
        return _content(resp)

    async def detect_language(self, text: str) -> Result[str]:
        prompt = DETECT_LANGUAGE_PROMPT.format(text=text)
        res = await guarded("detect_language", self._chat([{"role": "user", "content": prompt}]))
        if not res.ok:
            return res
        code = (res.value or DEFAULT_LANGUAGE).strip().lower()
        if not _LANG_CODE_RE.match(code):
            return Result.failure(ErrorKind.MALFORMED, code)
        return Result.success(code)

    async def classify_yes_no(self, question: str, text: str, lang_hint: Optional[str]) -> Result[bool]:
        messages = [
            {"role": "system", "content": YES_NO_SYSTEM_PROMPT.format(question=question)},
            {"role": "user", "content": YES_NO_USER_PROMPT.format(lang=lang_hint or "unknown", text=text)},
        ]
        res = await guarded("classify_yes_no", self._chat(messages, model=OPENAI_CLASSIFIER_MODEL))
        if not res.ok:
            return res
        return Result.success((res.value or "").strip().lower().startswith("y"))

    async def embed(self, texts: Sequence[str]) -> Result[List[List[float]]]:
        if not texts:
            return Result.success([])
        res = await guarded(
            "embed",
            self.client.embeddings.create(model=EMBEDDING_MODEL, input=list(texts)),
        )
        if not res.ok:
            return res
        vectors = [list(d.embedding) for d in res.value.data]
        if len(vectors) != len(texts):
            return Result.failure(ErrorKind.MALFORMED, f"expected {len(texts)} vectors, got {len(vectors)}")
        return Result.success(vectors)

    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        history: Optional[List[Dict[str, str]]] = None,
        temperature: float = 0.25,
    ) -> Result[str]:
        messages: List[Dict[str, Any]] = [{"role": "system", "content": system_prompt}]
        messages.extend(history or [])
        messages.append({"role": "user", "content": user_prompt})
        res = await guarded("generate", self._chat(messages, temperature=temperature))
        if res.ok and not res.value:
            return Result.failure(ErrorKind.EMPTY)
        return res

    async def translate(self, text: str, target: str) -> Result[str]:
        messages = [
            {"role": "system", "content": TRANSLATE_SYSTEM_PROMPT.format(lang=target)},
            {"role": "user", "content": text},
        ]
        res = await guarded("translate", self._chat(messages, temperature=0.2))
        if res.ok and not res.value:
            return Result.failure(ErrorKind.EMPTY)
        return res

    async def ocr(self, image_bytes: bytes) -> Result[str]:
        if self._ocr_engine is None:
            from ai.ocr import OcrEngine
            self._ocr_engine = OcrEngine(self.client)
        return await self._ocr_engine.extract_text(image_bytes)
