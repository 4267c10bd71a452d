# ai/ocr.py
from __future__ import annotations

import base64
from typing import Optional

import httpx
from openai import AsyncOpenAI

from ai.prompts import OCR_PROMPT
from ai.result import ErrorKind, Result
from settings import OCR_API_KEY, OPENAI_MODEL
from telemetry.logger import get_logger

logger = get_logger(__name__)

OCR_SPACE_URL = "https://api.ocr.space/parse/image"
OCR_SPACE_LANGUAGES = "eng,ben,hin,nep,sin,tam,urd,ara,fre,spa,por,tha,rus,fin"


def is_pdf(data: bytes, filename: str = "") -> bool:
    return (filename or "").lower().endswith(".pdf") or (data or b"")[:4] == b"%PDF"


def _data_url(image_bytes: bytes) -> str:
    return "data:image/jpeg;base64," + base64.b64encode(image_bytes).decode("ascii")


class OcrEngine:
    """
    Best-effort text extraction from images.
    OpenAI vision first; OCR.Space when an API key is configured and vision gave nothing.
    """

    def __init__(self, client: AsyncOpenAI, ocr_api_key: Optional[str] = None) -> None:
        self.client = client
        self.ocr_api_key = OCR_API_KEY if ocr_api_key is None else ocr_api_key

    async def extract_text(self, image_bytes: bytes) -> Result[str]:
        text = await self._vision(image_bytes)
        if text:
            return Result.success(text)

        if self.ocr_api_key:
            text = await self._ocr_space(image_bytes)
            if text:
                return Result.success(text)

        return Result.failure(ErrorKind.EMPTY, "no text extracted")

    async def _vision(self, image_bytes: bytes) -> str:
        try:
            resp = await self.client.chat.completions.create(
                model=OPENAI_MODEL,
                temperature=0,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": OCR_PROMPT},
                            {"type": "image_url", "image_url": {"url": _data_url(image_bytes)}},
                        ],
                    }
                ],
            )
            return (resp.choices[0].message.content or "").strip()
        except Exception as e:
            logger.error(f"OpenAI vision OCR error: {e}")
            return ""

    async def _ocr_space(self, image_bytes: bytes) -> str:
        form = {
            "base64Image": _data_url(image_bytes),
            "language": OCR_SPACE_LANGUAGES,
            "isTable": "true",
            "OCREngine": "2",
        }
        try:
            async with httpx.AsyncClient(timeout=30) as http:
                resp = await http.post(OCR_SPACE_URL, data=form, headers={"apikey": self.ocr_api_key})
                resp.raise_for_status()
                data = resp.json()
            parsed = ((data.get("ParsedResults") or [{}])[0] or {}).get("ParsedText") or ""
            return parsed.strip()
        except Exception as e:
            logger.error(f"OCR.Space error: {e}")
            return ""
