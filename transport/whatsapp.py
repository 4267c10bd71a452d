# transport/whatsapp.py
from __future__ import annotations

from typing import Any, Dict, Optional, Protocol

import httpx

from settings import GRAPH_API_VERSION, PHONE_NUMBER_ID, WHATSAPP_TOKEN
from telemetry.logger import get_logger

logger = get_logger(__name__)

GRAPH_BASE_URL = "https://graph.facebook.com"
MAX_TEXT_CHARS = 4096  # WhatsApp text body limit


class Transport(Protocol):
    async def send_message(self, user_id: str, text: str) -> None: ...

    async def fetch_media(self, media_ref: str) -> bytes: ...


class MediaError(RuntimeError):
    pass


class WhatsAppClient:
    """WhatsApp Cloud API: outbound text and inbound media download."""

    def __init__(
        self,
        *,
        token: str = WHATSAPP_TOKEN,
        phone_number_id: str = PHONE_NUMBER_ID,
        api_version: str = GRAPH_API_VERSION,
        timeout: float = 15.0,
        http: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.token = token
        self.phone_number_id = phone_number_id
        self.api_version = api_version
        self._http = http or httpx.AsyncClient(timeout=timeout)

    @property
    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}

    def _url(self, path: str) -> str:
        return f"{GRAPH_BASE_URL}/{self.api_version}/{path}"

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _send(self, to: str, payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        try:
            resp = await self._http.post(
                self._url(f"{self.phone_number_id}/messages"),
                json={"messaging_product": "whatsapp", "to": to, **payload},
                headers={**self._headers, "Content-Type": "application/json"},
            )
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"WhatsApp send failed {e.response.status_code}: {e.response.text[:500]}")
        except httpx.HTTPError as e:
            logger.error(f"WhatsApp send failed: {e}")
        return None

    async def send_message(self, user_id: str, text: str) -> None:
        """Failures are logged, never retried or raised."""
        body = (text or "")[:MAX_TEXT_CHARS]
        if not body.strip():
            return
        await self._send(user_id, {"type": "text", "text": {"body": body, "preview_url": False}})

    async def get_media_url(self, media_id: str) -> str:
        resp = await self._http.get(self._url(media_id), headers=self._headers)
        resp.raise_for_status()
        url = (resp.json() or {}).get("url")
        if not url:
            raise MediaError(f"no download url for media {media_id}")
        return url

    async def download_media(self, url: str) -> bytes:
        resp = await self._http.get(url, headers=self._headers)
        resp.raise_for_status()
        return resp.content

    async def fetch_media(self, media_ref: str) -> bytes:
        return await self.download_media(await self.get_media_url(media_ref))
