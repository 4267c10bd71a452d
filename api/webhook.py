# api/webhook.py
from fastapi import APIRouter, BackgroundTasks, Query, Request
from fastapi.responses import PlainTextResponse, Response
from pydantic import BaseModel, Field
from typing import Any, Dict, Optional

from settings import VERIFY_TOKEN
from telemetry.logger import get_logger, log_event

router = APIRouter()
logger = get_logger(__name__)


# ----------------------------
# Models
# ----------------------------
class InboundMessage(BaseModel):
    """One WhatsApp message, flattened for the orchestrator."""

    user_id: str
    kind: str
    payload: Dict[str, Any] = Field(default_factory=dict)
    metadata: Dict[str, Any] = Field(default_factory=dict)


def _first(items: Any) -> Dict[str, Any]:
    if isinstance(items, list) and items and isinstance(items[0], dict):
        return items[0]
    return {}


def extract_message(body: Dict[str, Any]) -> Optional[InboundMessage]:
    """entry[0].changes[0].value.messages[0], or None for statuses and other noise."""
    value = _first(_first((body or {}).get("entry")).get("changes")).get("value") or {}
    msg = _first(value.get("messages"))
    if not msg or not msg.get("from"):
        return None

    kind = str(msg.get("type") or "")
    if kind == "text":
        payload = {"text": ((msg.get("text") or {}).get("body") or "").strip()}
    elif kind == "image":
        image = msg.get("image") or {}
        payload = {"media_id": image.get("id"), "caption": image.get("caption") or ""}
    elif kind == "document":
        doc = msg.get("document") or {}
        payload = {"media_id": doc.get("id"), "filename": doc.get("filename") or ""}
    else:
        payload = {}

    contact = _first(value.get("contacts"))
    locale = contact.get("locale") or contact.get("language") or ""
    return InboundMessage(
        user_id=str(msg["from"]),
        kind=kind,
        payload=payload,
        metadata={"locale": locale, "message_id": msg.get("id")},
    )


# ----------------------------
# Routes
# ----------------------------
@router.get("/webhook")
async def verify(
    mode: Optional[str] = Query(None, alias="hub.mode"),
    token: Optional[str] = Query(None, alias="hub.verify_token"),
    challenge: Optional[str] = Query(None, alias="hub.challenge"),
):
    if mode == "subscribe" and VERIFY_TOKEN and token == VERIFY_TOKEN:
        logger.info("Webhook verified.")
        return PlainTextResponse(challenge or "")
    return Response(status_code=403)


@router.post("/webhook")
async def receive(request: Request, background: BackgroundTasks):
    """
    Always 200 so WhatsApp does not redeliver; the actual work runs after the
    response, serialized per user inside the orchestrator.
    """
    try:
        body = await request.json()
    except ValueError:
        logger.warning("webhook: body is not JSON")
        return Response(status_code=200)

    inbound = extract_message(body if isinstance(body, dict) else {})
    if inbound is None:
        return Response(status_code=200)

    log_event("webhook_received", {"kind": inbound.kind}, user_id=inbound.user_id)
    orchestrator = request.app.state.services.orchestrator
    background.add_task(
        orchestrator.handle_incoming,
        inbound.user_id,
        inbound.kind,
        inbound.payload,
        inbound.metadata,
    )
    return Response(status_code=200)
