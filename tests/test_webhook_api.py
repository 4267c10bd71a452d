import pytest
from fastapi.testclient import TestClient

from api.webhook import extract_message
from main import create_app
from memory.models import ConversationState


def _text_body(text, sender="358401234567", locale=None):
    value = {
        "messaging_product": "whatsapp",
        "messages": [{"from": sender, "id": "wamid.1", "type": "text", "text": {"body": text}}],
    }
    if locale:
        value["contacts"] = [{"wa_id": sender, "locale": locale}]
    return {"object": "whatsapp_business_account", "entry": [{"changes": [{"value": value}]}]}


@pytest.fixture
def client(services):
    app = create_app(services, rebuild_on_startup=False)
    with TestClient(app) as c:
        yield c


# -----------------------
# Parsing
# -----------------------
def test_extract_text_message_with_locale():
    inbound = extract_message(_text_body("  hello  ", locale="fi_FI"))
    assert inbound.user_id == "358401234567"
    assert inbound.kind == "text"
    assert inbound.payload == {"text": "hello"}
    assert inbound.metadata["locale"] == "fi_FI"


def test_extract_image_and_document():
    body = _text_body("x")
    msg = body["entry"][0]["changes"][0]["value"]["messages"][0]
    msg.update({"type": "image", "image": {"id": "m1", "caption": "what is this"}})
    inbound = extract_message(body)
    assert inbound.payload == {"media_id": "m1", "caption": "what is this"}

    msg.update({"type": "document", "document": {"id": "d1", "filename": "a.pdf"}})
    inbound = extract_message(body)
    assert inbound.payload == {"media_id": "d1", "filename": "a.pdf"}


def test_status_updates_are_ignored():
    body = {"entry": [{"changes": [{"value": {"statuses": [{"status": "read"}]}}]}]}
    assert extract_message(body) is None
    assert extract_message({}) is None


# -----------------------
# Routes
# -----------------------
def test_verify_handshake(client, monkeypatch):
    monkeypatch.setattr("api.webhook.VERIFY_TOKEN", "verify-me")
    ok = client.get(
        "/webhook",
        params={"hub.mode": "subscribe", "hub.verify_token": "verify-me", "hub.challenge": "1234"},
    )
    assert ok.status_code == 200
    assert ok.text == "1234"

    bad = client.get(
        "/webhook",
        params={"hub.mode": "subscribe", "hub.verify_token": "wrong", "hub.challenge": "1234"},
    )
    assert bad.status_code == 403


def test_post_webhook_processes_message(client, transport, store):
    store.set("358401234567", ConversationState(language_code="en", welcomed=True))
    resp = client.post("/webhook", json=_text_body("send my schedule"))
    assert resp.status_code == 200
    assert transport.texts_for("358401234567") == ["Schedule: https://example.com/schedule"]


def test_post_webhook_always_acknowledges(client, transport):
    assert client.post("/webhook", json={"entry": []}).status_code == 200
    assert client.post("/webhook", content=b"not json", headers={"Content-Type": "application/json"}).status_code == 200
    assert transport.sent == []


def test_kb_rebuild_and_status(client):
    resp = client.post("/kb/rebuild")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"
    assert resp.json()["chunks"] == 2

    status = client.get("/kb/status").json()
    assert status["total_chunks"] == 2
    assert status["rebuilding"] is False


def test_kb_rebuild_busy_is_409(client, services, monkeypatch):
    from knowledge.index import RebuildReport

    async def busy():
        return RebuildReport(status="busy")

    monkeypatch.setattr(services.knowledge, "rebuild", busy)
    resp = client.post("/kb/rebuild")
    assert resp.status_code == 409
    assert resp.json()["status"] == "busy"


def test_health_and_version(client):
    assert "running" in client.get("/").text
    assert client.get("/version").text.startswith("SOL Assistant version")
