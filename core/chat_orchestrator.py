# core/chat_orchestrator.py
from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from ai.capabilities import Capabilities
from ai.intent import IntentDecision, IntentKind, IntentResolver
from ai.language import LanguageRegistry
from ai.ocr import is_pdf
from ai.prompts import CHITCHAT_SYSTEM_PROMPT, WELCOME_TEXT
from ai.result import ErrorKind
from ai.translation import TranslationCommand, TranslationRouter, is_shorthand_command
from ai.triggers import TRIGGERS, is_affirmative
from core.keyed_lock import KeyedLock
from knowledge.index import AnswerStatus, KnowledgeIndex
from memory.models import ConversationState
from memory.store import StateStore, get_or_create_state
from payroll.engine import QuoteStatus, SalaryEngine, SalaryQuote
from payroll.extraction import STRICT_HOURS_BAND
from settings import INDEX_URL
from telemetry.logger import get_logger, log_event
from transport.whatsapp import Transport

logger = get_logger(__name__)

OCR_PREVIEW_CHARS = 900

# -------------------------------------------------------------------
# UI strings (English source, translated per user on the way out)
# -------------------------------------------------------------------
RESET_TEXT = "Done, I've cleared your saved rate, hours and our recent conversation."
CHITCHAT_FALLBACK_TEXT = "Happy to chat 😊 How is your day going?"
SCHEDULE_LABEL = "Schedule"
SCHEDULE_MISSING_TEXT = "The schedule link isn't set up yet. Please ask your supervisor."
ASK_HOURS_TEXT = (
    "How many hours a week do you work? "
    "For example “25 h/week” or “8 hours per day, 5 days per week”."
)
TRANSLATE_NOTHING_TEXT = "What should I translate? Send for example “->fi your text”."
TRANSLATE_FAILED_TEXT = "Sorry, the translation didn't work this time. Please try again."
HELP_TEXT = (
    "Tell me what you need: a question about work rules, a monthly pay estimate, "
    "a translation (“->fi text”) or your shift schedule."
)
PDF_TEXT = "I can't read PDF files yet. Please send a screenshot or a photo of the page instead."
OCR_EMPTY_TEXT = "I couldn't find any text in that. Could you send a sharper photo?"
OCR_READ_TEXT = "I read this text from your file:"
OCR_HINT_TEXT = "Want it translated? Reply with “->fi”, “->en” or another language code."
MEDIA_FAILED_TEXT = "I couldn't download that file. Please try sending it again."
UNSUPPORTED_TEXT = "I can handle text messages, images and documents."
KB_FOLLOW_UP_SUFFIX = "\n\nThe user asks for more detail on this."

ERROR_MESSAGES = {
    "TIMEOUT": "That took too long on my end. Want to try again?",
    "UPSTREAM": "One of my services is slow right now. Try again in a moment?",
    "INTERNAL": "Something slipped on my end. Want to try again?",
}


def friendly_error_message(error_code: str) -> str:
    return ERROR_MESSAGES.get(error_code, ERROR_MESSAGES["INTERNAL"])


def _fmt_eur(value: float) -> str:
    return f"€{value:,.2f}".replace(",", " ")


def _fmt_hours(value: float) -> str:
    return f"{value:g}"


def format_salary_reply(quote: SalaryQuote) -> str:
    est = quote.estimate
    lines = [
        f"Estimated monthly pay at {_fmt_eur(quote.rate)}/h × {_fmt_hours(quote.hours_per_week)} h/week:",
        f"• ≈ {_fmt_eur(est.by_average_weeks_per_month)} (average month, 52/12 weeks)",
        f"• {_fmt_eur(est.by_four_week_month)} (4-week month)",
    ]
    if quote.rate_source == "default":
        lines.append(
            f"I used the PAM minimum for wage group {quote.group} ({quote.table} table). "
            "Send your own rate, e.g. “rate 13,10”, for a closer figure."
        )
    elif quote.rate_source == "profile":
        lines.append("I used the hourly rate you gave me earlier.")
    lines.append("Before taxes and without evening, weekend or overtime supplements.")
    return "\n".join(lines)


def _is_command(text: str) -> bool:
    """Reset and shorthand translation keep the current reply language."""
    return bool(TRIGGERS["reset"].search(text or "")) or is_shorthand_command(text)


@dataclass
class _Turn:
    """Working data for one inbound message."""

    user_id: str
    text: str
    lang: str
    state: ConversationState
    decision: Optional[IntentDecision] = None
    replies: List[str] = field(default_factory=list)


class ChatOrchestrator:
    """
    Per-message pipeline: lock the user, load state, resolve language, classify,
    route, write the state back, then send. Every reply leaves in the user's language.
    """

    def __init__(
        self,
        *,
        store: StateStore,
        languages: LanguageRegistry,
        intents: IntentResolver,
        salary: SalaryEngine,
        translator: TranslationRouter,
        knowledge: KnowledgeIndex,
        capabilities: Capabilities,
        transport: Transport,
        locks: Optional[KeyedLock] = None,
        index_url: str = INDEX_URL,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.store = store
        self.languages = languages
        self.intents = intents
        self.salary = salary
        self.translator = translator
        self.knowledge = knowledge
        self.capabilities = capabilities
        self.transport = transport
        self.locks = locks if locks is not None else KeyedLock()
        self.index_url = index_url
        self.clock = clock

        self._routes = {
            IntentKind.RESET: self._on_reset,
            IntentKind.CHITCHAT: self._on_chitchat,
            IntentKind.TRANSLATION: self._on_translation,
            IntentKind.SCHEDULE: self._on_schedule,
            IntentKind.SALARY_CALC: self._on_salary,
            IntentKind.KNOWLEDGE_QUERY: self._on_knowledge,
            IntentKind.UNKNOWN: self._on_unknown,
        }

    # -------------------------------------------------------------------
    # Entry point
    # -------------------------------------------------------------------
    async def handle_incoming(
        self,
        user_id: str,
        kind: str,
        payload: Optional[Dict[str, Any]] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> List[str]:
        """
        kind is the WhatsApp message type. payload carries `text`, or `media_id`
        plus `caption`/`filename`. metadata may carry a platform `locale`.
        Returns the replies that were handed to the transport.
        """
        uid = str(user_id)
        payload = payload or {}
        metadata = metadata or {}
        t0 = time.time()

        async with self.locks.hold(uid):
            try:
                if kind == "text":
                    replies = await self._handle_text(uid, str(payload.get("text") or ""), metadata)
                elif kind in ("image", "document"):
                    replies = await self._handle_media(uid, kind, payload, metadata)
                else:
                    replies = await self._handle_unsupported(uid, metadata)
            except Exception as e:
                logger.exception(f"pipeline error for {uid}: {e}")
                log_event("pipeline_error", {"kind": kind, "error_type": type(e).__name__}, user_id=uid)
                replies = [friendly_error_message("INTERNAL")]

            await self._send_all(uid, replies)

        log_event(
            "message_handled",
            {"kind": kind, "replies": len(replies), "latency_ms": int((time.time() - t0) * 1000)},
            user_id=uid,
        )
        return replies

    async def _send_all(self, user_id: str, replies: List[str]) -> None:
        for text in replies:
            try:
                await self.transport.send_message(user_id, text)
            except Exception as e:
                logger.error(f"send to {user_id} failed: {e}")

    # -------------------------------------------------------------------
    # Shared steps
    # -------------------------------------------------------------------
    async def _open_turn(
        self, user_id: str, text: str, metadata: Dict[str, Any], *, follow_language: bool = True
    ) -> _Turn:
        state, created = get_or_create_state(self.store, user_id)
        if created or not state.language_code:
            lang = await self.languages.resolve_state(state, metadata.get("locale"), text)
        elif follow_language:
            lang = await self.languages.maybe_switch_state(state, text, user_id=user_id)
        else:
            lang = state.language_code

        turn = _Turn(user_id=user_id, text=text, lang=lang, state=state)
        if not state.welcomed:
            turn.replies.append(await self.languages.translate_ui_to(lang, WELCOME_TEXT))
            state.welcomed = True
            log_event("welcome_sent", {"lang": lang}, user_id=user_id)
        return turn

    async def _ui(self, turn: _Turn, text: str) -> str:
        return await self.languages.translate_ui_to(turn.lang, text)

    def _close_turn(self, turn: _Turn, reply: str) -> None:
        state = turn.state
        if turn.text:
            state.last_user_text = turn.text
            state.push_turn("user", turn.text)
        if reply:
            state.last_bot_text = reply
            state.push_turn("assistant", reply)
        if turn.decision is not None:
            state.last_intent = turn.decision.kind.value
        self.store.set(turn.user_id, state)

    # -------------------------------------------------------------------
    # Text
    # -------------------------------------------------------------------
    async def _handle_text(self, user_id: str, text: str, metadata: Dict[str, Any]) -> List[str]:
        turn = await self._open_turn(user_id, text, metadata, follow_language=not _is_command(text))
        turn.decision = await self.intents.classify(text, turn.lang, turn.state)
        logger.info(f"intent={turn.decision.kind.value} reason={turn.decision.reason} lang={turn.lang}")

        if turn.decision.kind not in (IntentKind.RESET, IntentKind.TRANSLATION, IntentKind.SALARY_CALC):
            self._capture_numbers(turn)

        reply = await self._routes[turn.decision.kind](turn)
        self._close_turn(turn, reply)

        log_event(
            "intent_routed",
            {"intent": turn.decision.kind.value, "reason": turn.decision.reason, "lang": turn.lang, "len": len(text)},
            user_id=user_id,
        )
        return turn.replies + ([reply] if reply else [])

    def _capture_numbers(self, turn: _Turn) -> None:
        """Rate or hours mentioned in passing are remembered for later estimates."""
        rate = self.salary.extract_rate(turn.text)
        hours = self.salary.extract_hours(turn.text, STRICT_HOURS_BAND)
        if turn.state.profile.remember(hourly_rate=rate, hours_per_week=hours):
            logger.debug(f"profile updated in passing: rate={rate} hours={hours}")

    async def _on_reset(self, turn: _Turn) -> str:
        turn.state = turn.state.after_reset()
        log_event("state_reset", {}, user_id=turn.user_id)
        # the reset turn itself is not kept in the fresh history
        turn.text = ""
        return await self._ui(turn, RESET_TEXT)

    async def _on_chitchat(self, turn: _Turn) -> str:
        turn.state.last_topic = "chitchat"
        res = await self.capabilities.generate(
            CHITCHAT_SYSTEM_PROMPT.format(lang=turn.lang),
            turn.text,
            history=turn.state.history_messages(),
            temperature=0.7,
        )
        if res.ok:
            return res.value.strip()
        return await self._ui(turn, CHITCHAT_FALLBACK_TEXT)

    async def _on_translation(self, turn: _Turn) -> str:
        turn.state.last_topic = "translation"
        command = TranslationCommand(target_lang=turn.decision.target_lang or "", text=turn.decision.text or "")
        res = await self.translator.dispatch(command, turn.state)
        if res.ok:
            return res.value.strip()
        if res.error == ErrorKind.EMPTY and command.is_back_reference:
            return await self._ui(turn, TRANSLATE_NOTHING_TEXT)
        return await self._ui(turn, TRANSLATE_FAILED_TEXT)

    async def _on_schedule(self, turn: _Turn) -> str:
        turn.state.last_topic = "schedule"
        if not self.index_url:
            return await self._ui(turn, SCHEDULE_MISSING_TEXT)
        label = await self._ui(turn, SCHEDULE_LABEL)
        return f"{label}: {self.index_url}"

    async def _on_salary(self, turn: _Turn) -> str:
        state = turn.state
        state.last_topic = "salary"
        quote = self.salary.quote(turn.text, state.profile, self.clock())

        state.profile.remember(
            hourly_rate=quote.rate if quote.rate_source == "message" else None,
            hours_per_week=quote.hours_per_week if quote.hours_source == "message" else None,
        )
        log_event(
            "salary_quote",
            {"status": quote.status.value, "rate_source": quote.rate_source, "table": quote.table},
            user_id=turn.user_id,
        )

        if quote.status == QuoteStatus.INSUFFICIENT_INPUT:
            return await self._ui(turn, ASK_HOURS_TEXT)
        return await self._ui(turn, format_salary_reply(quote))

    async def _on_knowledge(self, turn: _Turn) -> str:
        state = turn.state
        query = turn.text
        base_query = turn.text
        if is_affirmative(turn.text) and state.last_topic == "kb" and state.last_kb_query:
            base_query = state.last_kb_query
            query = base_query + KB_FOLLOW_UP_SUFFIX

        answer = await self.knowledge.query(query, turn.lang)
        state.last_topic = "kb"
        state.last_kb_query = base_query

        if answer.status == AnswerStatus.ANSWERED:
            return answer.text
        return await self._ui(turn, answer.text)

    async def _on_unknown(self, turn: _Turn) -> str:
        return await self._ui(turn, HELP_TEXT)

    # -------------------------------------------------------------------
    # Images / documents
    # -------------------------------------------------------------------
    async def _handle_media(
        self,
        user_id: str,
        kind: str,
        payload: Dict[str, Any],
        metadata: Dict[str, Any],
    ) -> List[str]:
        caption = str(payload.get("caption") or "").strip()
        filename = str(payload.get("filename") or "").strip()
        hint_text = caption if kind == "image" else filename
        turn = await self._open_turn(user_id, hint_text, metadata)
        turn.text = ""  # captions are not conversation turns
        state = turn.state

        try:
            data = await self.transport.fetch_media(str(payload.get("media_id") or ""))
        except Exception as e:
            logger.error(f"media download failed for {user_id}: {e}")
            reply = await self._ui(turn, MEDIA_FAILED_TEXT)
            self._close_turn(turn, reply)
            return turn.replies + [reply]

        if is_pdf(data, filename):
            reply = await self._ui(turn, PDF_TEXT)
            self._close_turn(turn, reply)
            return turn.replies + [reply]

        res = await self.capabilities.ocr(data)
        log_event("ocr_done", {"kind": kind, "ok": res.ok, "chars": len(res.value or "")}, user_id=user_id)
        if not res.ok or not (res.value or "").strip():
            reply = await self._ui(turn, OCR_EMPTY_TEXT)
            self._close_turn(turn, reply)
            return turn.replies + [reply]

        extracted = res.value.strip()
        turn.replies.append(await self._ui(turn, OCR_READ_TEXT))
        turn.replies.append(extracted[:OCR_PREVIEW_CHARS])

        state.last_topic = "ocr"
        if kind == "image" and caption:
            answer = await self.knowledge.query(
                f"{caption}\n\n(Text from the user's image):\n{extracted}",
                turn.lang,
            )
            follow_up = answer.text if answer.status == AnswerStatus.ANSWERED else await self._ui(turn, answer.text)
            state.last_topic = "kb"
            state.last_kb_query = caption
        else:
            follow_up = await self._ui(turn, OCR_HINT_TEXT)

        # "translate that" acts on what was read, not on the hint
        self._close_turn(turn, follow_up)
        state.last_bot_text = extracted
        self.store.set(user_id, state)
        return turn.replies + [follow_up]

    async def _handle_unsupported(self, user_id: str, metadata: Dict[str, Any]) -> List[str]:
        turn = await self._open_turn(user_id, "", metadata)
        reply = await self._ui(turn, UNSUPPORTED_TEXT)
        self._close_turn(turn, reply)
        return turn.replies + [reply]
