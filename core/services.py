# core/services.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ai.capabilities import Capabilities, OpenAICapabilities
from ai.intent import IntentResolver
from ai.language import LanguageRegistry
from ai.translation import TranslationRouter
from core.chat_orchestrator import ChatOrchestrator
from core.keyed_lock import KeyedLock
from knowledge.documents import DirectoryDocumentStore, DocumentStore
from knowledge.index import KnowledgeIndex
from memory.store import InMemoryStateStore, StateStore
from payroll.engine import SalaryEngine
from settings import INDEX_URL, KB_DIR
from transport.whatsapp import Transport, WhatsAppClient


@dataclass
class Services:
    """Everything the HTTP layer needs, wired once per process."""

    store: StateStore
    capabilities: Capabilities
    transport: Transport
    knowledge: KnowledgeIndex
    orchestrator: ChatOrchestrator


def build_services(
    *,
    capabilities: Optional[Capabilities] = None,
    transport: Optional[Transport] = None,
    documents: Optional[DocumentStore] = None,
    store: Optional[StateStore] = None,
    index_url: str = INDEX_URL,
) -> Services:
    # explicit None checks: an empty store is falsy
    capabilities = capabilities if capabilities is not None else OpenAICapabilities()
    transport = transport if transport is not None else WhatsAppClient()
    store = store if store is not None else InMemoryStateStore()
    documents = documents if documents is not None else DirectoryDocumentStore(KB_DIR)
    knowledge = KnowledgeIndex(documents, capabilities)

    orchestrator = ChatOrchestrator(
        store=store,
        languages=LanguageRegistry(store, capabilities),
        intents=IntentResolver(capabilities),
        salary=SalaryEngine(),
        translator=TranslationRouter(capabilities),
        knowledge=knowledge,
        capabilities=capabilities,
        transport=transport,
        locks=KeyedLock(),
        index_url=index_url,
    )
    return Services(
        store=store,
        capabilities=capabilities,
        transport=transport,
        knowledge=knowledge,
        orchestrator=orchestrator,
    )
