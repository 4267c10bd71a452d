# knowledge/index.py
from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

from ai.capabilities import Capabilities
from ai.prompts import KB_SYSTEM_PROMPT
from knowledge.chunking import split_into_chunks
from knowledge.documents import DocumentStore
from settings import (
    CHUNK_OVERLAP,
    CHUNK_SIZE,
    DEFAULT_LANGUAGE,
    EMBED_BATCH_SIZE,
    KB_CONTEXT_CHARS,
    KB_TOP_K,
)
from telemetry.logger import get_logger, log_event

logger = get_logger(__name__)

CONTEXT_HEADER = "### KB matched context\n"
NO_DOCUMENTS_TEXT = (
    "I don't have any workplace documents loaded yet, so I can't look that up. "
    "Please check with your supervisor or HR."
)
GENERATION_FALLBACK_TEXT = "Sorry, I couldn't put an answer together right now. Please try again in a moment."


@dataclass(frozen=True)
class KnowledgeChunk:
    id: int
    document_name: str
    chunk_index: int
    text: str
    embedding: Tuple[float, ...]


class AnswerStatus(str, Enum):
    ANSWERED = "answered"
    NO_DOCUMENTS = "no_documents"
    GENERATION_FAILED = "generation_failed"


@dataclass(frozen=True)
class KnowledgeAnswer:
    status: AnswerStatus
    text: str
    sources: Tuple[str, ...] = ()


@dataclass
class RebuildReport:
    status: str  # "ok" | "busy" | "failed"
    documents: int = 0
    chunks: int = 0
    error: Optional[str] = None
    duration_ms: int = 0
    kept_previous: bool = False

    def as_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "documents": self.documents,
            "chunks": self.chunks,
            "error": self.error,
            "duration_ms": self.duration_ms,
            "kept_previous": self.kept_previous,
        }


class RebuildError(RuntimeError):
    pass


# -------------------------------------------------------------------
# Scoring / context
# -------------------------------------------------------------------
def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine of the angle between a and b; 0.0 when either has zero length."""
    va = np.asarray(a, dtype=float)
    vb = np.asarray(b, dtype=float)
    na = float(np.linalg.norm(va))
    nb = float(np.linalg.norm(vb))
    if na == 0.0 or nb == 0.0:
        return 0.0
    return float(np.dot(va, vb) / (na * nb))


def format_context(chunks: Sequence[KnowledgeChunk], max_chars: int = KB_CONTEXT_CHARS) -> str:
    """Whole chunks only: the first block that would pass max_chars stops the walk."""
    if not chunks:
        return ""
    acc = CONTEXT_HEADER
    used = 0
    for ch in chunks:
        block = f"\n----- {ch.document_name} [{ch.chunk_index}] -----\n{ch.text}\n"
        if used + len(block) > max_chars:
            break
        acc += block
        used += len(block)
    return acc


# -------------------------------------------------------------------
# Index
# -------------------------------------------------------------------
class KnowledgeIndex:
    """
    In-memory embedding index over the KB documents.
    Queries read an immutable snapshot; rebuild swaps a complete new snapshot in,
    and a failed rebuild leaves the previous one in place.
    """

    def __init__(
        self,
        documents: DocumentStore,
        capabilities: Capabilities,
        *,
        chunk_size: int = CHUNK_SIZE,
        chunk_overlap: int = CHUNK_OVERLAP,
        batch_size: int = EMBED_BATCH_SIZE,
        top_k: int = KB_TOP_K,
        context_chars: int = KB_CONTEXT_CHARS,
    ) -> None:
        self.documents = documents
        self.capabilities = capabilities
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self.batch_size = batch_size
        self.top_k = top_k
        self.context_chars = context_chars

        self._chunks: Tuple[KnowledgeChunk, ...] = ()
        self._rebuild_lock = asyncio.Lock()
        self.built_at: Optional[datetime] = None
        self.last_error: Optional[str] = None

    @property
    def chunks(self) -> Tuple[KnowledgeChunk, ...]:
        return self._chunks

    @property
    def is_rebuilding(self) -> bool:
        return self._rebuild_lock.locked()

    def __len__(self) -> int:
        return len(self._chunks)

    # -----------------------
    # Build
    # -----------------------
    async def rebuild(self) -> RebuildReport:
        if self._rebuild_lock.locked():
            logger.warning("KB: rebuild already running, rejected.")
            return RebuildReport(status="busy", chunks=len(self._chunks))

        async with self._rebuild_lock:
            t0 = time.time()
            try:
                docs, chunks = await self._build()
            except Exception as e:
                self.last_error = str(e)
                logger.error(f"KB build error: {e}", exc_info=not isinstance(e, RebuildError))
                log_event("kb_rebuild_failed", {"error": str(e), "kept_chunks": len(self._chunks)})
                return RebuildReport(
                    status="failed",
                    chunks=len(self._chunks),
                    error=str(e),
                    duration_ms=int((time.time() - t0) * 1000),
                    kept_previous=bool(self._chunks),
                )

            self._chunks = tuple(chunks)
            self.built_at = datetime.now(timezone.utc)
            self.last_error = None
            report = RebuildReport(
                status="ok",
                documents=docs,
                chunks=len(chunks),
                duration_ms=int((time.time() - t0) * 1000),
            )
            logger.info(f"KB: embeddings ready ({len(chunks)} chunks from {docs} document(s)).")
            log_event("kb_rebuilt", report.as_dict())
            return report

    async def _build(self) -> Tuple[int, List[KnowledgeChunk]]:
        docs = self.documents.list_documents()
        logger.info(f"KB: reading {len(docs)} file(s)…")

        pending: List[Tuple[str, int, str]] = []
        for doc in docs:
            for idx, text in enumerate(split_into_chunks(doc.raw_text, self.chunk_size, self.chunk_overlap)):
                pending.append((doc.name, idx, text))
        logger.info(f"KB: chunked into {len(pending)} chunk(s).")

        built: List[KnowledgeChunk] = []
        for i in range(0, len(pending), self.batch_size):
            batch = pending[i:i + self.batch_size]
            res = await self.capabilities.embed([text for _, _, text in batch])
            if not res.ok:
                raise RebuildError(f"embedding batch {i // self.batch_size} failed: {res.error} {res.detail}".strip())
            for (name, idx, text), vector in zip(batch, res.value):
                built.append(
                    KnowledgeChunk(
                        id=len(built),
                        document_name=name,
                        chunk_index=idx,
                        text=text,
                        embedding=tuple(vector),
                    )
                )
            logger.info(f"KB: embedded {min(i + self.batch_size, len(pending))}/{len(pending)}")
        return len(docs), built

    # -----------------------
    # Query
    # -----------------------
    def top_matches(self, query_vector: Sequence[float], k: Optional[int] = None) -> List[KnowledgeChunk]:
        """Highest cosine first; ties keep index order (stable sort)."""
        chunks = self._chunks
        scored = [(cosine_similarity(query_vector, c.embedding), c) for c in chunks]
        scored.sort(key=lambda pair: pair[0], reverse=True)
        return [c for _, c in scored[: (k or self.top_k)]]

    async def query(self, text: str, lang: Optional[str] = None) -> KnowledgeAnswer:
        chunks = self._chunks
        if not chunks:
            return KnowledgeAnswer(status=AnswerStatus.NO_DOCUMENTS, text=NO_DOCUMENTS_TEXT)

        lang = lang or DEFAULT_LANGUAGE
        context = ""
        selected: List[KnowledgeChunk] = []
        res = await self.capabilities.embed([text])
        if res.ok and res.value:
            selected = self.top_matches(res.value[0])
            context = format_context(selected, self.context_chars)
        else:
            logger.error(f"embed query error: {res.error} {res.detail}")

        system = KB_SYSTEM_PROMPT.format(lang=lang)
        if context:
            system += f"\n\n[KB CONTEXT]\n{context}"

        answer = await self.capabilities.generate(system, text, temperature=0.25)
        if not answer.ok:
            logger.error(f"KB answer generation failed: {answer.error} {answer.detail}")
            return KnowledgeAnswer(status=AnswerStatus.GENERATION_FAILED, text=GENERATION_FALLBACK_TEXT)

        sources = tuple(dict.fromkeys(c.document_name for c in selected))
        return KnowledgeAnswer(status=AnswerStatus.ANSWERED, text=answer.value.strip(), sources=sources)

    # -----------------------
    # Diagnostics
    # -----------------------
    def status(self) -> Dict[str, Any]:
        per_doc: Dict[str, int] = {}
        for c in self._chunks:
            per_doc[c.document_name] = per_doc.get(c.document_name, 0) + 1
        return {
            "documents": [{"name": name, "chunks": n} for name, n in per_doc.items()],
            "total_chunks": len(self._chunks),
            "built_at": self.built_at.isoformat() if self.built_at else None,
            "rebuilding": self.is_rebuilding,
            "last_error": self.last_error,
        }
