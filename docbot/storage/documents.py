"""
Per-tenant document chunk store with replace-on-reupload semantics.

A tenant's chunks always come from exactly one upload. Replacement
deletes and inserts inside one transaction while holding the tenant's
lock; searches take the same lock, so a reader never sees a half-cleared
or half-inserted chunk set.
"""

import json
import logging
import threading
from collections import defaultdict

from sqlalchemy import delete, select
from sqlalchemy.orm import sessionmaker

from docbot.errors import DocumentTooShortError
from docbot.retrieval.chunker import DEFAULT_CHUNK_SIZE, DEFAULT_OVERLAP, iter_chunks
from docbot.retrieval.similarity import rank_chunks
from docbot.retrieval.vectorizer import vectorize
from docbot.schemas.retrieval_schema import IndexResult, ScoredChunk, SearchHit
from docbot.storage.models import DocumentChunk

logger = logging.getLogger(__name__)


class _TenantLocks:
    """Lazily created lock per tenant ID."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = defaultdict(threading.Lock)

    def __call__(self, tenant_id: str) -> threading.Lock:
        with self._guard:
            return self._locks[tenant_id]


class DocumentStore:
    """Chunks, vectorizes, stores and searches tenant documents."""

    def __init__(
        self,
        session_factory: sessionmaker,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        overlap: int = DEFAULT_OVERLAP,
        min_chars: int = 50,
    ) -> None:
        self._sessions = session_factory
        self._chunk_size = chunk_size
        self._overlap = overlap
        self._min_chars = min_chars
        self._lock_for = _TenantLocks()

    def replace_documents(
        self, tenant_id: str, raw_text: str, source_file: str = "document.txt"
    ) -> IndexResult:
        """Replace every chunk of ``tenant_id`` with chunks of ``raw_text``.

        Raises:
            DocumentTooShortError: If the trimmed text is shorter than the
                configured minimum. Existing chunks are left untouched.
        """
        text = raw_text.strip()
        if len(text) < self._min_chars:
            raise DocumentTooShortError(len(text), self._min_chars)

        rows = [
            DocumentChunk(
                bot_id=tenant_id,
                chunk_text=chunk,
                term_freq=json.dumps(vectorize(chunk), ensure_ascii=False),
                source_file=source_file,
            )
            for chunk in iter_chunks(text, self._chunk_size, self._overlap)
        ]

        with self._lock_for(tenant_id):
            with self._sessions.begin() as db:
                removed = db.execute(
                    delete(DocumentChunk).where(DocumentChunk.bot_id == tenant_id)
                ).rowcount
                db.add_all(rows)

        logger.info(
            "Indexed %d chunks (%d chars) from %s for bot %s, replaced %d",
            len(rows), len(text), source_file, tenant_id, removed or 0,
        )
        return IndexResult(chunk_count=len(rows), char_count=len(text), source_file=source_file)

    def load_chunks(self, tenant_id: str) -> list[ScoredChunk]:
        """Load a tenant's chunks in insertion order with decoded vectors."""
        with self._lock_for(tenant_id):
            with self._sessions() as db:
                rows = db.execute(
                    select(
                        DocumentChunk.chunk_text,
                        DocumentChunk.source_file,
                        DocumentChunk.term_freq,
                    )
                    .where(DocumentChunk.bot_id == tenant_id)
                    .order_by(DocumentChunk.id)
                ).all()
        return [
            ScoredChunk(chunk_text=text, source_file=source, term_freq=json.loads(tf))
            for text, source, tf in rows
        ]

    def search(self, tenant_id: str, query_text: str, k: int = 5) -> list[SearchHit]:
        """Rank the tenant's chunks against ``query_text``.

        An empty result means the tenant has no indexed document.
        """
        chunks = self.load_chunks(tenant_id)
        if not chunks:
            logger.debug("No chunks indexed for bot %s", tenant_id)
            return []
        hits = rank_chunks(vectorize(query_text), chunks, k)
        if hits:
            logger.debug(
                "Search for bot %s: %d/%d chunks returned, top score %.3f",
                tenant_id, len(hits), len(chunks), hits[0].score,
            )
        return hits
