"""
Cosine similarity over sparse term-frequency vectors and top-k ranking.

Ranking is exhaustive: every candidate chunk of a tenant is scored. The
corpus per tenant is a single uploaded document, a few hundred chunks at
most, so no index structure beyond tenant partitioning is needed.
"""

import math
from typing import Iterable, Mapping

from docbot.schemas.retrieval_schema import ScoredChunk, SearchHit


def cosine_similarity(a: Mapping[str, int], b: Mapping[str, int]) -> float:
    """Cosine of the angle between two term-frequency vectors.

    Returns 0.0 when either vector is empty. Counts are integers, so the
    squared norms are exact and identical vectors score exactly 1.0.
    """
    norm_a = sum(v * v for v in a.values())
    norm_b = sum(v * v for v in b.values())
    if norm_a == 0 or norm_b == 0:
        return 0.0

    small, large = (a, b) if len(a) <= len(b) else (b, a)
    dot = sum(count * large.get(term, 0) for term, count in small.items())
    if dot <= 0:
        return 0.0
    return min(1.0, dot / math.sqrt(norm_a * norm_b))


def rank_chunks(
    query_vector: Mapping[str, int],
    candidates: Iterable[ScoredChunk],
    k: int,
) -> list[SearchHit]:
    """Score every candidate against the query and keep the best ``k``.

    ``sorted`` is stable, so candidates with equal scores keep their
    insertion order.
    """
    if k <= 0:
        return []
    hits = [
        SearchHit(
            chunk_text=candidate.chunk_text,
            source_file=candidate.source_file,
            score=cosine_similarity(query_vector, candidate.term_freq),
        )
        for candidate in candidates
    ]
    hits = sorted(hits, key=lambda hit: hit.score, reverse=True)
    return hits[:k]
