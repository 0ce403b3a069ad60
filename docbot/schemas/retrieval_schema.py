"""Document indexing and search result models."""

from dataclasses import dataclass, field

from pydantic import BaseModel


@dataclass(frozen=True)
class ScoredChunk:
    """A stored chunk as loaded for scoring."""
    chunk_text: str
    source_file: str
    term_freq: dict[str, int] = field(default_factory=dict)


class SearchHit(BaseModel):
    """One ranked chunk returned by a similarity search."""
    chunk_text: str
    source_file: str
    score: float


class IndexResult(BaseModel):
    """Outcome of replacing a tenant's document."""
    chunk_count: int
    char_count: int
    source_file: str = ""
