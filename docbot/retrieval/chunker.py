"""Fixed-size character windows with overlap.

Each window starts ``size - overlap`` characters after the previous one,
so neighbouring chunks share ``overlap`` characters and a passage that
straddles a boundary is still retrievable whole from one of them.
"""

from typing import Iterator

DEFAULT_CHUNK_SIZE = 800
DEFAULT_OVERLAP = 100


def _check_window(size: int, overlap: int) -> None:
    if size <= 0:
        raise ValueError(f"Chunk size must be positive, got {size}")
    if not 0 <= overlap < size:
        raise ValueError(f"Overlap must be in [0, {size}), got {overlap}")


def iter_chunks(
    text: str, size: int = DEFAULT_CHUNK_SIZE, overlap: int = DEFAULT_OVERLAP
) -> Iterator[str]:
    """Yield successive windows of ``text``.

    Iteration stops as soon as a window reaches the end of the text, so the
    last chunk is never a pure repeat of the previous overlap. Empty text
    yields nothing.
    """
    _check_window(size, overlap)
    step = size - overlap
    start = 0
    while start < len(text):
        end = min(start + size, len(text))
        yield text[start:end]
        if end == len(text):
            return
        start += step


def chunk_text(
    text: str, size: int = DEFAULT_CHUNK_SIZE, overlap: int = DEFAULT_OVERLAP
) -> list[str]:
    """Split ``text`` into overlapping chunks."""
    return list(iter_chunks(text, size, overlap))
