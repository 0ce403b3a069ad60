"""Term-frequency vectorizer shared by indexing and querying.

Documents and queries must go through the same tokenization, otherwise
cosine similarity between them is meaningless.
"""

import re
from collections import Counter

MIN_TOKEN_LENGTH = 3

# Devanagari vowel signs are not \w; the danda marks (U+0964, U+0965) stay separators.
_NON_WORD = re.compile(r"[^\w\u0900-\u0963\u0966-\u097F]+")


def tokenize(text: str) -> list[str]:
    """Lowercase, turn non-word runs into spaces and drop tokens shorter than 3."""
    return [
        token
        for token in _NON_WORD.sub(" ", text.lower()).split()
        if len(token) >= MIN_TOKEN_LENGTH
    ]


def vectorize(text: str) -> dict[str, int]:
    """Return a sparse token -> count map for ``text``."""
    return dict(Counter(tokenize(text)))
