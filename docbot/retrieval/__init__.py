from docbot.retrieval.chunker import chunk_text, iter_chunks
from docbot.retrieval.similarity import cosine_similarity, rank_chunks
from docbot.retrieval.vectorizer import tokenize, vectorize

__all__ = [
    "chunk_text",
    "iter_chunks",
    "cosine_similarity",
    "rank_chunks",
    "tokenize",
    "vectorize",
]
