"""Cosine similarity and best-match search over vectorized chunks."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from math import sqrt

from rag_workshop.errors import DegenerateVector
from rag_workshop.types import VectorizedChunk


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity of two vectors that may differ in length.

    Positions past the end of the shorter vector count toward the longer
    vector's norm only, as if the shorter one were zero-padded.

    Raises:
        DegenerateVector: if either vector has zero norm (including empty).
    """

    len_a = len(a)
    len_b = len(b)
    dot = 0.0
    norm_a = 0.0
    norm_b = 0.0

    for k in range(max(len_a, len_b)):
        if k >= len_a:
            norm_b += b[k] * b[k]
            continue
        if k >= len_b:
            norm_a += a[k] * a[k]
            continue
        dot += a[k] * b[k]
        norm_a += a[k] * a[k]
        norm_b += b[k] * b[k]

    if norm_a == 0 or norm_b == 0:
        raise DegenerateVector("vectors should not be null (all zeros)")
    return dot / (sqrt(norm_a) * sqrt(norm_b))


def search(corpus: Iterable[VectorizedChunk], query: Sequence[float]) -> str:
    """Return the chunk text most similar to `query`.

    The running best starts at 0.0 and is replaced only by a strictly greater
    similarity, so ties keep the first entry and entries scoring <= 0 never
    win. Returns "" when nothing qualifies. A similarity error on any entry
    aborts the scan.
    """

    best_chunk = ""
    best_score = 0.0
    for entry in corpus:
        score = cosine_similarity(entry.vector, query)
        if score > best_score:
            best_chunk = entry.chunk
            best_score = score
    return best_chunk
