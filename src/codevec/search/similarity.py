"""Cosine similarity and brute-force top-K ranking."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from codevec.models.embeddings import split_key
from codevec.search.types import SearchResult

if TYPE_CHECKING:
    from collections.abc import Sequence


def cosine_similarity(a: Sequence[float] | np.ndarray, b: Sequence[float] | np.ndarray) -> float:
    """Return ``dot(a, b) / (|a| * |b|)``.

    Zero-magnitude, empty, or mismatched-length inputs score ``0.0``; the
    result is clipped to ``[-1, 1]`` to absorb float rounding.
    """
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.size == 0 or va.shape != vb.shape:
        return 0.0
    denom = float(np.linalg.norm(va) * np.linalg.norm(vb))
    if denom == 0.0 or not np.isfinite(denom):
        return 0.0
    score = float(np.dot(va, vb) / denom)
    if not np.isfinite(score):
        return 0.0
    return max(-1.0, min(1.0, score))


def score_matrix(query: np.ndarray, matrix: np.ndarray) -> np.ndarray:
    """Cosine similarity of *query* against every row of *matrix*.

    Rows (or a query) with zero magnitude score ``0.0``.
    """
    q = np.asarray(query, dtype=np.float64)
    m = np.asarray(matrix, dtype=np.float64)
    q_norm = float(np.linalg.norm(q))
    if m.size == 0 or q_norm == 0.0:
        return np.zeros(m.shape[0], dtype=np.float64)
    row_norms = np.linalg.norm(m, axis=1)
    denom = row_norms * q_norm
    dots = m @ q
    with np.errstate(divide="ignore", invalid="ignore"):
        scores = np.where(denom > 0.0, dots / np.where(denom > 0.0, denom, 1.0), 0.0)
    scores = np.nan_to_num(scores, nan=0.0, posinf=0.0, neginf=0.0)
    return np.clip(scores, -1.0, 1.0)


def rank(
    query: Sequence[float] | np.ndarray,
    entries: Sequence[tuple[str, np.ndarray, str]],
    top_k: int,
) -> list[SearchResult]:
    """Score *entries* against *query* and return the best *top_k*.

    *entries* are ``(key, vector, text)`` triples.  Results are ordered by
    descending score, ties broken by key so equal scores rank
    deterministically.  Entries whose dimension differs from the query
    score ``0.0``.
    """
    if top_k < 0:
        msg = "top_k must be >= 0"
        raise ValueError(msg)
    if top_k == 0 or not entries:
        return []

    q = np.asarray(query, dtype=np.float64)
    same_dim = [e for e in entries if e[1].shape == q.shape]
    scores: dict[str, float] = {key: 0.0 for key, _, _ in entries}
    if same_dim:
        matrix = np.vstack([vec for _, vec, _ in same_dim])
        for (key, _, _), score in zip(same_dim, score_matrix(q, matrix).tolist(), strict=True):
            scores[key] = float(score)

    texts = {key: text for key, _, text in entries}
    ordered = sorted(scores.items(), key=lambda item: (-item[1], item[0]))
    results: list[SearchResult] = []
    for key, score in ordered[:top_k]:
        file_path, chunk_index = split_key(key)
        results.append(
            SearchResult(
                key=key,
                file_path=file_path,
                chunk_index=chunk_index,
                score=score,
                snippet=texts[key],
            )
        )
    return results
