"""Vector and token-set similarity measures used by search and reranking."""

import math
from typing import Sequence

import numpy as np


def _dot(a: np.ndarray, b: np.ndarray) -> float:
    # fsum is order-independent, so dot(a, b) == dot(a, a) whenever a == b
    return math.fsum(np.multiply(a, b))


def cosine_similarity(vec_a: Sequence[float], vec_b: Sequence[float]) -> float:
    """Cosine similarity ``dot(a, b) / (|a| * |b|)``.

    Returns 0.0 when either vector has zero norm.

    Raises:
        ValueError: If the vectors have different lengths.
    """
    if len(vec_a) != len(vec_b):
        raise ValueError(
            f"Vectors must have the same dimension ({len(vec_a)} != {len(vec_b)})"
        )

    a = np.asarray(vec_a, dtype=np.float64)
    b = np.asarray(vec_b, dtype=np.float64)

    norm_product = math.sqrt(_dot(a, a) * _dot(b, b))
    if norm_product == 0.0:
        return 0.0

    # sqrt(d * d) == d, so cos(v, v) is exactly 1.0
    return float(np.clip(_dot(a, b) / norm_product, -1.0, 1.0))


def tokenize(text: str) -> set[str]:
    """Lowercased whitespace tokens."""
    return set(text.lower().split())


def jaccard_similarity(tokens_a: set[str], tokens_b: set[str]) -> float:
    """Jaccard index of two token sets. Two empty sets count as identical."""
    if not tokens_a and not tokens_b:
        return 1.0
    union = tokens_a | tokens_b
    return len(tokens_a & tokens_b) / len(union)
