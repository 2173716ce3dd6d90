"""Vector helpers shared by enrollment and recognition.

This module provides coercion, dimension checks, Euclidean distance and
L2 normalization for face embeddings.
"""

from __future__ import annotations

from typing import Sequence, Union

import numpy as np

from faceauth.errors import DimensionMismatchError, EmptyInputError

VectorLike = Union[np.ndarray, Sequence[float]]


def as_embedding(vector: VectorLike) -> np.ndarray:
    """Coerce a float sequence into a 1-D float32 embedding.

    Args:
        vector: Embedding as numpy array or sequence of floats, shape [D]

    Returns:
        Embedding as float32 numpy array, shape [D]. Always a new array.

    Raises:
        ValueError: If the vector is not 1-D, is empty, or has NaN/inf values.

    Example:
        >>> emb = as_embedding([0.6, 0.0, 0.8])
        >>> emb.dtype
        dtype('float32')
    """
    emb = np.array(vector, dtype=np.float32)

    if emb.ndim != 1:
        raise ValueError(f"Expected 1-D embedding, got shape {emb.shape}")

    if emb.size == 0:
        raise ValueError("Embedding must not be empty")

    if not np.all(np.isfinite(emb)):
        raise ValueError("Embedding must contain only finite values (no NaN or inf)")

    return emb


def check_same_dimension(a: np.ndarray, b: np.ndarray, context: str = "") -> None:
    """Raise DimensionMismatchError unless both vectors have the same length."""
    if a.shape[0] != b.shape[0]:
        raise DimensionMismatchError(a.shape[0], b.shape[0], context)


def euclidean_distance(a: np.ndarray, b: np.ndarray) -> float:
    """Compute Euclidean (L2) distance between two embeddings.

    Accumulates in float64 so that the result is symmetric and exactly zero
    for identical inputs.

    Args:
        a: First embedding, shape [D]
        b: Second embedding, shape [D]

    Returns:
        Distance >= 0. For unit vectors the range is [0, 2].

    Raises:
        DimensionMismatchError: If the lengths differ.
    """
    check_same_dimension(a, b)
    diff = np.asarray(a, dtype=np.float64) - np.asarray(b, dtype=np.float64)
    return float(np.sqrt(np.dot(diff, diff)))


def l2_normalize(vec: np.ndarray) -> np.ndarray:
    """L2-normalize a vector.

    A vector with norm exactly zero is returned unchanged (as float32) rather
    than divided by zero.

    Args:
        vec: Vector to normalize, shape [D]

    Returns:
        L2-normalized float32 vector with same shape.

    Example:
        >>> normalized = l2_normalize(np.array([3.0, 4.0]))
        >>> assert abs(np.linalg.norm(normalized) - 1.0) < 1e-6
    """
    vec64 = np.asarray(vec, dtype=np.float64)
    norm = np.linalg.norm(vec64)
    if norm == 0.0:
        return vec64.astype(np.float32)
    return (vec64 / norm).astype(np.float32)


def average_and_normalize(vectors: Sequence[np.ndarray]) -> np.ndarray:
    """Component-wise mean of embeddings followed by L2 normalization.

    Args:
        vectors: Non-empty sequence of embeddings, each shape [D]

    Returns:
        Averaged, L2-normalized float32 embedding, shape [D].
        If the mean is the zero vector it is returned un-normalized.

    Raises:
        EmptyInputError: If no vectors are given.
        DimensionMismatchError: If the vectors have different lengths.
    """
    if len(vectors) == 0:
        raise EmptyInputError("Cannot average an empty list of embeddings")

    first = vectors[0]
    for i, vec in enumerate(vectors[1:], start=1):
        check_same_dimension(first, vec, f"vector {i}")

    mean = np.mean(np.stack(vectors).astype(np.float64), axis=0)
    return l2_normalize(mean)
