"""Face identity record and its JSON-compatible wire format.

A record is the persisted unit of the system: one identity id, one
L2-normalized embedding, and a format version tag. Applications own storage;
this module only converts records to and from plain dicts and JSON text.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List

import numpy as np

from faceauth.utils import VectorLike, as_embedding

FORMAT_VERSION = "1.0"

# Per-component tolerance used for record equality
EMBEDDING_TOLERANCE = 1e-6


@dataclass(frozen=True, eq=False)
class FaceIdentityRecord:
    """Immutable identity record.

    Attributes:
        identity_id: Caller-defined, non-empty, unique per person
        embedding: Read-only float32 embedding, shape [D], expected unit norm
        format_version: Version tag of the record format

    Two records are equal when their ids are identical and every embedding
    component differs by at most 1e-6. The format version is not compared.

    Example:
        >>> record = FaceIdentityRecord("alice", [0.6, 0.0, 0.8])
        >>> record.to_dict()["identityId"]
        'alice'
    """

    identity_id: str
    embedding: np.ndarray
    format_version: str = FORMAT_VERSION

    def __post_init__(self) -> None:
        """Validate fields and freeze the embedding."""
        if not isinstance(self.identity_id, str) or not self.identity_id:
            raise ValueError(
                f"identity_id must be a non-empty string, got {self.identity_id!r}"
            )

        if not isinstance(self.format_version, str):
            raise ValueError(
                f"format_version must be a string, got {type(self.format_version).__name__}"
            )

        emb = as_embedding(self.embedding)
        emb.setflags(write=False)
        object.__setattr__(self, "embedding", emb)

    @property
    def dimension(self) -> int:
        """Embedding length."""
        return int(self.embedding.shape[0])

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FaceIdentityRecord):
            return NotImplemented
        if self.identity_id != other.identity_id:
            return False
        if self.embedding.shape != other.embedding.shape:
            return False
        diff = np.abs(
            self.embedding.astype(np.float64) - other.embedding.astype(np.float64)
        )
        return bool(np.all(diff <= EMBEDDING_TOLERANCE))

    def __hash__(self) -> int:
        return hash((self.identity_id, self.dimension))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-compatible dict."""
        return {
            "identityId": self.identity_id,
            "embedding": [float(x) for x in self.embedding],
            "formatVersion": self.format_version,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> FaceIdentityRecord:
        """Create a record from a dict produced by to_dict().

        Raises:
            ValueError: If a key is missing or has the wrong type.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Record must be a JSON object, got {type(data).__name__}")

        missing = [k for k in ("identityId", "embedding", "formatVersion") if k not in data]
        if missing:
            raise ValueError(f"Record is missing required keys: {missing}")

        embedding = data["embedding"]
        if not isinstance(embedding, list):
            raise ValueError(
                f"'embedding' must be a list of floats, got {type(embedding).__name__}"
            )

        try:
            vector = as_embedding(embedding)
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid embedding for '{data['identityId']}': {e}") from e

        return cls(
            identity_id=data["identityId"],
            embedding=vector,
            format_version=data["formatVersion"],
        )

    def to_json(self) -> str:
        """Encode to a JSON string."""
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, source: str) -> FaceIdentityRecord:
        """Decode from a JSON string."""
        return cls.from_dict(json.loads(source))

    def __repr__(self) -> str:
        return (
            f"FaceIdentityRecord(identity_id='{self.identity_id}', "
            f"embedding={self.dimension}D, format_version='{self.format_version}')"
        )


def make_record(
    identity_id: str,
    embedding: VectorLike,
    format_version: str = FORMAT_VERSION,
) -> FaceIdentityRecord:
    """Shorthand for building a record from any float sequence."""
    return FaceIdentityRecord(identity_id, as_embedding(embedding), format_version)


def dump_records(records: Iterable[FaceIdentityRecord], indent: int | None = None) -> str:
    """Encode records as a JSON array."""
    return json.dumps([r.to_dict() for r in records], indent=indent)


def load_records(source: str) -> List[FaceIdentityRecord]:
    """Decode a JSON array produced by dump_records().

    Raises:
        ValueError: If the text is not a JSON array of valid records.
    """
    data = json.loads(source)
    if not isinstance(data, list):
        raise ValueError(f"Expected a JSON array of records, got {type(data).__name__}")
    return [FaceIdentityRecord.from_dict(item) for item in data]
