"""Shared Pydantic models for persistkit.

Contains ``Node``, the unit of content persisted by every backend, and
``PersistOutcome``, the per-node result yielded by batch writes.
"""

from __future__ import annotations

import hashlib
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from persistkit_core.errors import PersistError, PersistException


# ---------------------------------------------------------------------------
# Node
# ---------------------------------------------------------------------------


class Node(BaseModel):
    """A chunk of ingested content with optional embedding and metadata."""

    # NaN and infinity in vectors serialize as JSON constants so they read back.
    model_config = ConfigDict(ser_json_inf_nan="constants")

    id: int | None = None
    path: str = ""
    chunk: str = ""
    vector: list[float] | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    def content_hash(self) -> str:
        """SHA-256 hex digest of the node's path and chunk.

        Metadata, vector and id are excluded so re-embedding or re-tagging
        the same content at the same path keeps its storage slot.
        """
        digest = hashlib.sha256()
        digest.update(self.path.encode())
        digest.update(b"\x00")
        digest.update(self.chunk.encode())
        return digest.hexdigest()

    def to_json(self) -> str:
        """Serialize the full node, reversible with :meth:`from_json`."""
        return self.model_dump_json()

    @classmethod
    def from_json(cls, data: str | bytes) -> Node:
        return cls.model_validate_json(data)


# ---------------------------------------------------------------------------
# Outcomes
# ---------------------------------------------------------------------------


class PersistOutcome(BaseModel):
    """Result of one persistence attempt: the stored node or a failure.

    Exactly one of ``node`` and ``error`` is set.
    """

    node: Node | None = None
    error: PersistError | None = None

    @model_validator(mode="after")
    def _validate_exactly_one(self) -> PersistOutcome:
        if (self.node is None) == (self.error is None):
            raise ValueError("PersistOutcome needs exactly one of 'node' or 'error'.")
        return self

    @classmethod
    def success(cls, node: Node) -> PersistOutcome:
        return cls(node=node)

    @classmethod
    def failure(cls, error: PersistError) -> PersistOutcome:
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Node:
        """Return the stored node, or raise the exception matching the error."""
        if self.error is not None:
            raise PersistException.from_error(self.error)
        return self.node  # type: ignore[return-value]
