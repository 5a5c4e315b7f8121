"""Data types for row operations."""

import json
from typing import Any, Iterable, Optional

from pydantic import BaseModel, Field, field_validator


def format_vector(embedding: Iterable[float]) -> str:
    """Format an embedding as an OceanBase VECTOR literal, e.g. ``[0.1,0.2]``."""
    return "[" + ",".join(str(float(v)) for v in embedding) + "]"


def parse_vector(value: str) -> list[float]:
    """Parse a VECTOR literal back into a list of floats."""
    stripped = value.strip().strip("[]")
    if not stripped:
        return []
    return [float(v) for v in stripped.split(",")]


class Row(BaseModel):
    """Encapsulates a single row for insert/query operations.

    Maps to table columns: (id, content, vectors, namespace, metadata).
    Values read back from the database (vector literals, JSON strings)
    validate into the same model.
    """

    id: Optional[int] = Field(
        None,
        description="Row ID. Assigned by AUTO_INCREMENT if None",
    )
    content: str = Field(..., description="Document text content")
    embedding: list[float] = Field(default_factory=list, description="Vector embedding")
    namespace: Optional[str] = Field(None, description="Tenant namespace")
    metadata: dict = Field(default_factory=dict, description="JSON metadata")

    @field_validator("embedding", mode="before")
    @classmethod
    def parse_embedding(cls, v: Any) -> Any:
        if isinstance(v, (bytes, bytearray)):
            v = v.decode()
        if isinstance(v, str):
            return parse_vector(v)
        return v

    @field_validator("metadata", mode="before")
    @classmethod
    def parse_metadata(cls, v: Any) -> Any:
        if v is None:
            return {}
        if isinstance(v, (bytes, bytearray)):
            v = v.decode()
        if isinstance(v, str):
            return json.loads(v) if v.strip() else {}
        return v

    def embedding_as_str(self) -> str:
        """Return embedding as an OceanBase-compatible vector literal."""
        return format_vector(self.embedding)

    def metadata_as_json(self) -> str:
        """Return metadata as a JSON string."""
        return json.dumps(self.metadata)
