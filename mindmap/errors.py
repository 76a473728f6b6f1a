"""Error types and operation results for MindMap."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


class MindMapError(Exception):
    """Base class for all MindMap failures."""


class ValidationError(MindMapError):
    """Raised when an operation would break a graph invariant."""


class UnknownEntityError(MindMapError, LookupError):
    """Raised when an operation names a node or connection that does not exist."""


class ImportFormatError(MindMapError):
    """Raised when a document does not have the expected shape."""


class PersistenceError(MindMapError, OSError):
    """Raised when the storage backend cannot read or write data."""


@dataclass
class OperationResult:
    """Outcome of a persistence or import operation.

    Failures carry a human readable ``error`` so the UI layer can notify the
    user instead of handling exceptions.
    """

    ok: bool
    document: Optional[Dict[str, Any]] = None
    error: str = ""
    cancelled: bool = False

    @classmethod
    def success(cls, document: Optional[Dict[str, Any]] = None) -> "OperationResult":
        return cls(ok=True, document=document)

    @classmethod
    def failure(cls, error: str) -> "OperationResult":
        return cls(ok=False, error=error)
