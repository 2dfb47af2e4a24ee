"""Pydantic models for code documents.

Hierarchy:
  FileEntry           one source file handed over by the scanner.
  RawDocument         one semantic unit found by extraction.
  NormalizedDocument  RawDocument after canonicalization, plus hash and index timestamp.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, model_validator


class DocumentKind(str, Enum):
    """Kind of a semantic unit. Struct/enum/trait stand for any struct-, enum- or interface-like type."""

    FUNCTION = "function"
    METHOD = "method"
    STRUCT = "struct"
    ENUM = "enum"
    TRAIT = "trait"
    FILENAME = "filename"


class FileEntry(BaseModel):
    """A single source file as produced by the scanner.

    Attributes:
        repo:      Repository (sub-project) name the file belongs to.
        file_path: Slash-separated path relative to the repository root.
        source:    Full UTF-8 file text.
    """

    repo: str
    file_path: str
    source: str


class RawDocument(BaseModel):
    """One semantic unit carved out of a source file.

    The code field is always the literal source slice of the unit; line numbers
    are 1-based and inclusive.
    """

    repo: str
    file_path: str
    symbol_name: str
    kind: DocumentKind
    signature: str | None = None
    doc_comment: str | None = None
    code: str
    parent_type: str | None = None
    line_start: int
    line_end: int

    @model_validator(mode="after")
    def _check_invariants(self) -> "RawDocument":
        if self.line_start > self.line_end:
            raise ValueError(f"line_start ({self.line_start}) > line_end ({self.line_end})")
        if self.kind == DocumentKind.FILENAME and self.parent_type is not None:
            raise ValueError("filename documents cannot carry a parent_type")
        return self


class NormalizedDocument(RawDocument):
    """A RawDocument ready for embedding and upsert.

    Attributes:
        hash_source:       SHA-256 fingerprint over signature, doc comment and code.
        timestamp_indexed: Wall-clock time (UTC) of normalization. Informational only.
    """

    hash_source: str
    timestamp_indexed: datetime
