"""CodePoint model: the payload stored alongside each vector in the vector store."""

from pydantic import BaseModel

from shared.models.document import NormalizedDocument


class CodePoint(BaseModel):
    """Payload of one indexed code document.

    Mirrors every NormalizedDocument field so a search hit can be rendered
    without going back to the repository. The timestamp is stored as integer
    Unix seconds.

    Attributes:
        repo:              Repository (sub-project) the document belongs to.
        file_path:         Slash-separated path relative to the repository root.
        symbol_name:       Function, method or type name; the file name for filename documents.
        kind:              One of function, method, struct, enum, trait, filename.
        signature:         Declaration header without the body, if any.
        doc_comment:       Doc comment directly above the declaration, if any.
        code:              Normalized source text of the unit.
        parent_type:       Enclosing impl/class type of a method, if any.
        line_start:        First line (1-based, inclusive).
        line_end:          Last line (1-based, inclusive).
        hash_source:       SHA-256 content fingerprint.
        timestamp_indexed: Unix seconds of normalization.
    """

    # Identity
    repo: str
    file_path: str
    symbol_name: str
    kind: str

    # Content
    signature: str | None = None
    doc_comment: str | None = None
    code: str
    parent_type: str | None = None

    # Location
    line_start: int
    line_end: int

    # Change detection
    hash_source: str
    timestamp_indexed: int

    @classmethod
    def from_document(cls, doc: NormalizedDocument) -> "CodePoint":
        return cls(
            repo=doc.repo,
            file_path=doc.file_path,
            symbol_name=doc.symbol_name,
            kind=doc.kind.value,
            signature=doc.signature,
            doc_comment=doc.doc_comment,
            code=doc.code,
            parent_type=doc.parent_type,
            line_start=doc.line_start,
            line_end=doc.line_end,
            hash_source=doc.hash_source,
            timestamp_indexed=int(doc.timestamp_indexed.timestamp()),
        )

    def to_point(self, point_id: str, vector: list[float]) -> dict:
        """Build the {id, vector, payload} triple sent to the vector store."""
        return {"id": point_id, "vector": vector, "payload": self.model_dump()}
