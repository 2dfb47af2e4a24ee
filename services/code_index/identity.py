"""Deterministic addressing of code documents.

A document's slot in the vector store is defined by (repo, file_path,
symbol_name, kind) alone. Its content fingerprint is tracked separately so
a changed body keeps its slot but gets a new hash.
"""

import hashlib
import uuid


def canonical_document_key(repo: str, file_path: str, symbol_name: str, kind: str) -> str:
    """Build the identity key, e.g. "repo=core|path=src/lib.rs|symbol=foo|type=function"."""
    return (
        f"repo={repo.strip()}"
        f"|path={file_path.strip()}"
        f"|symbol={symbol_name.strip()}"
        f"|type={kind.strip().lower()}"
    )


def deterministic_point_id(repo: str, file_path: str, symbol_name: str, kind: str) -> str:
    """Build a deterministic UUID5 point ID for a code document.

    The same identity key always maps to the same point ID, so re-indexing
    overwrites points instead of duplicating them.

    Returns:
        str: UUID string usable as a Qdrant point ID.
    """
    key = canonical_document_key(repo, file_path, symbol_name, kind)
    return str(uuid.uuid5(uuid.NAMESPACE_URL, key))


def content_hash(signature: str | None, doc_comment: str | None, code: str) -> str:
    """SHA-256 hex digest over signature, doc comment and code.

    Every present field contributes a segment tagged with its name and byte
    length, so an absent field never hashes like an empty one and content
    cannot shift from one field into another.
    """
    hasher = hashlib.sha256()
    for tag, value in (("SIG", signature), ("DOC", doc_comment), ("CODE", code)):
        if value is None:
            continue
        data = value.encode("utf-8")
        hasher.update(f"{tag}:{len(data)}\0".encode("ascii"))
        hasher.update(data)
    return hasher.hexdigest()
