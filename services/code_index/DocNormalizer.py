from datetime import datetime, timezone

from services.code_index.identity import content_hash
from shared.models.document import NormalizedDocument, RawDocument


class DocNormalizer:
    """Canonicalizes raw documents before embedding.

    Only code, signature and doc comment are rewritten; repo, path, symbol,
    kind and line range pass through untouched.
    """

    def __init__(self, max_code_chars: int = 100_000) -> None:
        self.max_code_chars = max_code_chars

    def normalize(self, doc: RawDocument) -> NormalizedDocument:
        code = self.normalize_code(doc.code)
        signature = doc.signature.strip() if doc.signature is not None else None
        doc_comment = doc.doc_comment.strip() if doc.doc_comment is not None else None

        return NormalizedDocument(
            **doc.model_dump(exclude={"code", "signature", "doc_comment"}),
            code=code,
            signature=signature,
            doc_comment=doc_comment,
            hash_source=content_hash(signature, doc_comment, code),
            timestamp_indexed=datetime.now(timezone.utc),
        )

    def normalize_code(self, code: str) -> str:
        """Unify line endings, trim, cap the length and dedent.

        The indent is taken from the first non-blank line before trimming,
        since trimming removes exactly that line's indentation.
        """
        code = code.replace("\r\n", "\n").replace("\r", "\n")
        indent = _leading_whitespace(next((line for line in code.split("\n") if line.strip()), ""))

        code = code.strip()[: self.max_code_chars]
        if indent == 0:
            return code

        lines = code.split("\n")
        return "\n".join([lines[0]] + [_dedent_line(line, indent) for line in lines[1:]])


def _leading_whitespace(line: str) -> int:
    return len(line) - len(line.lstrip())


def _dedent_line(line: str, indent: int) -> str:
    # lines indented less than the first line are left as they are
    if _leading_whitespace(line) < indent:
        return line
    return line[indent:]
