import posixpath
from typing import Iterator

from tree_sitter import Node

from services.extraction.languages import LanguageSpec, language_for_extension
from shared.helper.HelperConfig import HelperConfig
from shared.models.document import DocumentKind, FileEntry, RawDocument
from shared.models.errors import ParseFailedError


class DocumentExtractor:
    """Carves functions, methods, types and whole files out of source files.

    The syntax tree is walked depth-first in source order. Nodes the active
    LanguageSpec does not classify are skipped, as are classified nodes
    without a name; nested declarations (methods in impl blocks, functions
    in functions) are found as well.
    """

    def __init__(self, helper_config: HelperConfig, include_filename_doc: bool = True) -> None:
        self.logging = helper_config.get_logger()
        self.include_filename_doc = include_filename_doc

    ##########################################
    ############### CORE #####################
    ##########################################

    def extract_file(self, entry: FileEntry) -> list[RawDocument]:
        """Extract all documents of a scanned file, selecting the language by extension.

        Raises:
            ParseFailedError: If the extension is unsupported or the file cannot be parsed.
        """
        extension = posixpath.splitext(entry.file_path)[1]
        language = language_for_extension(extension)
        if language is None:
            raise ParseFailedError(entry.file_path, f"unsupported file extension '{extension}'")
        return self.extract(entry.repo, entry.file_path, entry.source, language)

    def extract(self, repo: str, file_path: str, source: str, language: LanguageSpec) -> list[RawDocument]:
        """Extract all documents of one source text.

        Args:
            repo (str): Repository the file belongs to.
            file_path (str): Slash-separated path relative to the repository root.
            source (str): The full file text.
            language (LanguageSpec): The language of the file.

        Returns:
            list[RawDocument]: The filename document (if enabled) followed by all
                declarations in source order.

        Raises:
            ParseFailedError: If no syntax tree can be produced for the file.
        """
        try:
            source_bytes = source.encode("utf-8")
        except UnicodeEncodeError as e:
            raise ParseFailedError(file_path, f"source is not valid UTF-8: {e}") from e

        try:
            tree = language.new_parser().parse(source_bytes)
        except (ValueError, TypeError, RuntimeError) as e:
            raise ParseFailedError(file_path, f"{language.name} parser rejected the file: {e}") from e
        if tree is None or tree.root_node is None:
            raise ParseFailedError(file_path, f"{language.name} parser produced no tree")

        documents: list[RawDocument] = []
        if self.include_filename_doc:
            documents.append(self._build_filename_document(repo, file_path, source))

        for node in self._walk(tree.root_node):
            document = self._build_document(repo, file_path, source_bytes, node, language)
            if document is not None:
                documents.append(document)

        self.logging.debug("Extracted %d document(s) from %s/%s (%s)", len(documents), repo, file_path, language.name)
        return documents

    ##########################################
    ############### HELPERS ##################
    ##########################################

    @staticmethod
    def _walk(root: Node) -> Iterator[Node]:
        # pre-order, without recursion so deeply nested files cannot hit the recursion limit
        stack = [root]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.named_children))

    def _build_document(self, repo: str, file_path: str, source_bytes: bytes, node: Node, language: LanguageSpec) -> RawDocument | None:
        kind = language.classify(node)
        if kind is None:
            return None
        name = language.node_name(node)
        if name is None:
            return None

        parent_type = None
        if kind == DocumentKind.METHOD:
            container = language.enclosing_type(node)
            if container is not None:
                parent_type = language.parent_type(container)

        # the code range can be wider than the node, e.g. a whole "const f = () => {}" statement
        span = language.document_node(node)
        return RawDocument(
            repo=repo,
            file_path=file_path,
            symbol_name=name,
            kind=kind,
            signature=self._extract_signature(source_bytes, node, span, language),
            doc_comment=self._extract_doc_comment(source_bytes, span.start_byte, language),
            code=source_bytes[span.start_byte:span.end_byte].decode("utf-8"),
            parent_type=parent_type,
            line_start=span.start_point[0] + 1,
            line_end=span.end_point[0] + 1,
        )

    @staticmethod
    def _build_filename_document(repo: str, file_path: str, source: str) -> RawDocument:
        return RawDocument(
            repo=repo,
            file_path=file_path,
            symbol_name=posixpath.basename(file_path) or file_path,
            kind=DocumentKind.FILENAME,
            code=source,
            line_start=1,
            line_end=1 + source.count("\n"),
        )

    @staticmethod
    def _extract_signature(source_bytes: bytes, node: Node, span: Node, language: LanguageSpec) -> str | None:
        """Declaration text up to its body, up to the first ';' if bodiless, else the whole span."""
        body = language.body_node(node)
        if body is not None:
            signature = source_bytes[span.start_byte:body.start_byte].decode("utf-8").strip()
            return signature or None

        text = source_bytes[span.start_byte:span.end_byte].decode("utf-8")
        semicolon = text.find(";")
        if semicolon != -1:
            text = text[:semicolon + 1]
        return text.strip() or None

    @staticmethod
    def _lines_above(prefix: str) -> Iterator[str]:
        """Yield the complete lines of prefix from bottom to top.

        The text after the last newline belongs to the line the node starts on
        and is skipped.
        """
        end = prefix.rfind("\n")
        while end != -1:
            start = prefix.rfind("\n", 0, end)
            yield prefix[start + 1:end].rstrip("\r")
            end = start

    def _extract_doc_comment(self, source_bytes: bytes, start_byte: int, language: LanguageSpec) -> str | None:
        prefix = source_bytes[:start_byte].decode("utf-8")
        collected: list[str] = []
        seen_marker = False

        for line in self._lines_above(prefix):
            trimmed = line.strip()
            if language.opens_plain_block(trimmed):
                # the " * " lines collected so far belong to an ordinary block comment
                return None
            text = language.strip_doc_marker(trimmed)
            if text is not None:
                collected.append(text)
                seen_marker = True
                continue
            if seen_marker and not trimmed:
                collected.append("")
                continue
            if not seen_marker:
                return None
            break

        # blank lines above the first doc line are not part of the block
        while collected and not collected[-1]:
            collected.pop()
        if not collected:
            return None
        collected.reverse()
        return "\n".join(collected).rstrip() or None
