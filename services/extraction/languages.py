"""Language descriptions for the document extractor.

Each LanguageSpec tells the extractor which syntax nodes are documents of
which kind, where a method's enclosing type lives, which child holds a body
and which comment prefixes mark documentation. The traversal itself is shared.
"""

from abc import ABC, abstractmethod
import re

import tree_sitter_javascript
import tree_sitter_kotlin
import tree_sitter_rust
import tree_sitter_typescript
from tree_sitter import Language, Node, Parser

from shared.models.document import DocumentKind


class LanguageSpec(ABC):
    """Language-specific hooks of the document extractor."""

    # name used in logs, e.g. "rust"
    name: str = ""
    # lower-case file extensions without the dot
    extensions: tuple[str, ...] = ()
    # node types holding the body of a declaration; the signature ends before them
    body_types: frozenset[str] = frozenset()
    # fallback node types for the name of a declaration without a "name" field
    name_types: tuple[str, ...] = ("identifier", "type_identifier")
    # trimmed comment prefixes that mark doc lines, longest first
    doc_markers: tuple[str, ...] = ()
    # keywords that open the header of an enclosing type, e.g. "impl"
    container_keywords: tuple[str, ...] = ()

    def __init__(self) -> None:
        self._language = Language(self._load_grammar())

    @abstractmethod
    def _load_grammar(self) -> object:
        """Return the grammar capsule of the tree-sitter language package."""
        pass

    def new_parser(self) -> Parser:
        return Parser(self._language)

    ##########################################
    ############# CLASSIFICATION #############
    ##########################################

    @abstractmethod
    def classify(self, node: Node) -> DocumentKind | None:
        """Return the document kind of a node, or None if the node is not a document."""
        pass

    @abstractmethod
    def enclosing_type(self, node: Node) -> Node | None:
        """Return the type block a method node belongs to (impl block, class, ...)."""
        pass

    ##########################################
    ################ HELPERS #################
    ##########################################

    def node_name(self, node: Node) -> str | None:
        name_node = node.child_by_field_name("name")
        if name_node is None:
            for child in node.named_children:
                if child.type in self.name_types:
                    name_node = child
                    break
        if name_node is None or name_node.text is None:
            return None
        name = name_node.text.decode("utf-8").strip()
        return name or None

    def document_node(self, node: Node) -> Node:
        """Node whose source range gives a document's code, lines and doc comment anchor."""
        return node

    def body_node(self, node: Node) -> Node | None:
        """The child holding the body of a declaration, or None if it has none."""
        for child in node.children:
            if child.type in self.body_types:
                return child
        return None

    def parent_type(self, container: Node) -> str | None:
        """Header text of an enclosing type after its keyword, without the body.

        E.g. "impl<T> Display for Wrapper<T> { ... }" gives "<T> Display for Wrapper<T>".
        Only the header is searched, so keywords inside the body never match.
        """
        if container.text is None:
            return None
        text = container.text
        body = self.body_node(container)
        if body is not None:
            text = text[:body.start_byte - container.start_byte]
        header = text.decode("utf-8")

        first = None
        for keyword in self.container_keywords:
            # "Foo::class" in an annotation is a class literal, not the keyword
            match = re.search(rf"(?<!::)\b{re.escape(keyword)}\b", header)
            if match is not None and (first is None or match.start() < first.start()):
                first = match
        if first is not None:
            header = header[first.end():]
        return " ".join(header.split()) or None

    def strip_doc_marker(self, line: str) -> str | None:
        """Return the text of a doc line without its marker, or None if it is no doc line."""
        for marker in self.doc_markers:
            if line.startswith(marker):
                text = line[len(marker):]
                if text.endswith("*/"):
                    text = text[:-2]
                return text.lstrip()
        return None

    def opens_plain_block(self, line: str) -> bool:
        """True for a trimmed line opening a block comment that is no doc comment, e.g. "/* License"."""
        if not line.startswith("/*"):
            return False
        return not any(marker.startswith("/*") and line.startswith(marker) for marker in self.doc_markers)

    @staticmethod
    def has_child_type(node: Node, *types: str) -> bool:
        return any(child.type in types for child in node.children)


class RustSpec(LanguageSpec):
    name = "rust"
    extensions = ("rs",)
    body_types = frozenset({"block", "field_declaration_list", "enum_variant_list", "declaration_list"})
    doc_markers = ("///", "//!", "/**", "/*!")
    container_keywords = ("impl",)

    _TYPE_KINDS = {
        "struct_item": DocumentKind.STRUCT,
        "enum_item": DocumentKind.ENUM,
        "trait_item": DocumentKind.TRAIT,
    }

    def _load_grammar(self) -> object:
        return tree_sitter_rust.language()

    def classify(self, node: Node) -> DocumentKind | None:
        if node.type in self._TYPE_KINDS:
            return self._TYPE_KINDS[node.type]
        if node.type != "function_item":
            return None
        if self.enclosing_type(node) is None:
            return DocumentKind.FUNCTION
        params = node.child_by_field_name("parameters")
        if params is not None and self.has_child_type(params, "self_parameter"):
            return DocumentKind.METHOD
        return DocumentKind.FUNCTION

    def enclosing_type(self, node: Node) -> Node | None:
        # function_item -> declaration_list -> impl_item
        parent = node.parent
        if parent is None or parent.type != "declaration_list":
            return None
        grandparent = parent.parent
        if grandparent is None or grandparent.type != "impl_item":
            return None
        return grandparent


class KotlinSpec(LanguageSpec):
    name = "kotlin"
    extensions = ("kt", "kts")
    body_types = frozenset({"function_body", "class_body", "enum_class_body", "interface_body"})
    name_types = ("type_identifier", "simple_identifier", "identifier")
    doc_markers = ("/**", "*/", "*")
    container_keywords = ("class", "object", "interface")

    _CONTAINERS = frozenset({"class_declaration", "object_declaration", "interface_declaration"})
    _CONTAINER_BODIES = frozenset({"class_body", "enum_class_body", "interface_body"})

    def _load_grammar(self) -> object:
        return tree_sitter_kotlin.language()

    def classify(self, node: Node) -> DocumentKind | None:
        if node.type == "class_declaration":
            if self.has_child_type(node, "enum_class_body") or self._has_modifier(node, "enum"):
                return DocumentKind.ENUM
            if self.has_child_type(node, "interface"):
                return DocumentKind.TRAIT
            return DocumentKind.STRUCT
        if node.type == "interface_declaration":
            return DocumentKind.TRAIT
        if node.type == "object_declaration":
            return DocumentKind.STRUCT
        if node.type == "function_declaration":
            # members carry an implicit receiver
            return DocumentKind.METHOD if self.enclosing_type(node) is not None else DocumentKind.FUNCTION
        return None

    def enclosing_type(self, node: Node) -> Node | None:
        parent = node.parent
        if parent is None or parent.type not in self._CONTAINER_BODIES:
            return None
        grandparent = parent.parent
        if grandparent is None or grandparent.type not in self._CONTAINERS:
            return None
        return grandparent

    @staticmethod
    def _has_modifier(node: Node, modifier: str) -> bool:
        for child in node.children:
            if child.type == "modifiers" and child.text is not None:
                return modifier in child.text.decode("utf-8").split()
        return False


class JavaScriptSpec(LanguageSpec):
    name = "javascript"
    extensions = ("js", "jsx", "mjs", "cjs")
    body_types = frozenset({"statement_block", "class_body"})
    name_types = ("identifier", "type_identifier", "property_identifier")
    doc_markers = ("/**", "*/", "*")
    container_keywords = ("class",)

    _TYPE_KINDS: dict[str, DocumentKind] = {
        "class_declaration": DocumentKind.STRUCT,
    }
    _FUNCTIONS = frozenset({"function_declaration", "generator_function_declaration"})
    # values that make "const name = ..." a function declaration
    _FUNCTION_VALUES = frozenset({"arrow_function", "function_expression", "function", "generator_function"})
    _DECLARATIONS = frozenset({"lexical_declaration", "variable_declaration"})

    def _load_grammar(self) -> object:
        return tree_sitter_javascript.language()

    def classify(self, node: Node) -> DocumentKind | None:
        if node.type in self._TYPE_KINDS:
            return self._TYPE_KINDS[node.type]
        if node.type in self._FUNCTIONS or self._function_value(node) is not None:
            return DocumentKind.FUNCTION
        if node.type == "method_definition":
            # static members have no receiver
            if self.has_child_type(node, "static") or self.enclosing_type(node) is None:
                return DocumentKind.FUNCTION
            return DocumentKind.METHOD
        return None

    def enclosing_type(self, node: Node) -> Node | None:
        parent = node.parent
        if parent is None or parent.type != "class_body":
            return None
        grandparent = parent.parent
        if grandparent is None or grandparent.type not in self._TYPE_KINDS:
            return None
        return grandparent

    def document_node(self, node: Node) -> Node:
        # "const add = () => {}" spans the whole statement unless it declares several names
        parent = node.parent
        if (
            node.type == "variable_declarator"
            and parent is not None
            and parent.type in self._DECLARATIONS
            and sum(1 for child in parent.named_children if child.type == "variable_declarator") == 1
        ):
            return parent
        return node

    def body_node(self, node: Node) -> Node | None:
        value = self._function_value(node)
        if value is not None:
            return value.child_by_field_name("body")
        return super().body_node(node)

    def _function_value(self, node: Node) -> Node | None:
        """The function assigned by a variable declarator, or None for any other node."""
        if node.type != "variable_declarator":
            return None
        value = node.child_by_field_name("value")
        if value is None or value.type not in self._FUNCTION_VALUES:
            return None
        return value


class TypeScriptSpec(JavaScriptSpec):
    name = "typescript"
    extensions = ("ts", "mts", "cts")
    body_types = frozenset({"statement_block", "class_body", "interface_body", "object_type", "enum_body"})

    _TYPE_KINDS = {
        "class_declaration": DocumentKind.STRUCT,
        "abstract_class_declaration": DocumentKind.STRUCT,
        "interface_declaration": DocumentKind.TRAIT,
        "enum_declaration": DocumentKind.ENUM,
    }

    def _load_grammar(self) -> object:
        return tree_sitter_typescript.language_typescript()


class TsxSpec(TypeScriptSpec):
    name = "tsx"
    extensions = ("tsx",)

    def _load_grammar(self) -> object:
        return tree_sitter_typescript.language_tsx()


_SPEC_CLASSES: tuple[type[LanguageSpec], ...] = (RustSpec, KotlinSpec, TypeScriptSpec, TsxSpec, JavaScriptSpec)
_SPECS_BY_EXTENSION: dict[str, LanguageSpec] = {}


def supported_extensions() -> set[str]:
    return {ext for spec_class in _SPEC_CLASSES for ext in spec_class.extensions}


def language_for_extension(extension: str) -> LanguageSpec | None:
    """Return the language for a file extension (with or without dot), or None if unsupported.

    Grammars are loaded on first use and shared afterwards.
    """
    extension = extension.lower().lstrip(".")
    if extension in _SPECS_BY_EXTENSION:
        return _SPECS_BY_EXTENSION[extension]
    for spec_class in _SPEC_CLASSES:
        if extension in spec_class.extensions:
            spec = spec_class()
            for ext in spec_class.extensions:
                _SPECS_BY_EXTENSION[ext] = spec
            return spec
    return None
