"""Tests for DocumentExtractor across the supported languages."""

import pytest

from services.extraction.DocumentExtractor import DocumentExtractor
from services.extraction.languages import KotlinSpec, RustSpec, language_for_extension, supported_extensions
from shared.helper.HelperConfig import HelperConfig
from shared.models.document import DocumentKind, FileEntry, RawDocument
from shared.models.errors import ParseFailedError

RUST_SOURCE = (
    "use std::fmt;\n"
    "\n"
    "/// Top doc\n"
    "/// more\n"
    "pub fn foo(a: u32) -> u32 {\n"
    "    a + 1\n"
    "}\n"
    "\n"
    "pub struct Counter {\n"
    "    n: u32,\n"
    "}\n"
    "\n"
    "impl Counter {\n"
    "    /// Creates one.\n"
    "    pub fn new() -> Self {\n"
    "        Counter { n: 0 }\n"
    "    }\n"
    "\n"
    "    pub fn bump(&mut self) -> u32 {\n"
    "        self.n += 1;\n"
    "        self.n\n"
    "    }\n"
    "}\n"
    "\n"
    "impl fmt::Display for Counter {\n"
    "    fn fmt(&self, f: &mut fmt::Formatter) -> fmt::Result {\n"
    "        write!(f, \"{}\", self.n)\n"
    "    }\n"
    "}\n"
    "\n"
    "pub enum Mode { On, Off }\n"
    "\n"
    "pub trait Named {\n"
    "    fn name(&self) -> String;\n"
    "}\n"
)

KOTLIN_SOURCE = """\
/**
 * Greets people.
 */
class Greeter(val name: String) {
    /** Says hello. */
    fun greet(): String {
        return "Hello $name"
    }
}

fun topLevel(x: Int): Int = x + 1

interface Shape {
    fun area(): Double
}

enum class Color { RED, GREEN }

object Registry {
    fun lookup(key: String): String? = null
}
"""

TYPESCRIPT_SOURCE = """\
/** A shape. */
export interface Shape {
  area(): number;
}

export enum Color { Red, Green }

/**
 * Adds numbers.
 */
export function add(a: number, b: number): number {
  return a + b;
}

export class Circle implements Shape {
  constructor(private r: number) {}

  /** Area of the circle. */
  area(): number {
    return Math.PI * this.r * this.r;
  }

  static unit(): Circle {
    return new Circle(1);
  }
}
"""

TYPESCRIPT_CONST_SOURCE = """\
/** Adds. */
export const add = (a: number, b: number): number => {
  return a + b;
};

const twice = function (x: number): number {
  return 2 * x;
};

let one = () => 1, two = () => 2;
const limit = 10;
"""

JAVASCRIPT_SOURCE = """\
class Stack {
  push(item) {
    this.items.push(item);
  }
}

// plain comment
function helper() {
  return 1;
}
"""


def _by_name(docs: list[RawDocument]) -> dict[str, RawDocument]:
    return {doc.symbol_name: doc for doc in docs if doc.kind != DocumentKind.FILENAME}


@pytest.fixture
def extractor(helper_config: HelperConfig) -> DocumentExtractor:
    return DocumentExtractor(helper_config=helper_config, include_filename_doc=True)


class TestLanguageSelection:
    def test_extensions_map_to_languages(self) -> None:
        assert isinstance(language_for_extension("rs"), RustSpec)
        assert isinstance(language_for_extension(".KT"), KotlinSpec)
        assert language_for_extension("ts").name == "typescript"
        assert language_for_extension("tsx").name == "tsx"
        assert language_for_extension("mjs").name == "javascript"
        assert language_for_extension("py") is None

    def test_supported_extensions_cover_four_languages(self) -> None:
        assert {"rs", "kt", "kts", "ts", "js"} <= supported_extensions()

    def test_grammar_is_loaded_once(self) -> None:
        assert language_for_extension("rs") is language_for_extension("rs")


class TestRustExtraction:
    def test_function_with_doc_comment(self, extractor: DocumentExtractor) -> None:
        docs = _by_name(extractor.extract("core", "src/lib.rs", RUST_SOURCE, language_for_extension("rs")))

        foo = docs["foo"]
        assert foo.kind == DocumentKind.FUNCTION
        assert foo.doc_comment == "Top doc\nmore"
        assert foo.signature == "pub fn foo(a: u32) -> u32"
        assert foo.signature.startswith("pub fn foo")
        assert (foo.line_start, foo.line_end) == (5, 7)
        assert foo.code == "pub fn foo(a: u32) -> u32 {\n    a + 1\n}"
        assert foo.parent_type is None

    def test_method_needs_impl_block_and_self(self, extractor: DocumentExtractor) -> None:
        docs = _by_name(extractor.extract("core", "src/lib.rs", RUST_SOURCE, language_for_extension("rs")))

        bump = docs["bump"]
        assert bump.kind == DocumentKind.METHOD
        assert bump.parent_type == "Counter"
        assert bump.signature == "pub fn bump(&mut self) -> u32"
        assert (bump.line_start, bump.line_end) == (19, 22)
        assert bump.doc_comment is None

        new = docs["new"]
        assert new.kind == DocumentKind.FUNCTION
        assert new.parent_type is None
        assert new.doc_comment == "Creates one."

    def test_trait_impl_parent_keeps_qualification(self, extractor: DocumentExtractor) -> None:
        docs = _by_name(extractor.extract("core", "src/lib.rs", RUST_SOURCE, language_for_extension("rs")))

        assert docs["fmt"].kind == DocumentKind.METHOD
        assert docs["fmt"].parent_type == "fmt::Display for Counter"

    def test_type_declarations(self, extractor: DocumentExtractor) -> None:
        docs = _by_name(extractor.extract("core", "src/lib.rs", RUST_SOURCE, language_for_extension("rs")))

        assert docs["Counter"].kind == DocumentKind.STRUCT
        assert docs["Counter"].signature == "pub struct Counter"
        assert docs["Mode"].kind == DocumentKind.ENUM
        assert docs["Mode"].signature == "pub enum Mode"
        assert docs["Named"].kind == DocumentKind.TRAIT
        assert docs["Named"].signature == "pub trait Named"

    def test_filename_document_spans_whole_file(self, extractor: DocumentExtractor) -> None:
        source = "fn a() {}\nfn b() {}"

        docs = extractor.extract("core", "src/util.rs", source, language_for_extension("rs"))

        filename_docs = [doc for doc in docs if doc.kind == DocumentKind.FILENAME]
        assert len(filename_docs) == 1
        file_doc = filename_docs[0]
        assert file_doc.symbol_name == "util.rs"
        assert file_doc.code == source
        assert (file_doc.line_start, file_doc.line_end) == (1, 2)
        assert file_doc.parent_type is None

    def test_filename_document_can_be_disabled(self, helper_config: HelperConfig) -> None:
        extractor = DocumentExtractor(helper_config=helper_config, include_filename_doc=False)

        docs = extractor.extract("core", "src/util.rs", "fn a() {}\n", language_for_extension("rs"))

        assert [doc.kind for doc in docs] == [DocumentKind.FUNCTION]

    def test_blank_line_inside_doc_block_is_kept(self, extractor: DocumentExtractor) -> None:
        source = "/// first\n\n/// second\nfn f() {}\n"

        docs = _by_name(extractor.extract("core", "a.rs", source, language_for_extension("rs")))

        assert docs["f"].doc_comment == "first\n\nsecond"

    def test_blank_line_between_doc_and_item_drops_doc(self, extractor: DocumentExtractor) -> None:
        source = "/// detached\n\nfn f() {}\n"

        docs = _by_name(extractor.extract("core", "a.rs", source, language_for_extension("rs")))

        assert docs["f"].doc_comment is None

    def test_bodiless_item_signature_ends_at_semicolon(self, extractor: DocumentExtractor) -> None:
        docs = _by_name(extractor.extract("core", "a.rs", "pub struct Unit;\n", language_for_extension("rs")))

        assert docs["Unit"].signature == "pub struct Unit;"

    def test_nested_functions_are_found(self, extractor: DocumentExtractor) -> None:
        source = "fn outer() {\n    fn inner() {}\n}\n"

        docs = _by_name(extractor.extract("core", "a.rs", source, language_for_extension("rs")))

        assert set(docs) == {"outer", "inner"}
        assert (docs["inner"].line_start, docs["inner"].line_end) == (2, 2)

    def test_invalid_unicode_is_a_parse_failure(self, extractor: DocumentExtractor) -> None:
        with pytest.raises(ParseFailedError) as exc_info:
            extractor.extract("core", "bad.rs", "fn a() {}\ud800", language_for_extension("rs"))

        assert exc_info.value.file_path == "bad.rs"


class TestExtractFile:
    def test_language_is_selected_by_extension(self, extractor: DocumentExtractor) -> None:
        entry = FileEntry(repo="core", file_path="src/lib.rs", source="fn a() {}\n")

        docs = extractor.extract_file(entry)

        assert {doc.symbol_name for doc in docs} == {"lib.rs", "a"}
        assert all(doc.repo == "core" and doc.file_path == "src/lib.rs" for doc in docs)

    def test_unsupported_extension_is_a_parse_failure(self, extractor: DocumentExtractor) -> None:
        entry = FileEntry(repo="core", file_path="README.md", source="# hi\n")

        with pytest.raises(ParseFailedError):
            extractor.extract_file(entry)


class TestKotlinExtraction:
    def test_declarations_and_kinds(self, extractor: DocumentExtractor) -> None:
        docs = _by_name(extractor.extract("app", "Main.kt", KOTLIN_SOURCE, language_for_extension("kt")))

        assert docs["Greeter"].kind == DocumentKind.STRUCT
        assert docs["Shape"].kind == DocumentKind.TRAIT
        assert docs["Color"].kind == DocumentKind.ENUM
        assert docs["Registry"].kind == DocumentKind.STRUCT
        assert docs["topLevel"].kind == DocumentKind.FUNCTION
        assert docs["topLevel"].parent_type is None

    def test_members_are_methods_of_their_type(self, extractor: DocumentExtractor) -> None:
        docs = _by_name(extractor.extract("app", "Main.kt", KOTLIN_SOURCE, language_for_extension("kt")))

        greet = docs["greet"]
        assert greet.kind == DocumentKind.METHOD
        assert greet.parent_type.startswith("Greeter")
        assert greet.doc_comment == "Says hello."
        assert greet.signature == "fun greet(): String"
        assert docs["lookup"].kind == DocumentKind.METHOD
        assert docs["lookup"].parent_type == "Registry"

    def test_kdoc_block_is_collected(self, extractor: DocumentExtractor) -> None:
        docs = _by_name(extractor.extract("app", "Main.kt", KOTLIN_SOURCE, language_for_extension("kt")))

        assert docs["Greeter"].doc_comment.strip() == "Greets people."
        assert docs["Greeter"].line_start == 4

    def test_nested_class_does_not_rename_the_parent(self, extractor: DocumentExtractor) -> None:
        source = "object Registry {\n    class Entry {}\n    fun register() {}\n}\n"

        docs = _by_name(extractor.extract("app", "Registry.kt", source, language_for_extension("kt")))

        assert docs["Entry"].kind == DocumentKind.STRUCT
        assert docs["register"].kind == DocumentKind.METHOD
        assert docs["register"].parent_type == "Registry"

    def test_class_literals_do_not_rename_the_parent(self, extractor: DocumentExtractor) -> None:
        source = (
            "interface Repo {\n"
            "    fun kind() = Foo::class\n"
            "    fun load(): String {\n"
            "        return \"\"\n"
            "    }\n"
            "}\n"
            "\n"
            "@Tag(Foo::class)\n"
            "class Service {\n"
            "    fun run() {}\n"
            "}\n"
        )

        docs = _by_name(extractor.extract("app", "Repo.kt", source, language_for_extension("kt")))

        assert docs["load"].kind == DocumentKind.METHOD
        assert docs["load"].parent_type == "Repo"
        assert docs["run"].parent_type == "Service"

    def test_license_block_is_not_a_doc_comment(self, extractor: DocumentExtractor) -> None:
        source = (
            "/*\n"
            " * Copyright 2024 Example Corp.\n"
            " * Licensed under the MIT license.\n"
            " */\n"
            "fun licensed() {}\n"
        )

        docs = _by_name(extractor.extract("app", "Licensed.kt", source, language_for_extension("kt")))

        assert docs["licensed"].doc_comment is None


class TestTypeScriptExtraction:
    def test_declarations_and_kinds(self, extractor: DocumentExtractor) -> None:
        docs = _by_name(extractor.extract("web", "src/shape.ts", TYPESCRIPT_SOURCE, language_for_extension("ts")))

        assert docs["Shape"].kind == DocumentKind.TRAIT
        assert docs["Color"].kind == DocumentKind.ENUM
        assert docs["Circle"].kind == DocumentKind.STRUCT
        assert docs["add"].kind == DocumentKind.FUNCTION

    def test_exported_function_keeps_jsdoc_and_signature(self, extractor: DocumentExtractor) -> None:
        docs = _by_name(extractor.extract("web", "src/shape.ts", TYPESCRIPT_SOURCE, language_for_extension("ts")))

        add = docs["add"]
        assert add.doc_comment.strip() == "Adds numbers."
        assert add.signature == "function add(a: number, b: number): number"

    def test_instance_members_are_methods_static_members_are_not(self, extractor: DocumentExtractor) -> None:
        docs = _by_name(extractor.extract("web", "src/shape.ts", TYPESCRIPT_SOURCE, language_for_extension("ts")))

        area = docs["area"]
        assert area.kind == DocumentKind.METHOD
        assert area.parent_type == "Circle implements Shape"
        assert area.doc_comment == "Area of the circle."
        assert docs["constructor"].kind == DocumentKind.METHOD
        assert docs["unit"].kind == DocumentKind.FUNCTION
        assert docs["unit"].parent_type is None

    def test_functions_bound_to_constants(self, extractor: DocumentExtractor) -> None:
        docs = _by_name(extractor.extract("web", "src/math.ts", TYPESCRIPT_CONST_SOURCE, language_for_extension("ts")))

        add = docs["add"]
        assert add.kind == DocumentKind.FUNCTION
        assert add.parent_type is None
        assert add.doc_comment == "Adds."
        assert add.signature == "const add = (a: number, b: number): number =>"
        assert add.code == "const add = (a: number, b: number): number => {\n  return a + b;\n};"
        assert (add.line_start, add.line_end) == (2, 4)

        twice = docs["twice"]
        assert twice.kind == DocumentKind.FUNCTION
        assert twice.signature == "const twice = function (x: number): number"
        assert twice.doc_comment is None

        assert "limit" not in docs

    def test_each_declarator_of_a_shared_statement_is_its_own_document(self, extractor: DocumentExtractor) -> None:
        docs = _by_name(extractor.extract("web", "src/math.ts", TYPESCRIPT_CONST_SOURCE, language_for_extension("ts")))

        assert docs["one"].code == "one = () => 1"
        assert docs["two"].code == "two = () => 2"
        assert docs["one"].line_start == docs["two"].line_start == 10

    def test_license_block_is_not_a_doc_comment(self, extractor: DocumentExtractor) -> None:
        source = "/*\n * Copyright 2024 Example Corp.\n */\nexport function licensed(): void {}\n"

        docs = _by_name(extractor.extract("web", "src/licensed.ts", source, language_for_extension("ts")))

        assert docs["licensed"].doc_comment is None


class TestJavaScriptExtraction:
    def test_class_method_and_function(self, extractor: DocumentExtractor) -> None:
        docs = _by_name(extractor.extract("web", "lib/stack.js", JAVASCRIPT_SOURCE, language_for_extension("js")))

        assert docs["Stack"].kind == DocumentKind.STRUCT
        assert docs["push"].kind == DocumentKind.METHOD
        assert docs["push"].parent_type == "Stack"
        assert docs["helper"].kind == DocumentKind.FUNCTION
        assert docs["helper"].doc_comment is None
        assert docs["helper"].signature == "function helper()"
