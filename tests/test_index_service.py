"""End-to-end tests of an indexing cycle against in-memory backends."""

from pathlib import Path

import pytest

from conftest import FakeEmbedder, FakeQdrant
from services.code_index.IndexService import IndexService
from services.code_index.identity import deterministic_point_id
from shared.clients.embed.openai.EmbedClientOpenai import EmbedClientOpenai
from shared.clients.rag.qdrant.RAGClientQdrant import RAGClientQdrant
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import IndexConfig
from shared.models.errors import IncompatibleCollectionError, ParseFailedError, UpsertFailedError

LIB_RS = """\
/// Adds one.
pub fn foo(a: u32) -> u32 {
    a + 1
}

pub struct Counter {
    n: u32,
}
"""

UTIL_RS = """\
pub fn helper() {}
"""


def _write(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


@pytest.fixture
def project(tmp_path: Path) -> Path:
    root = tmp_path / "My Project"
    _write(root / "core" / "src" / "lib.rs", LIB_RS)
    _write(root / "tools" / "util.rs", UTIL_RS)
    _write(root / "tools" / "README.md", "# not code\n")
    return root


@pytest.fixture
def index_config() -> IndexConfig:
    return IndexConfig(vector_size=4, embed_batch_size=2, upsert_batch_size=2, upsert_backoff=0)


@pytest.fixture
def service(
    helper_config: HelperConfig,
    embed_client: EmbedClientOpenai,
    rag_client: RAGClientQdrant,
    index_config: IndexConfig,
) -> IndexService:
    return IndexService(helper_config, embed_client, rag_client, index_config)


class TestDoIndex:
    @pytest.mark.asyncio
    async def test_first_cycle_creates_collection_and_writes_points(
        self, service: IndexService, project: Path, fake_qdrant: FakeQdrant
    ) -> None:
        report = await service.do_index(str(project))

        assert report.collection == "my-project"
        assert report.repos == ["core", "tools"]
        assert report.files_scanned == 2
        assert report.files_skipped == 0
        # lib.rs: filename, foo, Counter; util.rs: filename, helper
        assert report.documents == 5
        assert report.points_upserted == 5

        points = fake_qdrant.points("my-project")
        foo_id = deterministic_point_id("core", "src/lib.rs", "foo", "function")
        assert points[foo_id]["payload"]["doc_comment"] == "Adds one."
        assert points[foo_id]["payload"]["signature"] == "pub fn foo(a: u32) -> u32"
        assert points[foo_id]["payload"]["line_start"] == 2
        assert points[foo_id]["payload"]["line_end"] == 4

    @pytest.mark.asyncio
    async def test_second_cycle_overwrites_instead_of_duplicating(
        self, service: IndexService, project: Path, fake_qdrant: FakeQdrant
    ) -> None:
        await service.do_index(str(project))
        first_ids = set(fake_qdrant.points("my-project"))

        await service.do_index(str(project))

        assert set(fake_qdrant.points("my-project")) == first_ids
        assert len(first_ids) == 5

    @pytest.mark.asyncio
    async def test_changed_body_keeps_id_and_changes_hash(
        self, service: IndexService, project: Path, fake_qdrant: FakeQdrant
    ) -> None:
        foo_id = deterministic_point_id("core", "src/lib.rs", "foo", "function")
        await service.do_index(str(project))
        old_hash = fake_qdrant.points("my-project")[foo_id]["payload"]["hash_source"]

        _write(project / "core" / "src" / "lib.rs", LIB_RS.replace("a + 1", "a + 2"))
        await service.do_index(str(project))

        assert fake_qdrant.points("my-project")[foo_id]["payload"]["hash_source"] != old_hash

    @pytest.mark.asyncio
    async def test_configured_collection_wins(
        self,
        helper_config: HelperConfig,
        embed_client: EmbedClientOpenai,
        rag_client: RAGClientQdrant,
        project: Path,
        fake_qdrant: FakeQdrant,
    ) -> None:
        config = IndexConfig(vector_size=4, upsert_backoff=0, collection="shared-code")
        service = IndexService(helper_config, embed_client, rag_client, config)

        report = await service.do_index(str(project))

        assert report.collection == "shared-code"
        assert "shared-code" in fake_qdrant.collections

    @pytest.mark.asyncio
    async def test_files_at_root_are_indexed_without_subprojects(
        self,
        helper_config: HelperConfig,
        embed_client: EmbedClientOpenai,
        rag_client: RAGClientQdrant,
        project: Path,
    ) -> None:
        config = IndexConfig(vector_size=4, upsert_backoff=0, index_subprojects=False)
        service = IndexService(helper_config, embed_client, rag_client, config)

        report = await service.do_index(str(project / "core"))

        assert report.repos == ["core"]
        assert report.files_scanned == 1

    @pytest.mark.asyncio
    async def test_parse_failure_skips_the_file(
        self, service: IndexService, project: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        original = service._extractor.extract_file

        def flaky(entry):
            if entry.file_path == "util.rs":
                raise ParseFailedError(entry.file_path, "broken")
            return original(entry)

        monkeypatch.setattr(service._extractor, "extract_file", flaky)

        report = await service.do_index(str(project))

        assert report.files_skipped == 1
        assert report.documents == 3

    @pytest.mark.asyncio
    async def test_incompatible_collection_aborts_before_scanning(
        self, service: IndexService, project: Path, fake_qdrant: FakeQdrant, fake_embedder: FakeEmbedder
    ) -> None:
        fake_qdrant.add_collection("my-project", {"size": 8, "distance": "Cosine"})

        with pytest.raises(IncompatibleCollectionError):
            await service.do_index(str(project))

        assert fake_embedder.batches == []
        assert fake_qdrant.upsert_calls == 0

    @pytest.mark.asyncio
    async def test_failed_upsert_propagates(
        self, service: IndexService, project: Path, fake_qdrant: FakeQdrant
    ) -> None:
        fake_qdrant.fail_upserts = 100

        with pytest.raises(UpsertFailedError):
            await service.do_index(str(project))

        # default of three attempts on the first window, nothing after it
        assert fake_qdrant.upsert_calls == 3

    @pytest.mark.asyncio
    async def test_empty_project_writes_nothing(
        self, service: IndexService, tmp_path: Path, fake_qdrant: FakeQdrant, fake_embedder: FakeEmbedder
    ) -> None:
        root = tmp_path / "empty"
        root.mkdir()

        report = await service.do_index(str(root))

        assert report.documents == 0
        assert report.points_upserted == 0
        assert fake_embedder.batches == []
        assert "empty" in fake_qdrant.collections
