import os
import time

import pytest

from tests.fixtures.fake_embedder import HashEmbedder
from vault_index.application.index_service import IndexService
from vault_index.domain.models import FileOp
from vault_index.infrastructure.local_store import LocalVectorStore
from vault_index.infrastructure.vault_reader import VaultReader


def _write(vault, rel_path: str, content: str) -> None:
    abs_path = os.path.join(vault, rel_path)
    os.makedirs(os.path.dirname(abs_path), exist_ok=True)
    with open(abs_path, "w", encoding="utf-8") as f:
        f.write(content)


def _wait_until(predicate, timeout: float = 3.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.05)
    return predicate()


@pytest.fixture()
def vault(tmp_path) -> str:
    vault = tmp_path / "vault"
    _write(vault, "databases.md", "# Databases\n\npostgres migration schema")
    _write(vault, "cooking.md", "# Cooking\n\npasta tomato basil")
    _write(vault, os.path.join("garden", "roses.md"), "roses soil water")
    _write(vault, os.path.join(".obsidian", "config.md"), "hidden")
    return str(vault)


def _make_service(vault: str, embedder: HashEmbedder) -> tuple[IndexService, LocalVectorStore]:
    store = LocalVectorStore(os.path.join(vault, ".vault-index", "vectors.json"), embedder)
    service = IndexService(
        reader=VaultReader(vault),
        store=store,
        embedder=embedder,
        debounce_seconds=0.1,
    )
    return service, store


class TestRebuildIndex:
    def test_rebuild_should_index_all_documents(self, vault: str, embedder: HashEmbedder) -> None:
        service, store = _make_service(vault, embedder)

        result = service.rebuild_index()

        assert result is not None
        assert result.status == "success"
        assert result.notes_indexed == 3
        assert result.notes_failed == 0
        assert store.count() == 3
        assert store.has(os.path.join("garden", "roses.md"))

    def test_rebuild_should_use_heading_as_title(self, vault: str, embedder: HashEmbedder) -> None:
        service, store = _make_service(vault, embedder)
        service.rebuild_index()

        top = store.search("postgres schema", 1)[0]

        assert top.document.title == "Databases"

    def test_rebuild_should_report_partial_failures(self, vault: str, embedder: HashEmbedder) -> None:
        embedder.fail_on.add("# Cooking\n\npasta tomato basil")
        service, store = _make_service(vault, embedder)

        result = service.rebuild_index()

        assert result is not None
        assert result.status == "partial"
        assert result.notes_indexed == 2
        assert result.notes_failed == 1
        assert not store.has("cooking.md")

    def test_rebuild_should_return_none_while_another_is_running(
        self, vault: str, embedder: HashEmbedder
    ) -> None:
        service, _ = _make_service(vault, embedder)

        # Simulate concurrent rebuild
        service._rebuild_lock.acquire()
        try:
            assert service.rebuild_index() is None
        finally:
            service._rebuild_lock.release()

        assert service.rebuild_index() is not None


class TestFileEvents:
    def test_create_event_should_index_document(self, vault: str, embedder: HashEmbedder) -> None:
        service, store = _make_service(vault, embedder)

        service._on_file_event("cooking.md", FileOp.CREATE)

        assert store.has("cooking.md")

    def test_delete_event_should_remove_document(self, vault: str, embedder: HashEmbedder) -> None:
        service, store = _make_service(vault, embedder)
        service.index_document("cooking.md")

        service._on_file_event("cooking.md", FileOp.DELETE)

        assert not store.has("cooking.md")

    def test_event_for_unreadable_document_should_not_raise(
        self, vault: str, embedder: HashEmbedder
    ) -> None:
        service, store = _make_service(vault, embedder)

        service._on_file_event("vanished.md", FileOp.MODIFY)

        assert not store.has("vanished.md")


class TestIndexStatus:
    def test_status_should_report_backend_and_counts(self, vault: str, embedder: HashEmbedder) -> None:
        service, _ = _make_service(vault, embedder)

        before = service.get_status()
        service.rebuild_index()
        after = service.get_status()

        assert before.indexed_notes == 0
        assert before.last_indexed is None
        assert after.indexed_notes == 3
        assert after.backend == "local"
        assert after.embedder_configured is True
        assert after.last_indexed is not None
        assert after.watcher_running is False

    def test_status_should_report_unconfigured_embedder(self, vault: str) -> None:
        service, _ = _make_service(vault, HashEmbedder(configured=False))

        assert service.get_status().embedder_configured is False


class TestWatcherIntegration:
    def test_watcher_should_index_new_and_remove_deleted_documents(
        self, vault: str, embedder: HashEmbedder
    ) -> None:
        service, store = _make_service(vault, embedder)
        service.start_watcher()
        try:
            assert service.get_status().watcher_running is True
            time.sleep(0.3)

            _write(vault, "fresh.md", "# Fresh\n\nbrand new note")
            assert _wait_until(lambda: store.has("fresh.md"))

            os.remove(os.path.join(vault, "fresh.md"))
            assert _wait_until(lambda: not store.has("fresh.md"))
        finally:
            service.stop_watcher()

        assert service.get_status().watcher_running is False

    def test_stop_watcher_should_be_safe_without_start(self, vault: str, embedder: HashEmbedder) -> None:
        service, _ = _make_service(vault, embedder)

        service.stop_watcher()
        service.stop_watcher()
