import os
from collections.abc import Sequence

from vault_index.domain.constants import HIDDEN_PREFIX, WATCH_EXTENSIONS
from vault_index.domain.errors import DocumentNotFoundError
from vault_index.logging_config import get_logger

logger = get_logger(__name__)


class VaultReader:
    """Read documents from a vault directory by their vault-relative path."""

    def __init__(self, vault_path: str, extensions: Sequence[str] = WATCH_EXTENSIONS) -> None:
        self._vault_path = vault_path
        self._extensions = tuple(extensions)

    @property
    def vault_path(self) -> str:
        return self._vault_path

    def read_document(self, doc_id: str) -> str:
        """Return the raw text of a document. `notes/a` and `notes/a.md` are the same id."""
        path = os.path.join(self._vault_path, doc_id)
        if not path.endswith(self._extensions):
            path += self._extensions[0]

        try:
            with open(path, encoding="utf-8") as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as exc:
            raise DocumentNotFoundError(f"failed to read document {doc_id}: {exc}") from exc

    @staticmethod
    def extract_title(doc_id: str, content: str) -> str:
        """Title from the first H1, else the filename without extension."""
        for line in content.split("\n"):
            if line.startswith("# "):
                return line[2:].strip()
        return os.path.splitext(os.path.basename(doc_id))[0]

    def list_documents(self) -> list[str]:
        """Walk the vault and return indexable documents, skipping hidden entries."""
        documents: list[str] = []
        for root, dirs, files in os.walk(self._vault_path):
            dirs[:] = [d for d in dirs if not d.startswith(HIDDEN_PREFIX)]
            for filename in files:
                if filename.startswith(HIDDEN_PREFIX) or not filename.endswith(self._extensions):
                    continue
                abs_path = os.path.join(root, filename)
                documents.append(os.path.relpath(abs_path, self._vault_path))
        logger.info("Found %d documents in %s", len(documents), self._vault_path)
        return sorted(documents)
