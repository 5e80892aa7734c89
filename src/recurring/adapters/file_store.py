"""File-based document storage adapter."""

from pathlib import Path

from .markdown_store import MarkdownDocumentStore


class FileDocumentStore(MarkdownDocumentStore):
    """
    Markdown files on disk, addressed relative to a vault directory.

    Implements DocumentStore protocol. Absolute paths are used as-is and a
    missing ".md" suffix is added. Missing files raise FileNotFoundError.
    """

    def __init__(self, vault_dir: Path | str = "."):
        self.vault_dir = Path(vault_dir).expanduser()

    def path_for(self, doc: str) -> Path:
        """Get the file path for a document name."""
        path = self.vault_dir / Path(doc).expanduser()
        if not path.suffix:
            path = path.with_suffix(".md")
        return path

    def _load(self, doc: str) -> str:
        return self.path_for(doc).read_text(encoding="utf-8")

    def _save(self, doc: str, text: str) -> None:
        self.path_for(doc).write_text(text, encoding="utf-8")

    def exists(self, doc: str) -> bool:
        return self.path_for(doc).exists()

    def list_documents(self) -> list[str]:
        """Names of all markdown documents in the vault, sorted."""
        return sorted(str(p.relative_to(self.vault_dir)) for p in self.vault_dir.rglob("*.md"))
