"""In-memory document storage adapter."""

from typing import Any, Mapping

from .markdown_store import MarkdownDocumentStore


class MemoryDocumentStore(MarkdownDocumentStore):
    """
    Documents held as raw markdown strings in a dict.

    Implements DocumentStore protocol. Every write is logged in `writes` as
    a ("text" | "properties", doc) pair so callers can check what was
    written and in which order.
    """

    def __init__(self, documents: dict[str, str] | None = None):
        self.documents: dict[str, str] = dict(documents or {})
        self.writes: list[tuple[str, str]] = []

    def _load(self, doc: str) -> str:
        if doc not in self.documents:
            raise KeyError(f"No such document: {doc}")
        return self.documents[doc]

    def _save(self, doc: str, text: str) -> None:
        self.documents[doc] = text

    def write_text(self, doc: str, text: str) -> None:
        self.writes.append(("text", doc))
        super().write_text(doc, text)

    def write_properties(self, doc: str, updates: Mapping[str, Any]) -> None:
        self.writes.append(("properties", doc))
        super().write_properties(doc, updates)
