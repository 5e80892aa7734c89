"""Document store interface."""

from typing import Any, Mapping, Protocol


class DocumentStore(Protocol):
    """Interface for reading and writing task documents in any backend."""

    def read_properties(self, doc: str) -> dict[str, Any]:
        """Current structured properties of a document."""
        ...

    def read_text(self, doc: str) -> str:
        """Full raw text of a document, properties block included."""
        ...

    def write_text(self, doc: str, text: str) -> None:
        """Replace the full raw text of a document."""
        ...

    def write_properties(self, doc: str, updates: Mapping[str, Any]) -> None:
        """Patch some properties in place, preserving the rest."""
        ...
