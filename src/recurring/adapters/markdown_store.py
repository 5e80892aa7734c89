"""Shared frontmatter handling for markdown-backed document stores."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Mapping

import frontmatter
import yaml

logger = logging.getLogger(__name__)


def split_properties(text: str) -> dict[str, Any]:
    """Parse the YAML properties block at the top of a note."""
    return dict(frontmatter.loads(text).metadata)


def patch_properties(text: str, updates: Mapping[str, Any]) -> str:
    """Return `text` with some properties replaced, keeping the rest in order."""
    post = frontmatter.loads(text)
    post.metadata.update(updates)
    return frontmatter.dumps(post, sort_keys=False) + "\n"


class MarkdownDocumentStore(ABC):
    """
    Base for stores whose documents are markdown text with YAML frontmatter.

    Subclasses provide raw text access through _load/_save; properties are
    read and patched through the frontmatter block.
    """

    @abstractmethod
    def _load(self, doc: str) -> str:
        """Raw text of a document."""

    @abstractmethod
    def _save(self, doc: str, text: str) -> None:
        """Replace the raw text of a document."""

    def read_properties(self, doc: str) -> dict[str, Any]:
        """Current properties. A broken properties block reads as empty."""
        text = self._load(doc)
        try:
            return split_properties(text)
        except yaml.YAMLError as e:
            logger.warning(f"Unreadable properties in {doc}: {e}")
            return {}

    def read_text(self, doc: str) -> str:
        return self._load(doc)

    def write_text(self, doc: str, text: str) -> None:
        self._save(doc, text)

    def write_properties(self, doc: str, updates: Mapping[str, Any]) -> None:
        """Patch properties in place. Raises yaml.YAMLError on a broken block."""
        self._save(doc, patch_properties(self._load(doc), updates))
