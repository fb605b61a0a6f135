"""
Loading and compiling sub-flow documents.

The `flow` tag loads another document by path through a `ContentResolver` and
turns it into a `Document` through a `Compiler`. Parsing the markup itself is
the job of an external Markdoc-compatible compiler; the default
`MarkdocJSONCompiler` accepts that compiler's serialized output.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Mapping, Protocol, runtime_checkable

from aimdoc.core.nodes import Document
from aimdoc.exceptions import ContentNotFoundError, DocumentFormatError, ExternalCallError

logger = logging.getLogger(__name__)


@runtime_checkable
class ContentResolver(Protocol):
    async def load(self, path: str) -> str: ...


@runtime_checkable
class Compiler(Protocol):
    def compile(self, content: str) -> Document: ...


class FileSystemContentResolver:
    """Reads sub-flows from disk, relative paths against `root` (or the working directory)."""

    def __init__(self, root: Path | str | None = None):
        self.root = Path(root) if root is not None else None

    def resolve_path(self, path: str) -> Path:
        if path.startswith("file://"):
            path = path[len("file://"):]
        candidate = Path(path)
        if not candidate.is_absolute() and self.root is not None:
            candidate = self.root / candidate
        return candidate

    async def load(self, path: str) -> str:
        """
        Read a file as UTF-8 text.

        Raises:
            ContentNotFoundError: If the file does not exist
            ExternalCallError: If the file cannot be read
        """
        target = self.resolve_path(path)
        logger.debug("Loading flow content from %s", target)
        return await asyncio.to_thread(self._read, target)

    @staticmethod
    def _read(target: Path) -> str:
        if not target.is_file():
            raise ContentNotFoundError(str(target))
        try:
            return target.read_text(encoding="utf-8")
        except OSError as exc:
            raise ExternalCallError("load content", f"{target}: {exc}") from exc


class InMemoryContentResolver:
    """Serves sub-flows from a path → source mapping."""

    def __init__(self, files: Mapping[str, str]):
        self.files = dict(files)

    async def load(self, path: str) -> str:
        for candidate in (path, path.removeprefix("./"), path.removeprefix("file://")):
            if candidate in self.files:
                return self.files[candidate]
        raise ContentNotFoundError(path)


class MarkdocJSONCompiler:
    """
    Decodes a serialized Markdoc AST.

    Accepts either the root node object itself or an envelope
    `{"ast": <root node>, "frontmatter": <yaml string or mapping>}`.
    """

    def compile(self, content: str) -> Document:
        """
        Params:
            content: JSON text produced by the external compiler

        Returns:
            Decoded Document

        Raises:
            DocumentFormatError: If the text is not valid compiler output
        """
        try:
            data: Any = json.loads(content)
        except json.JSONDecodeError as exc:
            raise DocumentFormatError(f"expected compiled JSON document: {exc}") from exc
        if isinstance(data, dict) and "ast" in data:
            return Document.from_markdoc(data["ast"], data.get("frontmatter"))
        return Document.from_markdoc(data)
