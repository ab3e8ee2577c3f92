"""
Source File — a parsed JavaScript / TypeScript file.

Wraps a tree-sitter tree together with the bytes it was parsed from and is
the only place where source text changes:

  • ``replace_with_text`` queues a byte-range edit for a node
  • ``commit`` applies the queued edits bottom-up and re-parses the result
  • ``save`` writes the current text back to disk

The TypeScript grammar handles ``.ts`` / ``.js`` style files; ``.tsx`` and
``.jsx`` go through the TSX grammar.
"""

import os
import logging
from dataclasses import dataclass
from typing import List, Optional, Union

import tree_sitter_typescript as tsts
from tree_sitter import Language, Parser, Node

logger = logging.getLogger(__name__)

TS_LANGUAGE = Language(tsts.language_typescript())
TSX_LANGUAGE = Language(tsts.language_tsx())
_ts_parser = Parser(TS_LANGUAGE)
_tsx_parser = Parser(TSX_LANGUAGE)

_TSX_EXTENSIONS = {".tsx", ".jsx"}


def parser_for(path: str) -> Parser:
    """Pick the grammar from the file extension."""
    _, ext = os.path.splitext(path)
    return _tsx_parser if ext.lower() in _TSX_EXTENSIONS else _ts_parser


# ═══════════════════════════════════════════════════════════════════════
#  Data types
# ═══════════════════════════════════════════════════════════════════════

@dataclass
class Diagnostic:
    """A non-fatal problem found while converting a file."""
    path: str
    line: int               # 1-indexed
    message: str

    def __str__(self):
        return f"{self.path}:{self.line}: {self.message}"


@dataclass
class TextEdit:
    start_byte: int
    end_byte: int
    text: str


# ═══════════════════════════════════════════════════════════════════════
#  Source file
# ═══════════════════════════════════════════════════════════════════════

class SourceFile:
    """A parsed file plus the edits queued against it."""

    def __init__(self, path: str, source: Union[str, bytes]):
        if isinstance(source, str):
            source = source.encode("utf-8")
        self.path = path
        self.source = source
        self.original_source = source
        self.tree = parser_for(path).parse(source)
        self.diagnostics: List[Diagnostic] = []
        # Created from a string rather than read from disk
        self.in_memory = False
        self._edits: List[TextEdit] = []

    @classmethod
    def from_path(cls, path: str) -> Optional["SourceFile"]:
        """Read and parse a file, or return None if it can't be used."""
        if not os.path.isfile(path):
            logger.warning("File not found: %s", path)
            return None
        try:
            with open(path, "rb") as f:
                source = f.read()
        except OSError as e:
            logger.error("Error reading %s: %s", path, e)
            return None
        # Skip binary files
        if b"\x00" in source[:8192]:
            logger.warning("Skipping binary file: %s", path)
            return None
        return cls(path, source)

    @property
    def root_node(self) -> Node:
        return self.tree.root_node

    def node_text(self, node: Node) -> str:
        return self.source[node.start_byte:node.end_byte].decode("utf-8", errors="replace")

    @staticmethod
    def line_of(node: Node) -> int:
        return node.start_point[0] + 1

    # ────────────────────────────────────────────────────────────────
    #  Mutation
    # ────────────────────────────────────────────────────────────────

    def replace_with_text(self, node: Node, text: str):
        """Queue replacing ``node``'s source span with ``text``."""
        self._edits.append(TextEdit(node.start_byte, node.end_byte, text))

    def is_replaced(self, node: Node) -> bool:
        """True if ``node`` lies inside a span already queued for replacement."""
        return any(
            e.start_byte <= node.start_byte and node.end_byte <= e.end_byte for e in self._edits
        )

    def overlaps_edit(self, node: Node) -> bool:
        """True if any queued edit touches ``node``'s span."""
        return any(
            e.start_byte < node.end_byte and node.start_byte < e.end_byte for e in self._edits
        )

    @property
    def pending_edits(self) -> int:
        return len(self._edits)

    def discard_edits(self):
        self._edits.clear()

    def commit(self) -> str:
        """Apply queued edits and re-parse.  Returns the new full text."""
        if not self._edits:
            return self.get_full_text()

        content = bytearray(self.source)
        # Sort edits by start_byte descending to keep offsets valid
        last_start = len(content)
        for edit in sorted(self._edits, key=lambda e: e.start_byte, reverse=True):
            if edit.end_byte > last_start:
                logger.warning(
                    "Overlapping edit in %s at offset %d-%d skipped",
                    self.path, edit.start_byte, edit.end_byte,
                )
                continue
            content[edit.start_byte:edit.end_byte] = edit.text.encode("utf-8")
            last_start = edit.start_byte

        had_errors = self.tree.root_node.has_error
        self.source = bytes(content)
        self.tree = parser_for(self.path).parse(self.source)
        self._edits.clear()
        if self.tree.root_node.has_error and not had_errors:
            logger.warning("Converted %s no longer parses cleanly", self.path)
        return self.get_full_text()

    # ────────────────────────────────────────────────────────────────
    #  Output
    # ────────────────────────────────────────────────────────────────

    @property
    def is_modified(self) -> bool:
        return self.source != self.original_source

    def get_full_text(self) -> str:
        return self.source.decode("utf-8", errors="replace")

    def save(self):
        with open(self.path, "wb") as f:
            f.write(self.source)
        logger.info("Saved %s", self.path)

    def warn(self, node: Node, message: str):
        """Record a diagnostic against ``node`` and log it."""
        diagnostic = Diagnostic(self.path, self.line_of(node), message)
        self.diagnostics.append(diagnostic)
        logger.warning("%s", message)

    def __repr__(self):
        return f"SourceFile({self.path!r})"
