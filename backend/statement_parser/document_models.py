"""Common document model definitions used across parsing utilities."""
from __future__ import annotations

from dataclasses import dataclass, field

PAGE = "PAGE"
LINE = "LINE"
WORD = "WORD"
TABLE = "TABLE"
CELL = "CELL"
SELECTION_ELEMENT = "SELECTION_ELEMENT"
KEY_VALUE_SET = "KEY_VALUE_SET"

CHILD = "CHILD"
VALUE = "VALUE"

TEXT_BLOCK_TYPES = frozenset({WORD, SELECTION_ELEMENT})


@dataclass(frozen=True, slots=True)
class Relationship:
    """Typed edge from a block to an ordered list of other block ids."""

    type: str
    ids: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class Block:
    """Normalized representation of one document-analysis block.

    Parameters
    ----------
    id:
        Identifier referenced by other blocks' relationships.
    block_type:
        Kind of block (``PAGE``, ``TABLE``, ``CELL``, ``WORD``...). Unknown kinds are kept as-is.
    page:
        1-based page number the block was found on.
    row_index, column_index:
        1-based cell position, only meaningful for ``CELL`` blocks.
    text:
        Literal text of ``WORD`` and ``SELECTION_ELEMENT`` blocks.
    entity_types:
        ``KEY`` and/or ``VALUE`` tags of ``KEY_VALUE_SET`` blocks.
    relationships:
        Outgoing edges in their original order.
    """

    id: str
    block_type: str
    page: int = 1
    row_index: int | None = None
    column_index: int | None = None
    text: str | None = None
    entity_types: frozenset[str] = frozenset()
    relationships: tuple[Relationship, ...] = ()

    def related_ids(self, relation: str) -> list[str]:
        """Return the ids referenced through every relationship of the given kind."""

        ids: list[str] = []
        for relationship in self.relationships:
            if relationship.type == relation:
                ids.extend(relationship.ids)
        return ids


@dataclass(slots=True)
class TableGrid:
    """Dense two-dimensional text view of one TABLE block."""

    page: int
    rows: list[list[str]] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def column_count(self) -> int:
        return len(self.rows[0]) if self.rows else 0

    @property
    def header(self) -> list[str]:
        return [cell.strip() for cell in self.rows[0]] if self.rows else []


__all__ = [
    "Block",
    "CELL",
    "CHILD",
    "KEY_VALUE_SET",
    "LINE",
    "PAGE",
    "Relationship",
    "SELECTION_ELEMENT",
    "TABLE",
    "TEXT_BLOCK_TYPES",
    "TableGrid",
    "VALUE",
    "WORD",
]
