"""Utility helpers for reading analysis blocks into tables and key/value pairs."""
from __future__ import annotations

import json
import logging
from collections import Counter
from typing import Any, Iterable, Mapping

from .document_models import (
    CELL,
    CHILD,
    KEY_VALUE_SET,
    TABLE,
    TEXT_BLOCK_TYPES,
    VALUE,
    Block,
    Relationship,
    TableGrid,
)

logger = logging.getLogger(__name__)


class InvalidBlockStreamError(ValueError):
    """Raised when the analysis payload is not a usable block list."""


def _optional_int(item: Mapping[str, Any], key: str) -> int | None:
    value = item.get(key)
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise InvalidBlockStreamError(f"Block field '{key}' must be an integer, got {value!r}") from exc


def _parse_relationships(raw: Any) -> tuple[Relationship, ...]:
    if not raw:
        return ()
    relationships: list[Relationship] = []
    for item in raw:
        if not isinstance(item, Mapping):
            continue
        ids = tuple(str(value) for value in item.get("Ids") or ())
        relationships.append(Relationship(type=str(item.get("Type") or ""), ids=ids))
    return tuple(relationships)


def block_from_dict(item: Mapping[str, Any]) -> Block:
    """Build a :class:`Block` from one Textract-shaped dictionary."""

    if not isinstance(item, Mapping):
        raise InvalidBlockStreamError(f"Expected a block object, got {type(item).__name__}")
    block_id = item.get("Id")
    block_type = item.get("BlockType")
    if not block_id or not block_type:
        raise InvalidBlockStreamError("Every block needs an 'Id' and a 'BlockType'")

    text = item.get("Text")
    return Block(
        id=str(block_id),
        block_type=str(block_type),
        page=_optional_int(item, "Page") or 1,
        row_index=_optional_int(item, "RowIndex"),
        column_index=_optional_int(item, "ColumnIndex"),
        text=str(text) if text is not None else None,
        entity_types=frozenset(str(tag) for tag in item.get("EntityTypes") or ()),
        relationships=_parse_relationships(item.get("Relationships")),
    )


def collect_raw_blocks(payload: Any) -> list[dict[str, Any]]:
    """Flatten a Textract payload into its ordered list of raw block dictionaries.

    Accepts a bare block list, a single ``GetDocumentAnalysis`` response holding
    ``Blocks``, or a list of paginated responses which are concatenated in order.
    """

    if payload is None:
        raise InvalidBlockStreamError("Block list is missing")
    if isinstance(payload, Mapping):
        blocks = payload.get("Blocks")
        if blocks is None:
            raise InvalidBlockStreamError("Analysis response does not contain 'Blocks'")
        return list(blocks)
    if isinstance(payload, list):
        if payload and all(isinstance(item, Mapping) and "Blocks" in item for item in payload):
            raw: list[dict[str, Any]] = []
            for page in payload:
                raw.extend(page.get("Blocks") or [])
            return raw
        return list(payload)
    raise InvalidBlockStreamError(f"Unsupported analysis payload of type {type(payload).__name__}")


def parse_blocks(payload: Any) -> list[Block]:
    """Return :class:`Block` objects for any supported Textract payload shape."""

    return [block_from_dict(item) for item in collect_raw_blocks(payload)]


def load_blocks(content: bytes | str) -> list[Block]:
    """Load blocks from a serialized JSON document."""

    try:
        payload = json.loads(content)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise InvalidBlockStreamError(f"Analysis payload is not valid JSON: {exc}") from exc
    return parse_blocks(payload)


class BlockIndex:
    """Read-only lookup of blocks by id with descendant text resolution."""

    def __init__(self, blocks: Iterable[Block]) -> None:
        self._blocks: dict[str, Block] = {}
        for block in blocks:
            self._blocks[block.id] = block

    def __len__(self) -> int:
        return len(self._blocks)

    def __contains__(self, block_id: object) -> bool:
        return block_id in self._blocks

    def get(self, block_id: str) -> Block | None:
        return self._blocks.get(block_id)

    def resolve_text(self, block: Block) -> str:
        """Join the text of the block's WORD and SELECTION_ELEMENT children.

        Dangling child ids are skipped. Only direct children are followed.
        """

        words: list[str] = []
        for child_id in block.related_ids(CHILD):
            child = self._blocks.get(child_id)
            if child is None or child.block_type not in TEXT_BLOCK_TYPES:
                continue
            if child.text:
                words.append(child.text)
        return " ".join(words)


def extract_tables(blocks: Iterable[Block], index: BlockIndex) -> list[TableGrid]:
    """Rebuild one :class:`TableGrid` per TABLE block in a single forward pass."""

    tables: list[TableGrid] = []
    current: TableGrid | None = None
    table_blocks = 0

    for block in blocks:
        if block.block_type == TABLE:
            table_blocks += 1
            if current is not None:
                tables.append(current)
            current = TableGrid(page=block.page)
            continue

        if block.block_type != CELL or current is None:
            continue
        if block.row_index is None or block.column_index is None:
            logger.debug("Skipping cell %s without row/column index", block.id)
            continue

        row_index = block.row_index - 1
        column_index = block.column_index - 1
        if row_index < 0 or column_index < 0:
            logger.debug("Skipping cell %s with non-positive position", block.id)
            continue

        while len(current.rows) <= row_index:
            current.rows.append([])
        row = current.rows[row_index]
        while len(row) <= column_index:
            row.append("")
        row[column_index] = index.resolve_text(block).strip()

    if current is not None:
        tables.append(current)

    logger.info("Extracted %s tables from %s TABLE blocks", len(tables), table_blocks)
    per_page = Counter(table.page for table in tables)
    for page in sorted(per_page):
        logger.debug("Page %s: %s tables", page, per_page[page])
    return tables


def extract_key_values(blocks: Iterable[Block], index: BlockIndex) -> list[tuple[str, str]]:
    """Pair KEY and VALUE key/value-set blocks into ``(key, value)`` strings."""

    key_blocks: list[Block] = []
    value_blocks: dict[str, Block] = {}
    for block in blocks:
        if block.block_type != KEY_VALUE_SET:
            continue
        if "KEY" in block.entity_types:
            key_blocks.append(block)
        elif "VALUE" in block.entity_types:
            value_blocks[block.id] = block

    pairs: list[tuple[str, str]] = []
    for key_block in key_blocks:
        key_text = index.resolve_text(key_block).strip()
        if not key_text:
            continue
        value_block = next(
            (value_blocks[value_id] for value_id in key_block.related_ids(VALUE) if value_id in value_blocks),
            None,
        )
        value_text = index.resolve_text(value_block).strip() if value_block is not None else ""
        pairs.append((key_text, value_text))

    logger.debug("Extracted %s key/value pairs", len(pairs))
    return pairs


__all__ = [
    "BlockIndex",
    "InvalidBlockStreamError",
    "block_from_dict",
    "collect_raw_blocks",
    "extract_key_values",
    "extract_tables",
    "load_blocks",
    "parse_blocks",
]
