"""Shared fixtures for building Textract-shaped block streams."""

from __future__ import annotations

import itertools
from pathlib import Path
from typing import Any

import pytest

from statement_parser.core.config import Settings


class TextractBlockBuilder:
    """Accumulates raw blocks in the JSON shape returned by GetDocumentAnalysis."""

    def __init__(self) -> None:
        self.blocks: list[dict[str, Any]] = []
        self._ids = itertools.count(1)

    def _next_id(self, prefix: str) -> str:
        return f"{prefix}-{next(self._ids)}"

    def words(self, text: str, *, page: int = 1) -> list[str]:
        ids = []
        for word in text.split():
            block_id = self._next_id("word")
            self.blocks.append({"Id": block_id, "BlockType": "WORD", "Page": page, "Text": word})
            ids.append(block_id)
        return ids

    def cell(self, row: int, column: int, text: str, *, page: int = 1) -> str:
        child_ids = self.words(text, page=page)
        block: dict[str, Any] = {
            "Id": self._next_id("cell"),
            "BlockType": "CELL",
            "Page": page,
            "RowIndex": row,
            "ColumnIndex": column,
        }
        if child_ids:
            block["Relationships"] = [{"Type": "CHILD", "Ids": child_ids}]
        self.blocks.append(block)
        return block["Id"]

    def table(self, rows: list[list[str]], *, page: int = 1) -> str:
        table_id = self._next_id("table")
        self.blocks.append({"Id": table_id, "BlockType": "TABLE", "Page": page})
        for row_index, row in enumerate(rows, start=1):
            for column_index, text in enumerate(row, start=1):
                self.cell(row_index, column_index, text, page=page)
        return table_id

    def key_value(self, key: str, value: str | None, *, page: int = 1) -> None:
        key_id = self._next_id("key")
        relationships: list[dict[str, Any]] = [{"Type": "CHILD", "Ids": self.words(key, page=page)}]
        if value is not None:
            value_id = self._next_id("value")
            relationships.append({"Type": "VALUE", "Ids": [value_id]})
            self.blocks.append(
                {
                    "Id": value_id,
                    "BlockType": "KEY_VALUE_SET",
                    "Page": page,
                    "EntityTypes": ["VALUE"],
                    "Relationships": [{"Type": "CHILD", "Ids": self.words(value, page=page)}],
                }
            )
        self.blocks.append(
            {
                "Id": key_id,
                "BlockType": "KEY_VALUE_SET",
                "Page": page,
                "EntityTypes": ["KEY"],
                "Relationships": relationships,
            }
        )


TRANSACTION_HEADER = ["Date", "Reference", "Description", "Value Date", "Credit", "Debit", "Balance"]
TRANSACTION_ROW = ["01/01/2024", "REF1", "Payment", "02/01/2024", "100.00", "", "900.00"]


@pytest.fixture
def builder() -> TextractBlockBuilder:
    return TextractBlockBuilder()


@pytest.fixture
def statement_blocks() -> list[dict[str, Any]]:
    """A small statement: one summary table, one transaction table, one form field."""

    blocks = TextractBlockBuilder()
    blocks.table([["Account Name", "Jane Doe"], ["Currency", "NGN"]])
    blocks.table([TRANSACTION_HEADER, TRANSACTION_ROW], page=2)
    blocks.key_value("Account Number:", "00112233", page=1)
    return blocks.blocks


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        environment="local",
        bucket_name="statements",
        output_dir=tmp_path / "output",
        jobs_file=tmp_path / "jobs.json",
        block_cache_dir=tmp_path / "cache",
        poll_interval_seconds=0,
        max_poll_attempts=3,
    )
