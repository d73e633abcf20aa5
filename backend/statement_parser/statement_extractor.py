"""Turn reconstructed tables and key/value pairs into bank statement data."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Mapping, Sequence

from .document_models import Block, TableGrid
from .document_processing import BlockIndex, InvalidBlockStreamError, extract_key_values, extract_tables
from .statement_utils import (
    CANONICAL_ORDER,
    CanonicalField,
    HeaderMapper,
    SummaryKeyNormalizer,
    is_summary_header,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Transaction:
    """One statement line. Values are kept exactly as read from the document."""

    date: str = ""
    reference: str = ""
    description: str = ""
    value_date: str = ""
    credit: str = ""
    debit: str = ""
    balance: str = ""

    @classmethod
    def from_fields(cls, values: Mapping[CanonicalField, str]) -> "Transaction":
        return cls(
            date=values.get(CanonicalField.DATE, ""),
            reference=values.get(CanonicalField.REFERENCE, ""),
            description=values.get(CanonicalField.DESCRIPTION, ""),
            value_date=values.get(CanonicalField.VALUE_DATE, ""),
            credit=values.get(CanonicalField.CREDIT, ""),
            debit=values.get(CanonicalField.DEBIT, ""),
            balance=values.get(CanonicalField.BALANCE, ""),
        )

    def as_fields(self) -> dict[CanonicalField, str]:
        return {
            CanonicalField.DATE: self.date,
            CanonicalField.REFERENCE: self.reference,
            CanonicalField.DESCRIPTION: self.description,
            CanonicalField.VALUE_DATE: self.value_date,
            CanonicalField.CREDIT: self.credit,
            CanonicalField.DEBIT: self.debit,
            CanonicalField.BALANCE: self.balance,
        }

    def is_empty(self) -> bool:
        return not any(value.strip() for value in self.as_fields().values())


@dataclass(slots=True)
class BankStatementResult:
    """Summary fields plus transactions in the order they were encountered."""

    summary: dict[str, str] = field(default_factory=dict)
    transactions: list[Transaction] = field(default_factory=list)


class TableKind(str, Enum):
    SUMMARY = "summary"
    TRANSACTIONS = "transactions"
    GENERIC = "generic"
    EMPTY = "empty"


@dataclass(slots=True)
class TableExtraction:
    """What a single grid contributed to the statement."""

    kind: TableKind
    summary: dict[str, str] = field(default_factory=dict)
    transactions: list[Transaction] = field(default_factory=list)


class TableClassifier:
    """Decide how a grid is read: summary, transaction table or positional fallback."""

    def __init__(
        self,
        header_mapper: HeaderMapper | None = None,
        normalizer: SummaryKeyNormalizer | None = None,
    ) -> None:
        self._header_mapper = header_mapper or HeaderMapper()
        self._normalizer = normalizer or SummaryKeyNormalizer()

    @property
    def normalizer(self) -> SummaryKeyNormalizer:
        return self._normalizer

    # ------------------------------------------------------------------
    def classify(self, table: TableGrid) -> TableExtraction:
        if not table.rows:
            return TableExtraction(kind=TableKind.EMPTY)

        headers = table.header
        if is_summary_header(headers):
            logger.debug("Page %s: summary table with headers %s", table.page, headers)
            return TableExtraction(kind=TableKind.SUMMARY, summary=self._extract_summary(table))

        mapping = self._header_mapper.map_headers(headers)
        logger.debug("Page %s: %s canonical headers matched in %s", table.page, mapping.matched, headers)
        if mapping.is_transaction_table():
            transactions = self._extract_mapped(table, mapping.columns)
            return TableExtraction(kind=TableKind.TRANSACTIONS, transactions=transactions)

        positional = {canonical: index for index, canonical in enumerate(CANONICAL_ORDER)}
        transactions = [
            transaction
            for transaction in self._extract_mapped(table, positional)
            if not transaction.is_empty()
        ]
        return TableExtraction(kind=TableKind.GENERIC, transactions=transactions)

    # ------------------------------------------------------------------
    def _summary_pair(self, key: str, value: str) -> tuple[str, str] | None:
        key = key.strip().rstrip(":").rstrip()
        value = value.strip()
        if not key or not value or not self._normalizer.is_summary_key(key):
            return None
        return key, value

    def _extract_summary(self, table: TableGrid) -> dict[str, str]:
        summary: dict[str, str] = {}
        if all(len(row) == 2 for row in table.rows):
            candidates: Iterable[tuple[str, str]] = ((row[0], row[1]) for row in table.rows)
        elif table.row_count == 2:
            candidates = zip(table.rows[0], table.rows[1])
        else:
            logger.debug("Page %s: summary table layout not recognised", table.page)
            return summary

        for key, value in candidates:
            pair = self._summary_pair(key, value)
            if pair is not None:
                summary[pair[0]] = pair[1]
        return summary

    def _is_stray_summary_row(self, row: Sequence[str]) -> bool:
        return bool(row) and self._normalizer.is_summary_key(row[0].strip().rstrip(":"))

    def _extract_mapped(self, table: TableGrid, columns: Mapping[CanonicalField, int]) -> list[Transaction]:
        width = len(table.rows[0])
        transactions: list[Transaction] = []
        for row in table.rows[1:]:
            if len(row) != width:
                continue
            if self._is_stray_summary_row(row):
                continue
            values = {
                canonical: row[index].strip()
                for canonical, index in columns.items()
                if index < len(row)
            }
            transactions.append(Transaction.from_fields(values))
        return transactions


class BankStatementAssembler:
    """Run classification over every grid and merge the summary sources."""

    def __init__(self, classifier: TableClassifier | None = None) -> None:
        self._classifier = classifier or TableClassifier()

    def assemble(self, tables: Sequence[TableGrid], pairs: Sequence[tuple[str, str]]) -> BankStatementResult:
        result = BankStatementResult()

        for position, table in enumerate(tables):
            try:
                extraction = self._classifier.classify(table)
            except Exception:
                logger.exception("Failed to classify table %s on page %s; skipping it", position, table.page)
                continue
            result.summary.update(extraction.summary)
            result.transactions.extend(extraction.transactions)

        # Later sources overwrite values set by table classification.
        for table in tables:
            self._sweep(result.summary, ((row[0], row[1]) for row in table.rows if len(row) == 2))
        self._sweep(result.summary, pairs)

        logger.info(
            "Assembled %s summary fields and %s transactions",
            len(result.summary),
            len(result.transactions),
        )
        return result

    def _sweep(self, summary: dict[str, str], candidates: Iterable[tuple[str, str]]) -> None:
        normalizer = self._classifier.normalizer
        for key, value in candidates:
            key = key.strip()
            value = value.strip()
            if not key or not value or not normalizer.is_summary_key(key):
                continue
            summary[key.rstrip(":.;").rstrip()] = value


def extract_bank_statement(
    blocks: Sequence[Block] | None,
    *,
    assembler: BankStatementAssembler | None = None,
) -> BankStatementResult:
    """Build a :class:`BankStatementResult` from an ordered block stream."""

    if blocks is None:
        raise InvalidBlockStreamError("Block list is missing")

    index = BlockIndex(blocks)
    tables = extract_tables(blocks, index)
    pairs = extract_key_values(blocks, index)
    return (assembler or BankStatementAssembler()).assemble(tables, pairs)


__all__ = [
    "BankStatementAssembler",
    "BankStatementResult",
    "TableClassifier",
    "TableExtraction",
    "TableKind",
    "Transaction",
    "extract_bank_statement",
]
