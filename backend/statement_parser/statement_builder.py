"""Helpers for converting extraction results into API schemas."""
from __future__ import annotations

from typing import Any

from .document_models import TableGrid
from .statement_extractor import BankStatementResult, Transaction
from .schemas import BankStatementResponse, TableGridSchema, TablesResponse, TransactionSchema


def _make_transaction(transaction: Transaction) -> TransactionSchema:
    return TransactionSchema(
        date=transaction.date,
        reference=transaction.reference,
        description=transaction.description,
        value_date=transaction.value_date,
        credit=transaction.credit,
        debit=transaction.debit,
        balance=transaction.balance,
    )


def _make_table(table: TableGrid) -> TableGridSchema:
    return TableGridSchema(
        page=table.page,
        row_count=table.row_count,
        column_count=table.column_count,
        rows=[list(row) for row in table.rows],
    )


def build_statement_response(result: BankStatementResult) -> BankStatementResponse:
    """Convert a :class:`BankStatementResult` to an API response schema."""

    return BankStatementResponse(
        summary=dict(result.summary),
        transactions=[_make_transaction(transaction) for transaction in result.transactions],
    )


def build_tables_response(tables: list[TableGrid]) -> TablesResponse:
    return TablesResponse(tables=[_make_table(table) for table in tables])


def statement_to_dict(result: BankStatementResult) -> dict[str, Any]:
    """Serialize a result using the published output keys (``"Value Date"`` etc.)."""

    return build_statement_response(result).model_dump(by_alias=True)


__all__ = ["build_statement_response", "build_tables_response", "statement_to_dict"]
