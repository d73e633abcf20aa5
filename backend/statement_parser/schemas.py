from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class RelationshipPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    type: str = Field(..., alias="Type", description="Relationship kind, e.g. CHILD or VALUE")
    ids: list[str] = Field(default_factory=list, alias="Ids", description="Referenced block ids in order")


class BlockPayload(BaseModel):
    """One Textract block. Unknown Textract keys (geometry, confidence...) are ignored."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(..., alias="Id", description="Block identifier")
    block_type: str = Field(..., alias="BlockType", description="PAGE, TABLE, CELL, WORD, KEY_VALUE_SET...")
    page: int | None = Field(default=None, alias="Page", description="1-based page number")
    row_index: int | None = Field(default=None, alias="RowIndex", description="1-based row of a CELL")
    column_index: int | None = Field(default=None, alias="ColumnIndex", description="1-based column of a CELL")
    text: str | None = Field(default=None, alias="Text", description="Literal text of WORD blocks")
    entity_types: list[str] = Field(
        default_factory=list,
        alias="EntityTypes",
        description="KEY or VALUE for KEY_VALUE_SET blocks",
    )
    relationships: list[RelationshipPayload] = Field(default_factory=list, alias="Relationships")


class AnalysisPayload(BaseModel):
    """Body accepted by the parsing endpoints, shaped like a GetDocumentAnalysis response."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    blocks: list[BlockPayload] = Field(..., alias="Blocks", description="Ordered analysis blocks")

    def raw_blocks(self) -> list[dict[str, Any]]:
        return [block.model_dump(by_alias=True, exclude_none=True) for block in self.blocks]


class TransactionSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    date: str = Field(default="", alias="Date")
    reference: str = Field(default="", alias="Reference")
    description: str = Field(default="", alias="Description")
    value_date: str = Field(default="", alias="Value Date")
    credit: str = Field(default="", alias="Credit")
    debit: str = Field(default="", alias="Debit")
    balance: str = Field(default="", alias="Balance")


class BankStatementResponse(BaseModel):
    summary: dict[str, str] = Field(default_factory=dict, description="Account and statement metadata")
    transactions: list[TransactionSchema] = Field(
        default_factory=list,
        description="Transactions in the order they appear in the document",
    )


class TableGridSchema(BaseModel):
    page: int = Field(..., description="Page the table was found on")
    row_count: int = Field(..., description="Number of rows")
    column_count: int = Field(..., description="Number of cells in the first row")
    rows: list[list[str]] = Field(..., description="Table contents row by row")


class TablesResponse(BaseModel):
    tables: list[TableGridSchema] = Field(default_factory=list, description="Tables in encounter order")


class HealthResponse(BaseModel):
    status: str = Field(..., description="Current API state")
    environment: str = Field(..., description="Deployment environment name")
    bucket_configured: bool = Field(..., description="Whether an S3 bucket is configured for analysis jobs")


class JobRecordSchema(BaseModel):
    job_id: str = Field(..., description="Analysis job identifier")
    document_name: str = Field(..., description="Object key of the analysed document")
    bucket_name: str = Field(default="", description="Bucket holding the document")
    status: str = Field(..., description="Last known job status")
    created_at: datetime = Field(..., description="When the job was submitted")
    updated_at: datetime | None = Field(default=None, description="Last status change")
    output_file: str | None = Field(default=None, description="Path of the extracted statement, if any")


class ProcessDocumentRequest(BaseModel):
    document_name: str = Field(..., min_length=1, description="Object key of the statement in the bucket")
    force: bool = Field(default=False, description="Re-run analysis even when an output already exists")


class ProcessingOutcomeSchema(BaseModel):
    job_id: str = Field(..., description="Analysis job identifier")
    status: str = Field(..., description="Terminal job status")
    output_file: str | None = Field(default=None, description="Path of the written statement JSON")
    already_processed: bool = Field(default=False, description="True when an earlier output was reused")
    summary_fields: int = Field(default=0, description="Number of summary fields extracted")
    transactions: int = Field(default=0, description="Number of transactions extracted")
