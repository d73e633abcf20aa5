"""Endpoints that rebuild statements from analysis blocks posted by the caller."""

from __future__ import annotations

import logging

from fastapi import APIRouter, File, HTTPException, UploadFile

from statement_parser.document_processing import (
    BlockIndex,
    InvalidBlockStreamError,
    extract_tables,
    load_blocks,
    parse_blocks,
)
from statement_parser.schemas import AnalysisPayload, BankStatementResponse, TablesResponse
from statement_parser.statement_builder import build_statement_response, build_tables_response
from statement_parser.statement_extractor import extract_bank_statement

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/statements", tags=["statements"])


@router.post("/parse", response_model=BankStatementResponse, response_model_by_alias=True)
def parse_statement(payload: AnalysisPayload) -> BankStatementResponse:
    try:
        result = extract_bank_statement(parse_blocks(payload.raw_blocks()))
    except InvalidBlockStreamError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return build_statement_response(result)


@router.post("/parse-file", response_model=BankStatementResponse, response_model_by_alias=True)
async def parse_statement_file(file: UploadFile = File(...)) -> BankStatementResponse:
    contents = await file.read()
    if not contents.strip():
        raise HTTPException(status_code=400, detail="Uploaded file is empty")
    try:
        result = extract_bank_statement(load_blocks(contents))
    except InvalidBlockStreamError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    logger.info(
        "Parsed %s: %s summary fields, %s transactions",
        file.filename,
        len(result.summary),
        len(result.transactions),
    )
    return build_statement_response(result)


@router.post("/tables", response_model=TablesResponse)
def reconstruct_tables(payload: AnalysisPayload) -> TablesResponse:
    try:
        blocks = parse_blocks(payload.raw_blocks())
    except InvalidBlockStreamError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return build_tables_response(extract_tables(blocks, BlockIndex(blocks)))
