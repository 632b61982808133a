"""
보고서 라우트

재무 요약, 월/분기/연 보고서, 손익계산서, 재무상태표, 현금흐름표
"""

from typing import Any

from fastapi import APIRouter, Depends, Query

from engine.bootstrap import Ledger
from web.dependencies import get_ledger

router = APIRouter(prefix="/api/reports", tags=["Reports"])


@router.get("/summary")
async def financial_summary(
    year: int | None = Query(default=None),
    ledger: Ledger = Depends(get_ledger),
) -> dict[str, Any]:
    return await ledger.get_financial_summary(year)


@router.get("/financial")
async def financial_report(
    report_type: str = Query(..., pattern="^(income|expense|balance|cashflow)$"),
    year: int = Query(...),
    month: int | None = Query(default=None, ge=1, le=12),
    fiscal_start_month: int = Query(default=1, ge=1, le=12),
    ledger: Ledger = Depends(get_ledger),
) -> dict[str, Any]:
    return await ledger.generate_financial_report(report_type, year, month, fiscal_start_month)


@router.get("/income-statement")
async def income_statement(
    year: int = Query(...),
    fiscal_start_month: int = Query(default=1, ge=1, le=12),
    ledger: Ledger = Depends(get_ledger),
) -> dict[str, Any]:
    return await ledger.generate_income_statement(year, fiscal_start_month)


@router.get("/balance-sheet")
async def balance_sheet(
    year: int = Query(...),
    as_of: str | None = Query(default=None),
    ledger: Ledger = Depends(get_ledger),
) -> dict[str, Any]:
    return await ledger.generate_balance_sheet(year, as_of)


@router.get("/cash-flow")
async def cash_flow_statement(
    year: int = Query(...),
    fiscal_start_month: int = Query(default=1, ge=1, le=12),
    ledger: Ledger = Depends(get_ledger),
) -> dict[str, Any]:
    return await ledger.generate_cash_flow_statement(year, fiscal_start_month)
