"""
계좌/정산 라우트

은행 계좌 관리, 시스템 잔고, 불일치 탐지, 정산 및 이력
"""

from decimal import Decimal
from typing import Any

from fastapi import APIRouter, Depends, Query, status

from core.domain.models import BankAccount
from core.types import Bucket
from core.utils.money import money_str
from engine.bootstrap import Ledger
from web.dependencies import get_ledger
from web.models import (
    AccountCreateRequest,
    AccountUpdateRequest,
    BalanceResponse,
    DiscrepancyResponse,
    IdResponse,
    ReconcileRequest,
    ReconcileResponse,
)
from web.services.serializers import document, documents

router = APIRouter(prefix="/api/accounts", tags=["Accounts"])


def _account(account: BankAccount) -> dict[str, Any]:
    return {**document(account), "balance": money_str(account.balance)}


@router.get("")
async def list_accounts(ledger: Ledger = Depends(get_ledger)) -> list[dict[str, Any]]:
    return [_account(a) for a in await ledger.get_all_bank_accounts()]


@router.post("", response_model=IdResponse, status_code=status.HTTP_201_CREATED)
async def create_account(
    body: AccountCreateRequest,
    ledger: Ledger = Depends(get_ledger),
) -> IdResponse:
    account_id = await ledger.create_bank_account(body.model_dump())
    return IdResponse(id=account_id)


@router.get("/{account_id}")
async def get_account(account_id: str, ledger: Ledger = Depends(get_ledger)) -> dict[str, Any]:
    """계좌 조회 (balance는 거래에서 계산)"""
    return _account(await ledger.get_bank_account(account_id))


@router.patch("/{account_id}", status_code=status.HTTP_204_NO_CONTENT)
async def update_account(
    account_id: str,
    body: AccountUpdateRequest,
    ledger: Ledger = Depends(get_ledger),
) -> None:
    await ledger.update_bank_account(account_id, body.model_dump(exclude_unset=True))


@router.get("/{account_id}/balance", response_model=BalanceResponse)
async def get_balance(
    account_id: str,
    as_of: str | None = Query(default=None, description="기준일 (해당일 포함)"),
    category_filter: Bucket | None = Query(default=None),
    ledger: Ledger = Depends(get_ledger),
) -> BalanceResponse:
    result = await ledger.compute_system_balance(account_id, as_of, category_filter)
    return BalanceResponse(**result.to_dict())


@router.get("/{account_id}/discrepancies", response_model=list[DiscrepancyResponse])
async def get_discrepancies(
    account_id: str,
    statement_balance: Decimal = Query(...),
    date: str = Query(...),
    ledger: Ledger = Depends(get_ledger),
) -> list[DiscrepancyResponse]:
    discrepancies = await ledger.detect_discrepancies(account_id, statement_balance, date)
    return [DiscrepancyResponse(**d.to_dict()) for d in discrepancies]


@router.post("/{account_id}/reconcile", response_model=ReconcileResponse)
async def reconcile(
    account_id: str,
    body: ReconcileRequest,
    ledger: Ledger = Depends(get_ledger),
) -> ReconcileResponse:
    """정산 기록 생성 (불일치 없을 때만 거래를 Reconciled로 변경)"""
    record_id = await ledger.reconcile_account(
        account_id,
        body.statement_balance,
        body.date,
        body.actor,
        body.notes,
        body.category_filter,
    )
    history = await ledger.get_reconciliation_history(account_id)
    record = next(r for r in history if r.id == record_id)
    return ReconcileResponse(
        record_id=record_id,
        status=record.status.value,
        discrepancies=[DiscrepancyResponse(**d.to_dict()) for d in record.discrepancies],
    )


@router.get("/{account_id}/reconciliations")
async def reconciliation_history(
    account_id: str,
    ledger: Ledger = Depends(get_ledger),
) -> list[dict[str, Any]]:
    return documents(await ledger.get_reconciliation_history(account_id))
