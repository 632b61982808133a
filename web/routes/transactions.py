"""
거래 라우트

거래 CRUD, 목록 필터, 카테고리/프로젝트 조회, 일괄 작업 API
"""

from typing import Any

from fastapi import APIRouter, Depends, Query, status

from core.constants import Defaults
from core.errors import TransactionNotFound
from core.types import Category, TransactionStatus, TransactionType
from engine.bootstrap import Ledger
from engine.transactions.store import TransactionFilter
from web.dependencies import get_ledger
from web.models import (
    BatchCategoryRequest,
    BatchDeleteRequest,
    BatchResponse,
    IdResponse,
    TransactionCreateRequest,
    TransactionUpdateRequest,
)
from web.services.serializers import document, documents

router = APIRouter(prefix="/api/transactions", tags=["Transactions"])


@router.get("")
async def list_transactions(
    category: Category | None = Query(default=None),
    project_id: str | None = Query(default=None),
    bank_account_id: str | None = Query(default=None),
    member_id: str | None = Query(default=None),
    type: TransactionType | None = Query(default=None),
    status_: TransactionStatus | None = Query(default=None, alias="status"),
    start_date: str | None = Query(default=None),
    end_date: str | None = Query(default=None),
    ledger: Ledger = Depends(get_ledger),
) -> list[dict[str, Any]]:
    """거래 목록 (최신순)"""
    filters = TransactionFilter(
        category=category,
        project_id=project_id,
        bank_account_id=bank_account_id,
        member_id=member_id,
        type=type,
        status=status_,
        start_date=start_date,
        end_date=end_date,
    )
    return documents(await ledger.get_all_transactions(filters))


@router.post("", response_model=IdResponse, status_code=status.HTTP_201_CREATED)
async def create_transaction(
    body: TransactionCreateRequest,
    actor: str = Query(default=Defaults.SYSTEM_ACTOR),
    ledger: Ledger = Depends(get_ledger),
) -> IdResponse:
    transaction_id = await ledger.create_transaction(
        body.model_dump(mode="json", exclude_none=True), actor
    )
    return IdResponse(id=transaction_id)


@router.get("/by-category/{category}")
async def transactions_by_category(
    category: Category,
    ledger: Ledger = Depends(get_ledger),
) -> list[dict[str, Any]]:
    """카테고리별 거래 (분할 자식이 해당 카테고리인 부모 포함)"""
    return documents(await ledger.get_transactions_by_category(category))


@router.get("/by-project/{project_id}")
async def project_transactions(
    project_id: str,
    ledger: Ledger = Depends(get_ledger),
) -> list[dict[str, Any]]:
    return documents(await ledger.get_project_transactions(project_id))


@router.post("/batch/category", response_model=BatchResponse)
async def batch_update_category(
    body: BatchCategoryRequest,
    ledger: Ledger = Depends(get_ledger),
) -> BatchResponse:
    result = await ledger.batch_update_transaction_category(body.ids, body.category)
    return BatchResponse(updated=result.updated, errors=list(result.errors))


@router.post("/batch/delete", response_model=BatchResponse)
async def batch_delete(
    body: BatchDeleteRequest,
    ledger: Ledger = Depends(get_ledger),
) -> BatchResponse:
    result = await ledger.batch_delete_transactions(body.ids)
    return BatchResponse(updated=result.updated, errors=list(result.errors))


@router.get("/{transaction_id}")
async def get_transaction(
    transaction_id: str,
    ledger: Ledger = Depends(get_ledger),
) -> dict[str, Any]:
    transaction = await ledger.get_transaction_by_id(transaction_id)
    if transaction is None:
        raise TransactionNotFound(transaction_id)
    return document(transaction)


@router.patch("/{transaction_id}", status_code=status.HTTP_204_NO_CONTENT)
async def update_transaction(
    transaction_id: str,
    body: TransactionUpdateRequest,
    actor: str = Query(default=Defaults.SYSTEM_ACTOR),
    ledger: Ledger = Depends(get_ledger),
) -> None:
    """부분 수정 (보낸 필드만 반영, null은 필드 삭제)"""
    await ledger.update_transaction(
        transaction_id, body.model_dump(mode="json", exclude_unset=True), actor
    )


@router.delete("/{transaction_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_transaction(
    transaction_id: str,
    ledger: Ledger = Depends(get_ledger),
) -> None:
    await ledger.delete_transaction(transaction_id)
