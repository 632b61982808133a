"""
분할 라우트

부모 거래의 분할 upsert/조회 및 개별 분할 수정/삭제
"""

from typing import Any

from fastapi import APIRouter, Depends, status

from core.domain.models import SplitInput
from engine.bootstrap import Ledger
from web.dependencies import get_ledger
from web.models import (
    BatchCategoryRequest,
    BatchResponse,
    IdListResponse,
    SplitUpdateRequest,
    SplitUpsertRequest,
)
from web.services.serializers import documents

router = APIRouter(prefix="/api", tags=["Splits"])


@router.put("/transactions/{transaction_id}/splits", response_model=IdListResponse)
async def upsert_splits(
    transaction_id: str,
    body: SplitUpsertRequest,
    ledger: Ledger = Depends(get_ledger),
) -> IdListResponse:
    """분할 전체 교체 (id 있는 항목 수정, 없는 항목 생성, 누락 항목 삭제)"""
    splits = [SplitInput(**item.model_dump()) for item in body.splits]
    ids = await ledger.create_splits(transaction_id, splits, body.actor)
    return IdListResponse(ids=ids)


@router.get("/transactions/{transaction_id}/splits")
async def get_splits(
    transaction_id: str,
    ledger: Ledger = Depends(get_ledger),
) -> list[dict[str, Any]]:
    return documents(await ledger.get_splits(transaction_id))


@router.post("/splits/batch/category", response_model=BatchResponse)
async def batch_update_split_category(
    body: BatchCategoryRequest,
    ledger: Ledger = Depends(get_ledger),
) -> BatchResponse:
    result = await ledger.batch_update_split_category(body.ids, body.category)
    return BatchResponse(updated=result.updated, errors=list(result.errors))


@router.patch("/splits/{split_id}", status_code=status.HTTP_204_NO_CONTENT)
async def update_split(
    split_id: str,
    body: SplitUpdateRequest,
    ledger: Ledger = Depends(get_ledger),
) -> None:
    await ledger.update_split(split_id, body.model_dump(mode="json", exclude_unset=True))


@router.delete("/splits/{split_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_split(
    split_id: str,
    ledger: Ledger = Depends(get_ledger),
) -> None:
    await ledger.delete_split(split_id)
