"""
재고 라우트

품목 등록/조회, 재고 부족 품목, 수동 조정, 재고 카드,
상품 매입/판매, 대여, Merchandise 정합성
"""

from typing import Any

from fastapi import APIRouter, Depends, Query, status

from core.constants import Defaults
from core.errors import ValidationError
from engine.bootstrap import Ledger
from web.dependencies import get_ledger
from web.models import (
    CheckOutRequest,
    IdResponse,
    ItemCreateRequest,
    MerchandiseMovementRequest,
    StockAdjustRequest,
)
from web.services.serializers import document, documents

router = APIRouter(prefix="/api/inventory", tags=["Inventory"])


@router.get("/items")
async def list_items(
    category: str | None = Query(default=None),
    ledger: Ledger = Depends(get_ledger),
) -> list[dict[str, Any]]:
    return documents(await ledger.stock.list_items(category))


@router.post("/items", response_model=IdResponse, status_code=status.HTTP_201_CREATED)
async def create_item(
    body: ItemCreateRequest,
    ledger: Ledger = Depends(get_ledger),
) -> IdResponse:
    item_id = await ledger.stock.create_item(body.model_dump(mode="json", exclude_none=True))
    return IdResponse(id=item_id)


@router.get("/items/low-stock")
async def low_stock_items(
    threshold: int = Query(default=Defaults.LOW_STOCK_THRESHOLD, ge=0),
    ledger: Ledger = Depends(get_ledger),
) -> list[dict[str, Any]]:
    return documents(await ledger.stock.get_low_stock_items(threshold))


@router.get("/items/{item_id}")
async def get_item(item_id: str, ledger: Ledger = Depends(get_ledger)) -> dict[str, Any]:
    return document(await ledger.stock.require_item(item_id))


@router.post("/items/{item_id}/adjust")
async def adjust_stock(
    item_id: str,
    body: StockAdjustRequest,
    ledger: Ledger = Depends(get_ledger),
) -> dict[str, Any]:
    """수동 재고 조정 (이동 기록 생성)"""
    movement = await ledger.adjust_stock(item_id, body.variant, body.delta, body.reason, body.actor)
    return document(movement)


@router.get("/items/{item_id}/stock-card")
async def stock_card(item_id: str, ledger: Ledger = Depends(get_ledger)) -> list[dict[str, Any]]:
    return documents(await ledger.get_stock_card(item_id))


@router.post("/items/{item_id}/purchase")
async def record_purchase(
    item_id: str,
    body: MerchandiseMovementRequest,
    ledger: Ledger = Depends(get_ledger),
) -> dict[str, Any]:
    """상품 매입 (재고 증가, 매입가 갱신)"""
    if body.unit_cost is None:
        raise ValidationError("unit_cost is required for a purchase")
    movement = await ledger.stock.record_merchandise_purchase(
        item_id, body.quantity, body.transaction_id, body.unit_cost, body.actor
    )
    return document(movement)


@router.post("/items/{item_id}/sale")
async def record_sale(
    item_id: str,
    body: MerchandiseMovementRequest,
    ledger: Ledger = Depends(get_ledger),
) -> dict[str, Any]:
    """상품 판매 (재고 부족 시 409)"""
    movement = await ledger.stock.record_merchandise_sale(
        item_id, body.quantity, body.transaction_id, body.actor
    )
    return document(movement)


@router.post("/items/{item_id}/checkout", status_code=status.HTTP_204_NO_CONTENT)
async def check_out(
    item_id: str,
    body: CheckOutRequest,
    ledger: Ledger = Depends(get_ledger),
) -> None:
    await ledger.stock.check_out_item(item_id, body.member_id)


@router.post("/items/{item_id}/checkin", status_code=status.HTTP_204_NO_CONTENT)
async def check_in(item_id: str, ledger: Ledger = Depends(get_ledger)) -> None:
    await ledger.stock.check_in_item(item_id)


@router.get("/merchandise/consistency")
async def merchandise_consistency(ledger: Ledger = Depends(get_ledger)) -> dict[str, Any]:
    """Merchandise 품목별 평가액-거래 금액 정합성"""
    return await ledger.stock.reconcile_merchandise()
