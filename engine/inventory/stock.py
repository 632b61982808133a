"""
StockKeeper - 재고 수량 관리

품목/variant 수량 변경과 StockMovement 기록 담당.

규칙:
- variants가 있으면 quantity = Σ variant.quantity
- variants가 없고 variant가 비어 있으면 quantity 자체가 암묵적 단일 variant
- 존재하지 않는 variant에 대한 변경은 해당 variant를 새로 만들어 적용 (음수 허용)
- 수량 변경 후 status: 합계 > 0 → Available, 그 외 → Out of Stock
"""

import logging
from dataclasses import dataclass
from typing import Any

from adapters.interfaces import IPersistenceGateway
from adapters.models import OrderBy, QueryFilter
from core.constants import Defaults
from core.domain.models import InventoryItem, InventoryVariant, StockMovement, Transaction
from core.errors import InsufficientInventory, ItemNotFound, ValidationError
from core.types import Collection, ItemStatus, MovementType, StockOperation
from core.utils.money import amounts_match, to_decimal
from core.utils.timezone import now_utc, to_iso

logger = logging.getLogger(__name__)


def status_for_quantity(total: int) -> ItemStatus:
    """합계 수량 → 품목 상태"""
    return ItemStatus.AVAILABLE if total > 0 else ItemStatus.OUT_OF_STOCK


def apply_delta(item: InventoryItem, variant: str | None, delta: int) -> tuple[int, int]:
    """품목에 수량 변경 적용 (메모리 내)

    Args:
        item: 대상 품목 (직접 변경됨)
        variant: variant 이름 (None/""이면 암묵적 단일 variant)
        delta: 부호 있는 변경량

    Returns:
        (변경 전 합계, 변경 후 합계)

    Raises:
        ValidationError: variants가 선언된 품목에 variant 없이 변경 시도
    """
    previous = item.quantity

    if variant:
        for v in item.variants:
            if v.size == variant:
                v.quantity += delta
                break
        else:
            item.variants.append(InventoryVariant(size=variant, quantity=delta))
        item.quantity = sum(v.quantity for v in item.variants)
    elif item.variants:
        raise ValidationError(f"Item {item.id} has variants; a variant is required")
    else:
        item.quantity += delta

    item.status = status_for_quantity(item.quantity)
    return previous, item.quantity


@dataclass(frozen=True)
class ConsistencyResult:
    """재고-재무 정합성 검사 결과"""

    item_id: str
    consistent: bool
    issues: tuple[str, ...]
    inventory_value: Any
    transaction_value: Any

    def to_dict(self) -> dict[str, Any]:
        return {
            "item_id": self.item_id,
            "consistent": self.consistent,
            "issues": list(self.issues),
            "inventory_value": str(self.inventory_value),
            "transaction_value": str(self.transaction_value),
        }


class StockKeeper:
    """재고 수량 관리자

    Args:
        gateway: 문서 저장소

    사용 예시:
    ```python
    stock = StockKeeper(gateway)
    item_id = await stock.create_item({"name": "Polo Shirt", "variants": [...]})
    await stock.adjust_stock(item_id, "M", -2, "Damaged", "treasurer")
    card = await stock.get_stock_card(item_id)
    ```
    """

    def __init__(self, gateway: IPersistenceGateway):
        self.gateway = gateway

    # -------------------------------------------------------------------------
    # 품목 CRUD
    # -------------------------------------------------------------------------

    async def get_item(self, item_id: str) -> InventoryItem | None:
        doc = await self.gateway.get(Collection.INVENTORY_ITEMS, item_id)
        return InventoryItem.from_dict(doc) if doc else None

    async def require_item(self, item_id: str) -> InventoryItem:
        item = await self.get_item(item_id)
        if item is None:
            raise ItemNotFound(item_id)
        return item

    async def list_items(self, category: str | None = None) -> list[InventoryItem]:
        filters = [QueryFilter.eq("category", category)] if category else []
        docs = await self.gateway.query(
            Collection.INVENTORY_ITEMS, filters, OrderBy("name")
        )
        return [InventoryItem.from_dict(d) for d in docs]

    async def create_item(self, data: dict[str, Any]) -> str:
        """품목 생성

        variants가 있으면 quantity는 variant 합계로 재계산.
        """
        if not data.get("name"):
            raise ValidationError("Item name is required")

        now = to_iso(now_utc())
        item = InventoryItem.from_dict({**data, "id": data.get("id") or ""})
        if item.variants:
            item.quantity = sum(v.quantity for v in item.variants)
        if "status" not in data:
            item.status = status_for_quantity(item.quantity)
        item.created_at = now
        item.updated_at = now

        record = item.to_dict()
        if data.get("id"):
            record["id"] = data["id"]
        item_id = await self.gateway.create(Collection.INVENTORY_ITEMS, record)
        logger.info(f"Inventory item created: {item_id} ({item.name}, qty={item.quantity})")
        return item_id

    async def update_item(self, item_id: str, partial: dict[str, Any]) -> None:
        await self.require_item(item_id)
        patch = dict(partial)
        patch.pop("id", None)
        patch["updated_at"] = to_iso(now_utc())
        await self.gateway.update(Collection.INVENTORY_ITEMS, item_id, patch)

    async def delete_item(self, item_id: str) -> None:
        await self.require_item(item_id)
        await self.gateway.delete(Collection.INVENTORY_ITEMS, item_id)
        logger.info(f"Inventory item deleted: {item_id}")

    async def get_low_stock_items(
        self,
        threshold: int = Defaults.LOW_STOCK_THRESHOLD,
    ) -> list[InventoryItem]:
        """수량이 기준 이하인 품목 (대여 중 품목 제외)"""
        items = await self.list_items()
        return [
            item for item in items
            if item.quantity <= threshold and item.status != ItemStatus.CHECKED_OUT
        ]

    # -------------------------------------------------------------------------
    # 수량 변경
    # -------------------------------------------------------------------------

    async def _save_quantities(self, item: InventoryItem) -> None:
        await self.gateway.update(
            Collection.INVENTORY_ITEMS,
            item.id,
            {
                "quantity": item.quantity,
                "variants": [v.to_dict() for v in item.variants],
                "status": item.status.value,
                "updated_at": to_iso(now_utc()),
            },
        )

    async def adjust_quantity_only(
        self,
        item_id: str,
        variant: str | None,
        change: int,
    ) -> InventoryItem | None:
        """이동 기록 없이 수량만 변경 (동기화의 revert/apply 단계용)

        Returns:
            변경된 품목 (품목이 삭제된 경우 None)
        """
        item = await self.get_item(item_id)
        if item is None:
            logger.warning(f"Quantity change skipped, item missing: {item_id} ({change:+d})")
            return None

        apply_delta(item, variant, change)
        await self._save_quantities(item)
        return item

    async def record_movement(
        self,
        item: InventoryItem,
        variant: str | None,
        quantity: int,
        previous_quantity: int,
        movement_type: MovementType,
        reason: str,
        performed_by: str,
        reference_id: str | None = None,
    ) -> StockMovement:
        """StockMovement 추가 (감사 기록)"""
        movement = StockMovement(
            id="",
            item_id=item.id,
            item_name=item.name,
            variant=variant,
            quantity=quantity,
            previous_quantity=previous_quantity,
            new_quantity=item.quantity,
            type=movement_type,
            reason=reason,
            performed_by=performed_by,
            reference_id=reference_id,
            date=to_iso(now_utc()),
        )
        movement_id = await self.gateway.create(Collection.STOCK_MOVEMENTS, movement.to_dict())
        return StockMovement.from_dict({**movement.to_dict(), "id": movement_id})

    async def update_variant_quantity(
        self,
        item_id: str,
        variant: str | None,
        quantity: int,
        operation: StockOperation,
        reference_id: str | None = None,
        performed_by: str = Defaults.SYSTEM_ACTOR,
    ) -> StockMovement:
        """variant 수량 변경 + 이동 기록

        Raises:
            ItemNotFound: 품목 없음
        """
        item = await self.require_item(item_id)
        signed = operation.signed(quantity)
        previous, _ = apply_delta(item, variant, signed)
        await self._save_quantities(item)

        movement = await self.record_movement(
            item,
            variant,
            signed,
            previous,
            operation.movement_type,
            operation.reason,
            performed_by,
            reference_id,
        )
        logger.info(
            f"Stock {operation.value}: {item.name}[{variant or '-'}] {previous} → {item.quantity}",
            extra={"item_id": item_id, "reference_id": reference_id},
        )
        return movement

    async def adjust_stock(
        self,
        item_id: str,
        variant: str | None,
        delta: int,
        reason: str,
        performed_by: str,
    ) -> StockMovement:
        """수동 재고 조정 (Adjustment 이동 기록)"""
        if delta == 0:
            raise ValidationError("Adjustment quantity must not be zero")

        item = await self.require_item(item_id)
        previous, _ = apply_delta(item, variant, delta)
        await self._save_quantities(item)

        logger.info(f"Stock adjusted: {item.name}[{variant or '-'}] {delta:+d} ({reason})")
        return await self.record_movement(
            item, variant, delta, previous, MovementType.ADJUSTMENT, reason, performed_by
        )

    async def get_stock_card(self, item_id: str) -> list[StockMovement]:
        """품목 이동 기록 (최신순)"""
        docs = await self.gateway.query(
            Collection.STOCK_MOVEMENTS,
            [QueryFilter.eq("item_id", item_id)],
            OrderBy("date", descending=True),
        )
        return [StockMovement.from_dict(d) for d in docs]

    # -------------------------------------------------------------------------
    # 상품 매입/판매
    # -------------------------------------------------------------------------

    async def record_merchandise_purchase(
        self,
        item_id: str,
        quantity: int,
        transaction_id: str,
        unit_cost: Any,
        performed_by: str = Defaults.SYSTEM_ACTOR,
    ) -> StockMovement:
        """상품 매입 (재고 증가)"""
        if quantity <= 0:
            raise ValidationError("Purchase quantity must be positive")

        item = await self.require_item(item_id)
        previous, _ = apply_delta(item, None, quantity)
        await self.gateway.update(
            Collection.INVENTORY_ITEMS,
            item_id,
            {
                "quantity": item.quantity,
                "status": item.status.value,
                "purchase_price": str(to_decimal(unit_cost)),
                "last_transaction_id": transaction_id,
                "updated_at": to_iso(now_utc()),
            },
        )
        return await self.record_movement(
            item, None, quantity, previous, MovementType.IN, "Purchase", performed_by
        )

    async def record_merchandise_sale(
        self,
        item_id: str,
        quantity: int,
        transaction_id: str,
        performed_by: str = Defaults.SYSTEM_ACTOR,
    ) -> StockMovement:
        """상품 판매 (재고 감소)

        Raises:
            InsufficientInventory: 재고 부족
        """
        if quantity <= 0:
            raise ValidationError("Sale quantity must be positive")

        item = await self.require_item(item_id)
        if item.quantity < quantity:
            raise InsufficientInventory(available=item.quantity, requested=quantity)

        previous, _ = apply_delta(item, None, -quantity)
        await self.gateway.update(
            Collection.INVENTORY_ITEMS,
            item_id,
            {
                "quantity": item.quantity,
                "status": item.status.value,
                "last_transaction_id": transaction_id,
                "updated_at": to_iso(now_utc()),
            },
        )
        return await self.record_movement(
            item, None, -quantity, previous, MovementType.OUT, "Sale", performed_by
        )

    # -------------------------------------------------------------------------
    # 대여 (Check-out / Check-in)
    # -------------------------------------------------------------------------

    async def check_out_item(self, item_id: str, member_id: str) -> None:
        item = await self.require_item(item_id)
        if item.status != ItemStatus.AVAILABLE:
            raise ValidationError(f"Item is not available for checkout: {item.status.value}")

        await self.gateway.update(
            Collection.INVENTORY_ITEMS,
            item_id,
            {
                "status": ItemStatus.CHECKED_OUT.value,
                "checked_out_to": member_id,
                "updated_at": to_iso(now_utc()),
            },
        )

    async def check_in_item(self, item_id: str) -> None:
        item = await self.require_item(item_id)
        await self.gateway.update(
            Collection.INVENTORY_ITEMS,
            item_id,
            {
                "status": status_for_quantity(item.quantity).value,
                "checked_out_to": None,
                "updated_at": to_iso(now_utc()),
            },
        )

    # -------------------------------------------------------------------------
    # 재고-재무 정합성
    # -------------------------------------------------------------------------

    async def verify_consistency(self, item_id: str, transaction_id: str) -> ConsistencyResult:
        """품목 평가액(수량 × 매입가)과 연결 거래 금액 비교"""
        item = await self.get_item(item_id)
        if item is None:
            return ConsistencyResult(item_id, False, ("Inventory item not found",), 0, 0)

        issues: list[str] = []
        doc = await self.gateway.get(Collection.TRANSACTIONS, transaction_id)
        transaction = Transaction.from_dict(doc) if doc else None
        if transaction is None:
            issues.append("Transaction not found")
        if item.last_transaction_id != transaction_id:
            issues.append("Inventory item not linked to this transaction")

        inventory_value = item.quantity * (item.purchase_price or to_decimal(0))
        transaction_value = transaction.amount if transaction else to_decimal(0)
        if not amounts_match(inventory_value, transaction_value):
            issues.append(
                f"Value mismatch: inventory {inventory_value}, transaction {transaction_value}"
            )

        return ConsistencyResult(
            item_id=item_id,
            consistent=not issues,
            issues=tuple(issues),
            inventory_value=inventory_value,
            transaction_value=transaction_value,
        )

    async def reconcile_merchandise(self) -> dict[str, Any]:
        """Merchandise 품목 전체 정합성 보고서"""
        items = await self.list_items(category="Merchandise")
        discrepancies: list[dict[str, Any]] = []
        consistent = 0

        for item in items:
            if not item.last_transaction_id:
                continue
            result = await self.verify_consistency(item.id, item.last_transaction_id)
            if result.consistent:
                consistent += 1
            else:
                discrepancies.append({"item_name": item.name, **result.to_dict()})

        return {
            "total_items": len(items),
            "consistent_items": consistent,
            "inconsistent_items": len(discrepancies),
            "discrepancies": discrepancies,
        }
