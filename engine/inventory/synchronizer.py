"""
Inventory Synchronizer

재고 연결 거래(inventory_link_id/variant/quantity)를 StockMovement와 동기화.

불변식: 연결 3요소가 완비된 거래는 reference_id가 일치하는 StockMovement를
정확히 1개 가지며, 품목/variant 수량이 그 이동을 반영한다.

현재 규칙: Income/Expense 모두 재고를 차감(decrement)한다.
"""

import logging

from adapters.interfaces import IPersistenceGateway
from adapters.models import QueryFilter
from core.constants import Defaults
from core.domain.models import StockMovement, Transaction
from core.errors import ValidationError
from core.types import Collection, StockOperation, TransactionType
from core.utils.timezone import now_utc, to_iso
from engine.inventory.stock import StockKeeper

logger = logging.getLogger(__name__)


def operation_for(transaction_type: TransactionType) -> StockOperation:
    """거래 유형 → 재고 연산

    Income(판매)과 Expense(사용/재판매 원가) 모두 차감.
    """
    # TODO: 매입(Expense) 시 증가로 바꿀지 운영진 확인 후 결정
    return StockOperation.DECREMENT


class InventorySynchronizer:
    """거래-재고 동기화

    Args:
        gateway: 문서 저장소
        stock: StockKeeper

    거래 생성/수정/삭제 시 TransactionStore가 호출.
    """

    def __init__(self, gateway: IPersistenceGateway, stock: StockKeeper):
        self.gateway = gateway
        self.stock = stock

    async def validate_link(self, transaction: Transaction) -> None:
        """연결 대상 품목/variant 검증 (쓰기 전 호출)

        Raises:
            ItemNotFound: 품목 없음
            ValidationError: variant 선언 품목에 variant 미지정
        """
        if not transaction.has_inventory_link:
            return
        item = await self.stock.require_item(transaction.inventory_link_id)
        if item.variants and not transaction.inventory_variant:
            raise ValidationError(f"Item {item.id} has variants; a variant is required")

    async def find_movement(self, reference_id: str) -> StockMovement | None:
        """reference_id에 연결된 StockMovement 조회"""
        docs = await self.gateway.query(
            Collection.STOCK_MOVEMENTS,
            [QueryFilter.eq("reference_id", reference_id)],
        )
        if not docs:
            return None
        if len(docs) > 1:
            logger.warning(f"Multiple stock movements for reference {reference_id}: {len(docs)}")
        return StockMovement.from_dict(docs[0])

    # -------------------------------------------------------------------------
    # 거래 생명주기
    # -------------------------------------------------------------------------

    async def on_create(self, transaction: Transaction, actor: str = Defaults.SYSTEM_ACTOR) -> StockMovement | None:
        """거래 생성 시 재고 반영"""
        if not transaction.has_inventory_link:
            return None

        return await self.stock.update_variant_quantity(
            item_id=transaction.inventory_link_id,
            variant=transaction.inventory_variant,
            quantity=transaction.inventory_quantity,
            operation=operation_for(transaction.type),
            reference_id=transaction.id,
            performed_by=actor,
        )

    async def on_update(
        self,
        old: Transaction,
        new: Transaction,
        actor: str = Defaults.SYSTEM_ACTOR,
    ) -> StockMovement | None:
        """거래 수정 시 재고 재동기화

        - 연결 해제: 이동 기록 삭제 + 수량 복원
        - 연결 변경: 이전 효과 복원 후 새 효과 적용, 이동 기록 덮어쓰기
        - 변경 없음 + 이동 기록 없음: 최초 동기화 (self-healing)
        """
        movement = await self.find_movement(new.id)

        if not new.has_inventory_link:
            if movement is not None:
                await self._revert_and_delete(movement)
                logger.info(f"Inventory link removed: {new.id}")
            return None

        if movement is None:
            if old.has_inventory_link:
                logger.warning(f"Stock movement missing for linked transaction, syncing: {new.id}")
            return await self.on_create(new, actor)

        if self._same_link(old, new) and self._matches(movement, new):
            return movement

        return await self._replace(movement, new)

    async def on_delete(self, transaction: Transaction) -> None:
        """거래 삭제 시 연결 이동 기록 복원 + 삭제"""
        movement = await self.find_movement(transaction.id)
        if movement is not None:
            await self._revert_and_delete(movement)

    # -------------------------------------------------------------------------
    # 내부
    # -------------------------------------------------------------------------

    @staticmethod
    def _same_link(old: Transaction, new: Transaction) -> bool:
        return (
            old.has_inventory_link
            and old.inventory_link_id == new.inventory_link_id
            and old.inventory_variant == new.inventory_variant
            and old.inventory_quantity == new.inventory_quantity
            and old.type == new.type
        )

    @staticmethod
    def _matches(movement: StockMovement, transaction: Transaction) -> bool:
        signed = operation_for(transaction.type).signed(transaction.inventory_quantity)
        return (
            movement.item_id == transaction.inventory_link_id
            and (movement.variant or "") == transaction.inventory_variant
            and movement.quantity == signed
        )

    async def _revert(self, movement: StockMovement) -> None:
        await self.stock.adjust_quantity_only(movement.item_id, movement.variant, -movement.quantity)

    async def _revert_and_delete(self, movement: StockMovement) -> None:
        await self._revert(movement)
        await self.gateway.delete(Collection.STOCK_MOVEMENTS, movement.id)

    async def _replace(self, movement: StockMovement, transaction: Transaction) -> StockMovement:
        """기존 이동 기록을 새 연결 값으로 교체 (기록은 1개 유지)"""
        operation = operation_for(transaction.type)
        signed = operation.signed(transaction.inventory_quantity)
        item_id = transaction.inventory_link_id
        variant = transaction.inventory_variant

        if movement.item_id == item_id and (movement.variant or "") == variant:
            net_change = signed - movement.quantity
            item = (
                await self.stock.adjust_quantity_only(item_id, variant, net_change)
                if net_change
                else await self.stock.get_item(item_id)
            )
        else:
            await self._revert(movement)
            item = await self.stock.adjust_quantity_only(item_id, variant, signed)

        new_quantity = item.quantity if item else 0
        patch = {
            "item_id": item_id,
            "item_name": item.name if item else "Unknown",
            "variant": variant,
            "quantity": signed,
            "type": operation.movement_type.value,
            "reason": operation.reason,
            "new_quantity": new_quantity,
            "previous_quantity": new_quantity - signed,
            "updated_at": to_iso(now_utc()),
        }
        await self.gateway.update(Collection.STOCK_MOVEMENTS, movement.id, patch)
        logger.info(
            f"Stock movement replaced for {transaction.id}: {movement.quantity:+d} → {signed:+d}",
            extra={"movement_id": movement.id, "item_id": item_id},
        )

        refreshed = await self.gateway.get(Collection.STOCK_MOVEMENTS, movement.id)
        return StockMovement.from_dict(refreshed)
