"""
Inventory 모듈

재고 수량 관리와 거래-재고 동기화
"""

from engine.inventory.stock import StockKeeper, apply_delta, status_for_quantity
from engine.inventory.synchronizer import InventorySynchronizer, operation_for

__all__ = [
    "StockKeeper",
    "InventorySynchronizer",
    "apply_delta",
    "status_for_quantity",
    "operation_for",
]
