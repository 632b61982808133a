"""
Web 모델 패키지

Pydantic 스키마 정의
"""

from web.models.requests import (
    AccountCreateRequest,
    AccountUpdateRequest,
    BatchCategoryRequest,
    CheckOutRequest,
    BatchDeleteRequest,
    DuesPaymentRequest,
    ItemCreateRequest,
    MerchandiseMovementRequest,
    ReconcileRequest,
    SplitItem,
    SplitUpdateRequest,
    SplitUpsertRequest,
    StockAdjustRequest,
    TransactionCreateRequest,
    TransactionUpdateRequest,
    VariantItem,
)
from web.models.responses import (
    BalanceResponse,
    BatchResponse,
    DiscrepancyResponse,
    ErrorResponse,
    HealthResponse,
    IdListResponse,
    IdResponse,
    ReconcileResponse,
    RenewalResponse,
)

__all__ = [
    # Requests
    "AccountCreateRequest",
    "AccountUpdateRequest",
    "BatchCategoryRequest",
    "BatchDeleteRequest",
    "CheckOutRequest",
    "DuesPaymentRequest",
    "ItemCreateRequest",
    "MerchandiseMovementRequest",
    "ReconcileRequest",
    "SplitItem",
    "SplitUpdateRequest",
    "SplitUpsertRequest",
    "StockAdjustRequest",
    "TransactionCreateRequest",
    "TransactionUpdateRequest",
    "VariantItem",
    # Responses
    "BalanceResponse",
    "BatchResponse",
    "DiscrepancyResponse",
    "ErrorResponse",
    "HealthResponse",
    "IdListResponse",
    "IdResponse",
    "ReconcileResponse",
    "RenewalResponse",
]
