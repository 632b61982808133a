"""
요청 스키마 (Pydantic)

Web API 요청 데이터 검증.
부분 수정 요청은 model_dump(exclude_unset=True)로 보낸 필드만 전달
(명시적 null은 필드 삭제).
"""

from decimal import Decimal

from pydantic import BaseModel, Field

from core.types import Bucket, Category, TransactionStatus, TransactionType


class TransactionCreateRequest(BaseModel):
    """거래 생성 요청"""

    date: str = Field(..., description="거래일 (ISO-8601)")
    description: str = Field(..., min_length=1)
    amount: Decimal = Field(..., description="양수 금액")
    type: TransactionType
    category: Category
    status: TransactionStatus = TransactionStatus.PENDING
    purpose: str | None = None
    bank_account_id: str | None = None
    project_id: str | None = None
    member_id: str | None = None
    reference_number: str | None = None
    payment_request_id: str | None = None
    year: int | None = None
    bucket: Bucket | None = None
    inventory_link_id: str | None = None
    inventory_variant: str | None = None
    inventory_quantity: int | None = Field(default=None, gt=0)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "date": "2026-03-01",
                    "description": "Chapter T-shirt sale",
                    "amount": "45.00",
                    "type": "Income",
                    "category": "Projects & Activities",
                    "bank_account_id": "acc-main",
                    "inventory_link_id": "item-tshirt",
                    "inventory_variant": "M",
                    "inventory_quantity": 1,
                }
            ]
        }
    }


class TransactionUpdateRequest(BaseModel):
    """거래 부분 수정 요청"""

    date: str | None = None
    description: str | None = None
    amount: Decimal | None = None
    type: TransactionType | None = None
    category: Category | None = None
    status: TransactionStatus | None = None
    purpose: str | None = None
    bank_account_id: str | None = None
    project_id: str | None = None
    member_id: str | None = None
    reference_number: str | None = None
    payment_request_id: str | None = None
    year: int | None = None
    bucket: Bucket | None = None
    inventory_link_id: str | None = None
    inventory_variant: str | None = None
    inventory_quantity: int | None = None


class SplitItem(BaseModel):
    """분할 항목 (id 없으면 신규)"""

    id: str | None = None
    category: Category
    amount: Decimal
    description: str = ""
    project_id: str | None = None
    member_id: str | None = None
    purpose: str | None = None
    payment_request_id: str | None = None
    year: int | None = None


class SplitUpsertRequest(BaseModel):
    """분할 일괄 upsert 요청"""

    splits: list[SplitItem] = Field(..., min_length=1)
    actor: str = "System"


class SplitUpdateRequest(BaseModel):
    """분할 부분 수정 요청"""

    category: Category | None = None
    amount: Decimal | None = None
    description: str | None = None
    project_id: str | None = None
    member_id: str | None = None
    purpose: str | None = None
    year: int | None = None


class BatchCategoryRequest(BaseModel):
    """카테고리 일괄 변경"""

    ids: list[str] = Field(..., min_length=1)
    category: Category


class BatchDeleteRequest(BaseModel):
    """거래 일괄 삭제"""

    ids: list[str] = Field(..., min_length=1)


class AccountCreateRequest(BaseModel):
    name: str = Field(..., min_length=1)
    currency: str = "MYR"
    initial_balance: Decimal = Decimal("0")


class AccountUpdateRequest(BaseModel):
    name: str | None = None
    currency: str | None = None
    initial_balance: Decimal | None = None


class ReconcileRequest(BaseModel):
    """정산 요청"""

    statement_balance: Decimal
    date: str = Field(..., description="정산 기준일")
    actor: str = "System"
    notes: str | None = None
    category_filter: Bucket | None = None


class DuesPaymentRequest(BaseModel):
    """회비 납부 요청"""

    member_id: str
    year: int
    amount: Decimal
    payment_date: str


class VariantItem(BaseModel):
    size: str
    quantity: int = 0


class ItemCreateRequest(BaseModel):
    """재고 품목 생성"""

    name: str = Field(..., min_length=1)
    category: str = "Merchandise"
    quantity: int = 0
    variants: list[VariantItem] = Field(default_factory=list)
    location: str | None = None
    purchase_price: Decimal | None = None


class StockAdjustRequest(BaseModel):
    """재고 수동 조정"""

    variant: str | None = None
    delta: int
    reason: str = Field(..., min_length=1)
    actor: str = "System"


class MerchandiseMovementRequest(BaseModel):
    """상품 매입/판매 (재고와 거래 연결)"""

    quantity: int = Field(..., gt=0)
    transaction_id: str
    unit_cost: Decimal | None = Field(default=None, description="매입 시 단가")
    actor: str = "System"


class CheckOutRequest(BaseModel):
    member_id: str = Field(..., min_length=1)
