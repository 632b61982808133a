"""
Ledger 도메인 모델

Transaction, TransactionSplit, BankAccount, ReconciliationRecord,
InventoryItem, StockMovement, Member.

Gateway 문서(dict) ↔ 도메인 객체 변환은 to_dict()/from_dict()로 수행.
- 금액: Decimal (저장 시 문자열)
- 날짜: UTC ISO-8601 문자열
- None 필드는 저장 문서에서 제외
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from core.types import (
    Bucket,
    Category,
    DiscrepancyType,
    DuesStatus,
    ItemStatus,
    MembershipType,
    MovementType,
    ReconciliationStatus,
    TransactionStatus,
    TransactionType,
)
from core.utils.money import money_str, to_decimal


def strip_none(data: dict[str, Any]) -> dict[str, Any]:
    """값이 None인 키 제거 (저장 전 정리)"""
    return {k: v for k, v in data.items() if v is not None}


def _opt_decimal(value: Any) -> Decimal | None:
    return None if value is None or value == "" else to_decimal(value)


def _opt_str(value: Decimal | None) -> str | None:
    return None if value is None else money_str(value)


def _opt_int(value: Any) -> int | None:
    return None if value is None or value == "" else int(value)


# =========================================================================
# 분할 상태 (Unsplit / Split)
# =========================================================================


@dataclass(frozen=True)
class Unsplit:
    """분할되지 않은 거래: 자체 카테고리 보유"""

    category: Category

    @property
    def is_split(self) -> bool:
        return False


@dataclass(frozen=True)
class Split:
    """분할된 거래: 원래 카테고리 보존 + 활성 분할 ID 목록

    Split에서 벗어나는 유일한 전이는 restore().
    """

    original_category: Category
    split_ids: tuple[str, ...]

    @property
    def is_split(self) -> bool:
        return True

    def with_ids(self, split_ids: list[str]) -> "Split":
        """분할 ID 목록만 교체"""
        return Split(original_category=self.original_category, split_ids=tuple(split_ids))

    def restore(self) -> Unsplit:
        """마지막 분할 제거 시 원래 카테고리 복원"""
        return Unsplit(category=self.original_category)


SplitState = Unsplit | Split


# =========================================================================
# Transaction
# =========================================================================


@dataclass
class Transaction:
    """거래 (Ledger 기본 항목)

    amount는 항상 양수, 방향은 type으로 표현.
    재고 연결 3요소(inventory_link_id, inventory_variant, inventory_quantity)는
    전부 있거나 전부 없어야 함.
    """

    id: str
    date: str
    description: str
    amount: Decimal
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
    bucket: Bucket | None = None  # 명시적 버킷 (없으면 카테고리로 매핑)

    # 분할
    is_split: bool = False
    split_ids: list[str] = field(default_factory=list)
    original_category: Category | None = None

    # 재고 연결
    inventory_link_id: str | None = None
    inventory_variant: str | None = None
    inventory_quantity: int | None = None

    # 감사 필드
    created_at: str | None = None
    updated_at: str | None = None
    reconciled_at: str | None = None
    reconciled_by: str | None = None

    @property
    def signed_amount(self) -> Decimal:
        """잔고 계산용 부호 있는 금액 (Income: +, Expense: -)"""
        return abs(self.amount) * self.type.sign

    @property
    def has_inventory_link(self) -> bool:
        """재고 연결 3요소 완비 여부

        variant가 빈 문자열이면 variant 미선언 품목(암묵적 단일 variant)을 의미.
        """
        return (
            bool(self.inventory_link_id)
            and self.inventory_variant is not None
            and bool(self.inventory_quantity)
        )

    @property
    def split_state(self) -> SplitState:
        """분할 상태 (Unsplit / Split)"""
        if self.is_split:
            original = self.original_category or Category.UNSET
            return Split(original_category=original, split_ids=tuple(self.split_ids))
        return Unsplit(category=self.category)

    @property
    def effective_bucket(self) -> Bucket:
        """비분할 거래의 집계 버킷"""
        if self.bucket is not None:
            return self.bucket
        return Bucket.for_category(self.category)

    def to_dict(self) -> dict[str, Any]:
        """저장 문서로 변환 (id 제외, None 필드 제외)"""
        return strip_none({
            "date": self.date,
            "description": self.description,
            "amount": money_str(self.amount),
            "type": self.type.value,
            "category": self.category.value,
            "status": self.status.value,
            "purpose": self.purpose,
            "bank_account_id": self.bank_account_id,
            "project_id": self.project_id,
            "member_id": self.member_id,
            "reference_number": self.reference_number,
            "payment_request_id": self.payment_request_id,
            "year": self.year,
            "bucket": self.bucket.value if self.bucket else None,
            "is_split": self.is_split,
            "split_ids": list(self.split_ids) if self.is_split else None,
            "original_category": self.original_category.value if self.original_category is not None else None,
            "inventory_link_id": self.inventory_link_id,
            "inventory_variant": self.inventory_variant,
            "inventory_quantity": self.inventory_quantity,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "reconciled_at": self.reconciled_at,
            "reconciled_by": self.reconciled_by,
        })

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "Transaction":
        """저장 문서에서 생성"""
        original = data.get("original_category")
        bucket = data.get("bucket")
        return Transaction(
            id=data["id"],
            date=data["date"],
            description=data.get("description", ""),
            amount=to_decimal(data.get("amount")),
            type=TransactionType(data["type"]),
            category=Category(data.get("category") or ""),
            status=TransactionStatus(data.get("status", TransactionStatus.PENDING.value)),
            purpose=data.get("purpose"),
            bank_account_id=data.get("bank_account_id"),
            project_id=data.get("project_id"),
            member_id=data.get("member_id"),
            reference_number=data.get("reference_number"),
            payment_request_id=data.get("payment_request_id"),
            year=_opt_int(data.get("year")),
            bucket=Bucket(bucket) if bucket else None,
            is_split=bool(data.get("is_split", False)),
            split_ids=list(data.get("split_ids") or []),
            original_category=Category(original) if original is not None else None,
            inventory_link_id=data.get("inventory_link_id"),
            inventory_variant=data.get("inventory_variant"),
            inventory_quantity=_opt_int(data.get("inventory_quantity")),
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
            reconciled_at=data.get("reconciled_at"),
            reconciled_by=data.get("reconciled_by"),
        )


@dataclass
class TransactionSplit:
    """거래 분할 항목

    부모 거래 금액의 일부를 다른 카테고리로 배분.
    type은 부모 거래를 따름.
    """

    id: str
    parent_transaction_id: str
    category: Category
    type: TransactionType
    amount: Decimal
    description: str
    project_id: str | None = None
    member_id: str | None = None
    purpose: str | None = None
    payment_request_id: str | None = None
    year: int | None = None
    status: TransactionStatus | None = None
    created_by: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    reconciled_at: str | None = None
    reconciled_by: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return strip_none({
            "parent_transaction_id": self.parent_transaction_id,
            "category": self.category.value,
            "type": self.type.value,
            "amount": money_str(self.amount),
            "description": self.description,
            "project_id": self.project_id,
            "member_id": self.member_id,
            "purpose": self.purpose,
            "payment_request_id": self.payment_request_id,
            "year": self.year,
            "status": self.status.value if self.status else None,
            "created_by": self.created_by,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "reconciled_at": self.reconciled_at,
            "reconciled_by": self.reconciled_by,
        })

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "TransactionSplit":
        status = data.get("status")
        return TransactionSplit(
            id=data["id"],
            parent_transaction_id=data["parent_transaction_id"],
            category=Category(data["category"]),
            type=TransactionType(data["type"]),
            amount=to_decimal(data.get("amount")),
            description=data.get("description", ""),
            project_id=data.get("project_id"),
            member_id=data.get("member_id"),
            purpose=data.get("purpose"),
            payment_request_id=data.get("payment_request_id"),
            year=_opt_int(data.get("year")),
            status=TransactionStatus(status) if status else None,
            created_by=data.get("created_by"),
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
            reconciled_at=data.get("reconciled_at"),
            reconciled_by=data.get("reconciled_by"),
        )


@dataclass(frozen=True)
class SplitInput:
    """분할 upsert 입력 (id 없으면 신규 생성)"""

    category: Category
    amount: Decimal
    description: str = ""
    id: str | None = None
    project_id: str | None = None
    member_id: str | None = None
    purpose: str | None = None
    payment_request_id: str | None = None
    year: int | None = None


# =========================================================================
# BankAccount / Reconciliation
# =========================================================================


@dataclass
class BankAccount:
    """은행 계좌

    balance는 저장 값이 아니라 initial_balance + 거래 합계로 매번 재계산.
    display_balance는 마지막 정산 시 입력된 명세서 잔고 (표시용).
    """

    id: str
    name: str
    currency: str
    initial_balance: Decimal = Decimal("0")
    last_reconciled: str | None = None
    display_balance: Decimal | None = None
    balance: Decimal = Decimal("0")
    created_at: str | None = None
    updated_at: str | None = None

    def to_dict(self) -> dict[str, Any]:
        # balance는 파생 값이므로 저장하지 않음
        return strip_none({
            "name": self.name,
            "currency": self.currency,
            "initial_balance": money_str(self.initial_balance),
            "last_reconciled": self.last_reconciled,
            "display_balance": _opt_str(self.display_balance),
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        })

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "BankAccount":
        return BankAccount(
            id=data["id"],
            name=data.get("name", ""),
            currency=data.get("currency", ""),
            initial_balance=to_decimal(data.get("initial_balance")),
            last_reconciled=data.get("last_reconciled"),
            display_balance=_opt_decimal(data.get("display_balance")),
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
        )


@dataclass(frozen=True)
class ReconciliationDiscrepancy:
    """정산 불일치 (생성 시 resolved=False 고정)"""

    id: str
    type: DiscrepancyType
    expected_amount: Decimal
    actual_amount: Decimal
    description: str
    transaction_id: str | None = None
    resolved: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "transaction_id": self.transaction_id or "",
            "type": self.type.value,
            "expected_amount": money_str(self.expected_amount),
            "actual_amount": money_str(self.actual_amount),
            "description": self.description,
            "resolved": self.resolved,
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "ReconciliationDiscrepancy":
        return ReconciliationDiscrepancy(
            id=data["id"],
            transaction_id=data.get("transaction_id") or None,
            type=DiscrepancyType(data["type"]),
            expected_amount=to_decimal(data.get("expected_amount")),
            actual_amount=to_decimal(data.get("actual_amount")),
            description=data.get("description", ""),
            resolved=bool(data.get("resolved", False)),
        )


@dataclass(frozen=True)
class ReconciliationRecord:
    """정산 기록 (생성 후 불변, 시도마다 1건)"""

    id: str
    bank_account_id: str
    reconciliation_date: str
    statement_balance: Decimal
    system_balance: Decimal
    adjusted_balance: Decimal
    discrepancies: tuple[ReconciliationDiscrepancy, ...]
    status: ReconciliationStatus
    transaction_type_summary: dict[Bucket, Decimal]
    reconciled_by: str
    notes: str | None = None
    created_at: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return strip_none({
            "bank_account_id": self.bank_account_id,
            "reconciliation_date": self.reconciliation_date,
            "statement_balance": money_str(self.statement_balance),
            "system_balance": money_str(self.system_balance),
            "adjusted_balance": money_str(self.adjusted_balance),
            "discrepancies": [d.to_dict() for d in self.discrepancies],
            "status": self.status.value,
            "transaction_type_summary": {
                bucket.value: money_str(amount)
                for bucket, amount in self.transaction_type_summary.items()
            },
            "reconciled_by": self.reconciled_by,
            "notes": self.notes,
            "created_at": self.created_at,
        })

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "ReconciliationRecord":
        summary = data.get("transaction_type_summary") or {}
        return ReconciliationRecord(
            id=data["id"],
            bank_account_id=data["bank_account_id"],
            reconciliation_date=data["reconciliation_date"],
            statement_balance=to_decimal(data.get("statement_balance")),
            system_balance=to_decimal(data.get("system_balance")),
            adjusted_balance=to_decimal(data.get("adjusted_balance")),
            discrepancies=tuple(
                ReconciliationDiscrepancy.from_dict(d) for d in data.get("discrepancies", [])
            ),
            status=ReconciliationStatus(data["status"]),
            transaction_type_summary={
                Bucket(k): to_decimal(v) for k, v in summary.items()
            },
            reconciled_by=data.get("reconciled_by", ""),
            notes=data.get("notes"),
            created_at=data.get("created_at"),
        )


# =========================================================================
# Inventory
# =========================================================================


@dataclass
class InventoryVariant:
    """품목 variant (사이즈별 수량, 음수 허용)"""

    size: str
    quantity: int

    def to_dict(self) -> dict[str, Any]:
        return {"size": self.size, "quantity": self.quantity}


@dataclass
class InventoryItem:
    """재고 품목

    variants가 있으면 quantity = Σ variant.quantity,
    없으면 quantity 자체가 암묵적 단일 variant.
    """

    id: str
    name: str
    category: str = "Merchandise"
    quantity: int = 0
    variants: list[InventoryVariant] = field(default_factory=list)
    status: ItemStatus = ItemStatus.AVAILABLE
    location: str | None = None
    purchase_price: Decimal | None = None
    checked_out_to: str | None = None
    last_transaction_id: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return strip_none({
            "name": self.name,
            "category": self.category,
            "quantity": self.quantity,
            "variants": [v.to_dict() for v in self.variants],
            "status": self.status.value,
            "location": self.location,
            "purchase_price": _opt_str(self.purchase_price),
            "checked_out_to": self.checked_out_to,
            "last_transaction_id": self.last_transaction_id,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        })

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "InventoryItem":
        return InventoryItem(
            id=data["id"],
            name=data.get("name", ""),
            category=data.get("category", "Merchandise"),
            quantity=int(data.get("quantity", 0)),
            variants=[
                InventoryVariant(size=v.get("size", ""), quantity=int(v.get("quantity", 0)))
                for v in data.get("variants") or []
            ],
            status=ItemStatus(data.get("status", ItemStatus.AVAILABLE.value)),
            location=data.get("location"),
            purchase_price=_opt_decimal(data.get("purchase_price")),
            checked_out_to=data.get("checked_out_to"),
            last_transaction_id=data.get("last_transaction_id"),
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
        )


@dataclass(frozen=True)
class StockMovement:
    """재고 이동 기록 (부호 있는 수량: +입고, -출고)"""

    id: str
    item_id: str
    item_name: str
    variant: str | None
    quantity: int
    previous_quantity: int
    new_quantity: int
    type: MovementType
    reason: str
    performed_by: str
    reference_id: str | None = None
    date: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return strip_none({
            "item_id": self.item_id,
            "item_name": self.item_name,
            "variant": self.variant,
            "quantity": self.quantity,
            "previous_quantity": self.previous_quantity,
            "new_quantity": self.new_quantity,
            "type": self.type.value,
            "reason": self.reason,
            "performed_by": self.performed_by,
            "reference_id": self.reference_id,
            "date": self.date,
        })

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "StockMovement":
        return StockMovement(
            id=data["id"],
            item_id=data["item_id"],
            item_name=data.get("item_name", ""),
            variant=data.get("variant"),
            quantity=int(data["quantity"]),
            previous_quantity=int(data.get("previous_quantity", 0)),
            new_quantity=int(data.get("new_quantity", 0)),
            type=MovementType(data["type"]),
            reason=data.get("reason", ""),
            performed_by=data.get("performed_by", ""),
            reference_id=data.get("reference_id"),
            date=data.get("date"),
        )


# =========================================================================
# Member (외부 회원 디렉토리)
# =========================================================================


@dataclass
class Member:
    """회원 정보 (회비 갱신 자격 판정용 최소 필드)"""

    id: str
    name: str
    membership_type: MembershipType | None = None
    date_of_birth: str | None = None
    nationality: str | None = None
    senator_certified: bool = False
    dues_status: DuesStatus | None = None
    dues_year: int | None = None
    dues_paid_date: str | None = None

    @property
    def effective_type(self) -> MembershipType:
        """회원 유형 (미지정 시 Full)"""
        return self.membership_type or MembershipType.FULL

    def to_dict(self) -> dict[str, Any]:
        return strip_none({
            "name": self.name,
            "membership_type": self.membership_type.value if self.membership_type else None,
            "date_of_birth": self.date_of_birth,
            "nationality": self.nationality,
            "senator_certified": self.senator_certified,
            "dues_status": self.dues_status.value if self.dues_status else None,
            "dues_year": self.dues_year,
            "dues_paid_date": self.dues_paid_date,
        })

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "Member":
        membership_type = data.get("membership_type")
        dues_status = data.get("dues_status")
        return Member(
            id=data["id"],
            name=data.get("name", ""),
            membership_type=MembershipType(membership_type) if membership_type else None,
            date_of_birth=data.get("date_of_birth"),
            nationality=data.get("nationality"),
            senator_certified=bool(data.get("senator_certified", False)),
            dues_status=DuesStatus(dues_status) if dues_status else None,
            dues_year=_opt_int(data.get("dues_year")),
            dues_paid_date=data.get("dues_paid_date"),
        )
