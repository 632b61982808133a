"""
타입 정의 모듈

Enum, Dataclass 등 핵심 타입 정의
모든 Enum은 str을 상속하여 문자열 직렬화 가능
"""

from dataclasses import dataclass
from enum import Enum


class AppMode(str, Enum):
    """실행 모드 (개발 / 운영)"""

    DEVELOPMENT = "development"
    PRODUCTION = "production"


class TransactionType(str, Enum):
    """거래 방향 (수입 / 지출)"""

    INCOME = "Income"
    EXPENSE = "Expense"

    @property
    def sign(self) -> int:
        """잔고 계산 부호 (Income: +1, Expense: -1)"""
        return 1 if self is TransactionType.INCOME else -1


class Category(str, Enum):
    """회계 카테고리

    UNSET("")은 분할(split)된 부모 거래에서만 허용.
    """

    PROJECTS = "Projects & Activities"
    MEMBERSHIP = "Membership"
    ADMINISTRATIVE = "Administrative"
    UNSET = ""

    @property
    def is_real(self) -> bool:
        """분할 항목에 사용할 수 있는 실제 카테고리 여부"""
        return self is not Category.UNSET


class TransactionStatus(str, Enum):
    """거래 상태"""

    PENDING = "Pending"
    CLEARED = "Cleared"
    RECONCILED = "Reconciled"


class Bucket(str, Enum):
    """잔고 집계 버킷 (리포트/정산 분류)"""

    PROJECT = "project"
    OPERATIONS = "operations"
    DUES = "dues"
    MERCHANDISE = "merchandise"

    @classmethod
    def for_category(cls, category: "Category | str | None") -> "Bucket":
        """카테고리 → 버킷 매핑 (알 수 없는 값은 operations)"""
        if category == Category.PROJECTS or category == Category.PROJECTS.value:
            return cls.PROJECT
        if category == Category.MEMBERSHIP or category == Category.MEMBERSHIP.value:
            return cls.DUES
        return cls.OPERATIONS


class DiscrepancyType(str, Enum):
    """정산 불일치 유형"""

    AMOUNT_MISMATCH = "amount_mismatch"
    DUPLICATE = "duplicate"


class ReconciliationStatus(str, Enum):
    """정산 기록 상태"""

    COMPLETED = "completed"
    IN_PROGRESS = "in_progress"


class MovementType(str, Enum):
    """재고 이동 유형"""

    IN = "In"
    OUT = "Out"
    ADJUSTMENT = "Adjustment"


class StockOperation(str, Enum):
    """재고 수량 연산"""

    INCREMENT = "increment"
    DECREMENT = "decrement"

    def signed(self, quantity: int) -> int:
        """연산 방향을 반영한 부호 있는 수량"""
        return quantity if self is StockOperation.INCREMENT else -quantity

    @property
    def movement_type(self) -> MovementType:
        return MovementType.IN if self is StockOperation.INCREMENT else MovementType.OUT

    @property
    def reason(self) -> str:
        return "Restock" if self is StockOperation.INCREMENT else "Sale"


class ItemStatus(str, Enum):
    """재고 품목 상태"""

    AVAILABLE = "Available"
    LOW_STOCK = "Low Stock"
    OUT_OF_STOCK = "Out of Stock"
    CHECKED_OUT = "Checked Out"


class MembershipType(str, Enum):
    """회원 유형"""

    PROBATION = "Probation"
    FULL = "Full"
    HONORARY = "Honorary"
    SENATOR = "Senator"
    VISITING = "Visiting"


class DuesStatus(str, Enum):
    """회비 납부 상태 (회원 레코드)"""

    PAID = "Paid"
    PENDING = "Pending"
    OVERDUE = "Overdue"


class PaymentStatus(str, Enum):
    """회비 목록 표시용 납부 상태"""

    PAID = "paid"
    PENDING = "pending"
    OVERDUE = "overdue"


class Collection(str, Enum):
    """Persistence Gateway 컬렉션 이름"""

    TRANSACTIONS = "transactions"
    TRANSACTION_SPLITS = "transaction_splits"
    BANK_ACCOUNTS = "bank_accounts"
    RECONCILIATIONS = "reconciliations"
    INVENTORY_ITEMS = "inventory_items"
    STOCK_MOVEMENTS = "stock_movements"
    MEMBERS = "members"


@dataclass(frozen=True)
class BatchResult:
    """배치 작업 결과 (불변)

    항목별 성공/실패를 독립적으로 집계.
    """

    updated: int
    errors: tuple[str, ...] = ()

    @property
    def failed(self) -> int:
        return len(self.errors)

    def to_dict(self) -> dict:
        return {"updated": self.updated, "errors": list(self.errors)}
