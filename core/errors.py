"""
예외 정의

검증 오류(호출자 수정 가능)와 저장소 오류를 구분.
검증 오류는 해당 작업의 첫 쓰기 이전에 발생하므로 부분 쓰기를 남기지 않음.
"""

from decimal import Decimal


class LedgerError(Exception):
    """Ledger 엔진 예외 기본 클래스"""
    pass


# -------------------------------------------------------------------------
# 검증 오류
# -------------------------------------------------------------------------


class ValidationError(LedgerError):
    """입력 검증 오류"""
    pass


class SplitSumMismatch(ValidationError):
    """분할 금액 합계가 부모 거래 금액과 다름"""

    def __init__(self, split_total: Decimal, parent_amount: Decimal):
        self.split_total = split_total
        self.parent_amount = parent_amount
        super().__init__(
            f"Split amounts ({split_total}) must equal parent transaction amount ({parent_amount})"
        )


class SplitCategoryConflict(ValidationError):
    """분할된 거래의 카테고리 직접 변경 시도"""
    pass


class InsufficientInventory(ValidationError):
    """재고 부족"""

    def __init__(self, available: int, requested: int):
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient inventory: {available} available, {requested} requested"
        )


class EligibilityViolation(ValidationError):
    """회원 유형별 회비 갱신 자격 위반"""

    def __init__(self, member_id: str, reason: str):
        self.member_id = member_id
        self.reason = reason
        super().__init__(reason)


class NotFoundError(ValidationError):
    """대상 레코드 없음"""

    entity = "Record"

    def __init__(self, record_id: str):
        self.record_id = record_id
        super().__init__(f"{self.entity} not found: {record_id}")


class AccountNotFound(NotFoundError):
    entity = "Bank account"


class TransactionNotFound(NotFoundError):
    entity = "Transaction"


class ParentNotFound(NotFoundError):
    entity = "Parent transaction"


class SplitNotFound(NotFoundError):
    entity = "Split"


class ItemNotFound(NotFoundError):
    entity = "Inventory item"


class MemberNotFound(NotFoundError):
    entity = "Member"


# -------------------------------------------------------------------------
# 저장소 오류
# -------------------------------------------------------------------------


class GatewayError(LedgerError):
    """Persistence Gateway 오류 (재시도 없이 호출자에게 전달)"""
    pass


class RecordNotFound(GatewayError):
    """update 대상 문서 없음"""

    def __init__(self, collection: str, record_id: str):
        self.collection = collection
        self.record_id = record_id
        super().__init__(f"No document to update: {collection}/{record_id}")
