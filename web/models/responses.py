"""
응답 스키마 (Pydantic)

Web API 응답 데이터 직렬화.
금액은 문자열(Decimal 정밀도 유지)로 반환.
"""

from typing import Any

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """헬스 체크 응답"""

    status: str = Field(default="ok", description="서비스 상태")
    mode: str = Field(..., description="실행 모드 (development/production)")
    version: str


class IdResponse(BaseModel):
    """생성 결과"""

    id: str


class IdListResponse(BaseModel):
    ids: list[str]


class BatchResponse(BaseModel):
    """배치 작업 결과"""

    updated: int
    errors: list[str] = Field(default_factory=list)


class BalanceResponse(BaseModel):
    """계좌 잔고"""

    total: str
    by_bucket: dict[str, str]
    opening_balance: str


class DiscrepancyResponse(BaseModel):
    id: str
    transaction_id: str | None = None
    type: str
    expected_amount: str
    actual_amount: str
    description: str
    resolved: bool


class ReconcileResponse(BaseModel):
    """정산 결과"""

    record_id: str
    status: str
    discrepancies: list[DiscrepancyResponse] = Field(default_factory=list)


class RenewalResponse(BaseModel):
    total_members: int
    renewals_by_type: dict[str, int]
    notifications_sent: int
    validation_errors: list[dict[str, Any]]


class ErrorResponse(BaseModel):
    error: str
    detail: str
