"""
회비 라우트

연회비 갱신, 리마인더, 현황, 회원 목록, 납부 처리
"""

from typing import Any

from fastapi import APIRouter, Depends, Query

from core.types import MembershipType, PaymentStatus
from engine.bootstrap import Ledger
from web.dependencies import get_ledger
from web.models import DuesPaymentRequest, IdResponse, RenewalResponse

router = APIRouter(prefix="/api/dues", tags=["Dues"])


@router.post("/{year}/renewal", response_model=RenewalResponse)
async def initiate_renewal(year: int, ledger: Ledger = Depends(get_ledger)) -> RenewalResponse:
    """전체 회원 연회비 거래 생성 + 알림"""
    result = await ledger.initiate_dues_renewal(year)
    return RenewalResponse(**result.to_dict())


@router.post("/{year}/reminders")
async def send_reminders(
    year: int,
    days_overdue: int | None = Query(default=None, ge=0),
    ledger: Ledger = Depends(get_ledger),
) -> dict[str, int]:
    sent = await ledger.send_dues_reminders(year, days_overdue)
    return {"reminders_sent": sent}


@router.get("/{year}/status")
async def renewal_status(year: int, ledger: Ledger = Depends(get_ledger)) -> dict[str, Any]:
    return await ledger.get_dues_renewal_status(year)


@router.get("/members")
async def members_dues_list(
    membership_type: MembershipType | None = Query(default=None),
    dues_year: int | None = Query(default=None),
    payment_status: PaymentStatus | None = Query(default=None),
    member_category: str | None = Query(default=None, pattern="^(renewal|new)$"),
    ledger: Ledger = Depends(get_ledger),
) -> list[dict[str, Any]]:
    entries = await ledger.get_members_dues_list(
        membership_type, dues_year, payment_status, member_category
    )
    return [entry.to_dict() for entry in entries]


@router.post("/payments", response_model=IdResponse)
async def process_payment(
    body: DuesPaymentRequest,
    ledger: Ledger = Depends(get_ledger),
) -> IdResponse:
    """회비 납부 처리 (대기 거래를 Cleared로 변경)"""
    transaction_id = await ledger.process_dues_payment(
        body.member_id, body.year, body.amount, body.payment_date
    )
    return IdResponse(id=transaction_id)
