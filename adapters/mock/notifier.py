"""
Mock 알림 서비스

테스트용 Mock Notifier.
INotifier Protocol 준수.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any


@dataclass
class NotificationRecord:
    """알림 기록"""

    message: str
    level: str
    extra: dict[str, Any] | None
    timestamp: datetime
    sent: bool
    member_id: str | None = None
    title: str | None = None


class MockNotifier:
    """Mock 알림 서비스

    INotifier Protocol 구현.
    발송된 모든 알림을 기록하여 테스트에서 검증 가능.

    사용 예시:
    ```python
    notifier = MockNotifier()

    await notifier.notify_member("m1", "Membership Dues Renewal for 2026", "...")

    assert notifier.message_count == 1
    assert notifier.for_member("m1")[0].title.endswith("2026")
    ```
    """

    def __init__(self, should_fail: bool = False):
        """
        Args:
            should_fail: True면 모든 발송 실패 (에러 시나리오 테스트용)
        """
        self.should_fail = should_fail
        self.notifications: list[NotificationRecord] = []

    async def send(
        self,
        message: str,
        level: str = "INFO",
        extra: dict[str, Any] | None = None,
    ) -> bool:
        """알림 전송"""
        self.notifications.append(
            NotificationRecord(
                message=message,
                level=level,
                extra=extra,
                timestamp=datetime.now(timezone.utc),
                sent=not self.should_fail,
                member_id=(extra or {}).get("member_id"),
                title=(extra or {}).get("title"),
            )
        )
        return not self.should_fail

    async def notify_member(
        self,
        member_id: str,
        title: str,
        message: str,
        level: str = "INFO",
    ) -> bool:
        """회원 대상 알림 전송"""
        return await self.send(
            message=message,
            level=level,
            extra={"member_id": member_id, "title": title},
        )

    # -------------------------------------------------------------------------
    # 테스트 헬퍼 메서드
    # -------------------------------------------------------------------------

    def clear(self) -> None:
        """알림 기록 초기화"""
        self.notifications.clear()

    def for_member(self, member_id: str) -> list[NotificationRecord]:
        """특정 회원 대상 알림 조회"""
        return [n for n in self.notifications if n.member_id == member_id]

    @property
    def last_notification(self) -> NotificationRecord | None:
        """마지막 알림 조회"""
        return self.notifications[-1] if self.notifications else None

    @property
    def message_count(self) -> int:
        """전체 알림 수"""
        return len(self.notifications)

    @property
    def sent_count(self) -> int:
        """성공적으로 발송된 알림 수"""
        return sum(1 for n in self.notifications if n.sent)
