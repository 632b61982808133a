"""
Mock Notifier 테스트

MockNotifier 테스트.
"""

import pytest

from adapters.mock.notifier import MockNotifier


class TestMockNotifier:
    """MockNotifier 테스트"""

    @pytest.fixture
    def notifier(self) -> MockNotifier:
        return MockNotifier()

    @pytest.mark.asyncio
    async def test_send_records_message(self, notifier: MockNotifier) -> None:
        """메시지 기록 확인"""
        result = await notifier.send("테스트 메시지", level="WARNING", extra={"key": "value"})

        record = notifier.notifications[0]
        assert result is True
        assert record.message == "테스트 메시지"
        assert record.level == "WARNING"
        assert record.extra == {"key": "value"}
        assert record.sent is True
        assert record.member_id is None

    @pytest.mark.asyncio
    async def test_send_fail_mode(self) -> None:
        """실패 모드"""
        notifier = MockNotifier(should_fail=True)

        result = await notifier.notify_member("m1", "Dues", "pay")

        assert result is False
        assert notifier.sent_count == 0
        assert notifier.message_count == 1

    @pytest.mark.asyncio
    async def test_notify_member(self, notifier: MockNotifier) -> None:
        """회원 대상 알림 기록"""
        await notifier.notify_member("m1", "Membership Dues Renewal for 2026", "RM 300 due")
        await notifier.notify_member("m2", "Dues Reminder", "overdue", level="WARNING")

        assert [n.title for n in notifier.for_member("m1")] == ["Membership Dues Renewal for 2026"]
        assert notifier.last_notification.member_id == "m2"
        assert notifier.last_notification.level == "WARNING"

    @pytest.mark.asyncio
    async def test_clear(self, notifier: MockNotifier) -> None:
        await notifier.send("a")
        notifier.clear()

        assert notifier.message_count == 0
        assert notifier.last_notification is None
