"""
Log Notifier

Slack Webhook이 설정되지 않은 환경에서 사용하는 INotifier 구현.
알림을 로그로만 남김.
"""

import logging
from typing import Any

logger = logging.getLogger("notifications")


class LogNotifier:
    """로그 기록 알림 서비스 (INotifier Protocol 구현)"""

    async def send(
        self,
        message: str,
        level: str = "INFO",
        extra: dict[str, Any] | None = None,
    ) -> bool:
        logger.log(logging.getLevelName(level.upper()), message, extra={"notification": extra or {}})
        return True

    async def notify_member(
        self,
        member_id: str,
        title: str,
        message: str,
        level: str = "INFO",
    ) -> bool:
        return await self.send(f"[{member_id}] {title}: {message}", level)
