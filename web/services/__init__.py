"""
Web 서비스 패키지

도메인 객체 → 응답 dict 변환
"""

from web.services.serializers import document, documents

__all__ = [
    "document",
    "documents",
]
