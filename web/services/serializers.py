"""
응답 직렬화

도메인 모델(to_dict는 id 제외)을 API 응답 dict로 변환.
"""

from typing import Any, Iterable


def document(model: Any) -> dict[str, Any]:
    """id를 포함한 응답 dict"""
    return {"id": model.id, **model.to_dict()}


def documents(models: Iterable[Any]) -> list[dict[str, Any]]:
    return [document(m) for m in models]
