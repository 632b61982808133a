"""
Reconciler 모듈

은행 명세서 대사와 불일치 감지
"""

from engine.reconciler.detector import DiscrepancyDetector
from engine.reconciler.reconciler import Reconciler

__all__ = [
    "Reconciler",
    "DiscrepancyDetector",
]
