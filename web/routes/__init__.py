"""
API 라우트 패키지

각 기능별 라우터 모듈:
- health: 헬스 체크
- transactions: 거래 CRUD/조회/일괄 작업
- splits: 거래 분할
- accounts: 은행 계좌, 잔고, 정산
- dues: 연회비 갱신/납부
- inventory: 재고 품목/조정/재고 카드
- reports: 재무 보고서
"""
