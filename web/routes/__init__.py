"""
API 라우트 패키지

각 기능별 라우터 모듈:
- health: 헬스 체크
- accounts: 금융 계좌 / 잔액 재계산
- budgets: 예산 / 예산 항목 CRUD, 대비 실적, 알림, 집행 추적
- categories: 예산 카테고리 CRUD
- currency: 통화 설정 / 환산
- transactions: 거래 조회 / 수동 입력
- sync: Sales / Inventory 동기화
- recurring: 반복 거래 일정 / 도래분 처리
- projects: 프로젝트 재무 요약
- reports: 재무 리포트
"""
