"""
도메인 예외 정의

모든 재무 엔진 예외는 FinanceError를 상속.
status_code는 Web 계층의 예외 핸들러가 HTTP 상태로 그대로 사용.
"""

from typing import Any


class FinanceError(Exception):
    """재무 엔진 예외 기본 클래스"""

    status_code: int = 500
    code: str = "finance_error"

    def __init__(self, message: str, details: Any = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.message, "code": self.code}
        if self.details is not None:
            body["details"] = self.details
        return body


class Unauthorized(FinanceError):
    """세션이 없거나 유효하지 않음"""

    status_code = 401
    code = "unauthorized"


class NotFoundError(FinanceError):
    """대상이 없거나 호출자 회사 소유가 아님"""

    status_code = 404
    code = "not_found"


class CompanyNotFound(NotFoundError):
    code = "company_not_found"


class AccountNotFound(NotFoundError):
    code = "account_not_found"


class BudgetNotFound(NotFoundError):
    code = "budget_not_found"


class TransactionNotFound(NotFoundError):
    code = "transaction_not_found"


class ProjectNotFound(NotFoundError):
    code = "project_not_found"


class CategoryNotFound(NotFoundError):
    code = "category_not_found"


class BudgetItemNotFound(NotFoundError):
    code = "budget_item_not_found"


class RecurringScheduleNotFound(NotFoundError):
    code = "recurring_schedule_not_found"


class ValidationError(FinanceError):
    """요청/입력 값 검증 실패 (필드 단위 details 포함)"""

    status_code = 400
    code = "validation_error"


class UnsupportedCurrency(FinanceError):
    """지원하지 않는 통화 코드"""

    status_code = 400
    code = "unsupported_currency"

    def __init__(self, currency: str):
        super().__init__(f"Unsupported currency: {currency}")
        self.currency = currency


class NoAccountConfigured(FinanceError):
    """동기화 대상 bank/cash 계좌 없음 (회사 설정 오류)"""

    status_code = 500
    code = "no_account_configured"

    def __init__(self, company_id: str):
        super().__init__(
            f"No bank or cash account configured for company {company_id}. "
            "Create a financial account before recording sales or inventory purchases."
        )
        self.company_id = company_id
