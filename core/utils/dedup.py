"""
Source Key 생성 유틸리티

동기화기가 만든 거래의 멱등성 키(source_key) 생성 함수 제공.
ledger_transaction.source_key는 UNIQUE 제약이 있어 재시도 시 중복 삽입 불가.
"""


def make_sale_source_key(company_id: str, sale_id: str) -> str:
    """판매 문서 거래용 source_key 생성

    판매 1건당 거래 1건.

    Args:
        company_id: 회사 ID
        sale_id: 판매 문서 ID

    Returns:
        source_key: {company_id}:sale:{sale_id}

    Example:
        >>> make_sale_source_key("c1", "s-100")
        'c1:sale:s-100'
    """
    return f"{company_id}:sale:{sale_id}"


def make_inventory_source_key(
    company_id: str,
    item_id: str,
    event_id: str,
) -> str:
    """재고 입고 이벤트 거래용 source_key 생성

    재고 품목 1개에 여러 입고 거래가 생길 수 있으므로 이벤트 ID로 구분.

    Args:
        company_id: 회사 ID
        item_id: 재고 품목 ID
        event_id: 수량 변경 이벤트 ID (호출자가 부여)

    Returns:
        source_key: {company_id}:inventory:{item_id}:{event_id}

    Example:
        >>> make_inventory_source_key("c1", "item-7", "evt-1")
        'c1:inventory:item-7:evt-1'
    """
    return f"{company_id}:inventory:{item_id}:{event_id}"


def make_recurring_source_key(company_id: str, schedule_id: str, due_date: str) -> str:
    """반복 거래 발생분용 source_key 생성

    일정 1개의 예정일 1개당 거래 1건. 처리 재시도 시 같은 날짜 중복 생성 방지.

    Example:
        >>> make_recurring_source_key("c1", "rec-1", "2024-03-01")
        'c1:recurring:rec-1:2024-03-01'
    """
    return f"{company_id}:recurring:{schedule_id}:{due_date}"
