"""
하드코딩 상수 - 변경될 일이 거의 없는 고정값

중요: 경로는 반드시 pathlib.Path 사용 (Windows/Linux 크로스 플랫폼)
"""

from decimal import Decimal
from pathlib import Path


# 프로젝트 루트 (이 파일 기준 2단계 상위: core/constants.py → ledgerline/)
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent


class Defaults:
    """기본값 상수"""

    CURRENCY: str = "USD"
    ALERT_THRESHOLD: int = 90
    WARNING_PERCENT: int = 90
    OVER_BUDGET_PERCENT: int = 100

    # 분석/환율 결과 캐시
    CACHE_TTL_SECONDS: int = 300
    CACHE_MAX_SIZE: int = 50

    WEB_HOST: str = "127.0.0.1"
    WEB_PORT: int = 8000

    LOG_LEVEL: str = "INFO"

    # 세션 토큰
    JWT_ALGORITHM: str = "HS256"
    SESSION_COOKIE: str = "token"


class Money:
    """금액 정밀도"""

    # 환산 금액은 소수점 2자리로 반올림 (ROUND_HALF_UP)
    QUANT: Decimal = Decimal("0.01")
    ZERO: Decimal = Decimal("0")
    HUNDRED: Decimal = Decimal("100")


class Paths:
    """프로젝트 경로 상수 (pathlib 사용 - OS 독립적)"""

    # 디렉토리
    CONFIG_DIR: Path = PROJECT_ROOT / "config"
    DATA_DIR: Path = PROJECT_ROOT / "data"
    LOGS_DIR: Path = PROJECT_ROOT / "logs"
    WEB_LOGS_DIR: Path = LOGS_DIR / "web"
    CLI_LOGS_DIR: Path = LOGS_DIR / "cli"

    # 설정 파일
    SETTINGS_FILE: Path = CONFIG_DIR / "settings.yaml"

    # DB 파일
    DEFAULT_DB: Path = DATA_DIR / "ledgerline.db"


# 설정 파일 경로 환경 변수
CONFIG_ENV_VAR: str = "LEDGERLINE_CONFIG"

# 카테고리 없는 거래의 가상 버킷
UNCATEGORIZED_ID: str = "uncategorized"
UNCATEGORIZED_NAME: str = "Uncategorized"

# API 버전 (OpenAPI / 헬스 체크)
APP_VERSION: str = "1.0.0"
