"""
설정 로더

settings.yaml 로드 및 애플리케이션 설정 생성
"""

import os
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from core.constants import CONFIG_ENV_VAR, PROJECT_ROOT, Defaults, Paths


@dataclass(frozen=True)
class AppConfig:
    """애플리케이션 설정 (settings.yaml에서 로드)

    불변 데이터 구조로 설정 변경 방지
    """

    db_path: Path
    web_secret_key: str
    web_host: str = Defaults.WEB_HOST
    web_port: int = Defaults.WEB_PORT
    default_currency: str = Defaults.CURRENCY
    rate_overrides: dict[str, Decimal] = field(default_factory=dict)
    cache_ttl_seconds: int = Defaults.CACHE_TTL_SECONDS
    cache_max_size: int = Defaults.CACHE_MAX_SIZE
    alert_threshold: int = Defaults.ALERT_THRESHOLD


class ConfigLoadError(Exception):
    """설정 로드 실패 예외"""

    pass


def _resolve_db_path(raw: Any) -> Path:
    if not raw:
        return Paths.DEFAULT_DB
    path = Path(str(raw))
    if str(path) == ":memory:" or path.is_absolute():
        return path
    return PROJECT_ROOT / path


def _parse_rates(raw: Any) -> dict[str, Decimal]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigLoadError("currency.rates는 {통화코드: 환율} 형식이어야 합니다")

    rates: dict[str, Decimal] = {}
    for code, value in raw.items():
        try:
            rate = Decimal(str(value))
        except InvalidOperation as e:
            raise ConfigLoadError(f"currency.rates.{code} 값이 숫자가 아닙니다: {value}") from e
        if rate <= 0:
            raise ConfigLoadError(f"currency.rates.{code} 값은 0보다 커야 합니다")
        rates[str(code).upper()] = rate
    return rates


def load_config(path: Path | None = None) -> AppConfig:
    """settings.yaml 파일 로드

    Args:
        path: settings.yaml 경로 (None이면 환경 변수 또는 기본 경로 사용)

    Returns:
        AppConfig 인스턴스

    Raises:
        ConfigLoadError: 파일이 없거나 형식이 잘못된 경우
    """
    if path is None:
        env_path = os.environ.get(CONFIG_ENV_VAR)
        path = Path(env_path) if env_path else Paths.SETTINGS_FILE

    if not path.exists():
        raise ConfigLoadError(f"settings.yaml 파일을 찾을 수 없습니다: {path}")

    try:
        content = path.read_text(encoding="utf-8")
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigLoadError(f"settings.yaml 파싱 실패: {e}") from e

    if data is None:
        raise ConfigLoadError("settings.yaml이 비어 있습니다")

    web_config = data.get("web") or {}
    web_secret_key = web_config.get("secret_key", "")
    if not web_secret_key:
        raise ConfigLoadError("settings.yaml의 web 섹션에 'secret_key'가 없습니다")

    database_config = data.get("database") or {}
    currency_config = data.get("currency") or {}
    cache_config = data.get("cache") or {}
    budget_config = data.get("budget") or {}

    default_currency = str(currency_config.get("default", Defaults.CURRENCY)).upper()
    if len(default_currency) != 3:
        raise ConfigLoadError(
            f"currency.default는 3자리 통화 코드여야 합니다: '{default_currency}'"
        )

    try:
        return AppConfig(
            db_path=_resolve_db_path(database_config.get("path")),
            web_secret_key=web_secret_key,
            web_host=web_config.get("host", Defaults.WEB_HOST),
            web_port=int(web_config.get("port", Defaults.WEB_PORT)),
            default_currency=default_currency,
            rate_overrides=_parse_rates(currency_config.get("rates")),
            cache_ttl_seconds=int(cache_config.get("ttl_seconds", Defaults.CACHE_TTL_SECONDS)),
            cache_max_size=int(cache_config.get("max_size", Defaults.CACHE_MAX_SIZE)),
            alert_threshold=int(budget_config.get("alert_threshold", Defaults.ALERT_THRESHOLD)),
        )
    except (TypeError, ValueError) as e:
        raise ConfigLoadError(f"settings.yaml 값 형식 오류: {e}") from e


class Settings:
    """애플리케이션 설정 (싱글턴 패턴)

    settings.yaml을 로드하고 관련 설정을 제공
    """

    _instance: "Settings | None" = None
    _config: AppConfig | None = None

    def __new__(cls, config_path: Path | None = None) -> "Settings":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, config_path: Path | None = None) -> None:
        if self._config is None:
            type(self)._config = load_config(config_path)

    @property
    def config(self) -> AppConfig:
        assert self._config is not None
        return self._config

    @property
    def db_path(self) -> Path:
        """DB 경로"""
        return self.config.db_path

    @property
    def web_secret_key(self) -> str:
        """세션 JWT 서명 키"""
        return self.config.web_secret_key

    @property
    def default_currency(self) -> str:
        """회사 설정이 없을 때 사용하는 기본 통화"""
        return self.config.default_currency

    @property
    def rate_overrides(self) -> dict[str, Decimal]:
        """환율표 덮어쓰기 (1 USD 기준)"""
        return self.config.rate_overrides

    @property
    def alert_threshold(self) -> int:
        """예산 알림 기본 임계값 (%)"""
        return self.config.alert_threshold

    @classmethod
    def reset(cls) -> None:
        """싱글턴 인스턴스 초기화 (테스트용)"""
        cls._instance = None
        cls._config = None


def get_settings(config_path: Path | None = None) -> Settings:
    """Settings 인스턴스 반환

    Args:
        config_path: settings.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        Settings 싱글턴 인스턴스
    """
    return Settings(config_path)
