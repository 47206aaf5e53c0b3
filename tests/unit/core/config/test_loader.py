"""
core/config/loader.py 테스트

settings.yaml 로드, 검증, Settings 싱글턴 테스트
"""

from decimal import Decimal
from pathlib import Path

import pytest

from core.config.loader import AppConfig, ConfigLoadError, Settings, get_settings, load_config
from core.constants import CONFIG_ENV_VAR, PROJECT_ROOT, Defaults, Paths


def _write(temp_dir: Path, content: str) -> Path:
    path = temp_dir / "settings.yaml"
    path.write_text(content, encoding="utf-8")
    return path


class TestLoadConfig:
    """load_config 테스트"""

    def test_minimal_config_uses_defaults(self, temp_dir: Path) -> None:
        """secret_key만 있으면 나머지는 기본값"""
        path = _write(temp_dir, 'web:\n  secret_key: "s3cret"\n')

        config = load_config(path)

        assert config.web_secret_key == "s3cret"
        assert config.db_path == Paths.DEFAULT_DB
        assert config.default_currency == Defaults.CURRENCY
        assert config.cache_ttl_seconds == Defaults.CACHE_TTL_SECONDS
        assert config.alert_threshold == Defaults.ALERT_THRESHOLD
        assert config.rate_overrides == {}

    def test_full_config(self, temp_dir: Path) -> None:
        path = _write(temp_dir, """
database:
  path: data/custom.db
web:
  secret_key: "abc"
  host: 0.0.0.0
  port: 9000
currency:
  default: eur
  rates:
    eur: 0.9
cache:
  ttl_seconds: 60
  max_size: 5
budget:
  alert_threshold: 80
""")

        config = load_config(path)

        assert config.db_path == PROJECT_ROOT / "data" / "custom.db"
        assert config.web_host == "0.0.0.0"
        assert config.web_port == 9000
        assert config.default_currency == "EUR"
        assert config.rate_overrides == {"EUR": Decimal("0.9")}
        assert config.cache_ttl_seconds == 60
        assert config.cache_max_size == 5
        assert config.alert_threshold == 80

    def test_missing_file(self, temp_dir: Path) -> None:
        with pytest.raises(ConfigLoadError, match="찾을 수 없습니다"):
            load_config(temp_dir / "nope.yaml")

    def test_empty_file(self, temp_dir: Path) -> None:
        path = _write(temp_dir, "")

        with pytest.raises(ConfigLoadError, match="비어 있습니다"):
            load_config(path)

    def test_missing_secret_key(self, temp_dir: Path) -> None:
        path = _write(temp_dir, "web:\n  host: 127.0.0.1\n")

        with pytest.raises(ConfigLoadError, match="secret_key"):
            load_config(path)

    def test_invalid_yaml(self, temp_dir: Path) -> None:
        path = _write(temp_dir, "web: [unclosed\n")

        with pytest.raises(ConfigLoadError, match="파싱 실패"):
            load_config(path)

    def test_invalid_currency_code(self, temp_dir: Path) -> None:
        path = _write(temp_dir, 'web:\n  secret_key: "x"\ncurrency:\n  default: DOLLAR\n')

        with pytest.raises(ConfigLoadError, match="currency.default"):
            load_config(path)

    def test_non_positive_rate(self, temp_dir: Path) -> None:
        path = _write(temp_dir, 'web:\n  secret_key: "x"\ncurrency:\n  rates:\n    EUR: 0\n')

        with pytest.raises(ConfigLoadError, match="0보다 커야"):
            load_config(path)

    def test_env_var_path(self, temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """경로 생략 시 환경 변수 사용"""
        path = _write(temp_dir, 'web:\n  secret_key: "from-env"\n')
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))

        config = load_config()

        assert config.web_secret_key == "from-env"


class TestAppConfig:
    """AppConfig 데이터클래스 테스트"""

    def test_frozen(self) -> None:
        config = AppConfig(db_path=Path("x.db"), web_secret_key="k")

        with pytest.raises(AttributeError):
            config.web_secret_key = "other"  # type: ignore


class TestSettings:
    """Settings 싱글턴 테스트"""

    def test_singleton(self, settings_file: Path) -> None:
        Settings.reset()
        try:
            s1 = get_settings(settings_file)
            s2 = get_settings()

            assert s1 is s2
            assert s1.web_secret_key == "test_jwt_secret_key_0123456789abcdef"
        finally:
            Settings.reset()

    def test_reset(self, settings_file: Path, temp_dir: Path) -> None:
        Settings.reset()
        try:
            first = get_settings(settings_file)
            Settings.reset()
            other = _write(temp_dir, 'web:\n  secret_key: "second"\n')
            second = get_settings(other)

            assert first is not second
            assert second.web_secret_key == "second"
        finally:
            Settings.reset()
