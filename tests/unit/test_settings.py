import pytest

from planquota.config.settings import Settings, get_settings
from planquota.exceptions import ConfigError, PlanQuotaError


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.mark.unit
class TestSettings:
    def test_default_settings(self) -> None:
        settings = Settings()
        assert settings.use_database is False
        assert settings.default_plan == "free"
        assert settings.store_retry_attempts == 3

    def test_settings_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DATABASE_URL", "postgresql+asyncpg://user:pass@db:5432/quota")
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("DEFAULT_PLAN", "starter")
        settings = get_settings()
        assert settings.log_level == "DEBUG"
        assert settings.default_plan == "starter"
        assert "db:5432" in settings.database_url

    def test_unknown_default_plan(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DEFAULT_PLAN", "platinum")
        with pytest.raises(ConfigError, match="platinum"):
            get_settings()

    def test_retry_attempts_must_be_positive(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("STORE_RETRY_ATTEMPTS", "0")
        with pytest.raises(ConfigError):
            get_settings()

    def test_config_error_is_domain_error(self) -> None:
        assert issubclass(ConfigError, PlanQuotaError)
