import pytest
from pydantic import ValidationError

from entityrepo.config import Settings
from entityrepo.utils.logging import get_project_name, get_project_version, get_pyproject_value


class TestSettings:

    def test_defaults_need_no_environment(self, monkeypatch):
        monkeypatch.delenv("DB_URL", raising=False)
        settings = Settings(_env_file=None)

        assert settings.ENV == "development"
        assert settings.REPOSITORY_AUTO_FLUSH is False
        assert settings.LOG_TO_STDOUT is True
        assert settings.DATABASE_URL == "postgresql+asyncpg://postgres:@localhost:5432/entityrepo"

    def test_explicit_db_url_wins(self):
        settings = Settings(_env_file=None, DB_URL="sqlite+aiosqlite:///./local.db")
        assert settings.DATABASE_URL == "sqlite+aiosqlite:///./local.db"

    def test_blank_db_url_is_ignored(self):
        settings = Settings(_env_file=None, DB_URL="   ", POSTGRES_HOST="db", POSTGRES_DB="shop")
        assert settings.DB_URL is None
        assert settings.DATABASE_URL.endswith("@db:5432/shop")

    def test_log_values_are_normalized(self):
        settings = Settings(_env_file=None, LOG_LEVEL="debug", LOG_FORMAT="TEXT")
        assert settings.LOG_LEVEL == "DEBUG"
        assert settings.LOG_FORMAT == "text"

    def test_invalid_log_level_rejected(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, LOG_LEVEL="chatty")

    def test_read_from_environment(self, monkeypatch):
        monkeypatch.setenv("REPOSITORY_AUTO_FLUSH", "true")
        monkeypatch.setenv("POSTGRES_PORT", "6543")

        settings = Settings(_env_file=None)

        assert settings.REPOSITORY_AUTO_FLUSH is True
        assert settings.POSTGRES_PORT == 6543


class TestProjectMetadata:

    def test_project_name_from_pyproject(self):
        assert get_project_name(default="fallback") == "entityrepo"

    def test_project_version_is_a_string(self):
        assert isinstance(get_project_version(), str)

    def test_missing_key_returns_default(self):
        assert get_pyproject_value("project.no_such_key", default="dflt") == "dflt"

    def test_no_pyproject_returns_default(self, tmp_path):
        assert get_pyproject_value("project.name", start=tmp_path, max_up=1, default="x") == "x"
