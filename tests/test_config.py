import pytest
from pydantic import ValidationError

from telemetry_hub.config import Settings


def test_database_url_defaults_to_mysql():
    settings = Settings(DB_USER="u", DB_PASSWORD="p", DB_HOST="db", DB_PORT=3307, DB_NAME="hub")
    assert settings.database_url == "mysql+pymysql://u:p@db:3307/hub?charset=utf8mb4"


def test_database_url_override():
    assert Settings(DATABASE_URL="sqlite:///x.db").database_url == "sqlite:///x.db"


def test_defaults_match_service_contract():
    settings = Settings()
    assert settings.CLEANUP_INTERVAL_MINUTES == 5
    assert settings.DELETE_TIMEOUT_MINUTES == 30
    assert settings.DEFAULT_UPLOAD_INTERVAL == 300
    assert settings.MAX_LOG_ITEMS_PER_DOWNLOAD == 10000
    assert settings.SAFETY_SLACK_FACTOR == 1.1


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("PROBE_API_KEY", "from-env")
    monkeypatch.setenv("DELETE_TIMEOUT_MINUTES", "90")
    settings = Settings()
    assert settings.PROBE_API_KEY == "from-env"
    assert settings.DELETE_TIMEOUT_MINUTES == 90


@pytest.mark.parametrize(
    "field, value",
    [
        ("CLEANUP_INTERVAL_MINUTES", 0),
        ("PURGE_BATCH_SIZE", -1),
        ("SAFETY_SLACK_FACTOR", 0.9),
        ("DEFAULT_UPLOAD_INTERVAL", 2**40),
    ],
)
def test_invalid_settings_are_rejected(field, value):
    with pytest.raises(ValidationError):
        Settings(**{field: value})


def test_log_level_is_normalized():
    assert Settings(LOG_LEVEL="DEBUG").LOG_LEVEL == "debug"
    assert Settings(LOG_LEVEL="chatty").LOG_LEVEL == "info"
