from orderdesk.core.config import Settings, settings

def test_settings_loaded():
    assert settings.HOST == "0.0.0.0"
    assert settings.PORT == 8000
    assert 15 <= settings.STORE_TIMEOUT_SECONDS <= 30
    assert settings.SUPPLEMENTAL_MAX_RETRIES > 0

def test_database_url():
    assert "sqlite" in settings.DATABASE_URL

def test_postgres_host_overrides_database_url():
    s = Settings(POSTGRES_HOST="db", POSTGRES_USER="u", POSTGRES_PASSWORD="p", POSTGRES_DB="orders")
    assert s.effective_database_url == "postgresql+asyncpg://u:p@db:5432/orders"

def test_cors_origins_from_comma_list():
    s = Settings(CORS_ORIGINS="http://a.test, http://b.test")
    assert s.CORS_ORIGINS == ["http://a.test", "http://b.test"]

def test_cors_origins_from_json_list():
    s = Settings(CORS_ORIGINS='["http://a.test"]')
    assert s.CORS_ORIGINS == ["http://a.test"]
