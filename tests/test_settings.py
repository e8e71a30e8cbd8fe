from config.settings import Settings


def test_cors_origins_from_comma_separated_env(monkeypatch):
    monkeypatch.setenv("CORS_ORIGINS", "http://a.com, http://b.com")

    assert Settings().CORS_ORIGINS == ["http://a.com", "http://b.com"]


def test_cors_origins_single_value_env(monkeypatch):
    monkeypatch.setenv("CORS_ORIGINS", "http://a.com")

    assert Settings().CORS_ORIGINS == ["http://a.com"]


def test_cors_origins_default(monkeypatch):
    monkeypatch.delenv("CORS_ORIGINS", raising=False)

    assert Settings(_env_file=None).CORS_ORIGINS == ["http://localhost:3000"]


def test_database_url_defaults_to_sqlite(monkeypatch):
    for name in ("DB_URL_OVERRIDE", "DB_USER", "DB_PASSWORD", "DB_HOST", "DB_NAME"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings(_env_file=None, SQLITE_PATH="./test.db")
    assert settings.DATABASE_URL == "sqlite:///./test.db"
    assert settings.DB_URL == settings.DATABASE_URL
