import os


def _env(name: str, default: str) -> str:
    return os.getenv(f"FACTURO_{name}", default)


class Settings:
    def __init__(self):
        self.app_name = "Facturo"
        self.api_version = "1.0.0"
        self.environment = _env("ENV", "development")
        self.database_url = _env("DATABASE_URL", "sqlite:///./facturo.db")
        self.jwt_secret = _env("JWT_SECRET", "dev-access-secret-change-me-in-production")
        self.jwt_refresh_secret = _env("JWT_REFRESH_SECRET", "dev-refresh-secret-change-me-in-production")
        self.jwt_algorithm = "HS256"
        self.access_token_expire_minutes = int(_env("ACCESS_TOKEN_EXPIRE_MINUTES", "30"))
        self.inactivity_minutes = int(_env("INACTIVITY_MINUTES", "30"))
        self.refresh_token_expire_days = int(_env("REFRESH_TOKEN_EXPIRE_DAYS", "7"))
        self.default_access_count = int(_env("DEFAULT_ACCESS_COUNT", "2"))
        self.log_level = _env("LOG_LEVEL", "INFO").upper()
        self.cors_origins = [
            origin.strip()
            for origin in _env("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
            if origin.strip()
        ]

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


_settings_instance = None


def get_settings():
    """Return a singleton Settings instance."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
