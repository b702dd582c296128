from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def normalize_db_url(url: str) -> str:
    url = (url or "").strip()
    if not url:
        raise ValueError("DATABASE_URL não configurada.")

    # Railway/Heroku: postgres://...
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+psycopg2://", 1)
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+psycopg2://", 1)
    # sqlite e urls já com driver passam direto
    return url


class Settings(BaseSettings):
    DATABASE_URL: str

    JWT_SECRET_KEY: str = "change-me"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRES_MINUTES: int = 60

    # admin garantido no startup
    ADMIN_EMAIL: str = "admin@admin.com"
    ADMIN_PASSWORD: str = "admin123"
    ADMIN_NAME: str = "Admin"

    # origens do front separadas por vírgula
    FRONTEND_URLS: str = "http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000,http://127.0.0.1:3000"

    LOG_LEVEL: str = "INFO"

    # retry de erros transitórios do banco (conexão caiu, timeout do pool...)
    STORE_RETRY_ATTEMPTS: int = 3
    STORE_RETRY_BASE_SECONDS: float = 0.2

    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,   # evita sobrescrever com vazio
        extra="ignore",
    )

    @field_validator("DATABASE_URL")
    @classmethod
    def _db_url(cls, v: str) -> str:
        return normalize_db_url(v)

    @property
    def allowed_origins(self) -> list[str]:
        return [o.strip() for o in self.FRONTEND_URLS.split(",") if o.strip()]


settings = Settings()
