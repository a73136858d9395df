from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite+pysqlite:///./universe.db"
    ENVIRONMENT: str = "local"
    CORS_ORIGINS: list[str] = ["http://localhost:5173", "http://127.0.0.1:5173"]

    BACKEND_API_URL: str = "http://localhost:8081/api"
    BACKEND_TIMEOUT_SECONDS: float = 10.0
    BACKEND_JWT_SECRET: str = "change-me"
    JWT_ALG: str = "HS256"

    PUBLIC_BASE_URL: str = "http://localhost:5173"
    MEMBERSHIP_CURRENCY: str = "LKR"

    PAYMENT_CONFIRM_MAX_ATTEMPTS: int = 3
    PAYMENT_CONFIRM_BACKOFF_SECONDS: float = 1.0
    PAYMENT_CONFIRM_TIMEOUT_SECONDS: float = 15.0

    FINALIZATION_REPORT_HOUR: int = 4
    FINALIZATION_LEASE_SECONDS: int = 300

    class Config:
        env_file = ".env"


settings = Settings()
