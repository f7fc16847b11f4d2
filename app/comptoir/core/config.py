from decimal import Decimal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env")

    APP_NAME: str = "Comptoir POS"
    SECRET_KEY: str = "change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 12
    DATABASE_URL: str = "sqlite+pysqlite:///./comptoir.db"
    API_HOST: str = "127.0.0.1"
    API_PORT: int = 8000
    DEFAULT_TENANT_NAME: str = "Default Tenant"
    DEFAULT_WORKSTATION_ID: str = "main"
    ADMIN_USERNAME: str = "admin"
    ADMIN_DISPLAY_NAME: str = "Administrator"
    ADMIN_PIN: str = "1234"
    CASH_VARIANCE_TOLERANCE: Decimal = Field(default=Decimal("0.01"), ge=0)
    BUSINESS_TIMEZONE: str = "UTC"
    SHIFT_LIST_MAX_PAGE_SIZE: int = Field(default=200, ge=1)
    METRICS_ENABLED: bool = True


settings = Settings()
