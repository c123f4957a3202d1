from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str = Field(..., alias="DATABASE_URL")

    jwt_secret_key: str = Field(..., alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field("HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(15, alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    log_level: str = Field("INFO", alias="LOG_LEVEL")

    # Used whenever a profile has no (or an invalid) IANA zone on file
    default_timezone: str = Field("America/Vancouver", alias="DEFAULT_TIMEZONE")

    referral_credit_amount_cad: int = Field(50, alias="REFERRAL_CREDIT_AMOUNT_CAD")
    report_card_max_file_bytes: int = Field(10 * 1024 * 1024, alias="REPORT_CARD_MAX_FILE_BYTES")

    # Blob storage
    storage_url: Optional[str] = Field(None, alias="STORAGE_URL")
    storage_service_key: Optional[str] = Field(None, alias="STORAGE_SERVICE_KEY")
    signed_url_ttl_seconds: int = Field(60 * 15, alias="SIGNED_URL_TTL_SECONDS")
    legal_documents_bucket: str = Field("legal-documents", alias="LEGAL_DOCUMENTS_BUCKET")
    resources_bucket: str = Field("resources", alias="RESOURCES_BUCKET")
    signatures_bucket: str = Field("signatures", alias="SIGNATURES_BUCKET")
    report_cards_bucket: str = Field("report-cards", alias="REPORT_CARDS_BUCKET")

    # Outbound email (Resend HTTP API)
    resend_api_key: Optional[str] = Field(None, alias="RESEND_API_KEY")
    portal_from_email: Optional[str] = Field(None, alias="PORTAL_FROM_EMAIL")
    portal_app_url: str = Field("http://localhost:3000", alias="PORTAL_APP_URL")
    admin_notification_email: Optional[str] = Field(None, alias="ADMIN_NOTIFICATION_EMAIL")

    cron_secret: Optional[str] = Field(None, alias="CRON_SECRET")

    feedback_rate_limit: int = Field(5, alias="FEEDBACK_RATE_LIMIT")
    feedback_rate_window_seconds: int = Field(60 * 10, alias="FEEDBACK_RATE_WINDOW_SECONDS")
    # "memory://" (per process) or a shared backend such as "redis://host:6379"
    rate_limit_storage_uri: str = Field("memory://", alias="RATE_LIMIT_STORAGE_URI")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"
        populate_by_name = True


settings = Settings()
