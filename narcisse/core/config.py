
from pydantic import Field
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    """Application configuration loaded from environment variables / .env file."""

    app_name: str = "Sweet Narcisse API"
    app_env: str = Field(default="development", alias="APP_ENV")
    app_port: int = 8000
    frontend_url: str = Field(default="http://localhost:3000", alias="FRONTEND_URL")
    public_base_url_raw: str | None = Field(default=None, alias="NEXT_PUBLIC_BASE_URL")
    max_upload_size_mb: int = Field(default=10, alias="MAX_UPLOAD_SIZE_MB")

    # Database (SQLite for local dev, any async SQLAlchemy URL in production)
    database_url: str = Field(
        default="sqlite+aiosqlite:///./narcisse_dev.db",
        alias="DATABASE_URL",
    )
    db_pool_size: int = Field(default=5, alias="DB_POOL_SIZE")
    db_max_overflow: int = Field(default=10, alias="DB_MAX_OVERFLOW")

    # Auth
    booking_token_secret: str = Field(default="changeme", alias="NEXTAUTH_SECRET")
    jwt_secret: str = Field(default="narcisse-dev-secret-change-me", alias="JWT_SECRET")
    jwt_expire_hours: int = Field(default=12, alias="JWT_EXPIRE_HOURS")

    # Redis (rate limiting, availability cache, planning notifications)
    rate_limit_redis_url: str | None = Field(default=None, alias="RATE_LIMIT_REDIS_URL")
    redis_url: str | None = Field(default=None, alias="REDIS_URL")

    # Booking rules
    payment_timeout_minutes: int = Field(default=15, alias="PAYMENT_TIMEOUT_MINUTES")
    pending_booking_ttl_min: int | None = Field(default=None, alias="PENDING_BOOKING_TTL_MIN")
    min_booking_delay_minutes: int = Field(default=5, alias="MIN_BOOKING_DELAY_MINUTES")
    vat_rate: float = Field(default=20.0, alias="VAT_RATE")
    password_min_score: int = Field(default=3, alias="PASSWORD_MIN_SCORE")

    # Payments
    stripe_secret_key: str | None = Field(default=None, alias="STRIPE_SECRET_KEY")
    stripe_webhook_secret: str | None = Field(default=None, alias="STRIPE_WEBHOOK_SECRET")
    stripe_api_base: str = Field(default="https://api.stripe.com", alias="STRIPE_API_BASE")
    paypal_client_id: str | None = Field(default=None, alias="PAYPAL_CLIENT_ID")
    paypal_client_secret: str | None = Field(default=None, alias="PAYPAL_CLIENT_SECRET")
    paypal_mode: str = Field(default="live", alias="PAYPAL_MODE")  # "live" | "sandbox"
    http_timeout: float = Field(default=15.0, alias="HTTP_TIMEOUT")

    # reCAPTCHA (public booking / contact forms)
    recaptcha_secret_key: str | None = Field(default=None, alias="RECAPTCHA_SECRET_KEY")

    # E-mail
    resend_api_key: str | None = Field(default=None, alias="RESEND_API_KEY")
    resend_api_url: str = Field(default="https://api.resend.com", alias="RESEND_API_URL")
    smtp_host: str | None = Field(default=None, alias="SMTP_HOST")
    smtp_port: int = Field(default=587, alias="SMTP_PORT")
    smtp_user: str | None = Field(default=None, alias="SMTP_USER")
    smtp_pass: str | None = Field(default=None, alias="SMTP_PASS")
    email_contact: str = Field(default="contact@sweet-narcisse.fr", alias="EMAIL_CONTACT")
    email_reservations: str = Field(default="reservations@sweet-narcisse.fr", alias="EMAIL_RESERVATIONS")
    email_billing: str = Field(default="facturation@sweet-narcisse.fr", alias="EMAIL_BILLING")
    email_notifications: str = Field(default="notifications@sweet-narcisse.fr", alias="EMAIL_NOTIFICATIONS")

    # Object storage (employee documents)
    storage_driver: str = Field(default="s3", alias="STORAGE_DRIVER")  # "s3" | "minio"
    storage_endpoint: str | None = Field(default=None, alias="STORAGE_ENDPOINT")
    storage_region: str = Field(default="eu-central-1", alias="STORAGE_REGION")
    storage_access_key: str | None = Field(default=None, alias="STORAGE_ACCESS_KEY")
    storage_secret_key: str | None = Field(default=None, alias="STORAGE_SECRET_KEY")
    storage_bucket: str | None = Field(default=None, alias="STORAGE_BUCKET")
    storage_upload_ttl: int = Field(default=300, alias="STORAGE_UPLOAD_TTL")
    storage_download_ttl: int = Field(default=60, alias="STORAGE_DOWNLOAD_TTL")
    preview_dpi: int = Field(default=110, alias="PREVIEW_DPI")

    # Request audit trail (write requests only)
    audit_enabled: bool = Field(default=True, alias="AUDIT_ENABLED")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "populate_by_name": True,
        "extra": "ignore",
    }

    @property
    def max_upload_size_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024

    @property
    def pending_ttl_minutes(self) -> int:
        """Lifetime of an unpaid pending hold before the cleanup job releases it."""
        return self.pending_booking_ttl_min or self.payment_timeout_minutes

    @property
    def public_base_url(self) -> str:
        return (self.public_base_url_raw or "http://localhost:3000").rstrip("/")

    @property
    def stripe_enabled(self) -> bool:
        return bool(self.stripe_secret_key)

    @property
    def paypal_api_base(self) -> str:
        if self.paypal_mode.lower() == "sandbox":
            return "https://api-m.sandbox.paypal.com"
        return "https://api-m.paypal.com"

    @property
    def missing_storage_settings(self) -> list[str]:
        required = {
            "STORAGE_ACCESS_KEY": self.storage_access_key,
            "STORAGE_SECRET_KEY": self.storage_secret_key,
            "STORAGE_BUCKET": self.storage_bucket,
        }
        if self.storage_driver == "minio":
            required["STORAGE_ENDPOINT"] = self.storage_endpoint
        return [name for name, value in required.items() if not value]

    @property
    def storage_configured(self) -> bool:
        return not self.missing_storage_settings

settings = Settings()
