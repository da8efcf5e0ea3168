"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded in production)
    - get_settings() is cached (lru_cache) — single instance per process

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all non-secret settings: works out-of-the-box with a local SQLite file
"""

from decimal import Decimal
from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    environment: str = "development"

    # Database
    database_url: str = "sqlite+aiosqlite:///stylesage.db"

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosting providers hand out postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10
    database_auto_create: bool = True

    # Auth
    jwt_secret: str = "your-secret-key-change-in-production"
    jwt_expiry_days: int = 7
    auth_cookie_name: str = "auth_token"
    oauth_state_cookie_name: str = "oauth_state"
    oauth_state_max_age_seconds: int = 600
    admin_email: str = "admin@stylesage.com"
    admin_password: str = "admin123"
    admin_emails: list[str] = []

    # Catalog bootstrap
    seed_sample_data: bool = False

    # Payments (Razorpay)
    razorpay_key_id: str = "rzp_test_placeholder"
    razorpay_key_secret: str = "razorpay-secret-placeholder"
    razorpay_base_url: str = "https://api.razorpay.com/v1"
    razorpay_max_retries: int = 3
    razorpay_timeout_seconds: int = 30
    razorpay_base_delay_ms: int = 500
    razorpay_max_delay_ms: int = 8_000

    # Images (Cloudinary)
    cloudinary_cloud_name: str = ""
    cloudinary_api_key: str = ""
    cloudinary_api_secret: str = ""
    cloudinary_folder: str = "tshirt-products"

    # Google OAuth
    google_client_id: str = ""
    google_client_secret: str = ""
    google_redirect_uri: str = "http://localhost:8000/api/auth/callback/google"

    # Pricing (INR)
    currency: str = "INR"
    shipping_flat: Decimal = Decimal("746")
    free_shipping_threshold: Decimal = Decimal("6225")
    tax_rate: Decimal = Decimal("0.08")

    # API
    app_url: str = "https://stylesage.com"
    cors_origins: list[str] = ["http://localhost:3000"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def google_oauth_configured(self) -> bool:
        return bool(self.google_client_id and self.google_redirect_uri)

    def is_admin_email(self, email: str) -> bool:
        email = email.lower()
        return email == self.admin_email.lower() or email in {
            e.lower() for e in self.admin_emails
        }


@lru_cache
def get_settings() -> Settings:
    return Settings()
