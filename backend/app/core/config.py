"""Application configuration"""

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # API
    API_PREFIX: str = "/api"
    PROJECT_NAME: str = "Residents Portal Payments API"
    VERSION: str = "0.1.0"
    DEBUG: bool = False

    # Security
    # WHY: Portal access tokens are issued by the auth provider and signed
    # with a shared HS256 secret; this service only verifies them.
    JWT_SECRET: str
    JWT_ALGORITHM: str = "HS256"
    JWT_AUDIENCE: Optional[str] = "authenticated"
    JWT_EXPIRATION_MINUTES: int = 60

    # Database
    DATABASE_URL: str

    # URLs
    # WHY: Fallback redirect host when the request carries no Origin header
    PORTAL_URL: str = "https://turakalnionamai.lovable.app"
    INVOICES_PATH: str = "/saskaitos"

    # Stripe
    STRIPE_SECRET_KEY: Optional[str] = None
    STRIPE_API_VERSION: str = "2025-08-27.basil"

    # Checkout
    PAYMENT_CURRENCY: str = "eur"
    CHECKOUT_LOCALE: str = "lt"

    # CORS
    # WHY: The portal frontend and its preview deployments call the payment
    # endpoints directly from the browser.
    CORS_ORIGINS: list[str] = ["*"]
    CORS_ALLOW_HEADERS: list[str] = [
        "authorization",
        "x-client-info",
        "apikey",
        "content-type",
    ]

    @property
    def async_database_url(self) -> str:
        """Get async database URL"""
        return self.DATABASE_URL.replace("postgresql://", "postgresql+asyncpg://")


settings = Settings()
