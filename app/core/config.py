"""Application configuration loaded from environment variables.

Settings for database, API, authentication, email, pricing and quota policy.
Uses pydantic-settings for validation and .env file support. Pricing and
quota tables are plain dicts so they can be overridden with JSON-encoded
environment variables (e.g. MODEL_PRICES='{"gpt-4o": {...}}') without
code changes.
"""

import uuid
from decimal import Decimal

from pydantic import BaseModel, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Known insecure default password that must not be used in production
# Security: Runtime check in check_production_security() prevents use in production
_INSECURE_DEFAULT_PASSWORD = "story_studio_dev_password"  # nosec B105

# Minimum length for AUTH_SECRET in production (256 bits = 32 bytes)
_MIN_AUTH_SECRET_LENGTH = 32


class ModelPrice(BaseModel):
    """Cost per 1,000 input and output tokens for one model."""

    input: Decimal
    output: Decimal


def _default_model_prices() -> dict[str, ModelPrice]:
    return {
        "gpt-4": ModelPrice(input=Decimal("0.03"), output=Decimal("0.06")),
        "gpt-3.5-turbo": ModelPrice(input=Decimal("0.0005"), output=Decimal("0.0015")),
        "models/gemini-2.0-flash": ModelPrice(
            input=Decimal("0.000075"), output=Decimal("0.0003")
        ),
        "models/gemini-2.5-flash": ModelPrice(
            input=Decimal("0.000075"), output=Decimal("0.0003")
        ),
        "models/gemini-2.5-pro": ModelPrice(
            input=Decimal("0.00125"), output=Decimal("0.005")
        ),
    }


def _default_image_prices() -> dict[str, dict[str, Decimal]]:
    return {
        "dall-e-3": {
            "1024x1024": Decimal("0.04"),
            "1792x1024": Decimal("0.08"),
            "1024x1792": Decimal("0.08"),
            "1024x1024_hd": Decimal("0.08"),
            "1792x1024_hd": Decimal("0.12"),
            "1024x1792_hd": Decimal("0.12"),
        },
        "dall-e-2": {
            "1024x1024": Decimal("0.020"),
            "512x512": Decimal("0.018"),
            "256x256": Decimal("0.016"),
        },
    }


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Database
    database_host: str = "localhost"
    database_port: int = 5432
    database_name: str = "story_studio"
    database_user: str = "story_studio_user"
    database_password: str = _INSECURE_DEFAULT_PASSWORD
    # Seconds before a single statement / pool checkout is abandoned
    database_command_timeout: float = 10.0
    database_pool_timeout: float = 10.0

    # API
    # 0.0.0.0 binds to all network interfaces (required for Docker containers)
    api_host: str = "0.0.0.0"  # nosec B104
    api_port: int = 8000

    # CORS (Security)
    # CRITICAL: Never set to ["*"] when allow_credentials=True
    allowed_origins: list[str] = ["http://localhost:3000"]

    # Application
    environment: str = "development"
    log_level: str = "INFO"

    # Authentication
    # Local mode: DEFAULT_USER_ID provides user context without JWT
    # Hosted mode: auth_enabled=True, JWT cookie required on every request
    default_user_id: uuid.UUID | None = None
    auth_enabled: bool = False
    auth_secret: SecretStr = SecretStr("")
    auth_issuer: str = "story-studio"
    auth_audience: str = "story-studio"
    auth_cookie_name: str = "story-studio.session-token"

    # Email
    email_from: str = "noreply@storystudio.app"
    resend_api_key: SecretStr = SecretStr("")

    # Frontend URL (verification result page lives here)
    frontend_url: str = "http://localhost:3000"

    # Backend URL (verification emails must hit the API directly)
    backend_url: str = "http://localhost:8000"

    # Email verification tokens
    verification_token_ttl_minutes: int = 60

    # Pricing (cost per 1K tokens, cost per image by size)
    model_prices: dict[str, ModelPrice] = _default_model_prices()
    image_prices: dict[str, dict[str, Decimal]] = _default_image_prices()

    # Quota policy (monthly limits by subscription tier)
    tier_token_limits: dict[str, int] = {
        "free": 5_000,
        "hobby": 25_000,
        "pro": 100_000,
    }
    tier_image_limits: dict[str, int] = {
        "free": 5,
        "hobby": 25,
        "pro": 100,
    }
    unlimited_tiers: list[str] = ["admin"]

    # Rate Limiting (Security)
    # Format: "count/period" (e.g., "10/minute", "100/hour")
    rate_limit_register: str = "3/hour"
    rate_limit_resend: str = "5/hour"
    rate_limit_verify: str = "10/minute"
    rate_limit_enabled: bool = True  # Disable for testing

    @property
    def database_url(self) -> str:
        """Async database URL for SQLAlchemy."""
        return (
            f"postgresql+asyncpg://{self.database_user}:{self.database_password}"
            f"@{self.database_host}:{self.database_port}/{self.database_name}"
        )

    @model_validator(mode="after")
    def check_production_security(self) -> "Settings":
        """Validate configuration invariants and production security.

        Checks:
        - Verification token TTL must be positive (all environments)
        - Prices and quota limits must be non-negative (all environments)
        - Database password must not be the default in production
        - AUTH_SECRET must be set and >= 32 chars when auth is enabled in production
        - CORS must not use wildcard origin (incompatible with credentials)
        """
        if self.verification_token_ttl_minutes <= 0:
            msg = (
                "VERIFICATION_TOKEN_TTL_MINUTES must be positive. "
                f"Got: {self.verification_token_ttl_minutes}"
            )
            raise ValueError(msg)

        for model, price in self.model_prices.items():
            if price.input < 0 or price.output < 0:
                msg = f"MODEL_PRICES entry '{model}' has a negative price"
                raise ValueError(msg)
        for model, sizes in self.image_prices.items():
            if any(cost < 0 for cost in sizes.values()):
                msg = f"IMAGE_PRICES entry '{model}' has a negative price"
                raise ValueError(msg)

        for name, limits in (
            ("TIER_TOKEN_LIMITS", self.tier_token_limits),
            ("TIER_IMAGE_LIMITS", self.tier_image_limits),
        ):
            if "free" not in limits:
                msg = f"{name} must define a limit for the 'free' tier"
                raise ValueError(msg)
            if any(limit < 0 for limit in limits.values()):
                msg = f"{name} cannot contain negative limits"
                raise ValueError(msg)

        if "*" in self.allowed_origins:
            msg = (
                "ALLOWED_ORIGINS must not contain '*' (wildcard). "
                "This application uses credentials (cookies) which are "
                "incompatible with wildcard CORS origins."
            )
            raise ValueError(msg)

        if self.environment == "production":
            if self.database_password == _INSECURE_DEFAULT_PASSWORD:
                msg = (
                    "Cannot use default database password in production. "
                    "Set DATABASE_PASSWORD environment variable to a secure value."
                )
                raise ValueError(msg)

            if self.auth_enabled:
                secret_value = self.auth_secret.get_secret_value()
                if not secret_value:
                    msg = (
                        "AUTH_SECRET must be set when AUTH_ENABLED=true in production. "
                        'Generate with: python -c "import secrets; '
                        'print(secrets.token_hex(32))"'
                    )
                    raise ValueError(msg)
                if len(secret_value) < _MIN_AUTH_SECRET_LENGTH:
                    msg = (
                        f"AUTH_SECRET must be at least {_MIN_AUTH_SECRET_LENGTH} "
                        "characters for adequate security."
                    )
                    raise ValueError(msg)

        return self


settings = Settings()
