# src/mortgage_moment/adapters/config.py
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppConfig(BaseSettings):
    # App & logging
    ENV: str = Field(default="dev")
    LOG_LEVEL: str = Field(default="INFO")
    CORS_ORIGINS: list[str] = Field(default_factory=lambda: ["*"])

    # Pre-processed listings dataset (output of `pipeline preprocess`)
    DATA_FILE: str = Field(default="public/properties.min.json")
    DEFAULT_LOCATION: str = Field(default="München")

    # -----------------------------
    # ThinkImmo listing search
    # -----------------------------
    THINKIMMO_URL: str = Field(default="https://api.thinkimmo.com/immo")
    LISTINGS_TIMEOUT_S: float = Field(default=10.0)

    # -----------------------------
    # Interhyp buying-power scoring
    # -----------------------------
    INTERHYP_URL: str = Field(
        default="https://www.interhyp.de/customer-generation/budget/calculateMaxBuyingPower"
    )
    FEDERAL_STATE: str = Field(default="DE-BY")
    BUYING_POWER_TIMEOUT_S: float = Field(default=5.0)

    # -----------------------------
    # Brevo transactional email
    # -----------------------------
    BREVO_API_KEY: str | None = Field(default=None)
    BREVO_URL: str = Field(default="https://api.brevo.com/v3/smtp/email")
    SENDER_NAME: str = Field(default="Mortgage Moment")
    SENDER_EMAIL: str = Field(default="info@mortgagemoment.com")
    EMAIL_TIMEOUT_S: float = Field(default=10.0)

    # -----------------------------
    # OpenAI realtime voice
    # -----------------------------
    OPENAI_API_KEY: str | None = Field(default=None)
    OPENAI_REALTIME_URL: str = Field(default="https://api.openai.com/v1/realtime/sessions")
    OPENAI_REALTIME_MODEL: str = Field(default="gpt-4o-realtime-preview")
    OPENAI_REALTIME_VOICE: str = Field(default="verse")
    REALTIME_TIMEOUT_S: float = Field(default=10.0)

    # -----------------------------
    # Affordability policy
    # -----------------------------
    INCOME_CAP_FRACTION: float = Field(default=0.35)
    PURCHASING_COST_FACTOR: float = Field(default=0.10)
    USE_BLENDED_RATE: bool = Field(default=False)
    INCLUDE_PURCHASING_COSTS: bool = Field(default=False)

    model_config = SettingsConfigDict(
        env_prefix="MM_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("INCOME_CAP_FRACTION", "PURCHASING_COST_FACTOR", mode="before")
    @classmethod
    def _to_non_negative_fraction(cls, v: Any) -> Any:
        if v is None:
            return v
        if isinstance(v, str):
            v = v.strip().replace("%", "")
        try:
            f = float(v)
        except Exception as err:
            raise ValueError("rate must be numeric or percent-like") from err
        if f > 1.0:
            f = f / 100.0
        if f < 0:
            raise ValueError("rate must be non-negative")
        return f

    @field_validator(
        "LISTINGS_TIMEOUT_S",
        "BUYING_POWER_TIMEOUT_S",
        "EMAIL_TIMEOUT_S",
        "REALTIME_TIMEOUT_S",
        mode="before",
    )
    @classmethod
    def _timeout_positive(cls, v: Any) -> Any:
        f = float(v)
        if f <= 0:
            raise ValueError("timeouts must be > 0 seconds")
        return f


config = AppConfig()
