import functools

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class EmailSettings(BaseSettings):
    TRANSPORT: str = Field(default="sendgrid")
    SENDGRID_API_KEY: str = Field(default="")
    SMTP_SERVER: str = Field(default="localhost")
    SMTP_PORT: int = Field(default=587)
    SMTP_USERNAME: str | None = Field(default=None)
    SMTP_PASSWORD: str | None = Field(default=None)
    SMTP_USE_TLS: bool = Field(default=False)
    SMTP_START_TLS: bool = Field(default=True)
    SMTP_TIMEOUT: float = Field(default=30)
    SENDER: str = Field(default="noreply@localhost")
    RECIPIENT: str = Field(default="owner@localhost")

    model_config = SettingsConfigDict(env_file='.env.development', env_file_encoding='utf-8', extra='ignore')


class FormSettings(BaseSettings):
    HONEYPOT_FIELDS: list[str] = Field(default=["_gotcha", "_honey"])
    DEFAULT_SUBJECT: str = Field(default="New contact form submission")
    SUBJECT_PREFIX: str = Field(default="")
    MAX_FIELD_LENGTH: int = Field(default=10_000)
    MAX_PAYLOAD_SIZE: int = Field(default=64 * 1024)
    ALLOWED_REDIRECT_HOSTS: list[str] = Field(default=[])

    model_config = SettingsConfigDict(env_file='.env.development', env_file_encoding='utf-8', extra='ignore')


class RateLimitSettings(BaseSettings):
    """Per client IP limits on POST /contact"""
    RATE_LIMIT_ENABLED: bool = Field(default=True)
    RATE_LIMIT_MAX_REQUESTS: int = Field(default=5)
    RATE_LIMIT_DURATION: int = Field(default=60)
    RATE_LIMIT_MAX_CLIENTS: int = Field(default=10_000)
    # forwarding headers are only honoured when the peer is one of these
    TRUSTED_PROXIES: list[str] = Field(default=[])

    model_config = SettingsConfigDict(env_file='.env.development', env_file_encoding='utf-8', extra='ignore')


class Logging(BaseSettings):
    filename: str = Field(default="form_relay.logs", validation_alias="LOG_FILENAME")
    level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    LOG_TO_FILE: bool = Field(default=False)

    model_config = SettingsConfigDict(env_file='.env.development', env_file_encoding='utf-8', extra='ignore')


class Settings(BaseSettings):
    APP_NAME: str = Field(default="form-relay")
    DEVELOPMENT_SERVER_NAME: str = Field(default="localhost")
    ALLOWED_ORIGINS: list[str] = Field(default=["*"])
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=8080)
    LOGGING: Logging = Field(default_factory=Logging)
    EMAIL_SETTINGS: EmailSettings = Field(default_factory=EmailSettings)
    FORM_SETTINGS: FormSettings = Field(default_factory=FormSettings)
    RATE_LIMIT_SETTINGS: RateLimitSettings = Field(default_factory=RateLimitSettings)

    model_config = SettingsConfigDict(case_sensitive=True, env_file='.env.development',
                                      env_file_encoding='utf-8', extra='ignore')


@functools.lru_cache
def config_instance() -> Settings:
    return Settings()
