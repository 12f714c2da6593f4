from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App
    APP_NAME: str = "sms-inbox-assistant"
    APP_BASE_URL: str = "http://localhost:8000"
    API_PREFIX: str = "/api"
    SESSION_SECRET: str = "change-me-in-production"
    SITE_PASSWORD: str = ""
    TIMEZONE: str = "America/New_York"

    # Persisted records (token, memory, schedule)
    DATA_DIR: str = str(PROJECT_ROOT)

    # Google OAuth
    GOOGLE_CLIENT_ID: str
    GOOGLE_CLIENT_SECRET: str
    MOCK_GOOGLE: bool = False

    # LLM
    OPENAI_API_KEY: str = ""
    OPENAI_MODEL: str = "gpt-4o-mini"
    AZURE_OPENAI_API_KEY: str = ""
    AZURE_OPENAI_ENDPOINT: str = ""
    AZURE_OPENAI_DEPLOYMENT_NAME: str = ""
    AZURE_OPENAI_API_VERSION: str = "2024-02-15-preview"

    # Twilio
    TWILIO_ACCOUNT_SID: str = ""
    TWILIO_AUTH_TOKEN: str = ""
    TWILIO_PHONE_NUMBER: str = ""
    TWILIO_VALIDATE_SIGNATURE: bool = False
    USER_PHONE_NUMBER: str = ""

    # Telegram
    TELEGRAM_BOT_TOKEN: str = ""
    TELEGRAM_CHAT_ID: str = ""

    @property
    def google_redirect_uri(self) -> str:
        return f"{self.APP_BASE_URL}{self.API_PREFIX}/auth/callback"

    @property
    def sms_webhook_url(self) -> str:
        return f"{self.APP_BASE_URL}/sms/webhook"

    @property
    def token_file(self) -> Path:
        return Path(self.DATA_DIR) / "tokens.json"

    @property
    def memory_file(self) -> Path:
        return Path(self.DATA_DIR) / "memory.json"

    @property
    def schedule_file(self) -> Path:
        return Path(self.DATA_DIR) / "schedule.json"

    @property
    def uses_azure(self) -> bool:
        return bool(self.AZURE_OPENAI_ENDPOINT and self.AZURE_OPENAI_DEPLOYMENT_NAME)


settings = Settings()
