"""
Configuration — Pydantic v2 Settings (env / .env)
=================================================

Purpose
-------
Centralized, strongly-typed application configuration using:
- Pydantic v2 `BaseSettings` for environment-driven values
- `pydantic-settings` v2 for `.env` loading and model config

Load Order & Behavior
---------------------
- Values are read from the environment; if not present, `.env` is used.
- Missing required fields raise a validation error at import time.
- `extra="ignore"`: unknown env vars are ignored (not an error).

Usage
-----
from chatbot_backend.database.config.config import settings

# Example
db_host = settings.DB_HOST
default_model = settings.default_model

Security
--------
- Never commit secrets or the `.env` file to source control.
- Prefer runtime environment variables in production (K8s/Secrets Manager/etc.).
"""


from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_MODEL = "gemini-2.5-flash"
"""Model used when `GEMINI_MODEL_NAME` is unset or blank."""


def parse_model_name(raw: str | None) -> str:
    """
    Normalize a configured model identifier.

    Anything after a ``#`` is treated as an inline comment (``.env`` files are
    often written as ``GEMINI_MODEL_NAME=gemini-2.5-pro # faster``). A blank
    value falls back to `DEFAULT_MODEL`.
    """
    if not raw:
        return DEFAULT_MODEL
    return raw.split("#")[0].strip() or DEFAULT_MODEL


class Settings(BaseSettings):
    """
    Application configuration settings loaded from environment variables
    or a `.env` file. Provides strongly typed access to environment values.
    """

    # Pydantic v2 config (replaces inner class Config)
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # or "forbid"/"allow"
    )

    FRONTEND_URL: str = Field("http://localhost:3000", description="Base URL of the frontend client application.")
    DB_DRIVER_NAME: str = Field("postgresql+psycopg2", description="Database driver (e.g., `postgresql+psycopg2`, `sqlite`).")
    DB_USERNAME: str | None = Field(None, description="Database username credential.")
    DB_PASSWORD: str | None = Field(None, description="Database password credential.")
    DB_HOST: str | None = Field(None, description="Hostname or IP address of the database server.")
    DB_DATABASE_NAME: str = Field("chatbot", description="Name of the application’s database (file path for SQLite).")
    SECRET_KEY: str = Field(..., description="Secret key for signing and verifying session tokens.")
    ALGORITHM: str = Field("HS256", description="Algorithm used for JWT signing (e.g., `HS256`).")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(60 * 24 * 7, description="Duration (in minutes) before access tokens expire.")
    AUTH_COOKIE_NAME: str = Field("chatbot_auth", description="Name of the cookie carrying the session token.")
    GEMINI_API_KEY: str = Field("", description="API key for the Gemini generative-AI service.")
    GEMINI_MODEL_NAME: str | None = Field(None, description="Default model id; text after `#` is ignored.")
    PUBLIC_DIR: str = Field("public", description="Directory that attachment URLs (e.g. `/uploads/x.png`) resolve against.")
    DISPLAY_TIMEZONE: str = Field("Asia/Kolkata", description="IANA timezone used for date/time answers and news digests.")
    HTTP_TIMEOUT_SECONDS: float = Field(10.0, description="Timeout applied to outbound search and news requests.")
    WEB_SEARCH_URL: str = Field("https://api.duckduckgo.com/", description="Instant-answer endpoint used for web search context.")
    NEWS_FEED_URL: str = Field("https://news.google.com/rss/search", description="RSS search endpoint used for headline digests.")
    LOG_LEVEL: str = Field("INFO", description="Root logging level.")

    @property
    def default_model(self) -> str:
        """The configured default model id with inline comments stripped."""
        return parse_model_name(self.GEMINI_MODEL_NAME)


# Singleton instance of Settings, ready to be imported across the app
settings = Settings()
"""Defines a Settings object that contains the contents of the .env file"""
