"""Configuration using pydantic-settings (pydantic v2).

Values come from the environment and an optional `.env` file.
"""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    APP_NAME: str = "SafeTourist"
    SECRET_KEY: str = "changeme_in_production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    DATABASE_URL: str = "sqlite:///./safetourist.db"
    LOG_LEVEL: str = "INFO"
    # When running tests, set TESTING=1 in env to bypass external integrations
    TESTING: bool = False
    # Optional default admin user to create on startup (useful for dev/testing)
    ADMIN_EMAIL: str = "admin@example.com"
    ADMIN_PASSWORD: str = "adminpass"
    ADMIN_NAME: str = "Admin"
    # Set to False in environments where automatic user creation is undesirable.
    ADMIN_CREATE_ON_STARTUP: bool = True
    # Password scheme preference: 'bcrypt', 'argon2', 'plaintext', or 'auto'
    # 'auto' will try bcrypt then argon2 and fall back to plaintext.
    PASSWORD_SCHEME: str = "auto"
    # Emergency notification hook called on panic alerts; disabled when empty
    ALERT_WEBHOOK_URL: Optional[str] = None
    ALERT_WEBHOOK_TOKEN: Optional[str] = None
    ALERT_WEBHOOK_TIMEOUT: int = 10

    model_config = SettingsConfigDict(env_file=".env")


settings = Settings()
