"""
Application configuration settings loaded from environment variables.
Uses pydantic_settings for validation and type conversion.
"""
from pydantic_settings import BaseSettings
from typing import Optional

class Settings(BaseSettings):
    """
    Application settings class with environment variable validation.

    Attributes:
        database_url: SQLAlchemy connection string
        secret_key: Secret key for session token signing
        algorithm: Algorithm used for JWT encoding (typically HS256)
        access_token_expire_minutes: Session token lifetime in minutes
        password_reset_expires_minutes: Lifetime of a password reset secret
        bcrypt_rounds: bcrypt cost factor of every stored password digest

        # Email settings
        mail_username: SMTP server username
        mail_password: SMTP server password
        mail_from: Sender email address
        mail_port: SMTP server port
        mail_server: SMTP server hostname
        mail_starttls: Whether to use STARTTLS

        # Frontend settings
        app_url: URL of the frontend application (used in reset links)

        # Throttling
        reset_rate_limit: Max reset-password requests per client per window
        reset_rate_window_seconds: Length of the throttling window
    """
    # Database settings
    database_url: str = "sqlite:///./clinical_records.db"

    # JWT settings
    secret_key: str
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60

    # Password settings
    password_reset_expires_minutes: int = 15
    bcrypt_rounds: int = 10

    # Email settings
    mail_username: Optional[str] = None
    mail_password: Optional[str] = None
    mail_from: Optional[str] = None
    mail_port: int = 587
    mail_server: Optional[str] = None
    mail_starttls: bool = True

    # Frontend settings
    app_url: str = "http://localhost:3000"

    # Throttling
    reset_rate_limit: int = 3
    reset_rate_window_seconds: int = 60

    class Config:
        """Configuration for environment variables loading"""
        env_file = ".env"
        case_sensitive = False
        frozen = True

# Create settings instance
settings = Settings()
