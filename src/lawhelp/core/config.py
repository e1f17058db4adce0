"""
Configuration management for LawHelp.

Settings are grouped into sections that read from environment variables
(and a local ``.env`` file) and are combined into a single ``Config`` object.
"""

import logging
from typing import List, Optional
from pydantic_settings import BaseSettings
from pydantic import field_validator, Field
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


STORAGE_BACKENDS = ["memory", "mysql", "postgresql", "sqlite"]

DRIVER_NAMES = {
    "mysql": "mysql+pymysql",
    "postgresql": "postgresql+psycopg2",
}

DEFAULT_PORTS = {
    "mysql": 3306,
    "postgresql": 5432,
}


class DatabaseConfig(BaseSettings):
    """Storage backend and database connection settings."""

    storage_backend: str = Field(default="memory", description="memory, mysql, postgresql or sqlite")
    database_url: Optional[str] = Field(default=None)

    # Discrete connection settings, used when DATABASE_URL is not set
    db_user: Optional[str] = Field(default=None)
    db_password: Optional[str] = Field(default=None)
    db_host: str = Field(default="localhost")
    db_port: Optional[int] = Field(default=None)
    db_name: str = Field(default="lawhelp_db")

    # Connection pool settings
    db_pool_size: int = Field(default=10)
    db_max_overflow: int = Field(default=20)
    db_pool_timeout: int = Field(default=30)

    @field_validator('storage_backend')
    @classmethod
    def validate_storage_backend(cls, v):
        """Validate storage backend name."""
        v = v.lower()
        if v not in STORAGE_BACKENDS:
            raise ValueError(f'Storage backend must be one of: {STORAGE_BACKENDS}')
        return v

    @field_validator('db_port')
    @classmethod
    def validate_db_port(cls, v):
        """Validate database port."""
        if v is not None and not 1 <= v <= 65535:
            raise ValueError('Database port must be between 1 and 65535')
        return v

    @property
    def sql_database_url(self) -> Optional[str]:
        """Get the SQLAlchemy URL for the configured SQL backend."""
        if self.database_url:
            return self.database_url
        if self.storage_backend not in DRIVER_NAMES or not self.db_user:
            return None

        driver = DRIVER_NAMES[self.storage_backend]
        port = self.db_port or DEFAULT_PORTS[self.storage_backend]
        credentials = self.db_user
        if self.db_password:
            credentials = f"{self.db_user}:{self.db_password}"
        return f"{driver}://{credentials}@{self.db_host}:{port}/{self.db_name}"


class SecurityConfig(BaseSettings):
    """Security configuration with validation."""

    # JWT settings
    secret_key: str = Field(...)
    jwt_algorithm: str = Field(default="HS256")
    access_token_expire_days: int = Field(default=7)

    # Password settings
    min_password_length: int = Field(default=8)
    max_password_length: int = Field(default=128)

    # Verification code lifetimes
    email_verification_expire_hours: int = Field(default=24)
    two_factor_code_expire_minutes: int = Field(default=10)

    @field_validator('secret_key')
    @classmethod
    def validate_secret_key(cls, v):
        """Validate secret key strength."""
        if v == 'fallback-secret-key' or len(v) < 32:
            raise ValueError('Secret key must be at least 32 characters and not be the default')
        return v


class ApplicationConfig(BaseSettings):
    """Main application configuration."""

    # Application settings
    app_name: str = Field(default="LawHelp")
    app_version: str = Field(default="1.0.0")
    app_description: str = Field(default="AI legal assistant and lawyer directory for Cameroon")
    env: str = Field(default="development")
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")

    # API settings
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=5000)
    cors_origins: str = Field(default="*", description="Comma separated list of allowed origins")

    seed_database: bool = Field(default=False)

    @field_validator('env')
    @classmethod
    def validate_environment(cls, v):
        """Validate environment setting."""
        valid_envs = ['development', 'test', 'staging', 'production']
        if v not in valid_envs:
            raise ValueError(f'Environment must be one of: {valid_envs}')
        return v

    @field_validator('api_port')
    @classmethod
    def validate_api_port(cls, v):
        """Validate API port."""
        if not 1 <= v <= 65535:
            raise ValueError('API port must be between 1 and 65535')
        return v

    @property
    def environment(self) -> str:
        return self.env

    @property
    def cors_origin_list(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


class AIConfig(BaseSettings):
    """Chat completion settings."""

    openai_api_key: Optional[str] = Field(default=None)
    openai_model: str = Field(default="gpt-4o")
    ai_temperature: float = Field(default=0.3)
    ai_max_tokens: int = Field(default=1500)
    ai_max_retries: int = Field(default=3)
    ai_request_timeout: float = Field(default=60.0)


class EmailConfig(BaseSettings):
    """Outgoing email settings."""

    smtp_server: str = Field(default="smtp.gmail.com")
    smtp_port: int = Field(default=587)
    smtp_username: str = Field(default="")
    smtp_password: str = Field(default="")
    email_from: Optional[str] = Field(default=None)

    @property
    def is_configured(self) -> bool:
        return bool(self.smtp_username and self.smtp_password)


class Config:
    """Main configuration class that combines all config sections."""

    def __init__(self):
        """Initialize configuration with validation."""
        try:
            self.database = DatabaseConfig()
            self.security = SecurityConfig()
            self.application = ApplicationConfig()
            self.ai = AIConfig()
            self.email = EmailConfig()

            logger.info("Configuration loaded successfully")

        except Exception as e:
            logger.error(f"Configuration validation failed: {e}")
            raise

    def get_database_url(self) -> Optional[str]:
        """Get database URL."""
        return self.database.sql_database_url

    def is_production(self) -> bool:
        """Check if running in production."""
        return self.application.environment == 'production'

    def is_development(self) -> bool:
        """Check if running in development."""
        return self.application.environment == 'development'


# Global configuration instance
config = Config()


def get_config() -> Config:
    """Get the global configuration instance."""
    return config
