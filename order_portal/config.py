"""
Configuration management using pydantic-settings

Loads configuration from environment variables and .env file
"""

from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Database Configuration
    DATABASE_URL: str = Field(
        default="sqlite:///./order_portal.db",
        description="SQLAlchemy database URL"
    )

    # Public links
    APP_URL: str = Field(
        default="http://localhost:3000",
        description="Base URL used when building shareable contract links"
    )

    # Contract templates
    CONTRACT_TEMPLATE_DIR: str = Field(
        default="./contract_templates",
        description="Directory holding the trial and service agreement PDFs"
    )

    # Application Settings
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    CORS_ORIGINS: List[str] = Field(default=["*"], description="Allowed CORS origins")
    ACTIVITY_LOG_LIMIT: int = Field(
        default=50,
        description="Default number of activity log entries returned per order"
    )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


# Global settings instance
settings = Settings()
