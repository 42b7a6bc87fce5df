"""
Configuration management for the Project Administration API
"""
from pydantic_settings import BaseSettings
from pydantic import Field, field_validator
from typing import Optional, List


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Required settings
    DATABASE_URL: str = Field(..., description="SQL Server or PostgreSQL database URL")
    JWT_SECRET_KEY: str = Field(..., description="JWT secret key for token signing")

    # Optional settings with defaults
    JWT_ALGORITHM: str = Field(default="HS256", description="JWT algorithm")
    JWT_EXPIRE_MINUTES: int = Field(default=120, description="JWT token expiration in minutes")

    APP_ENV: str = Field(default="local", description="Application environment: local, staging, prod")
    LOG_LEVEL: str = Field(default="INFO", description="Logging level: DEBUG, INFO, WARNING, ERROR")

    # CORS settings
    ALLOWED_ORIGINS: str = Field(
        default="*",
        description="Comma-separated list of allowed CORS origins. Use '*' for local only."
    )

    # Dynamic query / generic table access
    FORBIDDEN_TABLES: str = Field(
        default="auditoria",
        description="Comma-separated deny-list of tables that ad-hoc queries and the table API may not touch"
    )
    HIDDEN_COLUMNS: str = Field(
        default="contrasena",
        description="Comma-separated columns never returned by the table API (stored hashes)"
    )
    MAX_QUERY_ROWS: int = Field(default=10000, description="Maximum rows returned by an ad-hoc SELECT")
    DEFAULT_ROW_LIMIT: int = Field(default=1000, description="Maximum rows returned by GET /api/{resource}")
    DEFAULT_SCHEMA: Optional[str] = Field(
        default=None,
        description="Database schema used when reflecting tables (e.g. public, dbo)"
    )

    # Client side
    API_BASE_URL: str = Field(
        default="http://localhost:8000",
        description="Base URL the Python client uses to reach this API"
    )

    # Version (can be git SHA or semver)
    VERSION: Optional[str] = Field(default=None, description="Application version (git SHA or semver)")

    # Initial admin bootstrap settings
    INITIAL_ADMIN_EMAIL: str = Field(
        default="admin@correo.com",
        description="Email for initial admin user (used when no user exists)"
    )
    INITIAL_ADMIN_PASSWORD: str = Field(
        default="Admin@12345",
        description="Password for initial admin user (used when no user exists)"
    )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True

    @field_validator("APP_ENV")
    @classmethod
    def validate_app_env(cls, v: str) -> str:
        """Validate APP_ENV"""
        allowed = ["local", "staging", "prod"]
        if v not in allowed:
            raise ValueError(f"APP_ENV must be one of {allowed}")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate LOG_LEVEL"""
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed:
            raise ValueError(f"LOG_LEVEL must be one of {allowed}")
        return v.upper()

    @field_validator("MAX_QUERY_ROWS", "DEFAULT_ROW_LIMIT")
    @classmethod
    def validate_row_limits(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Row limits must be at least 1")
        return v

    def validate_production(self) -> None:
        """
        Validate settings for production environment

        Raises:
            ValueError: If production settings are invalid
        """
        if self.APP_ENV == "prod":
            # JWT_SECRET_KEY must be at least 32 characters in production
            if len(self.JWT_SECRET_KEY) < 32:
                raise ValueError(
                    "JWT_SECRET_KEY must be at least 32 characters in production environment"
                )

            # ALLOWED_ORIGINS must not be wildcard in production
            if self.ALLOWED_ORIGINS == "*" or not self.ALLOWED_ORIGINS:
                raise ValueError(
                    "ALLOWED_ORIGINS must be explicitly set (not '*') in production environment"
                )

    def get_allowed_origins_list(self) -> List[str]:
        """
        Get list of allowed CORS origins

        Returns:
            List of allowed origins (or ['*'] for local)
        """
        if self.ALLOWED_ORIGINS == "*":
            return ["*"]
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]

    def get_forbidden_tables_list(self) -> List[str]:
        """Deny-listed table names, trimmed, empty entries dropped"""
        return [table.strip() for table in self.FORBIDDEN_TABLES.split(",") if table.strip()]

    def get_hidden_columns_list(self) -> List[str]:
        """Columns stripped from table API responses"""
        return [column.strip() for column in self.HIDDEN_COLUMNS.split(",") if column.strip()]


# Create settings instance
settings = Settings()

# Validate production settings if in prod
if settings.APP_ENV == "prod":
    settings.validate_production()
