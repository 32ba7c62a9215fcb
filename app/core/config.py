"""
Configuration management for the attendance backend
"""
from pydantic_settings import BaseSettings
from pydantic import Field, field_validator
from typing import Optional, List
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Required settings
    DATABASE_URL: str = Field(..., description="PostgreSQL or SQLite database URL")
    JWT_SECRET_KEY: str = Field(..., description="JWT secret key for token signing")

    # Optional settings with defaults
    JWT_ALGORITHM: str = Field(default="HS256", description="JWT algorithm")
    JWT_EXPIRE_MINUTES: int = Field(default=720, description="JWT token expiration in minutes")

    APP_ENV: str = Field(default="local", description="Application environment: local, staging, prod")
    LOG_LEVEL: str = Field(default="INFO", description="Logging level: DEBUG, INFO, WARNING, ERROR")

    # CORS settings
    ALLOWED_ORIGINS: str = Field(
        default="*",
        description="Comma-separated list of allowed CORS origins. Use '*' for local only."
    )

    # Single-timezone deployment: shift "HH:MM" strings are wall-clock times in this zone
    APP_TIMEZONE: str = Field(default="Asia/Ho_Chi_Minh", description="Deployment timezone for shift comparisons")

    # Attendance rules
    LATE_GRACE_MINUTES: int = Field(
        default=0,
        ge=0,
        description="Minutes after shift start before a check-in is flagged late",
    )
    GEOFENCE_ACCURACY_BUFFER: bool = Field(
        default=False,
        description="If True, the reported GPS accuracy (meters) is added to the location radius",
    )

    # Face verification
    FACE_VERIFICATION_ENABLED: bool = Field(
        default=False,
        description="If True, employees with an enrolled face must pass a face match to check in/out",
    )
    FACE_MATCH_THRESHOLD: float = Field(default=0.45, gt=0, description="Max Euclidean distance for a match (exclusive)")
    FACE_DESCRIPTOR_LENGTH: int = Field(default=128, gt=0, description="Dimensionality of face descriptors")
    FACE_MODEL_LOADER: Optional[str] = Field(
        default=None,
        description="'package.module:factory' returning a FaceModel for server-side descriptor extraction",
    )

    # Version (can be git SHA or semver)
    VERSION: Optional[str] = Field(default=None, description="Application version (git SHA or semver)")

    # Initial super admin bootstrap settings
    INITIAL_SUPER_ADMIN_USERNAME: str = Field(
        default="superadmin",
        description="Username for the super admin created when none exists"
    )
    INITIAL_SUPER_ADMIN_PASSWORD: str = Field(
        default="Admin@12345",
        description="Password for the super admin created when none exists"
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

    @field_validator("APP_TIMEZONE")
    @classmethod
    def validate_tz(cls, v: str) -> str:
        """APP_TIMEZONE must be a valid IANA zone name"""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"APP_TIMEZONE must be a valid IANA timezone, got {v!r}")
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

    def get_timezone(self) -> ZoneInfo:
        """Deployment timezone used for wall-clock shift comparisons"""
        return ZoneInfo(self.APP_TIMEZONE)


# Create settings instance
settings = Settings()

# Validate production settings if in prod
if settings.APP_ENV == "prod":
    settings.validate_production()
