"""
Configuration Settings.

This module defines the application configuration using Pydantic's BaseSettings.
It automatically loads all configuration from environment variables and .env file
without explicit dotenv loading.
"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# =====================================================================
# Grouped Configuration Models
# =====================================================================


class JWTConfig(BaseModel):
    """JSON Web Token configuration."""

    secret: str = Field(
        default="fixfly-dev-secret-change-me", alias="JWT_SECRET", description="Secret key for signing tokens"
    )
    algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM", description="Token signing algorithm")
    expire_days: int = Field(default=30, alias="JWT_EXPIRE_DAYS", description="Token lifetime in days")

    model_config = {"populate_by_name": True}


class RazorpayConfig(BaseModel):
    """Razorpay payment gateway configuration."""

    key_id: Optional[str] = Field(default=None, alias="RAZORPAY_KEY_ID", description="Razorpay API key id")
    key_secret: Optional[str] = Field(
        default=None, alias="RAZORPAY_KEY_SECRET", description="Razorpay API key secret, also used for signatures"
    )
    webhook_secret: Optional[str] = Field(
        default=None, alias="RAZORPAY_WEBHOOK_SECRET", description="Secret used to sign webhook payloads"
    )
    base_url: str = Field(
        default="https://api.razorpay.com/v1", alias="RAZORPAY_BASE_URL", description="Razorpay REST API base URL"
    )
    currency: str = Field(default="INR", alias="RAZORPAY_CURRENCY", description="Order currency")
    timeout: float = Field(default=30.0, alias="RAZORPAY_TIMEOUT", description="HTTP timeout in seconds")

    model_config = {"populate_by_name": True}

    @property
    def is_configured(self) -> bool:
        return bool(self.key_id and self.key_secret)


class SMSConfig(BaseModel):
    """SMS India Hub gateway configuration."""

    api_key: Optional[str] = Field(default=None, alias="SMS_INDIA_HUB_API_KEY", description="SMS India Hub API key")
    sender_id: str = Field(default="SMSHUB", alias="SMS_INDIA_HUB_SENDER_ID", description="Registered sender id")
    url: str = Field(
        default="http://cloud.smsindiahub.in/vendorsms/pushsms.aspx",
        alias="SMS_INDIA_HUB_URL",
        description="Push SMS endpoint",
    )
    otp_template: str = Field(
        default="Welcome to Fixfly, your OTP for login is: {otp}",
        alias="SMS_OTP_TEMPLATE",
        description="OTP message template, must contain '{otp}'",
    )
    timeout: float = Field(default=15.0, alias="SMS_TIMEOUT", description="HTTP timeout in seconds")

    model_config = {"populate_by_name": True}

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)


class UploadConfig(BaseModel):
    """Local file upload configuration."""

    directory: str = Field(default="uploads", alias="UPLOAD_DIR", description="Directory for stored uploads")
    base_url: str = Field(default="/uploads", alias="UPLOAD_BASE_URL", description="Public URL prefix for uploads")
    max_image_size: int = Field(
        default=5 * 1024 * 1024, alias="UPLOAD_MAX_IMAGE_SIZE", description="Maximum image size in bytes"
    )

    model_config = {"populate_by_name": True}


class WalletConfig(BaseModel):
    """Vendor wallet rules."""

    mandatory_deposit: float = Field(
        default=2000.0, alias="WALLET_MANDATORY_DEPOSIT", description="Deposit required before accepting tasks"
    )
    initial_deposit: float = Field(
        default=3999.0, alias="WALLET_INITIAL_DEPOSIT", description="Initial deposit amount that unlocks tasks"
    )
    rejection_penalty: float = Field(
        default=100.0, alias="WALLET_REJECTION_PENALTY", description="Penalty for declining an assigned task"
    )
    gst_rate: float = Field(default=0.18, alias="WALLET_GST_RATE", description="GST rate applied to billing")
    small_job_threshold: float = Field(
        default=300.0,
        alias="WALLET_SMALL_JOB_THRESHOLD",
        description="Billing amount at or below which the vendor keeps the full amount",
    )
    commission_rate: float = Field(
        default=0.5, alias="WALLET_COMMISSION_RATE", description="Vendor share of the labour amount"
    )

    model_config = {"populate_by_name": True}


class BookingConfig(BaseModel):
    """Booking lifecycle configuration."""

    service_fee: float = Field(default=100.0, alias="BOOKING_SERVICE_FEE", description="Flat service fee per booking")
    auto_reject_minutes: int = Field(
        default=25, alias="AUTO_REJECT_MINUTES", description="Minutes a vendor has to respond to an assignment"
    )
    auto_reject_interval_seconds: int = Field(
        default=60, alias="AUTO_REJECT_INTERVAL_SECONDS", description="Interval between auto-reject sweeps"
    )
    auto_reject_enabled: bool = Field(
        default=True, alias="AUTO_REJECT_ENABLED", description="Start the auto-reject service on startup"
    )
    otp_expire_minutes: int = Field(default=10, alias="OTP_EXPIRE_MINUTES", description="OTP validity in minutes")

    model_config = {"populate_by_name": True}


class DefaultAdminConfig(BaseModel):
    """Super admin created on first startup."""

    name: str = Field(default="Fixfly Admin", alias="DEFAULT_ADMIN_NAME", description="Default admin name")
    email: Optional[str] = Field(default=None, alias="DEFAULT_ADMIN_EMAIL", description="Default admin email")
    password: Optional[str] = Field(default=None, alias="DEFAULT_ADMIN_PASSWORD", description="Default admin password")
    phone: str = Field(default="9999999999", alias="DEFAULT_ADMIN_PHONE", description="Default admin phone")

    model_config = {"populate_by_name": True}


class LoggingConfig(BaseModel):
    """Console and file logging configuration."""

    level: str = Field(default="INFO", alias="FIXFLY_LOG_LEVEL", description="Level of the console handler")
    format: str = Field(default="detailed", alias="LOG_FORMAT", description="Line format: simple, detailed or json")
    file_enabled: bool = Field(default=True, alias="ENABLE_FILE_LOGGING", description="Also write fixfly.log")
    file_dir: str = Field(default="logs", alias="LOG_FILE_DIR", description="Directory of the log file")
    sql_echo: bool = Field(default=False, alias="LOG_SQL", description="Log every SQL statement at INFO")

    model_config = {"populate_by_name": True}

    @field_validator("level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Unknown log level {value!r}, expected one of {', '.join(LOG_LEVELS)}")
        return level


class CORSConfig(BaseModel):
    """CORS configuration."""

    origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS", description="Allowed CORS origins (use * for all)")
    allow_credentials: bool = Field(
        default=True, alias="CORS_ALLOW_CREDENTIALS", description="Allow credentials in CORS requests"
    )
    allow_methods: list[str] = Field(
        default=["*"], alias="CORS_ALLOW_METHODS", description="Allowed HTTP methods (use * for all)"
    )
    allow_headers: list[str] = Field(
        default=["*"], alias="CORS_ALLOW_HEADERS", description="Allowed HTTP headers (use * for all)"
    )

    model_config = {"populate_by_name": True}


# =====================================================================
# Main Settings Class
# =====================================================================


class Settings(BaseSettings):
    """
    Application settings model.

    All properties are automatically bound from environment variables and .env file.
    Pydantic's BaseSettings handles dotenv loading automatically via model_config.
    """

    # =====================================================================
    # Pydantic Configuration
    # =====================================================================
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=True,
        populate_by_name=True,
    )

    # =====================================================================
    # Fixfly Server Configuration
    # =====================================================================
    server_host: str = Field(
        default="0.0.0.0",
        description="Fixfly server host address to bind to",
        alias="FIXFLY_SERVER_HOST",
    )
    server_port: int = Field(
        default=5000,
        description="Fixfly server port number",
        alias="FIXFLY_SERVER_PORT",
    )
    log_level: str = Field(
        default="INFO",
        description="Fixfly server logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
        alias="FIXFLY_LOG_LEVEL",
    )
    log_format: str = Field(
        default="detailed",
        description="Log line format (simple, detailed, json)",
        alias="LOG_FORMAT",
    )
    enable_file_logging: bool = Field(
        default=True,
        description="Also write logs to LOG_FILE_DIR/fixfly.log",
        alias="ENABLE_FILE_LOGGING",
    )
    log_file_dir: str = Field(default="logs", description="Directory for the log file", alias="LOG_FILE_DIR")
    log_sql: bool = Field(default=False, description="Log every SQL statement", alias="LOG_SQL")
    environment: str = Field(
        default="development",
        description="Deployment environment name reported by the health endpoint",
        alias="FIXFLY_ENV",
    )

    # =====================================================================
    # Database Configuration
    # =====================================================================
    database_url: str = Field(
        default="sqlite+aiosqlite:///./fixfly.db",
        description="Async database connection URL (PostgreSQL in production)",
        alias="DATABASE_URL",
    )

    # =====================================================================
    # Authentication
    # =====================================================================
    jwt_secret: str = Field(default="fixfly-dev-secret-change-me", alias="JWT_SECRET")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    jwt_expire_days: int = Field(default=30, alias="JWT_EXPIRE_DAYS")

    default_admin_name: str = Field(default="Fixfly Admin", alias="DEFAULT_ADMIN_NAME")
    default_admin_email: Optional[str] = Field(default=None, alias="DEFAULT_ADMIN_EMAIL")
    default_admin_password: Optional[str] = Field(default=None, alias="DEFAULT_ADMIN_PASSWORD")
    default_admin_phone: str = Field(default="9999999999", alias="DEFAULT_ADMIN_PHONE")

    # =====================================================================
    # External Services
    # =====================================================================
    razorpay_key_id: Optional[str] = Field(default=None, alias="RAZORPAY_KEY_ID")
    razorpay_key_secret: Optional[str] = Field(default=None, alias="RAZORPAY_KEY_SECRET")
    razorpay_webhook_secret: Optional[str] = Field(default=None, alias="RAZORPAY_WEBHOOK_SECRET")
    razorpay_base_url: str = Field(default="https://api.razorpay.com/v1", alias="RAZORPAY_BASE_URL")
    razorpay_currency: str = Field(default="INR", alias="RAZORPAY_CURRENCY")
    razorpay_timeout: float = Field(default=30.0, alias="RAZORPAY_TIMEOUT")

    sms_india_hub_api_key: Optional[str] = Field(default=None, alias="SMS_INDIA_HUB_API_KEY")
    sms_india_hub_sender_id: str = Field(default="SMSHUB", alias="SMS_INDIA_HUB_SENDER_ID")
    sms_india_hub_url: str = Field(
        default="http://cloud.smsindiahub.in/vendorsms/pushsms.aspx", alias="SMS_INDIA_HUB_URL"
    )
    sms_otp_template: str = Field(
        default="Welcome to Fixfly, your OTP for login is: {otp}", alias="SMS_OTP_TEMPLATE"
    )
    sms_timeout: float = Field(default=15.0, alias="SMS_TIMEOUT")

    # =====================================================================
    # Uploads
    # =====================================================================
    upload_dir: str = Field(default="uploads", alias="UPLOAD_DIR")
    upload_base_url: str = Field(default="/uploads", alias="UPLOAD_BASE_URL")
    upload_max_image_size: int = Field(default=5 * 1024 * 1024, alias="UPLOAD_MAX_IMAGE_SIZE")

    # =====================================================================
    # Business Rules
    # =====================================================================
    wallet_mandatory_deposit: float = Field(default=2000.0, alias="WALLET_MANDATORY_DEPOSIT")
    wallet_initial_deposit: float = Field(default=3999.0, alias="WALLET_INITIAL_DEPOSIT")
    wallet_rejection_penalty: float = Field(default=100.0, alias="WALLET_REJECTION_PENALTY")
    wallet_gst_rate: float = Field(default=0.18, alias="WALLET_GST_RATE")
    wallet_small_job_threshold: float = Field(default=300.0, alias="WALLET_SMALL_JOB_THRESHOLD")
    wallet_commission_rate: float = Field(default=0.5, alias="WALLET_COMMISSION_RATE")

    booking_service_fee: float = Field(default=100.0, alias="BOOKING_SERVICE_FEE")
    auto_reject_minutes: int = Field(default=25, alias="AUTO_REJECT_MINUTES")
    auto_reject_interval_seconds: int = Field(default=60, alias="AUTO_REJECT_INTERVAL_SECONDS")
    auto_reject_enabled: bool = Field(default=True, alias="AUTO_REJECT_ENABLED")
    otp_expire_minutes: int = Field(default=10, alias="OTP_EXPIRE_MINUTES")

    # =====================================================================
    # CORS
    # =====================================================================
    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(default=["*"], alias="CORS_ALLOW_METHODS")
    cors_allow_headers: list[str] = Field(default=["*"], alias="CORS_ALLOW_HEADERS")

    # =====================================================================
    # Computed Properties (Grouped Configurations)
    # =====================================================================

    @property
    def jwt(self) -> JWTConfig:
        """Get JWT configuration from environment variables."""
        return JWTConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def razorpay(self) -> RazorpayConfig:
        """Get Razorpay configuration from environment variables."""
        return RazorpayConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def sms(self) -> SMSConfig:
        """Get SMS gateway configuration from environment variables."""
        return SMSConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def uploads(self) -> UploadConfig:
        """Get upload configuration from environment variables."""
        return UploadConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def wallet(self) -> WalletConfig:
        """Get wallet rules from environment variables."""
        return WalletConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def booking(self) -> BookingConfig:
        """Get booking lifecycle configuration from environment variables."""
        return BookingConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def default_admin(self) -> DefaultAdminConfig:
        """Get default admin bootstrap configuration from environment variables."""
        return DefaultAdminConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def logging(self) -> LoggingConfig:
        """Get logging configuration from environment variables."""
        return LoggingConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def cors(self) -> CORSConfig:
        """Get CORS configuration from environment variables."""
        return CORSConfig.model_validate(self.model_dump(by_alias=True))


settings = Settings()
