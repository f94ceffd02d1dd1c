"""Unit tests for server configuration settings model.

Tests verify that the Settings model correctly binds environment variables
from the .env.example file and that the grouped configuration models are
derived from it as expected.
"""

from pathlib import Path

import pytest

from fixfly.server.core.config import (
    BookingConfig,
    CORSConfig,
    DefaultAdminConfig,
    JWTConfig,
    LoggingConfig,
    RazorpayConfig,
    Settings,
    SMSConfig,
    UploadConfig,
    WalletConfig,
)

OVERRIDDEN_BY_TEST_ENV = ("DATABASE_URL", "AUTO_REJECT_ENABLED")


@pytest.fixture
def env_example_path() -> Path:
    """Get path to the .env.example file at the repository root."""
    return Path(__file__).resolve().parents[4] / ".env.example"


@pytest.fixture
def env_example_vars(env_example_path: Path) -> dict[str, str]:
    """Parse .env.example file and return environment variables."""
    env_vars = {}
    with open(env_example_path) as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" in line:
                key, value = line.split("=", 1)
                env_vars[key.strip()] = value.strip()
    return env_vars


@pytest.fixture
def example_env(env_example_vars: dict[str, str], monkeypatch) -> dict[str, str]:
    """Export every variable of .env.example into the process environment."""
    for key, value in env_example_vars.items():
        monkeypatch.setenv(key, value)
    return env_example_vars


@pytest.fixture
def clean_env(monkeypatch):
    for key in OVERRIDDEN_BY_TEST_ENV:
        monkeypatch.delenv(key, raising=False)


class TestSettingsBinding:
    """Test Settings model environment variable binding."""

    def test_server_binding(self, example_env):
        settings = Settings()

        assert settings.server_host == example_env["FIXFLY_SERVER_HOST"]
        assert settings.server_port == int(example_env["FIXFLY_SERVER_PORT"])
        assert settings.log_level == example_env["FIXFLY_LOG_LEVEL"]
        assert settings.environment == example_env["FIXFLY_ENV"]

    def test_database_url_binding(self, example_env):
        assert Settings().database_url == example_env["DATABASE_URL"]

    def test_jwt_binding(self, example_env):
        settings = Settings()

        assert settings.jwt_secret == "change-me"
        assert settings.jwt_expire_days == 30

    def test_business_rules_binding(self, monkeypatch):
        monkeypatch.setenv("WALLET_REJECTION_PENALTY", "150")
        monkeypatch.setenv("AUTO_REJECT_MINUTES", "30")
        monkeypatch.setenv("BOOKING_SERVICE_FEE", "120.5")

        settings = Settings()

        assert settings.wallet_rejection_penalty == 150.0
        assert settings.auto_reject_minutes == 30
        assert settings.booking_service_fee == 120.5

    def test_cors_json_lists(self, monkeypatch):
        monkeypatch.setenv("CORS_ORIGINS", '["https://fixfly.in", "https://admin.fixfly.in"]')
        monkeypatch.setenv("CORS_ALLOW_CREDENTIALS", "false")

        settings = Settings()

        assert settings.cors_origins == ["https://fixfly.in", "https://admin.fixfly.in"]
        assert settings.cors_allow_credentials is False

    def test_field_names_accepted(self):
        settings = Settings(server_port=9000, razorpay_key_id="rzp_live")

        assert settings.server_port == 9000
        assert settings.razorpay_key_id == "rzp_live"


class TestGroupedConfigs:
    """Test the grouped configuration properties."""

    def test_jwt(self, monkeypatch):
        monkeypatch.setenv("JWT_SECRET", "s3cret")
        monkeypatch.setenv("JWT_EXPIRE_DAYS", "7")

        jwt_config = Settings().jwt

        assert isinstance(jwt_config, JWTConfig)
        assert jwt_config.secret == "s3cret"
        assert jwt_config.expire_days == 7
        assert jwt_config.algorithm == "HS256"

    def test_logging(self, example_env, monkeypatch):
        monkeypatch.setenv("FIXFLY_LOG_LEVEL", "debug")

        logging_config = Settings().logging

        assert isinstance(logging_config, LoggingConfig)
        assert logging_config.level == "DEBUG"
        assert logging_config.format == example_env["LOG_FORMAT"]
        assert logging_config.file_enabled is False
        assert logging_config.sql_echo is False

    def test_razorpay_unconfigured_with_empty_keys(self, example_env):
        razorpay = Settings().razorpay

        assert isinstance(razorpay, RazorpayConfig)
        assert razorpay.is_configured is False
        assert razorpay.currency == "INR"

    def test_razorpay_configured(self, monkeypatch):
        monkeypatch.setenv("RAZORPAY_KEY_ID", "rzp_test")
        monkeypatch.setenv("RAZORPAY_KEY_SECRET", "secret")

        razorpay = Settings().razorpay

        assert razorpay.is_configured is True
        assert razorpay.key_id == "rzp_test"

    def test_sms(self, monkeypatch):
        monkeypatch.setenv("SMS_INDIA_HUB_API_KEY", "hub-key")
        monkeypatch.setenv("SMS_INDIA_HUB_SENDER_ID", "FIXFLY")

        sms = Settings().sms

        assert isinstance(sms, SMSConfig)
        assert sms.is_configured is True
        assert sms.sender_id == "FIXFLY"
        assert "{otp}" in sms.otp_template

    def test_uploads(self, monkeypatch):
        monkeypatch.setenv("UPLOAD_DIR", "/var/fixfly/uploads")
        monkeypatch.setenv("UPLOAD_MAX_IMAGE_SIZE", "1024")

        uploads = Settings().uploads

        assert isinstance(uploads, UploadConfig)
        assert uploads.directory == "/var/fixfly/uploads"
        assert uploads.max_image_size == 1024

    def test_wallet(self, monkeypatch):
        monkeypatch.setenv("WALLET_GST_RATE", "0.12")

        wallet = Settings().wallet

        assert isinstance(wallet, WalletConfig)
        assert wallet.gst_rate == 0.12
        assert wallet.mandatory_deposit == 2000.0

    def test_booking(self, monkeypatch):
        monkeypatch.setenv("AUTO_REJECT_ENABLED", "false")
        monkeypatch.setenv("OTP_EXPIRE_MINUTES", "5")

        booking = Settings().booking

        assert isinstance(booking, BookingConfig)
        assert booking.auto_reject_enabled is False
        assert booking.otp_expire_minutes == 5

    def test_default_admin(self, example_env):
        admin = Settings().default_admin

        assert isinstance(admin, DefaultAdminConfig)
        assert admin.email == "admin@fixfly.in"
        assert admin.password == "change-me-please"

    def test_cors(self, monkeypatch):
        monkeypatch.setenv("CORS_ALLOW_METHODS", '["GET", "POST"]')

        cors = Settings().cors

        assert isinstance(cors, CORSConfig)
        assert cors.allow_methods == ["GET", "POST"]


class TestSettingsDefaults:
    """Test default values when no environment variables are set."""

    def test_server_defaults(self, clean_env):
        settings = Settings()

        assert settings.server_port == 5000
        assert settings.environment == "development"
        assert settings.database_url == "sqlite+aiosqlite:///./fixfly.db"

    def test_business_rule_defaults(self, clean_env):
        settings = Settings()

        assert settings.wallet == WalletConfig()
        assert settings.booking == BookingConfig()
        assert settings.booking.auto_reject_minutes == 25
        assert settings.wallet.initial_deposit == 3999.0

    def test_sub_configs_accept_field_names(self):
        config = RazorpayConfig(key_id="k", key_secret="s")

        assert config.is_configured is True
        assert config.base_url == "https://api.razorpay.com/v1"
        assert SMSConfig().is_configured is False
