"""
Centralized configuration with environment variable overrides.

Tax rate, night-rate window, refund thresholds and booking limits are
configurable here. Nothing is hardcoded in pricing or tool logic.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from parkspot.logging_context import install_request_id_filter

load_dotenv()

logger = logging.getLogger(__name__)


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid float for {env_var}: {raw!r}"
        ) from None


@dataclass(frozen=True)
class PricingConfig:
    """Rates, tax and billing granularity."""

    currency: str = os.getenv("CURRENCY", "INR")
    tax_rate: float = _safe_float("TAX_RATE", "0.18")
    night_start_hour: int = _safe_int("NIGHT_START_HOUR", "22")
    night_end_hour: int = _safe_int("NIGHT_END_HOUR", "6")
    min_billable_hours: int = _safe_int("MIN_BILLABLE_HOURS", "1")


@dataclass(frozen=True)
class CancellationConfig:
    """Refund policy thresholds."""

    min_notice_hours: float = _safe_float("CANCEL_MIN_NOTICE_HOURS", "1")
    full_refund_hours: float = _safe_float("FULL_REFUND_HOURS", "24")
    partial_refund_ratio: float = _safe_float("PARTIAL_REFUND_RATIO", "0.5")


@dataclass(frozen=True)
class BookingConfig:
    """Limits applied by the booking tools."""

    min_extension_hours: int = _safe_int("MIN_EXTENSION_HOURS", "1")
    max_extension_hours: int = _safe_int("MAX_EXTENSION_HOURS", "12")
    default_page_size: int = _safe_int("DEFAULT_PAGE_SIZE", "10")
    max_page_size: int = _safe_int("MAX_PAGE_SIZE", "50")
    max_reason_length: int = _safe_int("MAX_REASON_LENGTH", "500")


@dataclass(frozen=True)
class PaymentConfig:
    """Payment gateway settings."""

    gateway_key_secret: str = os.getenv("PAYMENT_GATEWAY_SECRET", "test_secret")
    minor_units_per_major: int = _safe_int("MINOR_UNITS_PER_MAJOR", "100")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    pricing: PricingConfig = field(default_factory=PricingConfig)
    cancellation: CancellationConfig = field(default_factory=CancellationConfig)
    booking: BookingConfig = field(default_factory=BookingConfig)
    payment: PaymentConfig = field(default_factory=PaymentConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    app_name: str = os.getenv("APP_NAME", "ParkSpot")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if not 0.0 <= config.pricing.tax_rate <= 1.0:
        raise ValueError(
            f"TAX_RATE must be between 0.0 and 1.0, got {config.pricing.tax_rate}"
        )
    for hour_name, hour_value in [
        ("NIGHT_START_HOUR", config.pricing.night_start_hour),
        ("NIGHT_END_HOUR", config.pricing.night_end_hour),
    ]:
        if not 0 <= hour_value <= 23:
            raise ValueError(f"{hour_name} must be between 0 and 23, got {hour_value}")
    if config.pricing.min_billable_hours < 1:
        raise ValueError(
            f"MIN_BILLABLE_HOURS must be >= 1, got {config.pricing.min_billable_hours}"
        )
    if len(config.pricing.currency) != 3:
        raise ValueError(
            f"CURRENCY must be a 3-letter code, got {config.pricing.currency!r}"
        )

    if config.cancellation.min_notice_hours < 0:
        raise ValueError(
            "CANCEL_MIN_NOTICE_HOURS must be >= 0, "
            f"got {config.cancellation.min_notice_hours}"
        )
    if config.cancellation.full_refund_hours < config.cancellation.min_notice_hours:
        raise ValueError(
            "FULL_REFUND_HOURS must be >= CANCEL_MIN_NOTICE_HOURS, "
            f"got {config.cancellation.full_refund_hours}"
        )
    if not 0.0 <= config.cancellation.partial_refund_ratio <= 1.0:
        raise ValueError(
            "PARTIAL_REFUND_RATIO must be between 0.0 and 1.0, "
            f"got {config.cancellation.partial_refund_ratio}"
        )

    if config.booking.min_extension_hours < 1:
        raise ValueError(
            f"MIN_EXTENSION_HOURS must be >= 1, got {config.booking.min_extension_hours}"
        )
    if config.booking.max_extension_hours < config.booking.min_extension_hours:
        raise ValueError(
            "MAX_EXTENSION_HOURS must be >= MIN_EXTENSION_HOURS, "
            f"got {config.booking.max_extension_hours}"
        )
    for size_name, size_value in [
        ("DEFAULT_PAGE_SIZE", config.booking.default_page_size),
        ("MAX_PAGE_SIZE", config.booking.max_page_size),
        ("MAX_REASON_LENGTH", config.booking.max_reason_length),
    ]:
        if size_value < 1:
            raise ValueError(f"{size_name} must be >= 1, got {size_value}")

    if config.payment.minor_units_per_major < 1:
        raise ValueError(
            "MINOR_UNITS_PER_MAJOR must be >= 1, "
            f"got {config.payment.minor_units_per_major}"
        )


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(request_id)s] [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    install_request_id_filter()
    logger.info("Configuration loaded for '%s'", config.app_name)
    return config


# Singleton instance
settings = load_config()
