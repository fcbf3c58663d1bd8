"""Service settings loaded from environment variables.

Every option has an explicit default; malformed integers fall back to it
instead of failing at startup.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field


@dataclass(frozen=True)
class SmtpConfig:
    """Outbound SMTP configuration for guest emails."""

    enabled: bool = False
    host: str = "localhost"
    port: int = 587
    user: str = ""
    password: str = ""
    sender: str = ""
    use_tls: bool = True


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the reservation service.

    Attributes:
        hotel_timezone: IANA zone used to decide what "today" is.
        loyalty_points_per_booking: Points awarded to a customer per new booking.
        default_page_size: Page size used when the caller does not send one.
        max_page_size: Upper bound for caller-supplied page sizes.
        report_max_range_days: Widest reporting window accepted over HTTP.
        smtp: Email delivery configuration.
    """

    hotel_timezone: str = "UTC"
    loyalty_points_per_booking: int = 10
    default_page_size: int = 20
    max_page_size: int = 100
    report_max_range_days: int = 366
    smtp: SmtpConfig = field(default_factory=SmtpConfig)


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def get_settings() -> Settings:
    """Build Settings from the current environment."""
    smtp = SmtpConfig(
        enabled=_env_bool("EMAIL_ENABLED", False),
        host=os.environ.get("SMTP_HOST", "localhost"),
        port=_env_int("SMTP_PORT", 587),
        user=os.environ.get("SMTP_USER", ""),
        password=os.environ.get("SMTP_PASSWORD", ""),
        sender=os.environ.get("SMTP_SENDER", ""),
        use_tls=_env_bool("SMTP_USE_TLS", True),
    )
    return Settings(
        hotel_timezone=os.environ.get("HOTEL_TIMEZONE", "UTC"),
        loyalty_points_per_booking=_env_int("LOYALTY_POINTS_PER_BOOKING", 10),
        default_page_size=_env_int("DEFAULT_PAGE_SIZE", 20),
        max_page_size=_env_int("MAX_PAGE_SIZE", 100),
        report_max_range_days=_env_int("REPORT_MAX_RANGE_DAYS", 366),
        smtp=smtp,
    )
