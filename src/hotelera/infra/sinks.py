"""Concrete effect sinks and the post-commit dispatch entry point.

Notifications and audit entries are written in their own short
transactions, after the business transaction has committed.
"""

from __future__ import annotations

from hotelera.domain.effects import DispatchReport, Effect, EffectSinks, dispatch_effects
from hotelera.infra.db import txn
from hotelera.infra.email_sender import SmtpEmailSender
from hotelera.infra.repositories import activity_repository
from hotelera.infra.settings import Settings, get_settings
from hotelera.observability.correlation import get_correlation_id
from hotelera.observability.logging import get_logger

logger = get_logger(__name__)


class PgNotificationSink:
    def notify(self, title: str, message: str, severity: str) -> None:
        with txn() as cur:
            activity_repository.insert_notification(
                cur, title=title, message=message, severity=severity
            )


class PgAuditSink:
    def record(
        self,
        action: str,
        description: str,
        subject_type: str,
        subject_id: int | None,
    ) -> None:
        with txn() as cur:
            activity_repository.insert_audit_record(
                cur,
                action=action,
                description=description,
                subject_type=subject_type,
                subject_id=subject_id,
                correlation_id=get_correlation_id() or None,
            )


def get_effect_sinks(settings: Settings | None = None) -> EffectSinks:
    settings = settings or get_settings()
    return EffectSinks(
        notifications=PgNotificationSink(),
        email=SmtpEmailSender(settings.smtp),
        audit=PgAuditSink(),
    )


def dispatch(effects: list[Effect], sinks: EffectSinks | None = None) -> DispatchReport:
    """Deliver effects after commit. Never raises for a failing sink."""
    if not effects:
        return DispatchReport()
    report = dispatch_effects(effects, sinks or get_effect_sinks())
    if report.failed:
        logger.warning(
            "some effects were not delivered",
            extra={
                "extra_fields": {
                    "delivered": report.delivered,
                    "failed": len(report.failed),
                }
            },
        )
    return report
