"""Side effects emitted by lifecycle and customer operations.

Operations never talk to email, notification or audit collaborators
directly. They return a list of effects; ``dispatch_effects`` runs them once
the transaction has committed. Delivery is best-effort: a failing sink is
logged and the remaining effects still run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Protocol, Union

logger = logging.getLogger(__name__)


class Severity:
    INFO = "info"
    WARNING = "warning"


@dataclass(frozen=True)
class Notify:
    title: str
    message: str
    severity: str = Severity.INFO


@dataclass(frozen=True)
class SendEmail:
    recipient: str
    subject: str
    body: str


@dataclass(frozen=True)
class Audit:
    action: str
    description: str
    subject_type: str
    subject_id: int | None


Effect = Union[Notify, SendEmail, Audit]


class NotificationSink(Protocol):
    def notify(self, title: str, message: str, severity: str) -> None: ...


class EmailSink(Protocol):
    def send(self, recipient: str, subject: str, body: str) -> None: ...


class AuditSink(Protocol):
    def record(self, action: str, description: str, subject_type: str, subject_id: int | None) -> None: ...


@dataclass
class EffectSinks:
    notifications: NotificationSink
    email: EmailSink
    audit: AuditSink


@dataclass
class DispatchReport:
    delivered: int = 0
    failed: list[Effect] = field(default_factory=list)


def dispatch_effects(effects: list[Effect], sinks: EffectSinks) -> DispatchReport:
    """Deliver effects in order, isolating failures per effect.

    Returns:
        DispatchReport with the count delivered and the effects that failed.
    """
    report = DispatchReport()
    for effect in effects:
        try:
            if isinstance(effect, Audit):
                sinks.audit.record(
                    effect.action, effect.description, effect.subject_type, effect.subject_id
                )
            elif isinstance(effect, SendEmail):
                sinks.email.send(effect.recipient, effect.subject, effect.body)
            elif isinstance(effect, Notify):
                sinks.notifications.notify(effect.title, effect.message, effect.severity)
            else:
                raise TypeError(f"Unknown effect type: {type(effect).__name__}")
            report.delivered += 1
        except Exception:
            report.failed.append(effect)
            if isinstance(effect, Audit):
                # Audit gaps must reach operators.
                logger.error(
                    "audit record failed",
                    exc_info=True,
                    extra={
                        "extra_fields": {
                            "action": effect.action,
                            "subject_type": effect.subject_type,
                            "subject_id": effect.subject_id,
                        }
                    },
                )
            else:
                logger.warning(
                    "effect delivery failed",
                    exc_info=True,
                    extra={"extra_fields": {"effect": type(effect).__name__}},
                )
    return report
