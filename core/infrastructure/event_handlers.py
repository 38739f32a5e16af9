"""
Event handlers for domain events.

These handlers process domain events for side effects like audit logging.
"""

import logging
from datetime import datetime
from typing import Any, Dict

from asgiref.sync import sync_to_async

from core.domain.events import DomainEvent, EventHandler
from core.infrastructure.events import event_bus
from licenses.domain.events import (
    LicenseEvent,
    LicenseFirstActivated,
    LicenseIssued,
    LicenseRenewed,
    LicenseRevoked,
    LicenseTransferred,
)
from licenses.infrastructure.models import AuditLog

logger = logging.getLogger(__name__)

AUDIT_ACTIONS = {
    LicenseIssued: "license_issued",
    LicenseFirstActivated: "license_first_activated",
    LicenseRenewed: "license_renewed",
    LicenseRevoked: "license_revoked",
    LicenseTransferred: "license_transferred",
}

SYSTEM_ACTOR = "system"
CLINIC_ACTOR = "clinic"


def _details(event: LicenseEvent) -> Dict[str, Any]:
    skip = {"event_id", "occurred_at", "aggregate_id", "license_id"}
    details = {}
    for name, value in vars(event).items():
        if name in skip:
            continue
        details[name] = value.isoformat() if isinstance(value, datetime) else value
    return details


def _clinic_id(event: LicenseEvent):
    if isinstance(event, LicenseTransferred):
        return event.to_clinic_id
    return getattr(event, "clinic_id", None)


class AuditLogEventHandler(EventHandler):
    """
    Event handler for audit logging.

    Logs every license event and records it in the AuditLog table.
    """

    async def handle(self, event: DomainEvent) -> None:
        """
        Handle domain event for audit logging.

        Args:
            event: Domain event to log
        """
        logger.info(
            "Audit log: %s - %s",
            event.event_type,
            event.aggregate_id,
            extra={
                "event_id": str(event.event_id),
                "event_type": event.event_type,
                "aggregate_id": event.aggregate_id,
                "occurred_at": event.occurred_at.isoformat(),
            },
        )
        action = AUDIT_ACTIONS.get(type(event))
        if action is None or not isinstance(event, LicenseEvent):
            return
        await self._record(event, action)

    @sync_to_async
    def _record(self, event: LicenseEvent, action: str) -> None:
        AuditLog.objects.create(
            license_id=event.license_id,
            clinic_id=_clinic_id(event),
            action=action,
            details=_details(event),
            actor=CLINIC_ACTOR if isinstance(event, LicenseFirstActivated) else SYSTEM_ACTOR,
        )


def register_event_handlers():
    """
    Register all event handlers with the event bus.

    This should be called during application startup.
    """
    audit_handler = AuditLogEventHandler()
    for event_type in AUDIT_ACTIONS:
        event_bus.subscribe(event_type, audit_handler)
    logger.info("Event handlers registered")
