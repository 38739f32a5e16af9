"""
Unit tests for the in-memory event bus and license events.
"""

import asyncio
from datetime import datetime, timezone

from core.domain.events import EventHandler
from core.infrastructure.events import InMemoryEventBus
from licenses.domain.events import LicenseRevoked, LicenseTransferred


class RecordingHandler(EventHandler):
    def __init__(self):
        self.events = []

    async def handle(self, event):
        self.events.append(event)


class FailingHandler(EventHandler):
    async def handle(self, event):
        raise RuntimeError("handler exploded")


class TestLicenseEvents:
    """Tests for license domain events."""

    def test_aggregate_id_is_license_id(self):
        event = LicenseRevoked(license_id=12, clinic_id=3)

        assert event.aggregate_id == "12"
        assert event.event_type == "LicenseRevoked"

    def test_events_are_timestamped_in_utc(self):
        event = LicenseTransferred(license_id=1, from_clinic_id=2, to_clinic_id=3)

        assert event.occurred_at.tzinfo == timezone.utc
        assert event.occurred_at <= datetime.now(timezone.utc)

    def test_to_dict(self):
        data = LicenseRevoked(license_id=12, clinic_id=3).to_dict()

        assert data["aggregate_id"] == "12"
        assert data["event_type"] == "LicenseRevoked"


class TestInMemoryEventBus:
    """Tests for InMemoryEventBus."""

    def test_publish_to_subscriber(self):
        bus = InMemoryEventBus()
        handler = RecordingHandler()
        bus.subscribe(LicenseRevoked, handler)
        event = LicenseRevoked(license_id=1, clinic_id=2)

        asyncio.run(bus.publish(event))

        assert handler.events == [event]

    def test_dispatch_is_by_exact_type(self):
        bus = InMemoryEventBus()
        handler = RecordingHandler()
        bus.subscribe(LicenseRevoked, handler)

        asyncio.run(bus.publish(LicenseTransferred(license_id=1, from_clinic_id=2, to_clinic_id=3)))

        assert handler.events == []

    def test_subscribing_same_handler_type_twice_is_ignored(self):
        bus = InMemoryEventBus()
        handler = RecordingHandler()
        bus.subscribe(LicenseRevoked, handler)
        bus.subscribe(LicenseRevoked, RecordingHandler())

        asyncio.run(bus.publish(LicenseRevoked(license_id=1, clinic_id=2)))

        assert len(handler.events) == 1

    def test_failing_handler_does_not_fail_publisher(self):
        bus = InMemoryEventBus()
        handler = RecordingHandler()
        bus.subscribe(LicenseRevoked, FailingHandler())
        bus.subscribe(LicenseRevoked, handler)

        asyncio.run(bus.publish(LicenseRevoked(license_id=1, clinic_id=2)))

        assert len(handler.events) == 1

    def test_clear(self):
        bus = InMemoryEventBus()
        handler = RecordingHandler()
        bus.subscribe(LicenseRevoked, handler)
        bus.clear()

        asyncio.run(bus.publish(LicenseRevoked(license_id=1, clinic_id=2)))

        assert handler.events == []
