"""
Tests for production event channels (traceman.signals).
"""

import pytest

from traceman.signals import DATA_UPDATED, NEW_AUDIT, ProductionEvents, production_events


class TestProductionEvents:
    def test_publish_delivers_payload(self):
        events = ProductionEvents()
        received = []

        def on_audit(sender, event, entity, timestamp, **kwargs):
            received.append((event, entity, timestamp))

        events.connect(NEW_AUDIT, on_audit)
        timestamp = events.publish(NEW_AUDIT, "record")

        assert received == [(NEW_AUDIT, "record", timestamp)]

    def test_channels_are_independent(self):
        events = ProductionEvents()
        received = []

        def on_data(sender, **kwargs):
            received.append(kwargs["entity"])

        events.connect(DATA_UPDATED, on_data)
        production_events.publish(DATA_UPDATED, "BAKERY")

        assert received == []

    def test_receiver_errors_are_contained(self, caplog):
        events = ProductionEvents()
        received = []

        def broken(sender, **kwargs):
            raise RuntimeError("dashboard offline")

        def healthy(sender, **kwargs):
            received.append(kwargs["event"])

        events.connect(NEW_AUDIT, broken)
        events.connect(NEW_AUDIT, healthy)

        events.publish(NEW_AUDIT, "record")

        assert received == [NEW_AUDIT]
        assert "dashboard offline" in caplog.text

    def test_disconnect(self):
        events = ProductionEvents()
        received = []

        def on_audit(sender, **kwargs):
            received.append(kwargs)

        events.connect(NEW_AUDIT, on_audit)
        assert events.disconnect(NEW_AUDIT, on_audit)
        events.publish(NEW_AUDIT, "record")

        assert received == []

    def test_unknown_event(self):
        with pytest.raises(ValueError):
            ProductionEvents().publish("bogus", None)
