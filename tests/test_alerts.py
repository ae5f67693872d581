"""
Tests for the alert emitter: record shape, truncation, and sink failure propagation.
"""

from __future__ import annotations

import pytest

from backend_shadowstack.alerts import AI_ANOMALY_CHANNEL, AlertEmitter, AlertRecord, AlertSink
from backend_shadowstack.alerts.engine import MAX_MESSAGE_LENGTH
from backend_shadowstack.analysis_engine.models import AnomalySeverity
from backend_shadowstack.core.exceptions import InfrastructureError

from conftest import CLOCK_START, ENABLED_USER, WALLET


class ListSink(AlertSink):
    def __init__(self) -> None:
        self.records: list[AlertRecord] = []

    def insert_alert(self, record: AlertRecord) -> int:
        self.records.append(record)
        return len(self.records)


class DownSink(AlertSink):
    def insert_alert(self, record: AlertRecord) -> int:
        raise InfrastructureError("alerts table unavailable")


def test_emit_builds_ai_anomaly_record(clock):
    sink = ListSink()
    record = AlertEmitter(sink, clock=clock).emit(
        ENABLED_USER, WALLET, AnomalySeverity.CRITICAL, "Unusual amount."
    )
    assert record.id == 1
    assert sink.records == [record]
    assert record.user_id == ENABLED_USER
    assert record.target_id == WALLET
    assert record.severity == "critical"
    assert record.source_channel == AI_ANOMALY_CHANNEL == "AI_ANOMALY"
    assert record.message_text == "Unusual amount."
    assert record.is_read is False
    assert record.is_blocked is False
    assert record.created_at == int(CLOCK_START)


def test_long_message_truncated():
    sink = ListSink()
    record = AlertEmitter(sink).emit(ENABLED_USER, WALLET, AnomalySeverity.HIGH, "x" * 5000)
    assert len(record.message_text) == MAX_MESSAGE_LENGTH
    assert record.message_text.endswith("...")


def test_sink_failure_propagates():
    with pytest.raises(InfrastructureError):
        AlertEmitter(DownSink()).emit(ENABLED_USER, WALLET, AnomalySeverity.MEDIUM, "m")


def test_record_to_dict():
    record = AlertRecord(
        user_id="u",
        target_id="w",
        severity="high",
        source_channel=AI_ANOMALY_CHANNEL,
        message_text="m",
        created_at=5,
        id=9,
    )
    assert record.to_dict() == {
        "id": 9,
        "user_id": "u",
        "target_id": "w",
        "severity": "high",
        "source_channel": "AI_ANOMALY",
        "message_text": "m",
        "is_read": False,
        "is_blocked": False,
        "created_at": 5,
    }
