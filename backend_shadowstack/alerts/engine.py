"""
Alert engine: turn a confirmed anomaly into a stored alert.

The emitter is only called for anomalous results. Storage failures are not
swallowed: a lost alert write is a correctness problem, so the sink's
InfrastructureError reaches the caller.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from typing import Callable

from backend_shadowstack.alerts.models import AI_ANOMALY_CHANNEL, AlertRecord
from backend_shadowstack.analysis_engine.models import AnomalySeverity
from backend_shadowstack.shadowstack_logging import get_logger

logger = get_logger(__name__)

# Max message length stored (truncate for DB)
MAX_MESSAGE_LENGTH = 1000


class AlertSink(ABC):
    """Alert persistence collaborator."""

    @abstractmethod
    def insert_alert(self, record: AlertRecord) -> int:
        """Persist record; return its id. Raise InfrastructureError on failure."""
        ...


def _message_truncate(message: str) -> str:
    if len(message) <= MAX_MESSAGE_LENGTH:
        return message
    return message[: MAX_MESSAGE_LENGTH - 3] + "..."


class AlertEmitter:
    """Builds AI_ANOMALY alert records and writes them through an AlertSink."""

    def __init__(
        self,
        sink: AlertSink,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._sink = sink
        self._clock = clock

    def emit(
        self,
        user_id: str,
        target_id: str,
        severity: AnomalySeverity,
        message_text: str,
    ) -> AlertRecord:
        record = AlertRecord(
            user_id=user_id,
            target_id=target_id,
            severity=severity.value,
            source_channel=AI_ANOMALY_CHANNEL,
            message_text=_message_truncate(message_text),
            is_read=False,
            is_blocked=False,
            created_at=int(self._clock()),
        )
        record.id = self._sink.insert_alert(record)
        logger.info(
            "alert_stored",
            alert_id=record.id,
            user_id=user_id,
            wallet_id=target_id,
            severity=record.severity,
        )
        return record
