"""
Alert record persisted for a confirmed anomaly.

Owned by the user; later read/dismiss mutations belong to the dashboard,
not to this service.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

AI_ANOMALY_CHANNEL = "AI_ANOMALY"


@dataclass
class AlertRecord:
    user_id: str
    target_id: str
    """Wallet address (or monitoring target id) the alert is about."""
    severity: str
    """low | medium | high | critical"""
    source_channel: str
    message_text: str
    is_read: bool = False
    is_blocked: bool = False
    created_at: int = 0
    """Unix timestamp (seconds)."""
    id: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "target_id": self.target_id,
            "severity": self.severity,
            "source_channel": self.source_channel,
            "message_text": self.message_text,
            "is_read": self.is_read,
            "is_blocked": self.is_blocked,
            "created_at": self.created_at,
        }
