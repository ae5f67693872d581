"""
Alert engine: confirmed anomaly to stored AI_ANOMALY alert.

Alerts are written only for anomalous checks; storage failures propagate.
"""

from backend_shadowstack.alerts.engine import AlertEmitter, AlertSink
from backend_shadowstack.alerts.models import AI_ANOMALY_CHANNEL, AlertRecord

__all__ = [
    "AI_ANOMALY_CHANNEL",
    "AlertEmitter",
    "AlertRecord",
    "AlertSink",
]
