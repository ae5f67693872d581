"""
Anomaly score -> alert severity.

First match wins: above 5 is critical, above 3 is high, anything else that
was flagged is medium. LOW is reserved for alerts raised outside this path
and is never produced here.
"""

from __future__ import annotations

from backend_shadowstack.analysis_engine.models import AnomalySeverity

CRITICAL_ABOVE = 5.0
HIGH_ABOVE = 3.0


def classify_severity(score: float) -> AnomalySeverity:
    if score > CRITICAL_ABOVE:
        return AnomalySeverity.CRITICAL
    if score > HIGH_ABOVE:
        return AnomalySeverity.HIGH
    return AnomalySeverity.MEDIUM
