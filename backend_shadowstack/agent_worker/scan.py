"""
Monitoring scan: run the anomaly pipeline once per target.

Triggered externally (scheduled invocation or POST /api/monitoring/scan); no
in-process scheduler. Targets are processed sequentially and independently:
a failure on one target is logged and counted, and the scan moves on.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Iterable

from backend_shadowstack.analysis_engine.models import Transaction
from backend_shadowstack.core.exceptions import ShadowStackError
from backend_shadowstack.service import AnomalyCheck, AnomalyDetectionService
from backend_shadowstack.shadowstack_logging import bind_wallet, get_logger

logger = get_logger(__name__)


@dataclass
class ScanTarget:
    user_id: str
    wallet_address: str
    transaction: Transaction | dict[str, Any]
    """Parsed transaction, or the raw payload (validated per target during the scan)."""


@dataclass
class TargetOutcome:
    wallet_address: str
    user_id: str
    check: AnomalyCheck | None = None
    error: str | None = None
    """Coarse error category when the target failed; None on success."""

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "wallet_address": self.wallet_address,
            "user_id": self.user_id,
            "error": self.error,
        }
        if self.check is not None:
            out.update(self.check.to_dict())
        return out


@dataclass
class ScanReport:
    targets_scanned: int = 0
    anomalies: int = 0
    alerts_generated: int = 0
    errors: int = 0
    duration_ms: float = 0.0
    results: list[TargetOutcome] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "targets_scanned": self.targets_scanned,
            "anomalies": self.anomalies,
            "alerts_generated": self.alerts_generated,
            "errors": self.errors,
            "duration_ms": self.duration_ms,
            "results": [r.to_dict() for r in self.results],
        }


def scan_targets(
    service: AnomalyDetectionService,
    targets: Iterable[ScanTarget],
) -> ScanReport:
    """
    Run check_anomaly for every target. Domain errors and unexpected errors on
    one target are caught and logged; other targets still run.
    """
    report = ScanReport()
    start = time.monotonic()
    for target in targets:
        report.targets_scanned += 1
        outcome = TargetOutcome(wallet_address=target.wallet_address, user_id=target.user_id)
        target_log = bind_wallet(target.wallet_address, __name__)
        try:
            transaction = target.transaction
            if not isinstance(transaction, Transaction):
                transaction = Transaction.from_dict(transaction)
            outcome.check = service.check_anomaly(
                target.wallet_address,
                transaction,
                target.user_id,
            )
        except ShadowStackError as e:
            report.errors += 1
            outcome.error = e.category
            target_log.warning(
                "scan_target_failed",
                user_id=target.user_id,
                category=e.category,
                error=e.message,
            )
        except Exception as e:
            report.errors += 1
            outcome.error = "server_error"
            target_log.exception(
                "scan_target_crashed",
                user_id=target.user_id,
                error=str(e),
            )
        else:
            if outcome.check.is_anomaly:
                report.anomalies += 1
            if outcome.check.alert_id is not None:
                report.alerts_generated += 1
        report.results.append(outcome)
    report.duration_ms = round((time.monotonic() - start) * 1000.0, 2)
    logger.info(
        "scan_done",
        targets=report.targets_scanned,
        anomalies=report.anomalies,
        alerts_generated=report.alerts_generated,
        errors=report.errors,
        duration_ms=report.duration_ms,
    )
    return report
