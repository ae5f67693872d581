"""
Agent worker: externally triggered monitoring scans.

Runs the anomaly pipeline once per target with per-target failure isolation.
"""

from backend_shadowstack.agent_worker.scan import (
    ScanReport,
    ScanTarget,
    TargetOutcome,
    scan_targets,
)

__all__ = ["ScanReport", "ScanTarget", "TargetOutcome", "scan_targets"]
