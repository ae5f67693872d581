"""
FastAPI router: anomaly check, baseline compute/read, history ingest, monitoring scan.

Request bodies accept the dashboard's camelCase keys (walletAddress, userId)
as well as snake_case. Handlers only translate HTTP <-> service calls; domain
errors are mapped to status codes by the handlers registered in server.py.
"""

from __future__ import annotations

from typing import Any, Literal

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from backend_shadowstack.agent_worker.scan import ScanReport, ScanTarget, scan_targets
from backend_shadowstack.analysis_engine.models import Transaction
from backend_shadowstack.api_server.dependencies import get_service
from backend_shadowstack.core.exceptions import NotFoundError
from backend_shadowstack.service import AnomalyDetectionService
from backend_shadowstack.shadowstack_logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


# -----------------------------------------------------------------------------
# Request / response models
# -----------------------------------------------------------------------------


class TransactionIn(BaseModel):
    """Candidate or history transaction. Non-numeric amounts are accepted and coerced to 0."""

    amount: float | str | None = Field(None, description="Transaction amount")
    timestamp: str = Field(..., min_length=1, description="ISO-8601 timestamp")
    type: Literal["send", "receive"] = Field("send", description="send | receive")
    hash: str | None = Field(None, max_length=256, description="Optional transaction hash")

    def to_transaction(self) -> Transaction:
        return Transaction.from_dict(self.model_dump())


class AnomalyCheckRequest(BaseModel):
    """POST /api/ai/anomaly body."""

    model_config = ConfigDict(populate_by_name=True)

    wallet_address: str = Field(..., alias="walletAddress", min_length=1, max_length=128)
    transaction: TransactionIn
    user_id: str = Field(..., alias="userId", min_length=1, max_length=128)


class AnomalyCheckResponse(BaseModel):
    score: float = Field(..., ge=0, description="Scaled relative deviation (2 dp)")
    is_anomaly: bool
    summary: str
    threshold: float
    severity: str | None = Field(None, description="medium | high | critical when anomalous")
    alert_id: int | None = None


class BaselineComputeRequest(BaseModel):
    """POST /api/ai/baseline body."""

    model_config = ConfigDict(populate_by_name=True)

    wallet_address: str = Field(..., alias="walletAddress", min_length=1, max_length=128)
    user_id: str = Field(..., alias="userId", min_length=1, max_length=128)


class RecordTransactionRequest(BaseModel):
    """POST /api/ai/transactions body."""

    model_config = ConfigDict(populate_by_name=True)

    wallet_address: str = Field(..., alias="walletAddress", min_length=1, max_length=128)
    transaction: TransactionIn


class ScanTargetIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    wallet_address: str = Field(..., alias="walletAddress", min_length=1, max_length=128)
    user_id: str = Field(..., alias="userId", min_length=1, max_length=128)
    transaction: dict[str, Any]


class ScanRequest(BaseModel):
    """POST /api/monitoring/scan body. Transactions are validated per target during the scan."""

    targets: list[ScanTargetIn] = Field(default_factory=list)


# -----------------------------------------------------------------------------
# Routes
# -----------------------------------------------------------------------------


@router.post("/ai/anomaly", response_model=AnomalyCheckResponse)
def check_anomaly(
    body: AnomalyCheckRequest,
    service: AnomalyDetectionService = Depends(get_service),
) -> AnomalyCheckResponse:
    """Score a candidate transaction; stores an alert only when it is anomalous."""
    result = service.check_anomaly(
        body.wallet_address,
        body.transaction.to_transaction(),
        body.user_id,
    )
    return AnomalyCheckResponse(**result.to_dict())


@router.post("/ai/baseline")
def compute_baseline(
    body: BaselineComputeRequest,
    service: AnomalyDetectionService = Depends(get_service),
) -> dict[str, Any]:
    """Recompute and cache the wallet baseline (7-day expiry)."""
    summary = service.compute_baseline(body.wallet_address, body.user_id)
    return {"success": True, "baseline": summary.to_dict()}


@router.get("/ai/baseline")
def get_baseline(
    wallet: str | None = Query(None, description="Wallet address"),
    service: AnomalyDetectionService = Depends(get_service),
) -> dict[str, Any]:
    if not wallet or not wallet.strip():
        raise HTTPException(status_code=400, detail="Wallet address required")
    baseline = service.get_baseline(wallet)
    if baseline is None:
        raise NotFoundError()
    return {"baseline": baseline.to_dict()}


@router.post("/ai/transactions", status_code=201)
def record_transaction(
    body: RecordTransactionRequest,
    service: AnomalyDetectionService = Depends(get_service),
) -> JSONResponse:
    """Append a transaction to the wallet history used for baselines and recent samples."""
    row_id = service.record_transaction(body.wallet_address, body.transaction.to_transaction())
    return JSONResponse(status_code=201, content={"id": row_id, "wallet_address": body.wallet_address})


@router.post("/monitoring/scan")
def monitoring_scan(
    body: ScanRequest,
    service: AnomalyDetectionService = Depends(get_service),
) -> dict[str, Any]:
    """Run the anomaly check once per target; a failing target does not stop the scan."""
    if not body.targets:
        logger.info("scan_skipped", reason="no_targets")
        return {"message": "No targets to scan", **ScanReport().to_dict()}
    targets = [
        ScanTarget(user_id=t.user_id, wallet_address=t.wallet_address, transaction=t.transaction)
        for t in body.targets
    ]
    report = scan_targets(service, targets)
    return {"message": "Monitoring scan completed", **report.to_dict()}
