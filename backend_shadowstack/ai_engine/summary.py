"""
Natural-language anomaly summaries.

Primary path: a hosted text-generation endpoint (Hugging Face inference API
contract) called over httpx with a bearer token and a timeout. Fallback path:
a deterministic template. TextSummarizer implementations raise
SummaryModelError for every failure mode; SummaryGenerator collapses that
error (and only that error) into the template, so callers always get a string.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

import httpx

from backend_shadowstack.analysis_engine.models import Transaction
from backend_shadowstack.core.exceptions import SummaryModelError
from backend_shadowstack.shadowstack_logging import get_logger

logger = get_logger(__name__)

MAX_NEW_TOKENS = 80
TEMPERATURE = 0.7
DEFAULT_TIMEOUT_SEC = 10.0
# Upper bound on prompt size sent to the model
MAX_PROMPT_CHARS = 600

FALLBACK_TEMPLATE = "Anomaly detected: Transaction of {amount} shows unusual patterns (score: {score})"


def format_amount(amount: float) -> str:
    """Whole amounts without a trailing .0 (100, not 100.0); others in shortest repr (0.2)."""
    amount = float(amount)
    if amount.is_integer() and abs(amount) < 1e16:
        return str(int(amount))
    return repr(amount)


def fallback_summary(transaction: Transaction, score: float) -> str:
    return FALLBACK_TEMPLATE.format(amount=format_amount(transaction.amount), score=score)


def build_prompt(transaction: Transaction, score: float) -> str:
    prompt = (
        "Analyze this cryptocurrency transaction anomaly:\n\n"
        f"Transaction type: {transaction.type.value}\n"
        f"Amount: {format_amount(transaction.amount)}\n"
        f"Timestamp: {transaction.timestamp.isoformat()}\n"
        f"Anomaly score: {score} (relative deviation from the wallet's usual amount, x10)\n\n"
        "Write a short security alert (about 50 words) explaining why this "
        "transaction looks unusual and what the wallet owner should check."
    )
    return prompt[:MAX_PROMPT_CHARS]


class TextSummarizer(ABC):
    """Generative text backend. complete() raises SummaryModelError on any failure."""

    @abstractmethod
    def complete(self, prompt: str) -> str:
        ...


class HuggingFaceSummarizer(TextSummarizer):
    """
    POST {inputs, parameters} to a text-generation endpoint; expects
    [{"generated_text": "..."}]. An httpx.Client may be injected (tests use
    httpx.MockTransport); otherwise one is created per call.
    """

    def __init__(
        self,
        endpoint_url: str,
        token: str,
        *,
        timeout_sec: float = DEFAULT_TIMEOUT_SEC,
        client: httpx.Client | None = None,
    ) -> None:
        self._endpoint_url = endpoint_url
        self._token = token
        self._timeout_sec = timeout_sec
        self._client = client

    def _payload(self, prompt: str) -> dict[str, Any]:
        return {
            "inputs": prompt,
            "parameters": {
                "max_new_tokens": MAX_NEW_TOKENS,
                "temperature": TEMPERATURE,
                "return_full_text": False,
            },
        }

    def _post(self, client: httpx.Client, prompt: str) -> httpx.Response:
        return client.post(
            self._endpoint_url,
            json=self._payload(prompt),
            headers={"Authorization": f"Bearer {self._token}"},
            timeout=self._timeout_sec,
        )

    def complete(self, prompt: str) -> str:
        try:
            if self._client is not None:
                resp = self._post(self._client, prompt)
            else:
                with httpx.Client(timeout=self._timeout_sec) as client:
                    resp = self._post(client, prompt)
        except httpx.TimeoutException as e:
            raise SummaryModelError("summary request timed out") from e
        except httpx.HTTPError as e:
            raise SummaryModelError(f"summary request failed: {type(e).__name__}") from e

        if not resp.is_success:
            raise SummaryModelError(f"summary endpoint returned HTTP {resp.status_code}")
        try:
            data = resp.json()
        except ValueError as e:
            raise SummaryModelError("summary response is not JSON") from e
        return _extract_generated_text(data)


def _extract_generated_text(data: Any) -> str:
    """Pull generated_text out of [{"generated_text": ...}] (or a bare dict); empty is an error."""
    item = data[0] if isinstance(data, list) and data else data
    text = item.get("generated_text") if isinstance(item, dict) else None
    if not isinstance(text, str) or not text.strip():
        raise SummaryModelError("summary response has no generated_text")
    return text.strip()


class SummaryGenerator:
    """
    Produce a summary for an anomalous transaction. Never raises for model
    failures: no summarizer configured or SummaryModelError -> template.
    """

    def __init__(self, summarizer: TextSummarizer | None = None) -> None:
        self._summarizer = summarizer

    @property
    def model_enabled(self) -> bool:
        return self._summarizer is not None

    def summarize(self, transaction: Transaction, score: float) -> str:
        if self._summarizer is None:
            return fallback_summary(transaction, score)
        try:
            return self._summarizer.complete(build_prompt(transaction, score))
        except SummaryModelError as e:
            logger.warning("summary_model_failed", error=e.message, score=score)
            return fallback_summary(transaction, score)
