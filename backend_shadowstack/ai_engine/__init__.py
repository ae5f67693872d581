"""
AI engine: anomaly summaries from a hosted text-generation model with a
deterministic template fallback.
"""

from backend_shadowstack.ai_engine.summary import (
    FALLBACK_TEMPLATE,
    HuggingFaceSummarizer,
    SummaryGenerator,
    TextSummarizer,
    build_prompt,
    fallback_summary,
    format_amount,
)

__all__ = [
    "FALLBACK_TEMPLATE",
    "HuggingFaceSummarizer",
    "SummaryGenerator",
    "TextSummarizer",
    "build_prompt",
    "fallback_summary",
    "format_amount",
]
