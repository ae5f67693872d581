"""
Structured logging for Backend ShadowStack.

JSON logs with timestamp, wallet_id, event_type, anomaly fields.
Use get_logger() in all modules for production-ready, aggregation-friendly output.
"""

from backend_shadowstack.shadowstack_logging.logger import bind_wallet, get_logger

__all__ = ["bind_wallet", "get_logger"]
