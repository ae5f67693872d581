"""
Main entrypoint: FastAPI server for the anomaly detection service.

No background worker: monitoring scans are triggered externally via
POST /api/monitoring/scan (e.g. from a scheduler).

Env: AI_THRESHOLD, HF_TOKEN, REDIS_URL, DB_PATH, API_HOST, API_PORT, LOG_LEVEL, etc.

Equivalent: uvicorn backend_shadowstack.api_server.app:app --host 0.0.0.0 --port 8000
"""

import os

# Configure structured JSON logging before other imports that may log
from backend_shadowstack.shadowstack_logging import get_logger

logger = get_logger("main")


def main() -> None:
    """Load settings and run the FastAPI server in the main thread."""
    from backend_shadowstack.config import get_settings
    from backend_shadowstack.api_server.app import app
    import uvicorn

    settings = get_settings()
    logger.info("main_server_starting", host=settings.api_host, port=settings.api_port)
    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )


if __name__ == "__main__":
    main()
