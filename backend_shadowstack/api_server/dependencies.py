"""
FastAPI dependencies. The service is built once per process from Settings;
tests replace it with app.dependency_overrides[get_service].
"""

from __future__ import annotations

import functools

from backend_shadowstack.service import AnomalyDetectionService, build_service


@functools.lru_cache(maxsize=1)
def get_service() -> AnomalyDetectionService:
    return build_service()
