"""
API server package: internal HTTP interface to the anomaly detection service.

Validates requests, delegates to AnomalyDetectionService, and maps domain
errors to coarse HTTP status codes.
"""
