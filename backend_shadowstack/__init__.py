"""
Backend ShadowStack: transaction anomaly detection for monitored wallets.

Builds per-wallet statistical baselines, scores candidate transactions against
them, classifies severity, summarizes anomalies and stores alerts. Modular
architecture with clear separation between analysis engine, baseline store,
summary generation, alert persistence, and API server.
"""

__version__ = "0.1.0"
