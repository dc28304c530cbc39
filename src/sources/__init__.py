"""Sources module - Server transport"""

from .connection import ConnectionManager, ConnectionMetrics

__all__ = ["ConnectionManager", "ConnectionMetrics"]
