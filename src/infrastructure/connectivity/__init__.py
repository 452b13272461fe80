"""Connectivity detection."""

from src.infrastructure.connectivity.monitor import ConnectivityMonitor

__all__ = ["ConnectivityMonitor"]
