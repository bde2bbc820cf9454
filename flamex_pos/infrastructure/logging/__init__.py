"""
Logging Infrastructure

Console plus rotating JSON file logging, and operation timing.
"""

from .logging_config import PerformanceLogger, ProductionLogger, setup_logging

__all__ = [
    "PerformanceLogger",
    "ProductionLogger",
    "setup_logging",
]
