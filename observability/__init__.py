"""
Observability Module
====================
Logging, health checks, and the gap dashboard.
"""

from observability.logger import get_logger, setup_logging

__all__ = ['get_logger', 'setup_logging']
