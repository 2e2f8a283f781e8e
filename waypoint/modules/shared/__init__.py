"""
Waypoint Shared Module

Provides service-level foundations reused by feature modules:
- BaseService: logging, config lookup and event emission helpers
"""

from .base_service import BaseService

__all__ = ["BaseService"]
