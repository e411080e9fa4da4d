"""
API Middleware - authentication dependency and exception handlers
"""

from .auth import require_sim_key
from .error_handler import register_exception_handlers

__all__ = ["require_sim_key", "register_exception_handlers"]
