"""
API Routes - probes, instance info, simulation triggers
"""

from . import health, instance, simulate

__all__ = ["health", "instance", "simulate"]
