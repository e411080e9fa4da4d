"""
Instance Health Sidecar

Liveness/readiness reporting, instance metadata and simulated shutdown for a
single process behind a load balancer.
"""

__version__ = "1.0.0"
