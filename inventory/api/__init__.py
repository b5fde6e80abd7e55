"""API package exports."""

from inventory.api.middleware import CorrelationIdMiddleware

__all__ = ["CorrelationIdMiddleware"]
