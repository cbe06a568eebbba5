"""Middleware package for the consent tracker API."""

from src.middleware.body_limit import RequestSizeLimitMiddleware
from src.middleware.correlation import CORRELATION_ID_HEADER, CorrelationIdMiddleware

__all__ = [
    "CORRELATION_ID_HEADER",
    "CorrelationIdMiddleware",
    "RequestSizeLimitMiddleware",
]
