"""Middleware package for the Kosovo COVID-19 API."""
from .logging_middleware import RequestLoggingMiddleware
from .error_handler import register_error_handlers

__all__ = ["RequestLoggingMiddleware", "register_error_handlers"]
