"""Middleware for the shorten web app."""

from .logging import LoggingMiddleware

__all__ = ["LoggingMiddleware"]
