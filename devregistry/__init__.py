"""Device and location registry: SQLite storage, JSON request handlers and an HTTP server."""

__version__ = "0.1.0"
__all__ = ["__version__"]