"""authgate: authentication and authorization layer for a web API."""

__version__ = "0.1.0"
