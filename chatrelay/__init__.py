"""chatrelay - a minimal multi-client message relay."""

__version__ = "0.1.0"
