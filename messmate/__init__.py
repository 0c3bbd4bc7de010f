"""MessMate: mess and canteen management service."""

__version__ = "1.0.0"
