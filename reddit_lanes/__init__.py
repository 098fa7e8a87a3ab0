"""Multi-lane Reddit feed client."""

__version__ = "0.1.0"
