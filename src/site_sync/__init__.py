"""Site publish/sync engine for static sites."""

__version__ = "0.4.0"
