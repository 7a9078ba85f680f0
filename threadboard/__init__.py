"""threadboard: terminal client for a threaded discussion board."""

__version__ = "0.1.0"
