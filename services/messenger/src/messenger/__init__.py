"""Chat backend with an in-process connection registry and real-time push."""

__version__ = "0.1.0"
