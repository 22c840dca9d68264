"""A TCP proxy that relays SMPP clients round-robin to upstream servers."""

__version__ = "0.0.1"