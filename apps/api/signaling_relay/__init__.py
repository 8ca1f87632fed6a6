"""Signaling relay for peer-to-peer calls: room directory, relays and REST surface."""

__version__ = "0.1.0"
