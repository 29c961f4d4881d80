"""Sovereign simulation core: combat resolution and the per-player world tick."""

__version__ = "0.1.0"
