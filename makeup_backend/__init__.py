"""Landmark-driven makeup compositing engine and its HTTP service."""

__version__ = "1.0.0"
