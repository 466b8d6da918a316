"""Karaoke Session - group song picks for a shared karaoke night."""

__version__ = "0.1.0"
