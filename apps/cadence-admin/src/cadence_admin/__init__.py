"""Cadence admin service: voice profile catalog and agent voice sync."""

__version__ = "0.1.0"
