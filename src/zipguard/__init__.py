"""Validate, fingerprint and safely extract zip archives."""

__version__ = "1.0.0"
