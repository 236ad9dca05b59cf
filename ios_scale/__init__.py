"""Measurement capture, session lifecycle and export engine for the IOS Scale."""

__version__ = "1.0.0"
