"""Resident matching and stay coordination engine for the restaurant booking widget."""

__version__ = "0.1.0"
