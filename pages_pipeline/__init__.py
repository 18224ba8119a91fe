"""Standalone runner for the documentation pages workflow."""

__version__ = "0.1.0"
