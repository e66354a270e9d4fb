"""Alchemist: data validation and rule configuration for resource allocation."""

__version__ = "0.1.0"
