"""Test authoring service and editing core."""

__version__ = "1.0.0"
